"""
Business Intelligence Configuration for the study platform
Defines default KPIs and insight rule thresholds
"""

from typing import Dict, Any, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class BusinessIntelligenceConfig(BaseSettings):
    """Business Intelligence configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="BI_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # KPI Definitions, keyed by metric name
    KPI_DEFINITIONS: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    # Insight rules, evaluated in order on every tracked metric
    INSIGHT_RULES: List[Dict[str, Any]] = Field(default_factory=list)

    # Executive summary
    SUMMARY_KEY_METRICS_LIMIT: int = Field(default=5)
    SUMMARY_INSIGHTS_LIMIT: int = Field(default=3)

    def __init__(self, **data):
        super().__init__(**data)
        self._initialize_defaults()

    def _initialize_defaults(self):
        """Initialize default configuration values."""

        # Alert rules are fractions of the monthly target
        if not self.KPI_DEFINITIONS:
            self.KPI_DEFINITIONS = {
                'Monthly Active Users': {
                    'formula': 'unique_users_last_30_days',
                    'targets': {'daily': 50, 'weekly': 200, 'monthly': 800, 'quarterly': 2500},
                    'alert_rules': {'critical': 0.7, 'warning': 0.85},
                },
                'Study Completion Rate': {
                    'formula': '(completed_studies / started_studies) * 100',
                    'targets': {'daily': 85, 'weekly': 85, 'monthly': 88, 'quarterly': 90},
                    'alert_rules': {'critical': 0.8, 'warning': 0.91},
                },
                'User Acquisition Cost': {
                    'formula': 'marketing_spend / new_users',
                    'targets': {'daily': 25, 'weekly': 25, 'monthly': 20, 'quarterly': 15},
                    'alert_rules': {'critical': 0.5, 'warning': 0.67},
                    'higher_is_better': False,
                },
                'Revenue Per User': {
                    'formula': 'total_revenue / active_users',
                    'targets': {'daily': 15, 'weekly': 15, 'monthly': 18, 'quarterly': 22},
                    'alert_rules': {'critical': 0.56, 'warning': 0.67},
                },
                'Study Quality Score': {
                    'formula': 'avg_study_rating * completion_rate / 100',
                    'targets': {'daily': 4.0, 'weekly': 4.2, 'monthly': 4.5, 'quarterly': 4.7},
                    'alert_rules': {'critical': 0.78, 'warning': 0.84},
                },
            }

        if not self.INSIGHT_RULES:
            self.INSIGHT_RULES = [
                {
                    'metric_category': 'user',
                    'trend': 'up',
                    'min_trend_percentage': 20,
                    'title': 'Strong User Growth Detected',
                    'description': '{name} has increased by {percentage}% indicating strong user acquisition',
                    'impact': 'high',
                    'category': 'growth',
                    'recommendation': 'Consider scaling infrastructure and increasing marketing budget',
                    'confidence': 0.85,
                },
                {
                    'metric_category': 'engagement',
                    'trend': 'down',
                    'min_trend_percentage': 15,
                    'title': 'Engagement Decline Alert',
                    'description': '{name} has decreased by {percentage}% requiring immediate attention',
                    'impact': 'high',
                    'category': 'engagement',
                    'recommendation': 'Investigate user experience issues and implement retention strategies',
                    'confidence': 0.90,
                },
                {
                    'metric_category': 'financial',
                    'trend': 'up',
                    'min_trend_percentage': 10,
                    'title': 'Revenue Growth Opportunity',
                    'description': '{name} growth of {percentage}% suggests strong market demand',
                    'impact': 'medium',
                    'category': 'revenue',
                    'recommendation': 'Explore premium features and enterprise packages',
                    'confidence': 0.75,
                },
            ]


# Global BI configuration instance
bi_config = BusinessIntelligenceConfig()
