"""
Business Intelligence Models for the study platform
Business metrics, KPI configuration, insights, alerts and executive summaries
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.analytics import PatternImpact, TimePeriod, generate_id


class MetricCategory(str, Enum):
    """Business metric categories."""

    USER = "user"
    STUDY = "study"
    FINANCIAL = "financial"
    ENGAGEMENT = "engagement"
    PERFORMANCE = "performance"


class TrendDirection(str, Enum):
    """Direction of change relative to the previous observation."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class AlertSeverity(str, Enum):
    """KPI alert severity levels."""

    CRITICAL = "critical"
    WARNING = "warning"


class KPITargets(BaseModel):
    """Per-period KPI targets."""

    daily: float
    weekly: float
    monthly: float
    quarterly: float


class KPIAlertRules(BaseModel):
    """Alert fractions expressed as achievement ratios of the monthly target."""

    critical: float = Field(..., gt=0.0)
    warning: float = Field(..., gt=0.0)

    @field_validator('warning')
    @classmethod
    def validate_warning_above_critical(cls, v, info):
        critical = info.data.get('critical')
        if critical is not None and v < critical:
            raise ValueError('Warning fraction must not be below the critical fraction')
        return v


class KPIConfiguration(BaseModel):
    """Static alerting and target policy for one metric name."""

    name: str = Field(..., min_length=1)
    formula: str = ""
    targets: KPITargets
    alert_rules: KPIAlertRules
    higher_is_better: bool = True


class BusinessMetric(BaseModel):
    """A named, timestamped observation of a KPI."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id('metric'))
    name: str = Field(..., min_length=1)
    category: MetricCategory
    value: float
    unit: str = ""
    trend: TrendDirection = TrendDirection.STABLE
    trend_percentage: float = 0.0
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    target_value: Optional[float] = None
    alert_threshold: Optional[float] = None


class BusinessInsight(BaseModel):
    """A generated observation tied to one metric's latest trend."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id('insight'))
    title: str
    description: str
    impact: PatternImpact
    category: str
    recommendation: str
    metrics: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class MetricAlert(BaseModel):
    """A KPI alert emitted while tracking a metric."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id('alert'))
    severity: AlertSeverity
    metric_name: str
    value: float
    target_value: float
    achievement_rate: float
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class SummaryOverview(BaseModel):
    """Headline numbers of an executive summary."""

    total_users: float = 0
    active_studies: float = 0
    revenue: float = 0
    growth: float = 0.0


class SummaryTrends(BaseModel):
    """Average signed trend per metric category."""

    user_growth: float = 0.0
    study_completion: float = 0.0
    revenue: float = 0.0
    engagement: float = 0.0


class AlertCounts(BaseModel):
    """Alert counts by severity."""

    critical: int = 0
    warning: int = 0


class ExecutiveSummary(BaseModel):
    """Aggregated business overview for a period."""

    period: TimePeriod
    overview: SummaryOverview
    key_metrics: List[BusinessMetric] = Field(default_factory=list)
    insights: List[BusinessInsight] = Field(default_factory=list)
    trends: SummaryTrends
    alerts: AlertCounts


class BusinessIntelligenceStatus(BaseModel):
    """Health and size of the business intelligence collections."""

    is_healthy: bool = True
    metrics_count: int = 0
    insights_count: int = 0
    kpis_count: int = 0
    alerts_count: int = 0
    last_updated: datetime
