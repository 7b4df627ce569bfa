"""
Business Intelligence Service for the study platform
Handles metric tracking, KPI alerting, insight generation and executive summaries
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import numpy as np

from config.business_intelligence import BusinessIntelligenceConfig, bi_config
from models.analytics import TimePeriod
from models.business_intelligence import (
    AlertCounts, AlertSeverity, BusinessIntelligenceStatus, BusinessInsight, BusinessMetric,
    ExecutiveSummary, KPIConfiguration, MetricCategory, SummaryOverview, SummaryTrends,
    TrendDirection
)
from utils.analytics_store import AnalyticsStore
from utils.bi_reporting import AnalyticsReporting
from utils.exceptions import InvalidTimeRangeException, ValidationException
from utils.insights import InsightGenerator
from utils.kpi_alerts import AlertHandler, KPIAlertEvaluator
from utils.metric_store import MetricStore


class BusinessIntelligenceService:
    """Main BI service for metric aggregation and analysis."""

    def __init__(self, store: AnalyticsStore, config: Optional[BusinessIntelligenceConfig] = None):
        self.store = store
        self.config = config or bi_config
        self.metric_store = MetricStore(store, self.config)
        self.alert_evaluator = KPIAlertEvaluator(store)
        self.insight_generator = InsightGenerator(store, self.config.INSIGHT_RULES)
        self.reporting = AnalyticsReporting()
        self.logger = logging.getLogger(__name__)

    # ===== METRIC TRACKING =====

    def track_metric(self, name: str, value: float, category: Union[MetricCategory, str],
                     unit: str = '') -> BusinessMetric:
        """Track a business metric observation.

        The observation replaces the current value for its name; its trend,
        KPI alerts and insights are computed before this call returns.
        """
        metric = self.metric_store.record(name, value, category, unit)
        self.alert_evaluator.evaluate(metric, self.metric_store.get_kpi(name))
        self.insight_generator.generate(metric)
        return metric

    def get_metrics(self, category: Optional[Union[MetricCategory, str]] = None) -> List[BusinessMetric]:
        """Get current metrics, optionally by category."""
        return self.metric_store.get_metrics(category)

    def get_metric_history(self, name: str) -> List[BusinessMetric]:
        """Get retained observations of a metric, oldest first."""
        return self.metric_store.get_history(name)

    def get_insights(self, limit: int = 10) -> List[BusinessInsight]:
        """Get the most recent business insights."""
        return self.insight_generator.get_insights(limit)

    # ===== KPI CONFIGURATION =====

    def configure_kpi(self, kpi: Union[KPIConfiguration, Dict[str, Any]]) -> KPIConfiguration:
        """Add or replace a KPI configuration."""
        return self.metric_store.configure_kpi(kpi)

    def get_kpis(self) -> List[KPIConfiguration]:
        """Get every KPI configuration."""
        return self.metric_store.list_kpis()

    def add_alert_handler(self, handler: AlertHandler):
        """Register a delivery callback for KPI alerts."""
        self.alert_evaluator.add_handler(handler)

    # ===== EXECUTIVE SUMMARY =====

    def generate_executive_summary(self, start_date: datetime, end_date: datetime) -> ExecutiveSummary:
        """Generate an executive summary for the period."""
        if start_date > end_date:
            raise InvalidTimeRangeException(start_date, end_date)

        metrics = self.get_metrics()

        overview = SummaryOverview(
            total_users=self._find_metric_value(metrics, MetricCategory.USER, 'Total'),
            active_studies=self._find_metric_value(metrics, MetricCategory.STUDY, 'Active'),
            revenue=self._find_metric_value(metrics, MetricCategory.FINANCIAL, 'Revenue'),
            growth=self._calculate_overall_growth(metrics)
        )

        trends = SummaryTrends(
            user_growth=self._calculate_category_trend(metrics, MetricCategory.USER),
            study_completion=self._calculate_category_trend(metrics, MetricCategory.STUDY),
            revenue=self._calculate_category_trend(metrics, MetricCategory.FINANCIAL),
            engagement=self._calculate_category_trend(metrics, MetricCategory.ENGAGEMENT)
        )

        alerts = AlertCounts(
            critical=self.alert_evaluator.count_alerts(AlertSeverity.CRITICAL, start_date, end_date),
            warning=self.alert_evaluator.count_alerts(AlertSeverity.WARNING, start_date, end_date)
        )

        return ExecutiveSummary(
            period=TimePeriod(start=start_date, end=end_date),
            overview=overview,
            key_metrics=self._get_top_metrics(metrics, self.config.SUMMARY_KEY_METRICS_LIMIT),
            insights=self.get_insights(self.config.SUMMARY_INSIGHTS_LIMIT),
            trends=trends,
            alerts=alerts
        )

    def _find_metric_value(self, metrics: List[BusinessMetric], category: MetricCategory,
                           name_fragment: str) -> float:
        for metric in metrics:
            if metric.category == category and name_fragment in metric.name:
                return metric.value
        return 0

    def _calculate_overall_growth(self, metrics: List[BusinessMetric]) -> float:
        growth = [m.trend_percentage for m in metrics if m.trend == TrendDirection.UP]
        if not growth:
            return 0.0
        return round(float(np.mean(growth)), 2)

    def _calculate_category_trend(self, metrics: List[BusinessMetric], category: MetricCategory) -> float:
        signed = []
        for metric in metrics:
            if metric.category != category:
                continue
            if metric.trend == TrendDirection.UP:
                signed.append(metric.trend_percentage)
            elif metric.trend == TrendDirection.DOWN:
                signed.append(-metric.trend_percentage)
            else:
                signed.append(0.0)

        if not signed:
            return 0.0
        return round(float(np.mean(signed)), 2)

    def _get_top_metrics(self, metrics: List[BusinessMetric], limit: int) -> List[BusinessMetric]:
        def score(metric: BusinessMetric) -> float:
            achievement = metric.value / metric.target_value * 100 if metric.target_value else 0
            return metric.trend_percentage + achievement

        return sorted(metrics, key=score, reverse=True)[:limit]

    # ===== EXPORT AND MAINTENANCE =====

    def export_metrics_data(self, format_type: str = 'json') -> str:
        """Export current metrics as JSON or CSV."""
        return self.reporting.export_metrics(self.get_metrics(), format_type)

    def cleanup_old_metrics(self, older_than_days: Optional[float] = None) -> int:
        """Remove metrics, insights and alerts older than the retention period.

        Returns:
            Number of current metrics removed
        """
        if older_than_days is None:
            older_than_days = self.store.settings.DEFAULT_RETENTION_DAYS
        if older_than_days < 0:
            raise ValidationException('Retention must not be negative', 'older_than_days')

        cutoff = self.store.cutoff(days=older_than_days)
        removed = self.metric_store.prune_before(cutoff)
        insights_removed = self.insight_generator.prune_before(cutoff)
        alerts_removed = self.alert_evaluator.prune_before(cutoff)

        self.logger.info(
            f"Cleaned up BI data older than {older_than_days} days: {removed} metrics, "
            f"{insights_removed} insights, {alerts_removed} alerts"
        )
        return removed

    def get_status(self) -> BusinessIntelligenceStatus:
        """Get service status."""
        return BusinessIntelligenceStatus(
            is_healthy=True,
            metrics_count=self.metric_store.count(),
            insights_count=self.insight_generator.count(),
            kpis_count=len(self.get_kpis()),
            alerts_count=self.alert_evaluator.count(),
            last_updated=self.store.now()
        )
