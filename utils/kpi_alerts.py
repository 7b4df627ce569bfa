"""
KPI alert evaluation: compare a tracked metric with its configured targets
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from models.business_intelligence import (
    AlertSeverity, BusinessMetric, KPIConfiguration, MetricAlert
)
from utils.analytics_store import AnalyticsStore
from utils.exceptions import ValidationException


AlertHandler = Callable[[MetricAlert], None]


def achievement_rate(value: float, kpi: KPIConfiguration) -> Optional[float]:
    """Percentage of the monthly target achieved, None when it cannot be computed."""
    target = kpi.targets.monthly
    if target == 0:
        return None

    if kpi.higher_is_better:
        return value / target * 100

    # Lower is better: at or below target counts as fully achieved
    if value <= 0:
        return None
    return target / value * 100


def evaluate_kpi(metric: BusinessMetric, kpi: Optional[KPIConfiguration]) -> Optional[MetricAlert]:
    """Build the alert a metric observation triggers, if any."""
    if kpi is None:
        return None

    rate = achievement_rate(metric.value, kpi)
    if rate is None:
        return None

    if rate < kpi.alert_rules.critical * 100:
        severity = AlertSeverity.CRITICAL
    elif rate < kpi.alert_rules.warning * 100:
        severity = AlertSeverity.WARNING
    else:
        return None

    return MetricAlert(
        severity=severity,
        metric_name=metric.name,
        value=metric.value,
        target_value=kpi.targets.monthly,
        achievement_rate=round(rate, 2),
        message=f"{severity.value.capitalize()}: {metric.name} is {rate:.1f}% of target",
        timestamp=metric.timestamp
    )


class KPIAlertEvaluator:
    """Emits alerts for metric observations that miss their KPI targets."""

    def __init__(self, store: AnalyticsStore, handlers: Optional[List[AlertHandler]] = None):
        self.store = store
        self.handlers: List[AlertHandler] = list(handlers or [])
        self.logger = logging.getLogger(__name__)

    def add_handler(self, handler: AlertHandler):
        """Register a delivery callback for emitted alerts."""
        self.handlers.append(handler)

    def evaluate(self, metric: BusinessMetric, kpi: Optional[KPIConfiguration]) -> Optional[MetricAlert]:
        """Evaluate a metric and emit the resulting alert."""
        alert = evaluate_kpi(metric, kpi)
        if alert is None:
            return None

        self.logger.warning(
            f"[{alert.severity.value.upper()}] Business Alert: {alert.message} "
            f"(value={alert.value}, target={alert.target_value})"
        )

        with self.store.alerts_lock:
            self.store.alerts.append(alert)

        for handler in self.handlers:
            try:
                handler(alert)
            except Exception as e:
                self.logger.error(f"Alert handler failed for {alert.metric_name}: {str(e)}", exc_info=True)

        return alert

    def get_alerts(self, severity: Optional[Union[AlertSeverity, str]] = None) -> List[MetricAlert]:
        """Get retained alerts, optionally by severity."""
        if severity is not None:
            try:
                severity = AlertSeverity(severity)
            except ValueError:
                raise ValidationException(f"Unknown alert severity: {severity}", 'severity')

        with self.store.alerts_lock:
            return [a for a in self.store.alerts if severity is None or a.severity == severity]

    def count_alerts(self, severity: Union[AlertSeverity, str], start: Optional[datetime] = None,
                     end: Optional[datetime] = None) -> int:
        """Count retained alerts of a severity emitted within [start, end]."""
        return sum(
            1 for a in self.get_alerts(severity)
            if (start is None or a.timestamp >= start) and (end is None or a.timestamp <= end)
        )

    def count(self) -> int:
        """Number of retained alerts."""
        with self.store.alerts_lock:
            return len(self.store.alerts)

    def prune_before(self, cutoff: datetime) -> int:
        """Remove alerts emitted before the cutoff."""
        with self.store.alerts_lock:
            kept = [a for a in self.store.alerts if a.timestamp >= cutoff]
            removed = len(self.store.alerts) - len(kept)
            self.store.alerts.clear()
            self.store.alerts.extend(kept)
            return removed
