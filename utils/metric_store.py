"""
Metric store and trend engine for named business metrics
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from config.business_intelligence import BusinessIntelligenceConfig, bi_config
from models.business_intelligence import (
    BusinessMetric, KPIConfiguration, MetricCategory, TrendDirection
)
from utils.analytics_store import AnalyticsStore
from utils.exceptions import ValidationException


def calculate_trend(current_value: float, previous_value: Optional[float],
                    stable_threshold: float = 2.0) -> Tuple[TrendDirection, float]:
    """Trend of a value relative to the previous observation.

    Args:
        current_value: The new observation
        previous_value: The immediately preceding observation, if any
        stable_threshold: Relative change (percent) below which the trend is stable

    Returns:
        Direction and absolute percentage change rounded to 2 decimals
    """
    if previous_value is None or previous_value == 0:
        return TrendDirection.STABLE, 0.0

    change = (current_value - previous_value) / abs(previous_value) * 100
    percentage = round(abs(change), 2)

    if abs(change) < stable_threshold:
        return TrendDirection.STABLE, percentage

    return (TrendDirection.UP if change > 0 else TrendDirection.DOWN), percentage


def resolve_targets(kpi: Optional[KPIConfiguration]) -> Tuple[Optional[float], Optional[float]]:
    """Monthly target and warning threshold of a KPI, both None without configuration."""
    if kpi is None:
        return None, None

    target = kpi.targets.monthly
    if kpi.higher_is_better:
        threshold = kpi.alert_rules.warning * target
    else:
        threshold = target / kpi.alert_rules.warning
    return target, round(threshold, 4)


class MetricStore:
    """Keeps the current and recent observations of every metric name."""

    def __init__(self, store: AnalyticsStore, config: Optional[BusinessIntelligenceConfig] = None):
        self.store = store
        self.config = config or bi_config
        self.logger = logging.getLogger(__name__)
        self._initialize_default_kpis()

    def _initialize_default_kpis(self):
        with self.store.metrics_lock:
            if self.store.kpis:
                return
            for name, definition in self.config.KPI_DEFINITIONS.items():
                self.store.kpis[name] = KPIConfiguration(name=name, **definition)

    # ===== KPI CONFIGURATION =====

    def configure_kpi(self, kpi: Union[KPIConfiguration, Dict[str, Any]]) -> KPIConfiguration:
        """Add or replace the KPI configuration of a metric name."""
        if not isinstance(kpi, KPIConfiguration):
            try:
                kpi = KPIConfiguration(**kpi)
            except ValidationError as e:
                raise ValidationException.from_pydantic(e)

        with self.store.metrics_lock:
            self.store.kpis[kpi.name] = kpi

        self.logger.info(f"Configured KPI '{kpi.name}' (monthly target {kpi.targets.monthly})")
        return kpi

    def get_kpi(self, name: str) -> Optional[KPIConfiguration]:
        """Get the KPI configuration of a metric name."""
        with self.store.metrics_lock:
            return self.store.kpis.get(name)

    def list_kpis(self) -> List[KPIConfiguration]:
        """Get every KPI configuration."""
        with self.store.metrics_lock:
            return list(self.store.kpis.values())

    # ===== OBSERVATIONS =====

    def record(self, name: str, value: float, category: Union[MetricCategory, str],
               unit: str = '') -> BusinessMetric:
        """Store a new observation, computing its trend against the previous one."""
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationException(f"Metric value must be a finite number, got {value!r}", 'value')

        with self.store.metrics_lock:
            previous = self.store.metrics.get(name)
            direction, percentage = calculate_trend(
                value,
                previous.value if previous else None,
                self.store.settings.TREND_STABLE_THRESHOLD_PERCENT
            )
            target_value, alert_threshold = resolve_targets(self.store.kpis.get(name))

            try:
                metric = BusinessMetric(
                    name=name,
                    category=category,
                    value=value,
                    unit=unit,
                    trend=direction,
                    trend_percentage=percentage,
                    timestamp=self.store.now(),
                    target_value=target_value,
                    alert_threshold=alert_threshold
                )
            except ValidationError as e:
                raise ValidationException.from_pydantic(e)

            self.store.metrics[name] = metric
            history = self.store.metric_history.get(name)
            if history is None:
                history = self.store.metric_history[name] = self.store.new_history()
            history.append(metric)

        self.logger.debug(
            f"Tracked metric '{name}' = {value}{unit} (trend {direction.value} {percentage}%)"
        )
        return metric

    def get_metrics(self, category: Optional[Union[MetricCategory, str]] = None) -> List[BusinessMetric]:
        """Get the current observation of every metric, optionally by category."""
        if category is not None:
            try:
                category = MetricCategory(category)
            except ValueError:
                raise ValidationException(f"Unknown metric category: {category}", 'category')

        with self.store.metrics_lock:
            return [
                m for m in self.store.metrics.values()
                if category is None or m.category == category
            ]

    def get_metric(self, name: str) -> Optional[BusinessMetric]:
        """Get the current observation of one metric."""
        with self.store.metrics_lock:
            return self.store.metrics.get(name)

    def get_history(self, name: str) -> List[BusinessMetric]:
        """Get retained observations of one metric, oldest first."""
        with self.store.metrics_lock:
            return list(self.store.metric_history.get(name, ()))

    def count(self) -> int:
        """Number of metric names with a current observation."""
        with self.store.metrics_lock:
            return len(self.store.metrics)

    def prune_before(self, cutoff: datetime) -> int:
        """Remove current observations older than the cutoff, and their stale history.

        Returns:
            Number of current observations removed
        """
        with self.store.metrics_lock:
            expired = [name for name, m in self.store.metrics.items() if m.timestamp < cutoff]
            for name in expired:
                del self.store.metrics[name]

            for name in list(self.store.metric_history):
                history = self.store.metric_history[name]
                kept = [m for m in history if m.timestamp >= cutoff]
                if kept:
                    history.clear()
                    history.extend(kept)
                else:
                    del self.store.metric_history[name]

            return len(expired)
