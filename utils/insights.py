"""
Heuristic insight generation from metric trends
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from config.business_intelligence import bi_config
from models.business_intelligence import BusinessInsight, BusinessMetric
from utils.analytics_store import AnalyticsStore
from utils.exceptions import ValidationException


def generate_insights(metric: BusinessMetric, rules: List[Dict[str, Any]],
                      now: datetime) -> List[BusinessInsight]:
    """Build the insights a metric observation triggers."""
    insights = []

    for rule in rules:
        if metric.category.value != rule['metric_category']:
            continue
        if metric.trend.value != rule['trend']:
            continue
        if metric.trend_percentage <= rule['min_trend_percentage']:
            continue

        insights.append(BusinessInsight(
            title=rule['title'],
            description=rule['description'].format(name=metric.name, percentage=metric.trend_percentage),
            impact=rule['impact'],
            category=rule['category'],
            recommendation=rule['recommendation'],
            metrics=[metric.name],
            confidence=rule['confidence'],
            timestamp=now
        ))

    return insights


class InsightGenerator:
    """Appends rule-triggered insights to the insight log."""

    def __init__(self, store: AnalyticsStore, rules: Optional[List[Dict[str, Any]]] = None):
        self.store = store
        self.rules = rules if rules is not None else bi_config.INSIGHT_RULES
        self.logger = logging.getLogger(__name__)

    def generate(self, metric: BusinessMetric) -> List[BusinessInsight]:
        """Evaluate the rules for a metric and log the resulting insights."""
        insights = generate_insights(metric, self.rules, self.store.now())
        if insights:
            with self.store.insights_lock:
                self.store.insights.extend(insights)
            for insight in insights:
                self.logger.info(f"Generated insight '{insight.title}' from {metric.name}")
        return insights

    def get_insights(self, limit: int = 10) -> List[BusinessInsight]:
        """Get the most recent insights, newest first."""
        if limit < 0:
            raise ValidationException('Limit must not be negative', 'limit')

        with self.store.insights_lock:
            # Reverse first so equal timestamps keep newest-appended first
            ordered = sorted(reversed(self.store.insights), key=lambda i: i.timestamp, reverse=True)
        return ordered[:limit]

    def count(self) -> int:
        """Number of logged insights."""
        with self.store.insights_lock:
            return len(self.store.insights)

    def prune_before(self, cutoff: datetime) -> int:
        """Remove insights generated before the cutoff."""
        with self.store.insights_lock:
            original_count = len(self.store.insights)
            self.store.insights = [i for i in self.store.insights if i.timestamp >= cutoff]
            return original_count - len(self.store.insights)
