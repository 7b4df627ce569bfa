"""
In-memory state container for the analytics engine

One store is constructed per process (or per Flask app) and handed to every
component. Each collection is guarded by its own lock; no operation needs to
hold more than one of them at a time.
"""

import threading
from collections import defaultdict, deque
from datetime import datetime, timedelta
from typing import Callable, Deque, Dict, List, Optional

from config.settings import AnalyticsSettings, get_settings
from models.analytics import BehaviorPattern, UserAction, UserSession
from models.business_intelligence import (
    BusinessInsight, BusinessMetric, KPIConfiguration, MetricAlert
)


Clock = Callable[[], datetime]


class AnalyticsStore:
    """Shared, lock-guarded collections of actions, sessions, metrics and derived state."""

    def __init__(self, settings: Optional[AnalyticsSettings] = None, clock: Optional[Clock] = None):
        self.settings = settings or get_settings()
        self.clock: Clock = clock or datetime.utcnow

        # Action ledger: insertion order plus a per-user index
        self.actions: List[UserAction] = []
        self.actions_by_user: Dict[str, List[UserAction]] = defaultdict(list)
        self.actions_lock = threading.Lock()

        # Session table
        self.sessions: Dict[str, UserSession] = {}
        self.sessions_lock = threading.Lock()

        # Behavior patterns
        self.patterns: List[BehaviorPattern] = []
        self.patterns_lock = threading.Lock()

        # Metrics: current slot, bounded history and KPI configuration
        self.metrics: Dict[str, BusinessMetric] = {}
        self.metric_history: Dict[str, Deque[BusinessMetric]] = {}
        self.kpis: Dict[str, KPIConfiguration] = {}
        self.metrics_lock = threading.Lock()

        # Insight log
        self.insights: List[BusinessInsight] = []
        self.insights_lock = threading.Lock()

        # Emitted alerts, kept only for summary counts
        self.alerts: Deque[MetricAlert] = deque(maxlen=self.settings.ALERT_LOG_LIMIT)
        self.alerts_lock = threading.Lock()

    def now(self) -> datetime:
        """Current time according to the store clock."""
        return self.clock()

    def new_history(self) -> Deque[BusinessMetric]:
        """Create an empty, bounded history for one metric name."""
        return deque(maxlen=self.settings.METRIC_HISTORY_LIMIT)

    def cutoff(self, **window: float) -> datetime:
        """Start of a trailing window ending now, e.g. ``cutoff(days=30)``.

        Windows reaching past the earliest representable time clamp to
        ``datetime.min`` so that every stored record falls inside them.
        """
        try:
            return self.now() - timedelta(**window)
        except OverflowError:
            return datetime.min
