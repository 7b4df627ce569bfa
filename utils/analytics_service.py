"""
Usage Analytics Service for the study platform
Handles action ingestion, session tracking, engagement analysis and behavior patterns
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

from models.analytics import (
    ActionCategory, ActionDetails, ActionMetadata, EngagementMetrics, PatternImpact,
    UsageAnalyticsStatus, UserAction, UserJourney
)
from utils.action_ledger import ActionLedger
from utils.analytics_store import AnalyticsStore
from utils.behavior_patterns import BehaviorPatternDetector, PatternRule
from utils.bi_reporting import AnalyticsReporting
from utils.engagement import calculate_engagement_metrics
from utils.exceptions import ValidationException
from utils.session_tracker import SessionTracker


class UsageAnalyticsService:
    """User behavior tracking and engagement analytics."""

    def __init__(self, store: AnalyticsStore):
        self.store = store
        self.settings = store.settings
        self.ledger = ActionLedger(store)
        self.sessions = SessionTracker(store)
        self.pattern_detector = BehaviorPatternDetector(store, self.ledger)
        self.reporting = AnalyticsReporting()
        self.logger = logging.getLogger(__name__)

    # ===== INGESTION =====

    def start_session(self, user_id: str, source: str = 'direct', device: str = 'unknown',
                      location: Optional[str] = None) -> str:
        """Start a new user session and return its id."""
        return self.sessions.start_session(user_id, source, device, location)

    def track_action(self, user_id: str, action: str, category: Union[ActionCategory, str],
                     details: Optional[Union[ActionDetails, Dict[str, Any]]] = None,
                     session_id: Optional[str] = None,
                     metadata: Optional[Union[ActionMetadata, Dict[str, Any]]] = None) -> UserAction:
        """Record a user action, fold it into its session and re-run pattern detection."""
        if not session_id:
            raise ValidationException('Session id is required', 'session_id')

        user_action = self.ledger.record(user_id, action, category, details, session_id, metadata)
        self.sessions.apply_action(session_id, user_action)
        self.pattern_detector.detect(user_id)
        return user_action

    def end_session(self, session_id: str):
        """End a user session."""
        self.sessions.end_session(session_id)

    def register_pattern_rule(self, rule: PatternRule):
        """Extend behavior pattern detection with an additional rule."""
        self.pattern_detector.register_rule(rule)

    # ===== QUERIES =====

    def calculate_engagement_metrics(self, start_date: datetime, end_date: datetime) -> EngagementMetrics:
        """Calculate engagement metrics for sessions started within the period."""
        return calculate_engagement_metrics(self.sessions.all_sessions(), start_date, end_date)

    def get_behavior_patterns(self, impact: Optional[Union[PatternImpact, str]] = None):
        """Get detected behavior patterns, optionally filtered by impact."""
        return self.pattern_detector.get_patterns(impact)

    def get_user_journey(self, user_id: str, timeframe_hours: float = 24) -> UserJourney:
        """Get a user's sessions and actions within the timeframe plus their patterns."""
        if timeframe_hours < 0:
            raise ValidationException('Timeframe must not be negative', 'timeframe_hours')

        cutoff = self.store.cutoff(hours=timeframe_hours)
        sessions = [
            s for s in self.sessions.all_sessions()
            if s.user_id == user_id and s.start_time >= cutoff
        ]

        return UserJourney(
            user_id=user_id,
            sessions=sessions,
            actions=self.ledger.actions_for(user_id, timeframe_hours * 60),
            patterns=self.pattern_detector.patterns_for_user(user_id)
        )

    # ===== EXPORT AND MAINTENANCE =====

    def export_analytics_data(self, format_type: str = 'json') -> Dict[str, str]:
        """Export actions, sessions and patterns as JSON or CSV documents."""
        return self.reporting.export_analytics(
            self.ledger.all_actions(),
            self.sessions.all_sessions(),
            self.pattern_detector.get_patterns(),
            format_type
        )

    def cleanup_old_data(self, older_than_days: Optional[float] = None) -> Dict[str, int]:
        """Remove old actions and closed sessions; behavior patterns are kept."""
        if older_than_days is None:
            older_than_days = self.settings.DEFAULT_RETENTION_DAYS
        if older_than_days < 0:
            raise ValidationException('Retention must not be negative', 'older_than_days')

        cutoff = self.store.cutoff(days=older_than_days)
        result = {
            'actions_removed': self.ledger.prune_before(cutoff),
            'sessions_removed': self.sessions.prune_closed_before(cutoff),
            'patterns_removed': 0
        }

        self.logger.info(
            f"Cleaned up usage data older than {older_than_days} days: "
            f"{result['actions_removed']} actions, {result['sessions_removed']} sessions"
        )
        return result

    def get_status(self) -> UsageAnalyticsStatus:
        """Get service status."""
        return UsageAnalyticsStatus(
            is_healthy=True,
            actions_count=self.ledger.count(),
            sessions_count=self.sessions.count(),
            patterns_count=self.pattern_detector.count(),
            last_updated=self.store.now()
        )
