"""
Rule-based behavior pattern detection over a user's recent actions
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Union

from config.settings import AnalyticsSettings
from models.analytics import BehaviorPattern, PatternConditions, PatternImpact, UserAction
from utils.action_ledger import ActionLedger
from utils.analytics_store import AnalyticsStore
from utils.exceptions import ValidationException


# A rule inspects one user's trailing actions and returns a pattern template or None
PatternRule = Callable[[Sequence[UserAction], datetime, AnalyticsSettings], Optional[BehaviorPattern]]


def power_user_rule(actions: Sequence[UserAction], now: datetime,
                    settings: AnalyticsSettings) -> Optional[BehaviorPattern]:
    """Several studies completed within a short window."""
    window_start = now - timedelta(minutes=settings.POWER_USER_WINDOW_MINUTES)
    completions = [
        a for a in actions
        if a.action == 'study_complete' and a.timestamp >= window_start
    ]

    if len(completions) < settings.POWER_USER_MIN_COMPLETIONS:
        return None

    return BehaviorPattern(
        name='Power User',
        description='User completed multiple studies in a short timeframe',
        conditions=PatternConditions(
            actions=['study_complete'],
            timeframe=settings.POWER_USER_WINDOW_MINUTES,
            frequency=settings.POWER_USER_MIN_COMPLETIONS
        ),
        confidence=0.9,
        impact=PatternImpact.HIGH,
        recommendation='Offer premium features or advanced studies'
    )


def struggling_user_rule(actions: Sequence[UserAction], now: datetime,
                         settings: AnalyticsSettings) -> Optional[BehaviorPattern]:
    """Many studies started, none completed."""
    attempts = sum(1 for a in actions if a.action == 'study_start')
    completions = sum(1 for a in actions if a.action == 'study_complete')

    if attempts < settings.STRUGGLING_USER_MIN_STARTS or completions > 0:
        return None

    return BehaviorPattern(
        name='Struggling User',
        description='User starts but does not complete studies',
        conditions=PatternConditions(
            actions=['study_start', 'study_abandon'],
            timeframe=settings.PATTERN_WINDOW_MINUTES,
            frequency=settings.STRUGGLING_USER_MIN_STARTS
        ),
        confidence=0.8,
        impact=PatternImpact.MEDIUM,
        recommendation='Provide tutorials or simpler onboarding studies'
    )


DEFAULT_RULES: List[PatternRule] = [power_user_rule, struggling_user_rule]


class BehaviorPatternDetector:
    """Runs the pattern rules for one user and upserts the matches."""

    def __init__(self, store: AnalyticsStore, ledger: ActionLedger,
                 rules: Optional[List[PatternRule]] = None):
        self.store = store
        self.ledger = ledger
        self.rules: List[PatternRule] = list(rules if rules is not None else DEFAULT_RULES)
        self.logger = logging.getLogger(__name__)

    def register_rule(self, rule: PatternRule):
        """Append a rule to the detection pipeline."""
        self.rules.append(rule)

    def detect(self, user_id: str) -> List[BehaviorPattern]:
        """Evaluate every rule against the user's trailing window.

        Returns:
            Patterns the user was newly added to by this call
        """
        recent = self.ledger.actions_for(user_id, self.store.settings.PATTERN_WINDOW_MINUTES)
        now = self.store.now()

        added = []
        for rule in self.rules:
            candidate = rule(recent, now, self.store.settings)
            if candidate is not None:
                pattern = self.upsert(candidate, user_id)
                if pattern is not None:
                    added.append(pattern)
        return added

    def upsert(self, candidate: BehaviorPattern, user_id: str) -> Optional[BehaviorPattern]:
        """Add the user to the pattern of the same name, creating it on first match.

        Returns:
            A copy of the pattern when the user was added, None when already listed
        """
        now = self.store.now()
        with self.store.patterns_lock:
            existing = next((p for p in self.store.patterns if p.name == candidate.name), None)

            if existing is None:
                pattern = candidate.model_copy(update={
                    'users': [user_id],
                    'detected_at': now,
                    'updated_at': now
                })
                self.store.patterns.append(pattern)
                self.logger.info(f"Detected new pattern '{pattern.name}' for user {user_id}")
                return pattern.model_copy(deep=True)

            if user_id in existing.users:
                return None

            existing.users.append(user_id)
            existing.updated_at = now
            self.logger.info(f"User {user_id} now matches pattern '{existing.name}'")
            return existing.model_copy(deep=True)

    def get_patterns(self, impact: Optional[Union[PatternImpact, str]] = None) -> List[BehaviorPattern]:
        """Get detected patterns, optionally filtered by impact tier."""
        if impact is not None:
            try:
                impact = PatternImpact(impact)
            except ValueError:
                raise ValidationException(f"Unknown impact tier: {impact}", 'impact')

        with self.store.patterns_lock:
            return [
                p.model_copy(deep=True) for p in self.store.patterns
                if impact is None or p.impact == impact
            ]

    def patterns_for_user(self, user_id: str) -> List[BehaviorPattern]:
        """Get every pattern currently listing the user."""
        with self.store.patterns_lock:
            return [p.model_copy(deep=True) for p in self.store.patterns if user_id in p.users]

    def count(self) -> int:
        """Number of distinct patterns."""
        with self.store.patterns_lock:
            return len(self.store.patterns)
