"""
Append-only ledger of user actions
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from models.analytics import ActionCategory, ActionDetails, ActionMetadata, UserAction
from utils.analytics_store import AnalyticsStore
from utils.exceptions import ValidationException


class ActionLedger:
    """Records actions in insertion order and serves per-user windows."""

    def __init__(self, store: AnalyticsStore):
        self.store = store
        self.logger = logging.getLogger(__name__)

    def record(self, user_id: str, action: str, category: Union[ActionCategory, str],
               details: Optional[Union[ActionDetails, Dict[str, Any]]], session_id: str,
               metadata: Optional[Union[ActionMetadata, Dict[str, Any]]] = None) -> UserAction:
        """Append an action to the ledger and return the stored record."""
        try:
            if details is None:
                details = ActionDetails()
            elif not isinstance(details, ActionDetails):
                details = ActionDetails(**details)

            if metadata is not None and not isinstance(metadata, ActionMetadata):
                metadata = ActionMetadata(**metadata)

            user_action = UserAction(
                user_id=user_id,
                action=action,
                category=category,
                details=details,
                timestamp=self.store.now(),
                session_id=session_id,
                user_agent=metadata.user_agent if metadata else None,
                ip=metadata.ip if metadata else None
            )
        except ValidationError as e:
            raise ValidationException.from_pydantic(e)

        with self.store.actions_lock:
            self.store.actions.append(user_action)
            self.store.actions_by_user[user_id].append(user_action)

        self.logger.debug(f"Recorded action '{action}' for user {user_id} in session {session_id}")
        return user_action

    def actions_for(self, user_id: str, since_minutes_ago: float) -> List[UserAction]:
        """Get a user's actions recorded within the trailing window, oldest first."""
        if since_minutes_ago < 0:
            raise ValidationException('Window must not be negative', 'since_minutes_ago')

        cutoff = self.store.cutoff(minutes=since_minutes_ago)
        return self._user_actions_since(user_id, cutoff)

    def _user_actions_since(self, user_id: str, cutoff: datetime) -> List[UserAction]:
        recent = []
        with self.store.actions_lock:
            # Per-user lists are in timestamp order; walk back until the cutoff
            for user_action in reversed(self.store.actions_by_user.get(user_id, [])):
                if user_action.timestamp < cutoff:
                    break
                recent.append(user_action)
        recent.reverse()
        return recent

    def all_actions(self) -> List[UserAction]:
        """Snapshot of the full ledger in insertion order."""
        with self.store.actions_lock:
            return list(self.store.actions)

    def count(self) -> int:
        """Number of actions in the ledger."""
        with self.store.actions_lock:
            return len(self.store.actions)

    def prune_before(self, cutoff: datetime) -> int:
        """Remove actions recorded before the cutoff and return how many were removed."""
        with self.store.actions_lock:
            original_count = len(self.store.actions)
            self.store.actions = [a for a in self.store.actions if a.timestamp >= cutoff]

            for user_id in list(self.store.actions_by_user):
                kept = [a for a in self.store.actions_by_user[user_id] if a.timestamp >= cutoff]
                if kept:
                    self.store.actions_by_user[user_id] = kept
                else:
                    del self.store.actions_by_user[user_id]

            return original_count - len(self.store.actions)
