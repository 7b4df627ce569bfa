"""
Session state machine: open, accumulate counters, close exactly once
"""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError

from models.analytics import UserAction, UserSession
from utils.analytics_store import AnalyticsStore
from utils.exceptions import ValidationException


# Session counter incremented by each action verb
ACTION_COUNTERS = {
    'page_view': 'page_views',
    'study_view': 'studies_viewed',
    'study_complete': 'studies_completed',
}


class SessionTracker:
    """Maintains running per-session counters fed by the action ledger."""

    def __init__(self, store: AnalyticsStore):
        self.store = store
        self.settings = store.settings
        self.logger = logging.getLogger(__name__)

    def start_session(self, user_id: str, source: str = 'direct', device: str = 'unknown',
                      location: Optional[str] = None) -> str:
        """Open a new session and return its id."""
        try:
            session = UserSession(
                user_id=user_id,
                start_time=self.store.now(),
                source=source,
                device=device,
                location=location
            )
        except ValidationError as e:
            raise ValidationException.from_pydantic(e)

        with self.store.sessions_lock:
            self.store.sessions[session.id] = session

        self.logger.info(f"Started session {session.id} for user {user_id} (source={source}, device={device})")
        return session.id

    def apply_action(self, session_id: str, action: UserAction) -> Optional[UserSession]:
        """Fold an action into its session.

        Unknown session ids get a minimal open session so out-of-order
        ingestion does not lose counts. Closed sessions are left untouched.

        Returns:
            A copy of the updated session, or None when the session is closed
        """
        with self.store.sessions_lock:
            session = self.store.sessions.get(session_id)

            if session is None:
                session = UserSession(
                    id=session_id,
                    user_id=action.user_id,
                    start_time=action.timestamp,
                    source='unknown',
                    device='unknown'
                )
                self.store.sessions[session_id] = session
                self.logger.info(f"Synthesized session {session_id} for user {action.user_id}")

            if session.is_closed:
                self.logger.warning(
                    f"Ignoring action '{action.action}' ({action.id}) for closed session {session_id}"
                )
                return None

            session.actions += 1
            counter = ACTION_COUNTERS.get(action.action)
            if counter:
                setattr(session, counter, getattr(session, counter) + 1)

            return session.model_copy()

    def end_session(self, session_id: str) -> Optional[UserSession]:
        """Close a session, computing its duration and bounce flag.

        Returns:
            A copy of the closed session, or None for unknown or already closed sessions
        """
        with self.store.sessions_lock:
            session = self.store.sessions.get(session_id)
            if session is None:
                self.logger.info(f"End requested for unknown session {session_id}")
                return None

            if session.is_closed:
                self.logger.debug(f"Session {session_id} already closed")
                return None

            session.end_time = self.store.now()
            session.duration = max((session.end_time - session.start_time).total_seconds(), 0.0)
            session.bounced = (
                session.duration < self.settings.BOUNCE_MAX_DURATION_SECONDS
                and session.page_views <= self.settings.BOUNCE_MAX_PAGE_VIEWS
            )

            self.logger.info(
                f"Closed session {session_id} after {session.duration:.1f}s "
                f"({session.page_views} page views, bounced={session.bounced})"
            )
            return session.model_copy()

    def get_session(self, session_id: str) -> Optional[UserSession]:
        """Get a copy of one session."""
        with self.store.sessions_lock:
            session = self.store.sessions.get(session_id)
            return session.model_copy() if session else None

    def all_sessions(self) -> List[UserSession]:
        """Snapshot copies of every session."""
        with self.store.sessions_lock:
            return [session.model_copy() for session in self.store.sessions.values()]

    def count(self) -> int:
        """Number of tracked sessions."""
        with self.store.sessions_lock:
            return len(self.store.sessions)

    def prune_closed_before(self, cutoff: datetime) -> int:
        """Remove closed sessions started before the cutoff and return how many were removed."""
        with self.store.sessions_lock:
            expired = [
                session_id for session_id, session in self.store.sessions.items()
                if session.is_closed and session.start_time < cutoff
            ]
            for session_id in expired:
                del self.store.sessions[session_id]
            return len(expired)
