"""
Tests for the Session Tracker
"""

import pytest

from models.analytics import UserAction
from utils.session_tracker import SessionTracker


class TestSessionTracker:
    """Test cases for the session state machine."""

    @pytest.fixture
    def tracker(self, store):
        """Tracker over an empty store."""
        return SessionTracker(store)

    @pytest.fixture
    def make_action(self, clock):
        """Factory for actions stamped with the current clock time."""
        def _make(session_id, action='page_view', user_id='user-1', category='navigation'):
            return UserAction(
                user_id=user_id,
                action=action,
                category=category,
                session_id=session_id,
                timestamp=clock()
            )
        return _make

    def test_start_session(self, tracker, clock):
        """Test a new session is open with zeroed counters."""
        session_id = tracker.start_session('user-1', source='email', device='mobile')

        session = tracker.get_session(session_id)
        assert session.user_id == 'user-1'
        assert session.start_time == clock()
        assert session.source == 'email'
        assert session.device == 'mobile'
        assert session.end_time is None
        assert session.page_views == 0
        assert session.actions == 0
        assert not session.bounced

    def test_apply_action_counters(self, tracker, make_action):
        """Test each action increments the action count and its named counter."""
        session_id = tracker.start_session('user-1')

        tracker.apply_action(session_id, make_action(session_id, 'page_view'))
        tracker.apply_action(session_id, make_action(session_id, 'study_view', category='study'))
        tracker.apply_action(session_id, make_action(session_id, 'study_complete', category='study'))
        updated = tracker.apply_action(session_id, make_action(session_id, 'click', category='interaction'))

        assert updated.actions == 4
        assert updated.page_views == 1
        assert updated.studies_viewed == 1
        assert updated.studies_completed == 1

    def test_bounce_short_single_page(self, tracker, make_action, clock):
        """Test a 29 second session with one page view bounces."""
        session_id = tracker.start_session('user-1')
        tracker.apply_action(session_id, make_action(session_id))
        clock.advance(seconds=29)

        closed = tracker.end_session(session_id)

        assert closed.duration == 29
        assert closed.bounced is True

    def test_no_bounce_long_session(self, tracker, make_action, clock):
        """Test a 31 second session does not bounce."""
        session_id = tracker.start_session('user-1')
        tracker.apply_action(session_id, make_action(session_id))
        clock.advance(seconds=31)

        closed = tracker.end_session(session_id)

        assert closed.duration == 31
        assert closed.bounced is False

    def test_no_bounce_multiple_page_views(self, tracker, make_action, clock):
        """Test a short session with two page views does not bounce."""
        session_id = tracker.start_session('user-1')
        tracker.apply_action(session_id, make_action(session_id))
        tracker.apply_action(session_id, make_action(session_id))
        clock.advance(seconds=10)

        closed = tracker.end_session(session_id)

        assert closed.bounced is False

    def test_immediate_end_bounces(self, tracker):
        """Test a session ended right after starting has zero duration and bounces."""
        session_id = tracker.start_session('user-1')

        closed = tracker.end_session(session_id)

        assert closed.duration == 0
        assert closed.bounced is True

    def test_end_session_twice(self, tracker, clock):
        """Test the second end is a no-op that keeps the first end time."""
        session_id = tracker.start_session('user-1')
        clock.advance(seconds=45)
        first = tracker.end_session(session_id)
        clock.advance(minutes=5)

        assert tracker.end_session(session_id) is None
        assert tracker.get_session(session_id).end_time == first.end_time
        assert tracker.get_session(session_id).duration == 45

    def test_end_unknown_session(self, tracker):
        """Test ending an unknown session changes nothing."""
        assert tracker.end_session('missing') is None
        assert tracker.count() == 0

    def test_action_for_unknown_session(self, tracker, make_action, clock):
        """Test an unknown session id gets a synthesized open session."""
        action = make_action('late-session')

        session = tracker.apply_action('late-session', action)

        assert session.id == 'late-session'
        assert session.user_id == 'user-1'
        assert session.start_time == action.timestamp
        assert session.source == 'unknown'
        assert session.device == 'unknown'
        assert session.actions == 1
        assert session.page_views == 1

    def test_action_for_closed_session(self, tracker, make_action):
        """Test actions arriving after close leave the session untouched."""
        session_id = tracker.start_session('user-1')
        tracker.end_session(session_id)

        assert tracker.apply_action(session_id, make_action(session_id)) is None
        session = tracker.get_session(session_id)
        assert session.actions == 0
        assert session.page_views == 0

    def test_get_session_returns_copy(self, tracker):
        """Test callers cannot mutate stored sessions."""
        session_id = tracker.start_session('user-1')

        tracker.get_session(session_id).page_views = 99

        assert tracker.get_session(session_id).page_views == 0

    def test_prune_closed_before(self, tracker, clock):
        """Test pruning removes closed sessions only."""
        closed_id = tracker.start_session('user-1')
        tracker.end_session(closed_id)
        open_id = tracker.start_session('user-2')
        cutoff = clock.advance(days=2)

        removed = tracker.prune_closed_before(cutoff)

        assert removed == 1
        assert tracker.get_session(closed_id) is None
        assert tracker.get_session(open_id) is not None
