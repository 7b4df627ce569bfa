"""
Tests for the Action Ledger
"""

import pytest

from models.analytics import ActionCategory, ActionDetails
from utils.action_ledger import ActionLedger
from utils.exceptions import ValidationException


class TestActionLedger:
    """Test cases for action recording and windowed reads."""

    @pytest.fixture
    def ledger(self, store):
        """Ledger over an empty store."""
        return ActionLedger(store)

    def test_record_action(self, ledger, clock):
        """Test a recorded action carries an id, the clock time and validated details."""
        action = ledger.record(
            'user-1', 'page_view', 'navigation',
            {'page': '/studies', 'campaign': 'spring'}, 'session-1'
        )

        assert action.id.startswith('action-')
        assert action.timestamp == clock()
        assert action.category == ActionCategory.NAVIGATION
        assert isinstance(action.details, ActionDetails)
        assert action.details.page == '/studies'
        assert action.details.extra_fields == {'campaign': 'spring'}
        assert ledger.count() == 1

    def test_record_action_ids_are_unique(self, ledger):
        """Test two actions never share an id."""
        first = ledger.record('user-1', 'click', 'interaction', None, 'session-1')
        second = ledger.record('user-1', 'click', 'interaction', None, 'session-1')

        assert first.id != second.id

    def test_record_action_with_metadata(self, ledger):
        """Test client metadata is copied onto the action."""
        action = ledger.record(
            'user-1', 'click', 'interaction', None, 'session-1',
            {'user_agent': 'pytest-agent', 'ip': '10.0.0.1'}
        )

        assert action.user_agent == 'pytest-agent'
        assert action.ip == '10.0.0.1'

    def test_record_invalid_category(self, ledger):
        """Test an unknown category is rejected."""
        with pytest.raises(ValidationException):
            ledger.record('user-1', 'click', 'shopping', None, 'session-1')

        assert ledger.count() == 0

    def test_record_empty_user(self, ledger):
        """Test an empty user id is rejected."""
        with pytest.raises(ValidationException) as exc_info:
            ledger.record('', 'click', 'interaction', None, 'session-1')

        assert exc_info.value.field == 'user_id'

    def test_actions_for_window(self, ledger, clock):
        """Test only actions inside the trailing window are returned, oldest first."""
        old = ledger.record('user-1', 'page_view', 'navigation', None, 'session-1')
        clock.advance(minutes=10)
        recent = ledger.record('user-1', 'click', 'interaction', None, 'session-1')
        ledger.record('user-2', 'click', 'interaction', None, 'session-2')

        assert ledger.actions_for('user-1', 5) == [recent]
        assert ledger.actions_for('user-1', 15) == [old, recent]
        assert ledger.actions_for('user-1', 10) == [old, recent]

    def test_actions_for_unknown_user(self, ledger):
        """Test an unknown user has no actions."""
        assert ledger.actions_for('nobody', 60) == []

    def test_actions_for_negative_window(self, ledger):
        """Test a negative window is rejected."""
        with pytest.raises(ValidationException):
            ledger.actions_for('user-1', -1)

    def test_prune_before(self, ledger, clock):
        """Test pruning removes old actions from the ledger and the user index."""
        ledger.record('user-1', 'page_view', 'navigation', None, 'session-1')
        ledger.record('user-2', 'page_view', 'navigation', None, 'session-2')
        cutoff = clock.advance(days=1)
        kept = ledger.record('user-1', 'click', 'interaction', None, 'session-3')

        removed = ledger.prune_before(cutoff)

        assert removed == 2
        assert ledger.all_actions() == [kept]
        assert ledger.actions_for('user-1', 60 * 24 * 7) == [kept]
        assert ledger.actions_for('user-2', 60 * 24 * 7) == []

    def test_actions_for_unbounded_window(self, ledger, clock):
        """Test a window larger than the calendar returns every action."""
        first = ledger.record('user-1', 'page_view', 'navigation', None, 'session-1')
        clock.advance(days=400)
        second = ledger.record('user-1', 'click', 'interaction', None, 'session-1')

        assert ledger.actions_for('user-1', 1e12) == [first, second]
        assert ledger.actions_for('user-1', float('inf')) == [first, second]
