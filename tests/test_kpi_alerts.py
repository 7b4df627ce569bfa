"""
Tests for KPI alert evaluation
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from models.business_intelligence import (
    AlertSeverity, BusinessMetric, KPIConfiguration
)
from utils.exceptions import ValidationException
from utils.kpi_alerts import KPIAlertEvaluator, achievement_rate, evaluate_kpi


def make_kpi(monthly=800, critical=0.7, warning=0.85, higher_is_better=True, name='Monthly Active Users'):
    """Build a KPI configuration around a monthly target."""
    return KPIConfiguration(
        name=name,
        targets={'daily': 1, 'weekly': 1, 'monthly': monthly, 'quarterly': 1},
        alert_rules={'critical': critical, 'warning': warning},
        higher_is_better=higher_is_better
    )


def make_metric(value, name='Monthly Active Users', timestamp=None):
    """Build a user metric observation."""
    data = {'name': name, 'category': 'user', 'value': value}
    if timestamp is not None:
        data['timestamp'] = timestamp
    return BusinessMetric(**data)


class TestEvaluateKPI:
    """Test cases for alert thresholds."""

    def test_achievement_rate(self):
        """Test achievement relative to the monthly target."""
        assert achievement_rate(650, make_kpi()) == pytest.approx(81.25)

    def test_warning_alert(self):
        """Test a value between the critical and warning fractions warns."""
        alert = evaluate_kpi(make_metric(650), make_kpi())

        assert alert.severity == AlertSeverity.WARNING
        assert alert.achievement_rate == 81.25
        assert alert.target_value == 800
        assert 'Monthly Active Users' in alert.message

    def test_critical_alert(self):
        """Test a value below the critical fraction is critical."""
        alert = evaluate_kpi(make_metric(500), make_kpi())

        assert alert.severity == AlertSeverity.CRITICAL
        assert alert.achievement_rate == 62.5

    def test_no_alert_on_target(self):
        """Test values above the warning fraction do not alert."""
        assert evaluate_kpi(make_metric(700), make_kpi()) is None
        assert evaluate_kpi(make_metric(900), make_kpi()) is None

    def test_no_kpi(self):
        """Test metrics without configuration are skipped."""
        assert evaluate_kpi(make_metric(1), None) is None

    def test_zero_target(self):
        """Test a zero monthly target skips evaluation."""
        assert evaluate_kpi(make_metric(10), make_kpi(monthly=0)) is None

    def test_lower_is_better(self):
        """Test cost KPIs alert when the value rises above target."""
        kpi = make_kpi(monthly=20, critical=0.5, warning=0.67, higher_is_better=False,
                       name='User Acquisition Cost')

        assert evaluate_kpi(make_metric(18, 'User Acquisition Cost'), kpi) is None
        assert evaluate_kpi(make_metric(25, 'User Acquisition Cost'), kpi) is None
        assert evaluate_kpi(make_metric(40, 'User Acquisition Cost'), kpi).severity == AlertSeverity.WARNING
        assert evaluate_kpi(make_metric(50, 'User Acquisition Cost'), kpi).severity == AlertSeverity.CRITICAL


class TestKPIAlertEvaluator:
    """Test cases for alert emission and retention."""

    @pytest.fixture
    def evaluator(self, store):
        """Evaluator over an empty store."""
        return KPIAlertEvaluator(store)

    def test_evaluate_logs_alert(self, evaluator, caplog):
        """Test emitted alerts are logged and retained."""
        with caplog.at_level('WARNING', logger='utils.kpi_alerts'):
            alert = evaluator.evaluate(make_metric(650), make_kpi())

        assert alert is not None
        assert evaluator.get_alerts() == [alert]
        assert 'Business Alert' in caplog.text

    def test_evaluate_no_alert(self, evaluator):
        """Test healthy values leave the alert log empty."""
        assert evaluator.evaluate(make_metric(800), make_kpi()) is None
        assert evaluator.count() == 0

    def test_handlers_called(self, evaluator):
        """Test every handler receives the alert."""
        first, second = Mock(), Mock()
        evaluator.add_handler(first)
        evaluator.add_handler(second)

        alert = evaluator.evaluate(make_metric(500), make_kpi())

        first.assert_called_once_with(alert)
        second.assert_called_once_with(alert)

    def test_failing_handler(self, evaluator):
        """Test a failing handler does not stop delivery or evaluation."""
        failing = Mock(side_effect=RuntimeError('delivery down'))
        working = Mock()
        evaluator.add_handler(failing)
        evaluator.add_handler(working)

        alert = evaluator.evaluate(make_metric(500), make_kpi())

        assert alert is not None
        working.assert_called_once_with(alert)
        assert evaluator.count() == 1

    def test_count_alerts_in_range(self, evaluator, clock):
        """Test counting alerts by severity and time range."""
        start = clock()
        evaluator.evaluate(make_metric(500, timestamp=start), make_kpi())
        later = start + timedelta(days=2)
        evaluator.evaluate(make_metric(650, timestamp=later), make_kpi())

        assert evaluator.count_alerts('critical') == 1
        assert evaluator.count_alerts(AlertSeverity.WARNING) == 1
        assert evaluator.count_alerts('critical', start + timedelta(days=1), later) == 0
        assert evaluator.count_alerts('warning', start + timedelta(days=1), later) == 1

    def test_prune_before(self, evaluator, clock):
        """Test old alerts are dropped."""
        start = clock()
        evaluator.evaluate(make_metric(500, timestamp=start), make_kpi())
        evaluator.evaluate(make_metric(650, timestamp=start + timedelta(days=5)), make_kpi())

        removed = evaluator.prune_before(start + timedelta(days=1))

        assert removed == 1
        assert [a.severity for a in evaluator.get_alerts()] == [AlertSeverity.WARNING]

    def test_unknown_severity(self, evaluator):
        """Test filtering by an unknown severity is a validation error."""
        evaluator.evaluate(make_metric(500), make_kpi())

        with pytest.raises(ValidationException) as exc_info:
            evaluator.get_alerts('fatal')
        assert exc_info.value.field == 'severity'

        with pytest.raises(ValidationException):
            evaluator.count_alerts('fatal')
