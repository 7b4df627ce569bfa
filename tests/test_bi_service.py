"""
Tests for Business Intelligence Service
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from models.business_intelligence import AlertSeverity, TrendDirection
from utils.bi_service import BusinessIntelligenceService
from utils.exceptions import InvalidTimeRangeException, ValidationException


class TestBusinessIntelligenceService:
    """Test cases for BI Service functionality."""

    @pytest.fixture
    def service(self, store):
        """Service over an empty store."""
        return BusinessIntelligenceService(store)

    @pytest.fixture
    def populated(self, service, clock):
        """Service with a month of user, study, revenue and engagement metrics."""
        service.track_metric('Total Users', 1000, 'user', 'users')
        service.track_metric('Monthly Revenue', 5000, 'financial', '$')
        service.track_metric('Engagement Score', 80, 'engagement')
        clock.advance(days=1)
        service.track_metric('Total Users', 1200, 'user', 'users')
        service.track_metric('Active Studies', 50, 'study', 'studies')
        service.track_metric('Monthly Revenue', 5500, 'financial', '$')
        service.track_metric('Engagement Score', 60, 'engagement')
        return service

    def test_track_metric_mau_scenario(self, service):
        """Test trend, targets, alert and insight for monthly active users."""
        alerts = []
        service.add_alert_handler(alerts.append)

        first = service.track_metric('Monthly Active Users', 500, 'user', 'users')
        second = service.track_metric('Monthly Active Users', 650, 'user', 'users')

        assert first.trend == TrendDirection.STABLE
        assert second.trend == TrendDirection.UP
        assert second.trend_percentage == 30.0
        assert second.target_value == 800
        assert second.alert_threshold == 680.0

        assert [a.severity for a in alerts] == [AlertSeverity.CRITICAL, AlertSeverity.WARNING]
        assert alerts[1].achievement_rate == 81.25
        assert alerts[1].metric_name == 'Monthly Active Users'

        insights = service.get_insights()
        assert [i.title for i in insights] == ['Strong User Growth Detected']

    def test_track_metric_without_kpi(self, service):
        """Test metrics without configuration never alert."""
        handler = Mock()
        service.add_alert_handler(handler)

        metric = service.track_metric('Total Users', 10, 'user')

        assert metric.target_value is None
        handler.assert_not_called()

    def test_track_metric_invalid_value(self, service):
        """Test invalid values leave state unchanged."""
        with pytest.raises(ValidationException):
            service.track_metric('Total Users', float('nan'), 'user')

        assert service.get_metrics() == []

    def test_get_metric_history(self, service):
        """Test history keeps every observation in order."""
        service.track_metric('Active Studies', 10, 'study')
        service.track_metric('Active Studies', 12, 'study')

        assert [m.value for m in service.get_metric_history('Active Studies')] == [10, 12]
        assert service.get_metric_history('Unknown') == []

    def test_configure_kpi(self, service):
        """Test configured KPIs are listed and applied."""
        service.configure_kpi({
            'name': 'Active Studies',
            'targets': {'daily': 5, 'weekly': 20, 'monthly': 100, 'quarterly': 300},
            'alert_rules': {'critical': 0.5, 'warning': 0.75}
        })

        metric = service.track_metric('Active Studies', 40, 'study')

        assert len(service.get_kpis()) == 6
        assert metric.target_value == 100

    def test_executive_summary_empty(self, service, clock):
        """Test an empty store summarizes to zeros."""
        summary = service.generate_executive_summary(clock() - timedelta(days=30), clock())

        assert summary.overview.total_users == 0
        assert summary.overview.active_studies == 0
        assert summary.overview.revenue == 0
        assert summary.overview.growth == 0
        assert summary.key_metrics == []
        assert summary.insights == []
        assert summary.trends.user_growth == 0
        assert summary.alerts.critical == 0
        assert summary.alerts.warning == 0

    def test_executive_summary(self, populated, clock):
        """Test overview, trends and insights of a populated store."""
        start = clock() - timedelta(days=30)

        summary = populated.generate_executive_summary(start, clock())

        assert summary.period.start == start
        assert summary.overview.total_users == 1200
        assert summary.overview.active_studies == 50
        assert summary.overview.revenue == 5500
        assert summary.overview.growth == 15.0
        assert summary.trends.user_growth == 20.0
        assert summary.trends.study_completion == 0
        assert summary.trends.revenue == 10.0
        assert summary.trends.engagement == -25.0
        assert [i.title for i in summary.insights] == ['Engagement Decline Alert']

    def test_executive_summary_key_metrics(self, populated):
        """Test key metrics are ranked by trend and target achievement."""
        populated.track_metric('Monthly Active Users', 500, 'user')
        populated.track_metric('Monthly Active Users', 650, 'user')
        populated.track_metric('Study Quality Score', 4.5, 'study')
        now = populated.store.now()

        summary = populated.generate_executive_summary(now - timedelta(days=1), now)

        assert [m.name for m in summary.key_metrics] == [
            'Monthly Active Users', 'Study Quality Score', 'Engagement Score',
            'Total Users', 'Monthly Revenue'
        ]

    def test_executive_summary_insight_limit(self, service):
        """Test the summary carries the three most recent insights."""
        for i in range(5):
            service.track_metric(f'Users {i}', 100, 'user')
            service.track_metric(f'Users {i}', 200, 'user')

        summary = service.generate_executive_summary(service.store.now(), service.store.now())

        assert len(summary.insights) == 3
        assert summary.insights[0].metrics == ['Users 4']

    def test_executive_summary_alert_counts(self, service, clock):
        """Test only alerts emitted within the period are counted."""
        start = clock()
        service.track_metric('Monthly Active Users', 500, 'user')
        clock.advance(days=2)
        service.track_metric('Monthly Active Users', 650, 'user')

        full = service.generate_executive_summary(start, clock())
        recent = service.generate_executive_summary(start + timedelta(days=1), clock())

        assert (full.alerts.critical, full.alerts.warning) == (1, 1)
        assert (recent.alerts.critical, recent.alerts.warning) == (0, 1)

    def test_executive_summary_invalid_range(self, service, clock):
        """Test start after end is rejected."""
        with pytest.raises(InvalidTimeRangeException):
            service.generate_executive_summary(clock(), clock() - timedelta(seconds=1))

    def test_export_metrics_data(self, populated):
        """Test CSV export of current metrics."""
        lines = populated.export_metrics_data('csv').splitlines()

        assert lines[0] == 'name,category,value,unit,trend,trendPercentage,timestamp'
        assert len(lines) == 5

    def test_cleanup_old_metrics(self, service, clock):
        """Test cleanup drops stale metrics, insights and alerts."""
        service.track_metric('Monthly Active Users', 500, 'user')
        service.track_metric('Monthly Active Users', 650, 'user')
        service.track_metric('Total Users', 10, 'user')
        clock.advance(days=100)
        service.track_metric('Total Users', 12, 'user')

        removed = service.cleanup_old_metrics(90)

        assert removed == 1
        assert [m.name for m in service.get_metrics()] == ['Total Users']
        assert service.get_insights() == []
        assert service.alert_evaluator.count() == 0

    def test_cleanup_negative_days(self, service):
        """Test negative retention is rejected."""
        with pytest.raises(ValidationException):
            service.cleanup_old_metrics(-1)

    def test_get_status(self, populated):
        """Test status reports collection sizes."""
        status = populated.get_status()

        assert status.is_healthy is True
        assert status.metrics_count == 4
        assert status.kpis_count == 5
        assert status.insights_count == 1
        assert status.alerts_count == 0

    def test_track_metric_unchanged_value_is_stable(self, service):
        """Test repeating a value yields a stable trend with no change."""
        service.track_metric('Total Users', 100, 'user')
        metric = service.track_metric('Total Users', 100, 'user')

        assert metric.trend == TrendDirection.STABLE
        assert metric.trend_percentage == 0

    def test_cleanup_unbounded_retention(self, service, clock):
        """Test a retention longer than the calendar removes nothing."""
        service.track_metric('Monthly Active Users', 500, 'user')
        clock.advance(days=365)

        assert service.cleanup_old_metrics(1_000_000) == 0
        assert [m.name for m in service.get_metrics()] == ['Monthly Active Users']
        assert service.alert_evaluator.count() == 1
