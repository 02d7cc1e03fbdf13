"""
Tests for sprint progress threshold evaluation.
"""

import pytest

from jira_dashboard.models import NotificationSettings, SprintHealth
from jira_dashboard.thresholds import evaluate_progress, evaluate_snapshot, time_progress

from conftest import make_snapshot


class TestTimeProgress:
    """Tests for elapsed-time percentage."""

    def test_basic(self):
        assert time_progress(7, 10) == 70.0
        assert time_progress(0, 10) == 0.0
        assert time_progress(10, 10) == 100.0

    def test_zero_working_days(self):
        """A sprint without working days has no time progress."""
        assert time_progress(3, 0) == 0.0


class TestEvaluateProgress:
    """Tests for normal/warning/danger classification."""

    def test_danger_scenario(self):
        """7 of 10 days elapsed with 40% done is 30% behind."""
        result = evaluate_progress(7, 10, 40.0)

        assert result.status == SprintHealth.DANGER
        assert result.lag_percentage == 30.0
        assert result.time_progress == 70.0
        assert result.completion_rate == 40.0
        assert result.is_lagging

    def test_on_track(self):
        result = evaluate_progress(7, 10, 70.0)

        assert result.status == SprintHealth.NORMAL
        assert result.lag_percentage == 0.0
        assert not result.is_lagging

    def test_ahead_of_schedule_has_negative_lag(self):
        result = evaluate_progress(3, 10, 50.0)

        assert result.status == SprintHealth.NORMAL
        assert result.lag_percentage == -20.0

    @pytest.mark.parametrize("completion,expected", [
        (60.0, SprintHealth.WARNING),   # lag exactly 10
        (50.0, SprintHealth.DANGER),    # lag exactly 20
        (60.5, SprintHealth.NORMAL),    # lag 9.5
        (50.5, SprintHealth.WARNING),   # lag 19.5
    ])
    def test_boundaries_belong_to_higher_band(self, completion, expected):
        assert evaluate_progress(7, 10, completion).status == expected

    def test_monotonic_in_lag(self):
        """Severity never decreases as completion drops."""
        order = [SprintHealth.NORMAL, SprintHealth.WARNING, SprintHealth.DANGER]
        previous = 0

        for completion in range(100, -1, -5):
            rank = order.index(evaluate_progress(7, 10, float(completion)).status)
            assert rank >= previous
            previous = rank

    def test_custom_thresholds(self):
        result = evaluate_progress(5, 10, 35.0, warning_threshold=15.0, danger_threshold=25.0)
        assert result.status == SprintHealth.WARNING

    def test_zero_working_days_is_normal(self):
        result = evaluate_progress(0, 0, 0.0)

        assert result.status == SprintHealth.NORMAL
        assert result.lag_percentage == 0.0


class TestEvaluateSnapshot:

    def test_uses_settings_thresholds(self):
        snapshot = make_snapshot("Sprint 1", days_elapsed=7, total_working_days=10, completion_rate=55.0)

        default = evaluate_snapshot(snapshot, NotificationSettings())
        strict = evaluate_snapshot(snapshot, NotificationSettings(warning_threshold=5.0, danger_threshold=15.0))

        assert default.status == SprintHealth.WARNING
        assert strict.status == SprintHealth.DANGER
