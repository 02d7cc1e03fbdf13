"""
Tests for the workload analyzer.
"""

import pytest
from datetime import datetime

from jira_dashboard.analyzer import (
    WorkloadAnalyzer,
    analyze_sprint_workload,
    build_workload_alerts,
    classify_workload,
    deviation_percentage,
    member_email_for,
    member_id_for,
)
from jira_dashboard.models import WorkloadStatus


def task(assignee, points, status="To Do", key="PROJ-1"):
    return {"key": key, "assignee": assignee, "story_points": str(points), "status": status}


def by_name(distribution):
    return {m.member.name: m for m in distribution.member_workloads}


class TestWorkloadAnalyzer:
    """Tests for WorkloadAnalyzer class."""

    def test_analyze_member_totals(self, sample_tasks, clock):
        """Test per-member point and task counts."""
        analyzer = WorkloadAnalyzer(clock=clock)
        rows = [r for r in sample_tasks if r["sprint"] == "Sprint 1"]

        members = by_name(analyzer.analyze("Sprint 1", rows))

        alice = members["Alice"]
        assert alice.total_story_points == 13
        assert alice.completed_story_points == 5
        assert alice.remaining_story_points == 8
        assert alice.total_tasks == 2
        assert alice.completed_tasks == 1
        assert alice.in_progress_tasks == 1
        assert alice.todo_tasks == 0
        assert alice.completion_rate == pytest.approx(5 * 100 / 13)

    def test_unparseable_points_are_excluded(self, sample_tasks, clock):
        """Test that '?' points count as a task but not as points."""
        analyzer = WorkloadAnalyzer(clock=clock)
        rows = [r for r in sample_tasks if r["sprint"] == "Sprint 1"]

        bob = by_name(analyzer.analyze("Sprint 1", rows))["Bob"]

        assert bob.total_story_points == 3
        assert bob.total_tasks == 2
        assert bob.in_progress_tasks == 1
        assert bob.todo_tasks == 1
        assert bob.completion_rate == 0.0

    def test_unassigned_tasks_skipped(self, sample_tasks, clock):
        analyzer = WorkloadAnalyzer(clock=clock)
        rows = [r for r in sample_tasks if r["sprint"] == "Sprint 1"]

        distribution = analyzer.analyze("Sprint 1", rows)

        assert set(by_name(distribution)) == {"Alice", "Bob"}
        assert distribution.total_story_points == 16

    def test_totals_are_consistent(self, sample_tasks, clock):
        """Team total is the sum of members and the average is total over members."""
        analyzer = WorkloadAnalyzer(clock=clock)

        distribution = analyzer.analyze("All", sample_tasks)
        members = distribution.member_workloads

        assert distribution.total_story_points == sum(m.total_story_points for m in members)
        assert distribution.average_story_points == pytest.approx(
            distribution.total_story_points / len(members)
        )
        for m in members:
            assert m.completed_tasks + m.in_progress_tasks + m.todo_tasks == m.total_tasks

    def test_no_members(self, clock):
        analyzer = WorkloadAnalyzer(clock=clock)

        distribution = analyzer.analyze("Empty", [])

        assert distribution.member_workloads == []
        assert distribution.total_story_points == 0
        assert distribution.average_story_points == 0
        assert distribution.workload_imbalance is False
        assert distribution.last_updated == clock.now

    def test_balanced_team(self, clock):
        """30 vs 20 points, average 25: both 20% off, within threshold."""
        analyzer = WorkloadAnalyzer(clock=clock)
        rows = [task("Alice", 30), task("Bob", 20)]

        distribution = analyzer.analyze("Sprint 1", rows)

        assert distribution.average_story_points == 25
        assert distribution.workload_imbalance is False
        assert all(m.workload_status == WorkloadStatus.NORMAL for m in distribution.member_workloads)

    def test_imbalanced_team(self, clock):
        """40 vs 20 points, average 30: both 33% off."""
        analyzer = WorkloadAnalyzer(clock=clock)
        rows = [task("Alice", 40), task("Bob", 20)]

        distribution = analyzer.analyze("Sprint 1", rows)
        members = by_name(distribution)

        assert distribution.workload_imbalance is True
        assert members["Alice"].workload_status == WorkloadStatus.OVERLOADED
        assert members["Bob"].workload_status == WorkloadStatus.UNDERLOADED

    def test_exact_threshold_is_normal(self, clock):
        """26 vs 14 points, average 20: both exactly 30% off."""
        analyzer = WorkloadAnalyzer(clock=clock)
        rows = [task("Alice", 26), task("Bob", 14)]

        distribution = analyzer.analyze("Sprint 1", rows)

        assert distribution.workload_imbalance is False
        assert all(m.workload_status == WorkloadStatus.NORMAL for m in distribution.member_workloads)

    def test_custom_threshold(self, clock):
        analyzer = WorkloadAnalyzer(imbalance_threshold=10.0, clock=clock)
        rows = [task("Alice", 30), task("Bob", 20)]

        distribution = analyzer.analyze("Sprint 1", rows)

        assert distribution.workload_imbalance is True
        assert distribution.imbalance_threshold == 10.0

    def test_member_identity(self, sample_tasks, clock):
        analyzer = WorkloadAnalyzer(clock=clock)

        first = by_name(analyzer.analyze("Sprint 1", sample_tasks))["Alice"].member
        second = by_name(analyzer.analyze("Sprint 1", list(reversed(sample_tasks))))["Alice"].member

        assert first.id == second.id
        assert first.email == "alice@company.com"
        assert first.role == "Developer"

    def test_task_dates(self, sample_tasks, clock):
        """Bad created/updated dates fall back to now, bad due dates to None."""
        analyzer = WorkloadAnalyzer(clock=clock)

        alice = by_name(analyzer.analyze("Sprint 1", sample_tasks))["Alice"]
        done, in_progress = sorted(alice.tasks, key=lambda t: t.task_key)

        assert done.created_date.year == 2024
        assert done.due_date is not None
        assert in_progress.updated_date == clock.now
        assert in_progress.due_date is None
        assert in_progress.assignee_id == alice.member.id

    def test_task_missing_points(self, sample_tasks, clock):
        analyzer = WorkloadAnalyzer(clock=clock)

        bob = by_name(analyzer.analyze("Sprint 1", sample_tasks))["Bob"]
        unknown = [t for t in bob.tasks if t.task_key == "PROJ-4"][0]

        assert unknown.story_points == 0.0
        assert unknown.created_date == clock.now


class TestClassification:
    """Tests for deviation and classification helpers."""

    def test_deviation(self):
        assert deviation_percentage(40, 30) == pytest.approx(33.333, rel=1e-3)
        assert deviation_percentage(20, 30) == pytest.approx(33.333, rel=1e-3)
        assert deviation_percentage(5, 0) == 0.0

    @pytest.mark.parametrize("points,expected", [
        (26.0, WorkloadStatus.NORMAL),
        (26.2, WorkloadStatus.OVERLOADED),
        (14.0, WorkloadStatus.NORMAL),
        (13.8, WorkloadStatus.UNDERLOADED),
    ])
    def test_classify(self, points, expected):
        assert classify_workload(points, 20.0) == expected

    def test_zero_average_is_normal(self):
        assert classify_workload(0.0, 0.0) == WorkloadStatus.NORMAL

    def test_member_id_is_stable(self):
        assert member_id_for("Alice Smith") == member_id_for("Alice Smith")
        assert member_id_for("Alice Smith") != member_id_for("Alice Smyth")
        assert member_id_for("Alice Smith").startswith("member_alice_smith_")

    def test_member_email(self):
        assert member_email_for("Alice Smith") == "alice.smith@company.com"


class TestWorkloadAlerts:
    """Tests for build_workload_alerts."""

    def test_alerts_for_imbalanced_members(self):
        distribution = analyze_sprint_workload("Sprint 1", [task("Alice", 40), task("Bob", 20)])

        alerts = {a.member_name: a for a in build_workload_alerts(distribution)}

        assert alerts["Alice"].alert_type == WorkloadStatus.OVERLOADED
        assert alerts["Alice"].current_load == 40
        assert alerts["Alice"].average_load == 30
        assert alerts["Alice"].deviation_percentage == pytest.approx(33.333, rel=1e-3)
        assert "reassigning" in alerts["Alice"].suggested_action
        assert alerts["Bob"].alert_type == WorkloadStatus.UNDERLOADED
        assert "assigning more" in alerts["Bob"].suggested_action

    def test_no_alerts_when_balanced(self):
        distribution = analyze_sprint_workload("Sprint 1", [task("Alice", 30), task("Bob", 20)])

        assert build_workload_alerts(distribution) == []

    def test_to_dict(self):
        distribution = analyze_sprint_workload("Sprint 1", [task("Alice", 40), task("Bob", 20)])

        data = distribution.to_dict()

        assert data["sprint_name"] == "Sprint 1"
        assert data["workload_imbalance"] is True
        assert data["member_workloads"][0]["workload_status"] in ("overloaded", "underloaded")
        assert isinstance(datetime.fromisoformat(data["last_updated"]), datetime)
