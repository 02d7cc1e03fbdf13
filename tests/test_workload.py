"""
Tests for the cached workload service.
"""

import asyncio
import pytest
from datetime import date

from jira_dashboard.analyzer import WorkloadAnalyzer
from jira_dashboard.errors import SprintNotFoundError, UpstreamError
from jira_dashboard.models import WorkloadStatus
from jira_dashboard.workload import MAX_TREND_DAYS, WorkloadCache, WorkloadService


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def service(sheets, sample_tasks, clock):
    sheets.tasks = sample_tasks
    sheets.add_sprint("Sprint 1")
    sheets.add_sprint("Sprint 2", state="future")
    return WorkloadService(sheets=sheets, analyzer=WorkloadAnalyzer(clock=clock))


class TestWorkloadService:

    def test_distribution_for_sprint(self, service):
        distribution = run(service.get_distribution("Sprint 1"))

        assert distribution.sprint_name == "Sprint 1"
        assert {m.member.name for m in distribution.member_workloads} == {"Alice", "Bob"}
        assert distribution.total_story_points == 16

    def test_distribution_is_cached(self, service, sheets):
        first = run(service.get_distribution("Sprint 1"))
        second = run(service.get_distribution("Sprint 1"))

        assert first is second
        assert sheets.task_calls == 1
        assert "Sprint 1" in service.cache

    def test_refresh_recomputes(self, service, sheets, clock):
        run(service.get_distribution("Sprint 1"))
        sheets.tasks = [t for t in sheets.tasks if t["assignee"] != "Bob"]
        clock.advance(minutes=5)

        refreshed = run(service.refresh("Sprint 1"))

        assert sheets.task_calls == 2
        assert {m.member.name for m in refreshed.member_workloads} == {"Alice"}
        assert refreshed.last_updated == clock.now
        assert run(service.get_distribution("Sprint 1")) is refreshed

    def test_invalidate_all(self, service, sheets):
        run(service.get_distribution("Sprint 1"))
        run(service.get_distribution("Sprint 2"))

        service.invalidate()

        assert len(service.cache) == 0
        run(service.get_distribution("Sprint 1"))
        assert sheets.task_calls == 3

    def test_unknown_sprint(self, service):
        with pytest.raises(SprintNotFoundError):
            run(service.get_distribution("Sprint 99"))

        assert "Sprint 99" not in service.cache

    def test_upstream_failure(self, service, sheets):
        async def broken(*args, **kwargs):
            raise RuntimeError("quota exceeded")

        sheets.get_paginated_data = broken

        with pytest.raises(UpstreamError):
            run(service.get_distribution("Sprint 1"))

        assert len(service.cache) == 0

    def test_alerts(self, service):
        alerts = {a.member_name: a for a in run(service.get_alerts("Sprint 1"))}

        # Alice 13 vs Bob 3, average 8
        assert alerts["Alice"].alert_type == WorkloadStatus.OVERLOADED
        assert alerts["Bob"].alert_type == WorkloadStatus.UNDERLOADED
        assert alerts["Alice"].average_load == 8

    def test_trend(self, service):
        trend = run(service.get_trend("Sprint 1", days=7))

        assert len(trend.dates) == 7
        assert trend.dates == sorted(trend.dates)
        assert date.fromisoformat(trend.dates[-1]) >= date.fromisoformat(trend.dates[0])
        assert trend.member_trends == []
        assert trend.average_trend == [20.0, 22.0, 24.0, 26.0, 28.0, 30.0, 32.0]


class TestWorkloadCache:

    def test_invalidate_single(self, clock):
        cache = WorkloadCache()
        analyzer = WorkloadAnalyzer(clock=clock)
        cache.put(analyzer.analyze("Sprint 1", []))
        cache.put(analyzer.analyze("Sprint 2", []))

        cache.invalidate("Sprint 1")

        assert cache.get("Sprint 1") is None
        assert cache.get("Sprint 2") is not None
        assert len(cache) == 1


class TestTrendLimits:

    @pytest.mark.parametrize("days", [0, MAX_TREND_DAYS + 1, 2_000_000])
    def test_rejects_out_of_range_days(self, service, days):
        with pytest.raises(ValueError):
            run(service.get_trend("Sprint 1", days=days))

    def test_longest_trend(self, service):
        trend = run(service.get_trend("Sprint 1", days=MAX_TREND_DAYS))

        assert len(trend.dates) == MAX_TREND_DAYS
        assert len(trend.average_trend) == MAX_TREND_DAYS
