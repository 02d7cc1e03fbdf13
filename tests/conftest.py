"""Shared fixtures for Jira Dashboard tests."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional

from jira_dashboard.errors import SprintNotFoundError
from jira_dashboard.integrations import SheetsCollaborator
from jira_dashboard.models import SprintProgressSnapshot


def make_snapshot(
    sprint_name: str,
    days_elapsed: int = 7,
    total_working_days: int = 10,
    completion_rate: float = 40.0,
    total_story_points: float = 20.0
) -> SprintProgressSnapshot:
    completed = total_story_points * completion_rate / 100
    return SprintProgressSnapshot(
        sprint_name=sprint_name,
        total_story_points=total_story_points,
        completed_story_points=completed,
        remaining_story_points=total_story_points - completed,
        completion_rate=completion_rate,
        total_working_days=total_working_days,
        days_elapsed=days_elapsed,
        remaining_working_days=total_working_days - days_elapsed
    )


class FakeSheets(SheetsCollaborator):
    """In-memory sheet with configurable failures."""

    def __init__(self, sprints=None, snapshots=None, tasks=None):
        self.sprints = sprints or []
        self.snapshots = snapshots or {}
        self.tasks = tasks or []
        self.failing = set()
        self.burndown_calls = []
        self.task_calls = 0

    def add_sprint(self, name: str, state: str = "active", **snapshot_kwargs):
        self.sprints.append({"sprint_name": name, "state": state})
        self.snapshots[name] = make_snapshot(name, **snapshot_kwargs)

    def set_progress(self, name: str, **snapshot_kwargs):
        self.snapshots[name] = make_snapshot(name, **snapshot_kwargs)

    async def get_sprint_list(self) -> list[dict]:
        return [dict(row) for row in self.sprints]

    async def get_sprint_burndown_data(self, sprint_name: str) -> SprintProgressSnapshot:
        self.burndown_calls.append(sprint_name)
        if sprint_name in self.failing:
            raise RuntimeError("sheet unavailable")
        if sprint_name not in self.snapshots:
            raise SprintNotFoundError(sprint_name)
        return self.snapshots[sprint_name]

    async def get_paginated_data(
        self,
        page: int = 1,
        page_size: int = 100,
        sort_by: str = "key",
        sort_order: str = "asc",
        sprint_filter: Optional[str] = None
    ) -> list[dict]:
        self.task_calls += 1
        rows = [t for t in self.tasks if not sprint_filter or t.get("sprint") == sprint_filter]
        start = (page - 1) * page_size
        return rows[start:start + page_size]


class FakeClock:
    """Controllable clock for cooldown tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 3, 4, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def sheets():
    """Empty fake sheet."""
    return FakeSheets()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_tasks():
    """Task rows for two sprints."""
    return [
        {"id": "1", "key": "PROJ-1", "summary": "Login page", "story_points": "5",
         "status": "Done", "priority": "High", "assignee": "Alice",
         "sprint": "Sprint 1", "created": "2024-03-01T09:00:00Z",
         "updated": "2024-03-02T10:00:00Z", "duedate": "2024-03-08"},
        {"id": "2", "key": "PROJ-2", "summary": "Signup API", "story_points": "8",
         "status": "In Progress", "priority": "Medium", "assignee": "Alice",
         "sprint": "Sprint 1", "created": "2024-03-01T09:00:00Z",
         "updated": "not a date", "duedate": ""},
        {"id": "3", "key": "PROJ-3", "summary": "Password reset", "story_points": "3",
         "status": "To Do", "priority": "Low", "assignee": "Bob",
         "sprint": "Sprint 1", "created": "2024-03-01", "updated": "2024-03-01"},
        {"id": "4", "key": "PROJ-4", "summary": "Audit log", "story_points": "?",
         "status": "in_progress", "priority": "Low", "assignee": "Bob",
         "sprint": "Sprint 1"},
        {"id": "5", "key": "PROJ-5", "summary": "Unassigned spike", "story_points": "2",
         "status": "To Do", "assignee": "", "sprint": "Sprint 1"},
        {"id": "6", "key": "PROJ-6", "summary": "Next sprint task", "story_points": "13",
         "status": "To Do", "assignee": "Carol", "sprint": "Sprint 2"},
    ]
