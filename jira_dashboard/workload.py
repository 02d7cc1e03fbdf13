"""
Sprint Workload Service

Caches workload distributions per sprint and derives member alerts and
trend data from them.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

from .analyzer import WorkloadAnalyzer, build_workload_alerts
from .errors import SprintNotFoundError
from .fields import field_text
from .integrations import SheetsCollaborator, call_with_timeout
from .models import WorkloadAlert, WorkloadDistribution, WorkloadTrend

logger = logging.getLogger(__name__)

MAX_SPRINT_TASKS = 1000
MAX_TREND_DAYS = 90


class WorkloadCache:
    """Per-sprint workload distributions. Entries live until invalidated."""

    def __init__(self):
        self._entries: dict[str, WorkloadDistribution] = {}
        self._lock = threading.RLock()

    def __contains__(self, sprint_name: str) -> bool:
        with self._lock:
            return sprint_name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, sprint_name: str) -> Optional[WorkloadDistribution]:
        with self._lock:
            return self._entries.get(sprint_name)

    def put(self, distribution: WorkloadDistribution) -> None:
        with self._lock:
            self._entries[distribution.sprint_name] = distribution

    def invalidate(self, sprint_name: Optional[str] = None) -> None:
        """Drop one sprint's entry, or every entry when no sprint is given."""
        with self._lock:
            if sprint_name is None:
                self._entries.clear()
            else:
                self._entries.pop(sprint_name, None)


class WorkloadService:
    """
    Serves workload distributions, alerts and trends for sprints.

    Usage:
        service = WorkloadService(sheets=GoogleSheetsClient(sheet_id))
        distribution = await service.get_distribution("Sprint 12")
        alerts = await service.get_alerts("Sprint 12")
    """

    def __init__(
        self,
        sheets: SheetsCollaborator,
        analyzer: Optional[WorkloadAnalyzer] = None,
        cache: Optional[WorkloadCache] = None,
        timeout: float = 30.0
    ):
        self.sheets = sheets
        self.analyzer = analyzer or WorkloadAnalyzer()
        self.cache = cache if cache is not None else WorkloadCache()
        self.timeout = timeout

    async def _compute(self, sprint_name: str) -> WorkloadDistribution:
        sprint_rows = await call_with_timeout(self.sheets.get_sprint_list(), "sprint list", self.timeout)
        if not any(field_text(row, "sprint_name") == sprint_name for row in sprint_rows):
            raise SprintNotFoundError(sprint_name)

        tasks = await call_with_timeout(
            self.sheets.get_paginated_data(1, MAX_SPRINT_TASKS, "key", "asc", sprint_name),
            f"tasks for {sprint_name}",
            self.timeout
        )

        distribution = self.analyzer.analyze(sprint_name, tasks)
        logger.info(
            "Computed workload for %s: %d member(s), %.1f points, imbalance=%s",
            sprint_name,
            len(distribution.member_workloads),
            distribution.total_story_points,
            distribution.workload_imbalance
        )
        return distribution

    async def get_distribution(self, sprint_name: str) -> WorkloadDistribution:
        """
        Get a sprint's workload distribution, computing it on a cache miss.

        Raises:
            SprintNotFoundError: sprint is not in the sprint list
            UpstreamError: the sheet could not be read
        """
        cached = self.cache.get(sprint_name)
        if cached is not None:
            return cached

        distribution = await self._compute(sprint_name)
        self.cache.put(distribution)
        return distribution

    async def get_alerts(self, sprint_name: str) -> list[WorkloadAlert]:
        """Overloaded and underloaded members, derived fresh from the distribution."""
        distribution = await self.get_distribution(sprint_name)
        return build_workload_alerts(distribution)

    async def get_trend(self, sprint_name: str, days: int = 7) -> WorkloadTrend:
        """
        Workload trend over the last days.

        No history is stored yet, so this returns synthetic figures: the last
        `days` dates (oldest first) with an average rising by two points a day.
        """
        if not 1 <= days <= MAX_TREND_DAYS:
            raise ValueError(f"days must be between 1 and {MAX_TREND_DAYS}")

        today = datetime.now(timezone.utc).date()
        dates = [
            (today - timedelta(days=i)).isoformat()
            for i in reversed(range(days))
        ]
        return WorkloadTrend(
            dates=dates,
            member_trends=[],
            average_trend=[20.0 + i * 2.0 for i in range(days)]
        )

    async def refresh(self, sprint_name: str) -> WorkloadDistribution:
        """Drop the cached distribution and compute it again."""
        self.cache.invalidate(sprint_name)
        return await self.get_distribution(sprint_name)

    def invalidate(self, sprint_name: Optional[str] = None) -> None:
        self.cache.invalidate(sprint_name)
        logger.info("Workload cache cleared for %s", sprint_name or "all sprints")
