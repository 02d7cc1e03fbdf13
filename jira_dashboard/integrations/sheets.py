"""
Google Sheets Integration for the Jira Dashboard

Reads sprint and issue tabs from a Google Sheet through its CSV export.
"""

import asyncio
import csv
import io
import logging
import os
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Optional

import httpx

from ..errors import InvalidSheetUrlError, SprintNotFoundError, UpstreamError
from ..fields import field_text, parse_datetime, parse_story_points
from ..models import SprintProgressSnapshot

logger = logging.getLogger(__name__)

SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")


def extract_sheet_id(url: str) -> str:
    """
    Extract the spreadsheet id from a Google Sheets URL.

    Raises InvalidSheetUrlError when the URL does not point at a spreadsheet.
    """
    match = SHEET_ID_PATTERN.search(url or "")
    if not match:
        raise InvalidSheetUrlError(
            "Invalid Google Sheets URL. Please provide a valid Google Sheets URL."
        )
    return match.group(1)


async def call_with_timeout(coro, what: str, timeout: float):
    """
    Await a collaborator call, converting failures into UpstreamError.

    SprintNotFoundError passes through unchanged.
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except (SprintNotFoundError, UpstreamError):
        raise
    except asyncio.TimeoutError as e:
        raise UpstreamError(f"Timed out after {timeout}s: {what}") from e
    except Exception as e:
        raise UpstreamError(f"{what} failed: {e}") from e


def normalize_header(name: str) -> str:
    """'Story Points' -> 'story_points'"""
    return re.sub(r"\s+", "_", name.strip().lower())


def working_days_between(start: date, end: date) -> int:
    """Count Monday-Friday days from start to end, both inclusive."""
    if end < start:
        return 0

    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


class SheetsCollaborator(ABC):
    """Source of sprint and task rows used by the notification and workload services."""

    @abstractmethod
    async def get_sprint_list(self) -> list[dict]:
        """Rows with at least sprint_name and state."""
        pass

    @abstractmethod
    async def get_sprint_burndown_data(self, sprint_name: str) -> SprintProgressSnapshot:
        """Burndown figures for one sprint. Raises SprintNotFoundError if unknown."""
        pass

    @abstractmethod
    async def get_paginated_data(
        self,
        page: int = 1,
        page_size: int = 100,
        sort_by: str = "key",
        sort_order: str = "asc",
        sprint_filter: Optional[str] = None
    ) -> list[dict]:
        """One page of task rows."""
        pass


class GoogleSheetsClient(SheetsCollaborator):
    """
    Google Sheets client reading the public CSV export of two tabs.

    Usage:
        client = GoogleSheetsClient(sheet_id="1AbC...")
        sprints = await client.get_sprint_list()
        snapshot = await client.get_sprint_burndown_data("Sprint 12")
    """

    BASE_URL = "https://docs.google.com/spreadsheets/d"

    def __init__(
        self,
        sheet_id: Optional[str] = None,
        issues_sheet: str = "Issues",
        sprints_sheet: str = "Sprints",
        timeout: float = 30.0
    ):
        self.sheet_id = sheet_id or os.getenv("GOOGLE_SHEET_ID")
        self.issues_sheet = issues_sheet
        self.sprints_sheet = sprints_sheet
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.sheet_id)

    @property
    def sheet_url(self) -> Optional[str]:
        if not self.sheet_id:
            return None
        return f"{self.BASE_URL}/{self.sheet_id}/edit"

    def update_sheet_id(self, sheet_id: str) -> None:
        logger.info("Switching Google Sheet to %s", sheet_id)
        self.sheet_id = sheet_id

    async def _fetch_rows(self, sheet_name: str) -> list[dict]:
        """Download one tab as CSV and return its rows keyed by normalized header."""
        if not self.sheet_id:
            raise UpstreamError("No Google Sheet configured")

        try:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                response = await client.get(
                    f"{self.BASE_URL}/{self.sheet_id}/gviz/tq",
                    params={"tqx": "out:csv", "sheet": sheet_name},
                    timeout=self.timeout
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to read sheet '{sheet_name}': {e}") from e

        reader = csv.reader(io.StringIO(response.text))
        rows = list(reader)
        if not rows:
            return []

        headers = [normalize_header(h) for h in rows[0]]
        return [
            {h: cell for h, cell in zip(headers, row) if h}
            for row in rows[1:]
            if any(cell.strip() for cell in row)
        ]

    async def get_sprint_list(self) -> list[dict]:
        return await self._fetch_rows(self.sprints_sheet)

    async def _get_sprint_row(self, sprint_name: str) -> dict:
        for row in await self.get_sprint_list():
            if field_text(row, "sprint_name") == sprint_name:
                return row
        raise SprintNotFoundError(sprint_name)

    async def get_paginated_data(
        self,
        page: int = 1,
        page_size: int = 100,
        sort_by: str = "key",
        sort_order: str = "asc",
        sprint_filter: Optional[str] = None
    ) -> list[dict]:
        rows = await self._fetch_rows(self.issues_sheet)

        if sprint_filter:
            rows = [r for r in rows if field_text(r, "sprint") == sprint_filter]

        # Numbers sort before text in either order so "10" follows "9"
        descending = sort_order.lower() == "desc"
        numeric = []
        text = []
        for row in rows:
            value = field_text(row, sort_by)
            number = parse_story_points(value)
            if number is not None:
                numeric.append((number, row))
            else:
                text.append((value.lower(), row))

        numeric.sort(key=lambda item: item[0], reverse=descending)
        text.sort(key=lambda item: item[0], reverse=descending)
        rows = [row for _, row in numeric] + [row for _, row in text]

        page = max(page, 1)
        start = (page - 1) * page_size
        return rows[start:start + page_size]

    async def get_sprint_burndown_data(
        self,
        sprint_name: str,
        today: Optional[date] = None
    ) -> SprintProgressSnapshot:
        sprint_row = await self._get_sprint_row(sprint_name)
        tasks = await self.get_paginated_data(1, 10000, sprint_filter=sprint_name)

        total = 0.0
        completed = 0.0
        for task in tasks:
            points = parse_story_points(task.get("story_points"))
            if points is None:
                continue
            total += points
            if field_text(task, "status").lower() == "done":
                completed += points

        start = parse_datetime(sprint_row.get("startdate"))
        end = parse_datetime(sprint_row.get("enddate"))
        today = today or datetime.now().date()

        total_days = 0
        elapsed = 0
        if start and end:
            total_days = working_days_between(start.date(), end.date())
            # Today counts once it is over
            elapsed = min(
                total_days,
                working_days_between(start.date(), today - timedelta(days=1))
            )

        return SprintProgressSnapshot(
            sprint_name=sprint_name,
            total_story_points=total,
            completed_story_points=completed,
            remaining_story_points=total - completed,
            completion_rate=(completed * 100 / total) if total > 0 else 0.0,
            total_working_days=total_days,
            days_elapsed=elapsed,
            remaining_working_days=total_days - elapsed
        )
