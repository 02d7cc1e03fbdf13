"""
Sheet Data Service

Table, sprint and dashboard views over the raw sheet rows.
"""

import logging
import math
from typing import Optional

from .errors import SprintNotFoundError
from .fields import field_text, parse_story_points
from .integrations import SheetsCollaborator, call_with_timeout
from .models import SprintProgressSnapshot

logger = logging.getLogger(__name__)

MAX_TABLE_ROWS = 10000


def sprint_summary(row: dict) -> dict:
    """Map a sprint tab row onto the fields the dashboard shows."""
    sprint_id = field_text(row, "sprint_id")
    return {
        "sprint_name": field_text(row, "sprint_name"),
        "sprint_id": int(sprint_id) if sprint_id.isdigit() else 0,
        "board_name": field_text(row, "board_name"),
        "state": field_text(row, "state"),
        "start_date": field_text(row, "startdate") or None,
        "end_date": field_text(row, "enddate") or None,
        "goal": field_text(row, "goal")
    }


class SheetDataService:
    """
    Read-only views of the issue and sprint tabs.

    Usage:
        service = SheetDataService(sheets=GoogleSheetsClient(sheet_id))
        page = await service.get_table_page(page=2, page_size=50)
        stats = await service.get_dashboard_stats("Sprint 12")
    """

    def __init__(self, sheets: SheetsCollaborator, timeout: float = 30.0):
        self.sheets = sheets
        self.timeout = timeout

    async def _task_rows(
        self,
        sprint: Optional[str] = None,
        sort_by: str = "key",
        sort_order: str = "asc"
    ) -> list[dict]:
        return await call_with_timeout(
            self.sheets.get_paginated_data(1, MAX_TABLE_ROWS, sort_by, sort_order, sprint),
            "issue rows",
            self.timeout
        )

    async def _sprint_rows(self) -> list[dict]:
        return await call_with_timeout(self.sheets.get_sprint_list(), "sprint list", self.timeout)

    async def get_table_page(
        self,
        page: int = 1,
        page_size: int = 100,
        sort_by: str = "key",
        sort_order: str = "asc",
        sprint: Optional[str] = None
    ) -> dict:
        """One page of issue rows with pagination details."""
        rows = await self._task_rows(sprint, sort_by, sort_order)
        total = len(rows)
        total_pages = math.ceil(total / page_size) if total else 0
        start = (page - 1) * page_size

        return {
            "data": rows[start:start + page_size],
            "pagination": {
                "current_page": page,
                "page_size": page_size,
                "total_records": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1
            }
        }

    async def get_summary(self) -> dict:
        """Row count and column names of the issue tab."""
        rows = await self._task_rows()
        columns = []
        for row in rows:
            for key in row:
                if key not in columns:
                    columns.append(key)

        return {
            "sheet_name": getattr(self.sheets, "issues_sheet", "Issues"),
            "total_rows": len(rows),
            "columns": columns
        }

    async def get_sprint_options(self) -> list[str]:
        """Distinct sprint names referenced by issue rows, sorted."""
        rows = await self._task_rows()
        return sorted({field_text(r, "sprint") for r in rows if field_text(r, "sprint")})

    async def get_dashboard_stats(self, sprint: Optional[str] = None) -> dict:
        rows = await self._task_rows(sprint)

        total_points = 0.0
        done_points = 0.0
        done_issues = 0
        for row in rows:
            points = parse_story_points(row.get("story_points")) or 0.0
            total_points += points
            if field_text(row, "status").lower() == "done":
                done_issues += 1
                done_points += points

        return {
            "total_issues": len(rows),
            "total_story_points": total_points,
            "done_issues": done_issues,
            "done_story_points": done_points
        }

    async def get_status_distribution(self, sprint: Optional[str] = None) -> dict:
        """Issue counts per status, largest first."""
        rows = await self._task_rows(sprint)

        counts: dict[str, int] = {}
        for row in rows:
            status = field_text(row, "status") or "Unknown"
            counts[status] = counts.get(status, 0) + 1

        total = len(rows)
        distribution = [
            {
                "status": status,
                "count": count,
                "percentage": round(count * 100 / total, 1)
            }
            for status, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        ]
        return {"distribution": distribution, "total_count": total}

    async def get_sprint_list(self) -> list[dict]:
        return [sprint_summary(row) for row in await self._sprint_rows()]

    async def get_sprint_info(self, sprint_name: str) -> dict:
        """Sprint tab details for one sprint. Raises SprintNotFoundError if absent."""
        for row in await self._sprint_rows():
            if field_text(row, "sprint_name") == sprint_name:
                return sprint_summary(row)
        raise SprintNotFoundError(sprint_name)

    async def get_sprint_burndown(self, sprint_name: str) -> SprintProgressSnapshot:
        return await call_with_timeout(
            self.sheets.get_sprint_burndown_data(sprint_name),
            f"burndown for {sprint_name}",
            self.timeout
        )
