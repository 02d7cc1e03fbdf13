"""
Jira Dashboard - Integrations

Sources of sprint and task data:
- Google Sheets: sprint list, issue rows, burndown figures
"""

from .sheets import (
    SheetsCollaborator,
    GoogleSheetsClient,
    call_with_timeout,
    extract_sheet_id,
    working_days_between
)

__all__ = [
    "SheetsCollaborator",
    "GoogleSheetsClient",
    "call_with_timeout",
    "extract_sheet_id",
    "working_days_between",
]
