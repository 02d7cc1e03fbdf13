"""
Error types shared by the services and the API layer.
"""


class DashboardError(Exception):
    """Base class for dashboard errors."""


class SprintNotFoundError(DashboardError):
    """Raised when a sprint name is not present in the sheet."""

    def __init__(self, sprint_name: str):
        self.sprint_name = sprint_name
        super().__init__(f"Sprint '{sprint_name}' not found")


class UpstreamError(DashboardError):
    """Raised when the sheet collaborator fails or times out."""


class InvalidSheetUrlError(DashboardError):
    """Raised when a Google Sheets URL has no spreadsheet id."""
