"""
Jira Dashboard

Sprint progress alerts and team workload analysis over Jira data kept in a
Google Sheet.
"""

__version__ = "1.0.0"

from .models import (
    AlertType,
    MemberWorkload,
    NotificationAlert,
    NotificationSettings,
    SprintHealth,
    SprintProgressSnapshot,
    TaskAssignment,
    TeamMember,
    WorkloadAlert,
    WorkloadDistribution,
    WorkloadStatus,
)

from .thresholds import ProgressEvaluation, evaluate_progress

from .alerts import AlertStore, CooldownTracker

from .notifier import (
    CheckOutcome,
    CheckReport,
    NotificationEngine,
    SprintCheckResult,
)

from .analyzer import (
    WorkloadAnalyzer,
    analyze_sprint_workload,
    build_workload_alerts,
    classify_workload,
)

from .workload import WorkloadCache, WorkloadService

from .sheet_data import SheetDataService

from .errors import (
    DashboardError,
    InvalidSheetUrlError,
    SprintNotFoundError,
    UpstreamError,
)

__all__ = [
    # Version
    "__version__",

    # Models
    "AlertType",
    "MemberWorkload",
    "NotificationAlert",
    "NotificationSettings",
    "SprintHealth",
    "SprintProgressSnapshot",
    "TaskAssignment",
    "TeamMember",
    "WorkloadAlert",
    "WorkloadDistribution",
    "WorkloadStatus",

    # Notifications
    "ProgressEvaluation",
    "evaluate_progress",
    "AlertStore",
    "CooldownTracker",
    "CheckOutcome",
    "CheckReport",
    "NotificationEngine",
    "SprintCheckResult",

    # Workload
    "WorkloadAnalyzer",
    "analyze_sprint_workload",
    "build_workload_alerts",
    "classify_workload",
    "WorkloadCache",
    "WorkloadService",

    # Sheet data
    "SheetDataService",

    # Errors
    "DashboardError",
    "InvalidSheetUrlError",
    "SprintNotFoundError",
    "UpstreamError",
]
