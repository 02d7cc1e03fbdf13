"""
Data Models for the Jira Dashboard

Sprint snapshots, notification alerts and workload aggregates.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional
from enum import Enum


class SprintHealth(Enum):
    """Sprint progress classification."""
    NORMAL = "normal"
    WARNING = "warning"
    DANGER = "danger"


class AlertType(Enum):
    """Kinds of sprint progress alerts."""
    WARNING = "warning"
    DANGER = "danger"


class WorkloadStatus(Enum):
    """Member workload relative to the team average."""
    NORMAL = "normal"
    OVERLOADED = "overloaded"
    UNDERLOADED = "underloaded"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class SprintProgressSnapshot:
    """Point-in-time burndown figures for one sprint."""
    sprint_name: str
    total_story_points: float = 0.0
    completed_story_points: float = 0.0
    remaining_story_points: float = 0.0
    completion_rate: float = 0.0
    total_working_days: int = 0
    days_elapsed: int = 0
    remaining_working_days: int = 0

    def to_dict(self) -> dict:
        return {
            "sprint_name": self.sprint_name,
            "total_story_points": self.total_story_points,
            "completed_story_points": self.completed_story_points,
            "remaining_story_points": self.remaining_story_points,
            "completion_rate": round(self.completion_rate, 1),
            "total_working_days": self.total_working_days,
            "days_elapsed": self.days_elapsed,
            "remaining_working_days": self.remaining_working_days
        }


@dataclass(frozen=True)
class NotificationAlert:
    """A sprint progress alert."""
    id: str
    sprint_name: str
    alert_type: AlertType
    title: str
    message: str
    current_completion_rate: float
    ideal_completion_rate: float
    lag_percentage: float
    suggested_actions: tuple[str, ...]
    created_at: datetime
    is_acknowledged: bool = False
    acknowledged_at: Optional[datetime] = None

    def acknowledged(self, at: datetime) -> "NotificationAlert":
        """Return an acknowledged copy, keeping the first acknowledgment time."""
        if self.is_acknowledged:
            return self
        return replace(self, is_acknowledged=True, acknowledged_at=at)

    def with_id(self, alert_id: str) -> "NotificationAlert":
        return replace(self, id=alert_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sprint_name": self.sprint_name,
            "alert_type": self.alert_type.value,
            "title": self.title,
            "message": self.message,
            "current_completion_rate": self.current_completion_rate,
            "ideal_completion_rate": self.ideal_completion_rate,
            "lag_percentage": self.lag_percentage,
            "suggested_actions": list(self.suggested_actions),
            "created_at": self.created_at.isoformat(),
            "is_acknowledged": self.is_acknowledged,
            "acknowledged_at": _iso(self.acknowledged_at)
        }


@dataclass(frozen=True)
class NotificationSettings:
    """Alert thresholds and delivery toggles."""
    warning_threshold: float = 10.0
    danger_threshold: float = 20.0
    email_notifications: bool = True
    dashboard_notifications: bool = True
    cooldown_minutes: int = 30

    def updated(self, **changes) -> "NotificationSettings":
        """
        Return a copy with the given fields changed.

        Fields passed as None keep their current value. Raises ValueError
        when the result would have negative values or a danger threshold
        below the warning threshold.
        """
        unknown = set(changes) - set(self.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

        settings = replace(self, **{k: v for k, v in changes.items() if v is not None})
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.warning_threshold < 0 or self.danger_threshold < 0:
            raise ValueError("Thresholds must not be negative")
        if self.danger_threshold < self.warning_threshold:
            raise ValueError("danger_threshold must be greater than or equal to warning_threshold")
        if self.cooldown_minutes < 0:
            raise ValueError("cooldown_minutes must not be negative")

    def to_dict(self) -> dict:
        return {
            "warning_threshold": self.warning_threshold,
            "danger_threshold": self.danger_threshold,
            "email_notifications": self.email_notifications,
            "dashboard_notifications": self.dashboard_notifications,
            "cooldown_minutes": self.cooldown_minutes
        }


@dataclass
class NotificationResponse:
    """Active alerts together with the settings in force."""
    alerts: list[NotificationAlert]
    settings: NotificationSettings
    last_checked: datetime

    def to_dict(self) -> dict:
        return {
            "alerts": [a.to_dict() for a in self.alerts],
            "settings": self.settings.to_dict(),
            "last_checked": self.last_checked.isoformat()
        }


@dataclass
class TeamMember:
    """A task assignee."""
    id: str
    name: str
    email: str
    role: str = "Developer"
    avatar_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "avatar_url": self.avatar_url
        }


@dataclass
class TaskAssignment:
    """A task row mapped onto its assignee."""
    task_id: str
    task_key: str
    summary: str
    story_points: float
    status: str
    priority: str
    assignee_id: str
    assignee_name: str
    created_date: datetime
    updated_date: datetime
    due_date: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "task_key": self.task_key,
            "summary": self.summary,
            "story_points": self.story_points,
            "status": self.status,
            "priority": self.priority,
            "assignee_id": self.assignee_id,
            "assignee_name": self.assignee_name,
            "created_date": self.created_date.isoformat(),
            "updated_date": self.updated_date.isoformat(),
            "due_date": _iso(self.due_date)
        }


@dataclass
class MemberWorkload:
    """Workload picture for a single team member."""
    member: TeamMember
    total_story_points: float = 0.0
    completed_story_points: float = 0.0
    remaining_story_points: float = 0.0
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    todo_tasks: int = 0
    completion_rate: float = 0.0
    workload_status: WorkloadStatus = WorkloadStatus.NORMAL
    tasks: list[TaskAssignment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "member": self.member.to_dict(),
            "total_story_points": self.total_story_points,
            "completed_story_points": self.completed_story_points,
            "remaining_story_points": self.remaining_story_points,
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "in_progress_tasks": self.in_progress_tasks,
            "todo_tasks": self.todo_tasks,
            "completion_rate": round(self.completion_rate, 1),
            "workload_status": self.workload_status.value,
            "tasks": [t.to_dict() for t in self.tasks]
        }


@dataclass
class WorkloadDistribution:
    """Workload across the team for one sprint."""
    sprint_name: str
    total_story_points: float
    average_story_points: float
    member_workloads: list[MemberWorkload]
    workload_imbalance: bool
    imbalance_threshold: float
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "sprint_name": self.sprint_name,
            "total_story_points": self.total_story_points,
            "average_story_points": round(self.average_story_points, 2),
            "member_workloads": [m.to_dict() for m in self.member_workloads],
            "workload_imbalance": self.workload_imbalance,
            "imbalance_threshold": self.imbalance_threshold,
            "last_updated": self.last_updated.isoformat()
        }


@dataclass
class WorkloadAlert:
    """A member whose load deviates from the team average."""
    member_id: str
    member_name: str
    alert_type: WorkloadStatus
    current_load: float
    average_load: float
    deviation_percentage: float
    suggested_action: str

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "member_name": self.member_name,
            "alert_type": self.alert_type.value,
            "current_load": self.current_load,
            "average_load": round(self.average_load, 2),
            "deviation_percentage": round(self.deviation_percentage, 1),
            "suggested_action": self.suggested_action
        }


@dataclass
class MemberTrend:
    member_id: str
    member_name: str
    story_points: list[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "member_name": self.member_name,
            "story_points": self.story_points
        }


@dataclass
class WorkloadTrend:
    dates: list[str] = field(default_factory=list)
    member_trends: list[MemberTrend] = field(default_factory=list)
    average_trend: list[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "dates": self.dates,
            "member_trends": [t.to_dict() for t in self.member_trends],
            "average_trend": self.average_trend
        }
