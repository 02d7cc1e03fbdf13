"""
Team Workload Analyzer

Groups sprint tasks by assignee, totals story points and identifies
overloaded and underloaded team members.
"""

import hashlib
import re
from datetime import datetime, timezone
from typing import Callable, Optional

from .fields import field_text, parse_datetime, parse_story_points
from .models import (
    MemberWorkload,
    TaskAssignment,
    TeamMember,
    WorkloadAlert,
    WorkloadDistribution,
    WorkloadStatus,
)

IMBALANCE_THRESHOLD = 30.0  # % deviation from the team average

DONE_STATUSES = {"done"}
IN_PROGRESS_STATUSES = {"in progress", "in_progress"}

SUGGESTED_ACTIONS = {
    WorkloadStatus.OVERLOADED: "Consider reassigning some tasks to other team members",
    WorkloadStatus.UNDERLOADED: "Consider assigning more tasks to balance the workload",
}


def member_id_for(name: str) -> str:
    """
    Stable member id derived from the assignee name.

    The same name always maps to the same id across recomputations.
    """
    slug = re.sub(r"\s+", "_", name.strip().lower())
    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:8]
    return f"member_{slug}_{digest}"


def member_email_for(name: str) -> str:
    return f"{name.strip().lower().replace(' ', '.')}@company.com"


def deviation_percentage(member_points: float, average_points: float) -> float:
    """Absolute deviation from the team average in percent. 0 when the average is 0."""
    if average_points == 0:
        return 0.0
    return abs(member_points - average_points) * 100 / average_points


def classify_workload(
    member_points: float,
    average_points: float,
    threshold: float = IMBALANCE_THRESHOLD
) -> WorkloadStatus:
    """Overloaded/underloaded when the deviation is strictly above the threshold."""
    if deviation_percentage(member_points, average_points) > threshold:
        if member_points > average_points:
            return WorkloadStatus.OVERLOADED
        return WorkloadStatus.UNDERLOADED
    return WorkloadStatus.NORMAL


def has_workload_imbalance(
    members: list[MemberWorkload],
    average_points: float,
    threshold: float = IMBALANCE_THRESHOLD
) -> bool:
    """True if any member deviates from the average by more than the threshold."""
    if average_points == 0:
        return False
    return any(
        deviation_percentage(m.total_story_points, average_points) > threshold
        for m in members
    )


def build_workload_alerts(distribution: WorkloadDistribution) -> list[WorkloadAlert]:
    """One alert per member whose workload status is not normal."""
    alerts = []

    for workload in distribution.member_workloads:
        if workload.workload_status == WorkloadStatus.NORMAL:
            continue

        alerts.append(WorkloadAlert(
            member_id=workload.member.id,
            member_name=workload.member.name,
            alert_type=workload.workload_status,
            current_load=workload.total_story_points,
            average_load=distribution.average_story_points,
            deviation_percentage=deviation_percentage(
                workload.total_story_points, distribution.average_story_points
            ),
            suggested_action=SUGGESTED_ACTIONS[workload.workload_status]
        ))

    return alerts


class WorkloadAnalyzer:
    """
    Analyzes sprint workload from task rows.

    Usage:
        analyzer = WorkloadAnalyzer()
        distribution = analyzer.analyze("Sprint 12", task_rows)
        alerts = build_workload_alerts(distribution)
    """

    def __init__(
        self,
        imbalance_threshold: float = IMBALANCE_THRESHOLD,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.imbalance_threshold = imbalance_threshold
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _build_task(self, row: dict, member: TeamMember) -> TaskAssignment:
        """Map a task row, falling back to now for bad created/updated dates."""
        now = self.clock()
        points = parse_story_points(row.get("story_points"))

        return TaskAssignment(
            task_id=field_text(row, "id"),
            task_key=field_text(row, "key"),
            summary=field_text(row, "summary"),
            story_points=points if points is not None else 0.0,
            status=field_text(row, "status"),
            priority=field_text(row, "priority"),
            assignee_id=member.id,
            assignee_name=member.name,
            created_date=parse_datetime(row.get("created")) or now,
            updated_date=parse_datetime(row.get("updated")) or now,
            due_date=parse_datetime(row.get("duedate"))
        )

    def analyze_member(self, name: str, rows: list[dict]) -> MemberWorkload:
        """
        Total one assignee's tasks.

        The workload status is left NORMAL; it depends on the team average
        and is set by aggregate().
        """
        member = TeamMember(
            id=member_id_for(name),
            name=name,
            email=member_email_for(name)
        )

        total_points = 0.0
        completed_points = 0.0
        completed_tasks = 0
        in_progress_tasks = 0

        for row in rows:
            status = field_text(row, "status").lower()
            points = parse_story_points(row.get("story_points"))

            if status in DONE_STATUSES:
                completed_tasks += 1
            elif status in IN_PROGRESS_STATUSES:
                in_progress_tasks += 1

            # Unparseable points are left out of the totals
            if points is not None:
                total_points += points
                if status in DONE_STATUSES:
                    completed_points += points

        total_tasks = len(rows)

        return MemberWorkload(
            member=member,
            total_story_points=total_points,
            completed_story_points=completed_points,
            remaining_story_points=total_points - completed_points,
            total_tasks=total_tasks,
            completed_tasks=completed_tasks,
            in_progress_tasks=in_progress_tasks,
            todo_tasks=total_tasks - completed_tasks - in_progress_tasks,
            completion_rate=(completed_points * 100 / total_points) if total_points > 0 else 0.0,
            tasks=[self._build_task(row, member) for row in rows]
        )

    def aggregate(self, rows: list[dict]) -> list[MemberWorkload]:
        """Group rows by assignee and classify each member against the team average."""
        groups: dict[str, list[dict]] = {}
        for row in rows:
            assignee = field_text(row, "assignee")
            if not assignee:
                continue
            groups.setdefault(assignee, []).append(row)

        members = [self.analyze_member(name, group) for name, group in groups.items()]

        average = self.average_points(members)
        for workload in members:
            workload.workload_status = classify_workload(
                workload.total_story_points, average, self.imbalance_threshold
            )

        return members

    @staticmethod
    def average_points(members: list[MemberWorkload]) -> float:
        if not members:
            return 0.0
        return sum(m.total_story_points for m in members) / len(members)

    def analyze(self, sprint_name: str, rows: list[dict]) -> WorkloadDistribution:
        """Build the workload distribution for a sprint's task rows."""
        members = self.aggregate(rows)
        total = sum(m.total_story_points for m in members)
        average = self.average_points(members)

        return WorkloadDistribution(
            sprint_name=sprint_name,
            total_story_points=total,
            average_story_points=average,
            member_workloads=members,
            workload_imbalance=has_workload_imbalance(members, average, self.imbalance_threshold),
            imbalance_threshold=self.imbalance_threshold,
            last_updated=self.clock()
        )

# Convenience function
def analyze_sprint_workload(
    sprint_name: str,
    rows: list[dict],
    imbalance_threshold: float = IMBALANCE_THRESHOLD
) -> WorkloadDistribution:
    """
    Quick function to analyze a sprint's workload.

    Example:
        distribution = analyze_sprint_workload("Sprint 12", rows)

        print(f"Team average: {distribution.average_story_points} pts")
        for workload in distribution.member_workloads:
            print(f"  {workload.member.name}: {workload.total_story_points} pts")
    """
    analyzer = WorkloadAnalyzer(imbalance_threshold=imbalance_threshold)
    return analyzer.analyze(sprint_name, rows)
