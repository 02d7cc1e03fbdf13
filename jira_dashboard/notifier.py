"""
Sprint Progress Notifications

Checks active sprints against the lag thresholds and keeps the set of
alerts shown on the dashboard up to date.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional
from enum import Enum

from .alerts import AlertStore, CooldownTracker
from .errors import SprintNotFoundError, UpstreamError
from .fields import field_text
from .integrations import SheetsCollaborator, call_with_timeout
from .models import (
    AlertType,
    NotificationAlert,
    NotificationResponse,
    NotificationSettings,
    SprintHealth,
    SprintProgressSnapshot,
)
from .thresholds import ProgressEvaluation, evaluate_snapshot

logger = logging.getLogger(__name__)


DANGER_ACTIONS = (
    "Hold an urgent meeting to review the sprint scope",
    "Reset expectations with stakeholders",
    "Consider extending the sprint or dropping features",
    "Reassess team capacity and workload",
)

WARNING_ACTIONS = (
    "Review the remaining work and re-prioritize",
    "Discuss possible blockers with the team",
    "Consider adding resources or rebalancing assignments",
    "Prepare a progress update for stakeholders",
)


class CheckOutcome(Enum):
    """What a check did for one sprint."""
    CREATED = "created"      # New alert stored
    PENDING = "pending"      # Matching unacknowledged alert already present
    CLEARED = "cleared"      # Progress normal, pending alerts removed
    COOLDOWN = "cooldown"    # Skipped, alert created recently
    FAILED = "failed"        # Collaborator error or timeout


@dataclass
class SprintCheckResult:
    """Outcome of checking a single sprint."""
    sprint_name: str
    outcome: CheckOutcome
    alert: Optional[NotificationAlert] = None
    evaluation: Optional[ProgressEvaluation] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "sprint_name": self.sprint_name,
            "outcome": self.outcome.value,
            "alert_id": self.alert.id if self.alert else None,
            "lag_percentage": round(self.evaluation.lag_percentage, 1) if self.evaluation else None,
            "error": self.error
        }


@dataclass
class CheckReport:
    """Results of a check pass over all active sprints."""
    results: list[SprintCheckResult] = field(default_factory=list)

    @property
    def alerts(self) -> list[NotificationAlert]:
        """Alerts created during the pass."""
        return [r.alert for r in self.results if r.outcome == CheckOutcome.CREATED]

    @property
    def failed_count(self) -> int:
        return len([r for r in self.results if r.outcome == CheckOutcome.FAILED])

    def to_dict(self) -> dict:
        alerts = self.alerts
        return {
            "alerts_created": len(alerts),
            "alerts": [a.to_dict() for a in alerts],
            "failed_sprints": self.failed_count,
            "results": [r.to_dict() for r in self.results]
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_alert(
    sprint_name: str,
    alert_type: AlertType,
    evaluation: ProgressEvaluation,
    created_at: datetime
) -> NotificationAlert:
    """Create an alert with its title, message and suggested actions."""
    lag = evaluation.lag_percentage
    current = evaluation.completion_rate
    ideal = evaluation.time_progress

    if alert_type == AlertType.DANGER:
        title = f"🚨 {sprint_name} is seriously behind schedule"
        message = (
            f"{sprint_name} is {lag:.1f}% behind schedule. Current completion is "
            f"{current:.1f}%, ideal progress is {ideal:.1f}%."
        )
        actions = DANGER_ACTIONS
    else:
        title = f"⚠️ {sprint_name} is slightly behind schedule"
        message = (
            f"{sprint_name} is {lag:.1f}% behind schedule. Current completion is "
            f"{current:.1f}%, ideal progress should be {ideal:.1f}%."
        )
        actions = WARNING_ACTIONS

    return NotificationAlert(
        id=f"{sprint_name}_{alert_type.value}_{created_at:%Y%m%d%H%M%S}",
        sprint_name=sprint_name,
        alert_type=alert_type,
        title=title,
        message=message,
        current_completion_rate=current,
        ideal_completion_rate=ideal,
        lag_percentage=lag,
        suggested_actions=actions,
        created_at=created_at
    )


class NotificationEngine:
    """
    Creates, suppresses and clears sprint progress alerts.

    Usage:
        engine = NotificationEngine(sheets=GoogleSheetsClient(sheet_id))
        report = await engine.check_all_active_sprints()
        for alert in report.alerts:
            print(alert.title)
    """

    def __init__(
        self,
        sheets: SheetsCollaborator,
        settings: Optional[NotificationSettings] = None,
        store: Optional[AlertStore] = None,
        cooldowns: Optional[CooldownTracker] = None,
        timeout: float = 30.0,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.sheets = sheets
        self.store = store if store is not None else AlertStore()
        self.cooldowns = cooldowns if cooldowns is not None else CooldownTracker()
        self.timeout = timeout
        self.clock = clock or _utcnow
        self.last_checked: Optional[datetime] = None

        self._settings = settings or NotificationSettings()
        self._settings_lock = threading.Lock()

    @property
    def settings(self) -> NotificationSettings:
        with self._settings_lock:
            return self._settings

    def update_settings(self, **changes) -> NotificationSettings:
        """Apply a partial settings update. Fields left as None are unchanged."""
        with self._settings_lock:
            self._settings = self._settings.updated(**changes)
            settings = self._settings

        logger.info("Notification settings updated: %s", settings.to_dict())
        return settings

    def _apply(
        self,
        sprint_name: str,
        snapshot: SprintProgressSnapshot
    ) -> SprintCheckResult:
        """Evaluate a snapshot and update the store accordingly."""
        evaluation = evaluate_snapshot(snapshot, self.settings)

        if evaluation.status == SprintHealth.NORMAL:
            removed = self.store.remove_unacknowledged_for_sprint(sprint_name)
            if removed:
                logger.info("Cleared %d alert(s) for %s, progress is back on track", removed, sprint_name)
            return SprintCheckResult(sprint_name, CheckOutcome.CLEARED, evaluation=evaluation)

        alert_type = AlertType(evaluation.status.value)
        now = self.clock()
        alert = self.store.add_if_absent(build_alert(sprint_name, alert_type, evaluation, now))

        if alert is None:
            return SprintCheckResult(sprint_name, CheckOutcome.PENDING, evaluation=evaluation)

        self.cooldowns.stamp(sprint_name, now)
        logger.info(
            "Created %s alert %s (lag %.1f%%)",
            alert_type.value, alert.id, evaluation.lag_percentage
        )
        return SprintCheckResult(sprint_name, CheckOutcome.CREATED, alert=alert, evaluation=evaluation)

    async def _check(self, sprint_name: str) -> SprintCheckResult:
        snapshot = await call_with_timeout(
            self.sheets.get_sprint_burndown_data(sprint_name),
            f"burndown for {sprint_name}",
            self.timeout
        )
        return self._apply(sprint_name, snapshot)

    async def check_all_active_sprints(self) -> CheckReport:
        """
        Check every active sprint outside its cooldown window.

        A failing sprint is recorded as FAILED and does not stop the pass.
        """
        report = CheckReport()
        self.last_checked = self.clock()

        try:
            sprint_rows = await call_with_timeout(self.sheets.get_sprint_list(), "sprint list", self.timeout)
        except (SprintNotFoundError, UpstreamError) as e:
            logger.warning("Could not load sprint list: %s", e)
            report.results.append(SprintCheckResult("", CheckOutcome.FAILED, error=str(e)))
            return report

        active = [
            field_text(row, "sprint_name")
            for row in sprint_rows
            if field_text(row, "state").lower() == "active"
        ]

        for sprint_name in active:
            if not sprint_name:
                continue

            if self.cooldowns.is_active(sprint_name, self.clock(), self.settings.cooldown_minutes):
                logger.debug("Skipping %s, still in cooldown", sprint_name)
                report.results.append(SprintCheckResult(sprint_name, CheckOutcome.COOLDOWN))
                continue

            try:
                result = await self._check(sprint_name)
            except (SprintNotFoundError, UpstreamError) as e:
                logger.warning("Error checking sprint progress for %s: %s", sprint_name, e)
                result = SprintCheckResult(sprint_name, CheckOutcome.FAILED, error=str(e))

            report.results.append(result)

        if report.failed_count:
            logger.warning("Check pass finished with %d failed sprint(s)", report.failed_count)

        return report

    async def check_sprint(self, sprint_name: str) -> list[NotificationAlert]:
        """
        Check one sprint immediately, ignoring its cooldown.

        Raises SprintNotFoundError or UpstreamError when the sheet cannot
        supply the sprint's burndown data.
        """
        self.last_checked = self.clock()
        result = await self._check(sprint_name)
        return [result.alert] if result.alert else []

    def get_active_notifications(self) -> NotificationResponse:
        return NotificationResponse(
            alerts=self.store.list_active(),
            settings=self.settings,
            last_checked=self.last_checked or self.clock()
        )

    def acknowledge(self, alert_id: str) -> bool:
        acknowledged = self.store.acknowledge(alert_id, self.clock())
        if acknowledged:
            logger.info("Alert %s acknowledged", alert_id)
        return acknowledged

    def cleanup_acknowledged(self) -> int:
        removed = self.store.remove_acknowledged()
        logger.info("Removed %d acknowledged alert(s)", removed)
        return removed
