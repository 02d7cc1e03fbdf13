"""
In-memory alert storage and per-sprint cooldown tracking.

Both stores are shared between request handlers and guard every operation
with a re-entrant lock.
"""

import threading
from datetime import datetime, timedelta
from typing import Iterator, Optional

from .models import AlertType, NotificationAlert


class AlertStore:
    """
    Keyed collection of notification alerts.

    Holds at most one unacknowledged alert per (sprint, alert type) when
    alerts are added through add_if_absent().
    """

    def __init__(self):
        self._alerts: dict[str, NotificationAlert] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)

    def __iter__(self) -> Iterator[NotificationAlert]:
        with self._lock:
            return iter(list(self._alerts.values()))

    def put(self, alert: NotificationAlert) -> None:
        with self._lock:
            self._alerts[alert.id] = alert

    def get(self, alert_id: str) -> Optional[NotificationAlert]:
        with self._lock:
            return self._alerts.get(alert_id)

    def remove(self, alert_id: str) -> Optional[NotificationAlert]:
        with self._lock:
            return self._alerts.pop(alert_id, None)

    def find_pending(self, sprint_name: str, alert_type: AlertType) -> Optional[NotificationAlert]:
        """Find the unacknowledged alert of a type for a sprint."""
        with self._lock:
            for alert in self._alerts.values():
                if (alert.sprint_name == sprint_name
                        and alert.alert_type == alert_type
                        and not alert.is_acknowledged):
                    return alert
            return None

    def add_if_absent(self, alert: NotificationAlert) -> Optional[NotificationAlert]:
        """
        Store an alert unless an unacknowledged one of the same type exists.

        The alert id gets a numeric suffix when it collides with a stored
        alert. Returns the stored alert, or None when nothing was added.
        """
        with self._lock:
            if self.find_pending(alert.sprint_name, alert.alert_type):
                return None

            alert_id = alert.id
            n = 2
            while alert_id in self._alerts:
                alert_id = f"{alert.id}-{n}"
                n += 1
            if alert_id != alert.id:
                alert = alert.with_id(alert_id)

            self._alerts[alert.id] = alert
            return alert

    def list_active(self) -> list[NotificationAlert]:
        """Unacknowledged alerts, newest first."""
        with self._lock:
            active = [a for a in self._alerts.values() if not a.is_acknowledged]
        return sorted(active, key=lambda a: a.created_at, reverse=True)

    def acknowledge(self, alert_id: str, at: datetime) -> bool:
        """Mark an alert acknowledged. Returns False for unknown ids."""
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                return False
            self._alerts[alert_id] = alert.acknowledged(at)
            return True

    def remove_acknowledged(self) -> int:
        with self._lock:
            ids = [k for k, a in self._alerts.items() if a.is_acknowledged]
            for alert_id in ids:
                del self._alerts[alert_id]
            return len(ids)

    def remove_unacknowledged_for_sprint(self, sprint_name: str) -> int:
        with self._lock:
            ids = [
                k for k, a in self._alerts.items()
                if a.sprint_name == sprint_name and not a.is_acknowledged
            ]
            for alert_id in ids:
                del self._alerts[alert_id]
            return len(ids)


class CooldownTracker:
    """Remembers when each sprint last produced an alert."""

    def __init__(self):
        self._last_alert: dict[str, datetime] = {}
        self._lock = threading.RLock()

    def stamp(self, sprint_name: str, at: datetime) -> None:
        with self._lock:
            self._last_alert[sprint_name] = at

    def last_alert_at(self, sprint_name: str) -> Optional[datetime]:
        with self._lock:
            return self._last_alert.get(sprint_name)

    def is_active(self, sprint_name: str, now: datetime, cooldown_minutes: float) -> bool:
        last = self.last_alert_at(sprint_name)
        if last is None:
            return False
        return now - last < timedelta(minutes=cooldown_minutes)

    def clear(self, sprint_name: Optional[str] = None) -> None:
        with self._lock:
            if sprint_name is None:
                self._last_alert.clear()
            else:
                self._last_alert.pop(sprint_name, None)
