"""
Sprint Progress Thresholds

Compares elapsed sprint time with completed work and classifies the lag.
"""

from dataclasses import dataclass

from .models import SprintHealth, SprintProgressSnapshot, NotificationSettings


@dataclass(frozen=True)
class ProgressEvaluation:
    """Result of comparing time progress with completion."""
    status: SprintHealth
    time_progress: float
    completion_rate: float
    lag_percentage: float

    @property
    def is_lagging(self) -> bool:
        return self.status != SprintHealth.NORMAL


def time_progress(days_elapsed: int, total_working_days: int) -> float:
    """
    Percentage of the sprint's working days that have passed.

    A sprint with no working days has made no time progress.
    """
    if total_working_days <= 0:
        return 0.0
    return days_elapsed * 100 / total_working_days


def evaluate_progress(
    days_elapsed: int,
    total_working_days: int,
    completion_rate: float,
    warning_threshold: float = 10.0,
    danger_threshold: float = 20.0
) -> ProgressEvaluation:
    """
    Classify sprint progress as normal, warning or danger.

    The lag is time progress minus completion rate. A lag equal to a
    threshold falls into that threshold's band.
    """
    ideal = time_progress(days_elapsed, total_working_days)
    lag = ideal - completion_rate

    if lag >= danger_threshold:
        status = SprintHealth.DANGER
    elif lag >= warning_threshold:
        status = SprintHealth.WARNING
    else:
        status = SprintHealth.NORMAL

    return ProgressEvaluation(
        status=status,
        time_progress=ideal,
        completion_rate=completion_rate,
        lag_percentage=lag
    )


def evaluate_snapshot(
    snapshot: SprintProgressSnapshot,
    settings: NotificationSettings
) -> ProgressEvaluation:
    """Evaluate a burndown snapshot against notification settings."""
    return evaluate_progress(
        snapshot.days_elapsed,
        snapshot.total_working_days,
        snapshot.completion_rate,
        warning_threshold=settings.warning_threshold,
        danger_threshold=settings.danger_threshold
    )
