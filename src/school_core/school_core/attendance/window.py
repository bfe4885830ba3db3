from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.constants import DEFAULT_ATTENDANCE_WINDOW_END_HOUR, DEFAULT_ATTENDANCE_WINDOW_START_HOUR
from ..core.exceptions import BusinessRuleViolation


@dataclass(frozen=True)
class AttendanceWindow:
    """School hours during which attendance may be marked.

    Both ends are inclusive on the hour: with 7..17, 17:59 is still open and 18:00 is not.
    """

    start_hour: int = DEFAULT_ATTENDANCE_WINDOW_START_HOUR
    end_hour: int = DEFAULT_ATTENDANCE_WINDOW_END_HOUR

    def __post_init__(self):
        if not (0 <= self.start_hour <= self.end_hour <= 23):
            raise ValueError("attendance window hours must satisfy 0 <= start <= end <= 23")

    def is_open(self, now: datetime) -> bool:
        return self.start_hour <= now.hour <= self.end_hour

    def ensure_open(self, now: datetime) -> None:
        if not self.is_open(now):
            raise BusinessRuleViolation(
                "Attendance can only be marked during school hours "
                f"({self.start_hour}:00 - {self.end_hour}:00)."
            )
