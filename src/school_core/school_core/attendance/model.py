from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from ..core.enums import AttendanceMark, CohortType


@dataclass(frozen=True)
class AttendanceStats:
    present: int
    absent: int
    total: int

    @classmethod
    def tally(cls, marks: Iterable[AttendanceMark]) -> "AttendanceStats":
        present = absent = 0
        for mark in marks:
            if mark == AttendanceMark.PRESENT:
                present += 1
            else:
                absent += 1
        return cls(present=present, absent=absent, total=present + absent)


@dataclass(frozen=True)
class AttendanceRecord:
    """One day's attendance for one cohort. Read-only once stored."""

    attendance_id: str
    attendance_date: date
    cohort_type: CohortType
    marked_by: str
    records: dict[str, AttendanceMark]
    stats: AttendanceStats
    created_at: datetime
    class_id: Optional[str] = None
    section_id: Optional[str] = None
    is_modified: bool = False


@dataclass(frozen=True)
class RosterMember:
    """A person eligible to be marked. `uid` is set when they have a login."""

    person_id: str
    uid: Optional[str] = None


@dataclass(frozen=True)
class MarkResult:
    success: bool
    stats: AttendanceStats
