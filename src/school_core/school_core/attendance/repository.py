from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import AttendanceRecord, RosterMember


class AttendanceRepository(Protocol):
    """Daily attendance store. There is no update path; a record is written once."""

    def exists(self, attendance_id: str) -> bool:
        raise NotImplementedError

    def insert(self, tx: Any, record: AttendanceRecord) -> None:
        """Raise AttendanceLockedError when a record with the same id already exists."""
        raise NotImplementedError

    def fetch(self, attendance_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError


class RosterRepository(Protocol):
    def active_students(self, class_id: str, section_id: str) -> Sequence[RosterMember]:
        raise NotImplementedError

    def active_teachers(self) -> Sequence[RosterMember]:
        raise NotImplementedError

    def all_staff(self) -> Sequence[RosterMember]:
        raise NotImplementedError
