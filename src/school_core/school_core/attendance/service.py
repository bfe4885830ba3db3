from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from ..audit.model import AuditLogEntry
from ..audit.service import AuditService
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import require_iso_date, require_non_empty
from ..core.enums import AttendanceMark, AuditAction, EntityType, NotificationType
from ..core.exceptions import AttendanceLockedError, NotFoundError, ValidationError
from ..database.transaction import TransactionRunner
from ..notifications.model import Notification
from ..notifications.repository import NotificationRepository
from .cohorts.base import Cohort
from .factory import CohortFactory
from .model import AttendanceRecord, AttendanceStats, MarkResult
from .repository import AttendanceRepository, RosterRepository
from .window import AttendanceWindow

logger = logging.getLogger(__name__)

_MARK_LABELS = {AttendanceMark.PRESENT: "Present", AttendanceMark.ABSENT: "Absent"}


def _parse_marks(records: Mapping[str, Any]) -> dict[str, AttendanceMark]:
    if not isinstance(records, Mapping):
        raise ValidationError("records must be a map of person id to 'P' or 'A'")
    marks: dict[str, AttendanceMark] = {}
    for person_id, value in records.items():
        try:
            marks[str(person_id)] = AttendanceMark(value)
        except ValueError:
            raise ValidationError(f"Invalid attendance mark for {person_id}: expected 'P' or 'A'")
    return marks


class AttendanceService:
    """Once-per-day attendance for a class section, the teachers or the staff.

    A stored record is read-only. Marks for people outside the cohort's roster
    are dropped silently.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        roster: RosterRepository,
        notifications: NotificationRepository,
        audit: AuditService,
        tx_runner: TransactionRunner,
        *,
        window: AttendanceWindow | None = None,
        cohort_factory: CohortFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._roster = roster
        self._notifications = notifications
        self._audit = audit
        self._tx = tx_runner
        self._window = window or AttendanceWindow()
        self._factory = cohort_factory or CohortFactory()
        self._clock = clock

    def mark_attendance(
        self,
        date: str,
        class_id: str,
        section_id: str,
        records: Mapping[str, Any],
        marked_by: str,
        *,
        now: datetime | None = None,
    ) -> MarkResult:
        return self._mark(
            lambda: self._factory.for_class_section(class_id, section_id), date, records, marked_by, now=now
        )

    def mark_teacher_attendance(
        self, date: str, records: Mapping[str, Any], marked_by: str, *, now: datetime | None = None
    ) -> MarkResult:
        return self._mark(self._factory.for_teachers, date, records, marked_by, now=now)

    def mark_staff_attendance(
        self, date: str, records: Mapping[str, Any], marked_by: str, *, now: datetime | None = None
    ) -> MarkResult:
        return self._mark(self._factory.for_staff, date, records, marked_by, now=now)

    def get_record(self, attendance_id: str) -> AttendanceRecord:
        record = self._attendance.fetch(require_non_empty(attendance_id, "attendance_id"))
        if record is None:
            raise NotFoundError("Attendance record not found")
        return record

    def _mark(
        self,
        make_cohort: Callable[[], Cohort],
        day: str,
        records: Mapping[str, Any],
        marked_by: str,
        *,
        now: Optional[datetime],
    ) -> MarkResult:
        # Outside school hours every request is refused, whatever its input.
        now = now or self._clock()
        self._window.ensure_open(now)

        cohort = make_cohort()
        day = require_iso_date(day)
        marks = _parse_marks(records)
        marked_by = require_non_empty(marked_by, "marked_by")

        attendance_id = cohort.attendance_id(day)

        # Both reads are independent; run them together and decide once both are in.
        with ThreadPoolExecutor(max_workers=2) as pool:
            exists_future = pool.submit(self._attendance.exists, attendance_id)
            roster_future = pool.submit(cohort.load_roster, self._roster)
            already_marked = exists_future.result()
            roster = roster_future.result()

        if already_marked:
            raise AttendanceLockedError("Attendance is read-only after being marked and cannot be updated.")

        members = {m.person_id: m for m in roster}
        retained = {pid: mark for pid, mark in marks.items() if pid in members}
        if len(retained) < len(marks):
            logger.info("dropped %d unknown ids while marking %s", len(marks) - len(retained), attendance_id)

        stats = AttendanceStats.tally(retained.values())
        record = AttendanceRecord(
            attendance_id=attendance_id,
            attendance_date=parse_iso_date(day),
            cohort_type=cohort.cohort_type,
            marked_by=marked_by,
            records=retained,
            stats=stats,
            created_at=now,
            class_id=cohort.class_id,
            section_id=cohort.section_id,
        )
        notifications = [
            Notification(
                user_id=members[pid].uid,
                title="Attendance Marked",
                message=f"Your attendance for {day} has been marked as {_MARK_LABELS[mark]}.",
                type=NotificationType.ATTENDANCE,
                target=cohort.notification_target,
                created_at=now,
                metadata={"date": day, "status": mark.value},
            )
            for pid, mark in retained.items()
            if members[pid].uid
        ]

        def work(tx) -> None:
            # The primary key rejects a racing second writer with AttendanceLockedError.
            self._attendance.insert(tx, record)
            self._audit.log(
                AuditLogEntry(
                    user_id=marked_by,
                    user_role=cohort.audit_role,
                    action=AuditAction.MARK_ATTENDANCE,
                    entity_id=attendance_id,
                    entity_type=EntityType.ATTENDANCE,
                    old_value=None,
                    new_value=record,
                ),
                tx=tx,
            )
            for notification in notifications:
                self._notifications.insert(tx, notification)

        self._tx.run(work)
        logger.info(
            "attendance %s marked by %s (present=%d absent=%d)", attendance_id, marked_by, stats.present, stats.absent
        )
        return MarkResult(success=True, stats=stats)
