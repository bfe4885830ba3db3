from __future__ import annotations

from datetime import date, datetime

import pytest

from src.school_core.school_core.attendance.service import AttendanceService
from src.school_core.school_core.attendance.window import AttendanceWindow
from src.school_core.school_core.core.enums import (
    AttendanceMark,
    AuditAction,
    CohortType,
    NotificationTarget,
    Role,
)
from src.school_core.school_core.core.exceptions import (
    AttendanceLockedError,
    BusinessRuleViolation,
    NotFoundError,
    ValidationError,
)

DAY = "2026-07-15"


def _at(hour, minute=0):
    return datetime(2026, 7, 15, hour, minute)


@pytest.mark.parametrize("now", [_at(7, 0), _at(12, 30), _at(17, 59)])
def test_marking_inside_school_hours(attendance_service, now):
    result = attendance_service.mark_attendance(DAY, "10", "A", {"SHS00001": "P"}, "teacher-1", now=now)
    assert result.success is True


@pytest.mark.parametrize("now", [_at(6, 59), _at(18, 0), _at(23, 15)])
def test_marking_outside_school_hours_is_rejected(attendance_service, store, now):
    with pytest.raises(BusinessRuleViolation, match=r"school hours \(7:00 - 17:00\)"):
        attendance_service.mark_attendance(DAY, "10", "A", {"SHS00001": "P"}, "teacher-1", now=now)
    assert store.attendance == {}
    assert store.audit == []


def test_window_is_configurable():
    window = AttendanceWindow(start_hour=8, end_hour=14)
    assert window.is_open(_at(8, 0)) is True
    assert window.is_open(_at(14, 59)) is True
    assert window.is_open(_at(7, 59)) is False
    assert window.is_open(_at(15, 0)) is False
    with pytest.raises(ValueError):
        AttendanceWindow(start_hour=18, end_hour=7)


def test_class_section_marking_filters_and_tallies(attendance_service, store):
    result = attendance_service.mark_attendance(
        DAY,
        "10",
        "A",
        {"SHS00001": "P", "SHS00002": "A", "SHS00003": "P", "SHS99999": "P"},
        "teacher-1",
    )

    assert (result.stats.present, result.stats.absent, result.stats.total) == (2, 1, 3)

    record = store.attendance[f"{DAY}_10_A"]
    assert record.attendance_date == date(2026, 7, 15)
    assert record.cohort_type == CohortType.CLASS_SECTION
    assert (record.class_id, record.section_id) == ("10", "A")
    assert record.is_modified is False
    assert set(record.records) == {"SHS00001", "SHS00002", "SHS00003"}
    assert record.records["SHS00002"] == AttendanceMark.ABSENT


def test_notifications_only_for_members_with_a_login(attendance_service, store):
    attendance_service.mark_attendance(DAY, "10", "A", {"SHS00001": "P", "SHS00002": "A", "SHS00003": "P"}, "t-1")

    by_user = {n.user_id: n for n in store.notifications}
    assert set(by_user) == {"uid-1", "uid-2"}
    absent = by_user["uid-2"]
    assert absent.title == "Attendance Marked"
    assert absent.message == f"Your attendance for {DAY} has been marked as Absent."
    assert absent.target == NotificationTarget.STUDENT
    assert absent.metadata == {"date": DAY, "status": "A"}
    assert by_user["uid-1"].message.endswith("marked as Present.")


def test_marking_is_audited_as_teacher(attendance_service, store):
    attendance_service.mark_attendance(DAY, "10", "A", {"SHS00001": "P"}, "teacher-1")

    [record] = store.audit
    assert record.entry.action == AuditAction.MARK_ATTENDANCE
    assert record.entry.entity_id == f"{DAY}_10_A"
    assert record.entry.user_role == Role.TEACHER
    assert record.entry.old_value is None
    assert record.entry.new_value["records"] == {"SHS00001": "P"}


def test_second_marking_is_locked(attendance_service, store):
    attendance_service.mark_attendance(DAY, "10", "A", {"SHS00001": "P"}, "teacher-1")

    with pytest.raises(AttendanceLockedError, match="read-only"):
        attendance_service.mark_attendance(DAY, "10", "A", {"SHS00001": "A"}, "teacher-2")

    assert store.attendance[f"{DAY}_10_A"].records["SHS00001"] == AttendanceMark.PRESENT
    assert len(store.audit) == 1
    assert len(store.notifications) == 1


class _StaleExistsRepo:
    """Answers the pre-check as if the other writer had not committed yet."""

    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def exists(self, attendance_id):
        return False


def test_racing_writer_loses_atomically(attendance_service, store, tx_runner, fixed_now):
    service = AttendanceService(
        _StaleExistsRepo(attendance_service._attendance),
        attendance_service._roster,
        attendance_service._notifications,
        attendance_service._audit,
        tx_runner,
        clock=lambda: fixed_now,
    )
    service.mark_attendance(DAY, "10", "A", {"SHS00001": "P"}, "teacher-1")

    with pytest.raises(AttendanceLockedError):
        service.mark_attendance(DAY, "10", "A", {"SHS00001": "A", "SHS00002": "A"}, "teacher-2")

    assert len(store.audit) == 1
    assert [n.user_id for n in store.notifications] == ["uid-1"]


@pytest.mark.parametrize(
    "records",
    [
        {"SHS00001": "X"},
        {"SHS00001": "present"},
        {"SHS00001": None},
        ["SHS00001"],
    ],
)
def test_invalid_marks_are_rejected(attendance_service, store, records):
    with pytest.raises(ValidationError):
        attendance_service.mark_attendance(DAY, "10", "A", records, "teacher-1")
    assert store.attendance == {}


def test_invalid_date_is_rejected(attendance_service):
    with pytest.raises(ValidationError):
        attendance_service.mark_attendance("15/07/2026", "10", "A", {"SHS00001": "P"}, "teacher-1")


@pytest.mark.parametrize(
    "day, class_id, records",
    [
        (DAY, "10", {"SHS00001": "X"}),
        ("15/07/2026", "10", {"SHS00001": "P"}),
        (DAY, "", {"SHS00001": "P"}),
        (DAY, "C" * 65, {"SHS00001": "P"}),
    ],
)
def test_closed_window_is_reported_before_input_errors(attendance_service, store, day, class_id, records):
    with pytest.raises(BusinessRuleViolation, match="school hours"):
        attendance_service.mark_attendance(day, class_id, "A", records, "teacher-1", now=_at(20, 0))
    assert store.attendance == {}


def test_closed_window_is_reported_first_for_teachers_and_staff(attendance_service, store):
    with pytest.raises(BusinessRuleViolation, match="school hours"):
        attendance_service.mark_teacher_attendance("not-a-date", {"T001": "P"}, "admin-1", now=_at(6, 0))
    with pytest.raises(BusinessRuleViolation, match="school hours"):
        attendance_service.mark_staff_attendance(DAY, {"S001": "?"}, "", now=_at(19, 30))
    assert store.attendance == {}


@pytest.mark.parametrize("class_id, section_id", [("C" * 65, "A"), ("10", "S" * 65)])
def test_cohort_ids_longer_than_the_column_are_rejected(attendance_service, store, class_id, section_id):
    with pytest.raises(ValidationError, match="between 1 and 64"):
        attendance_service.mark_attendance(DAY, class_id, section_id, {"SHS00001": "P"}, "teacher-1")
    assert store.attendance == {}


def test_empty_marking_is_stored_with_zero_stats(attendance_service, store):
    result = attendance_service.mark_attendance(DAY, "10", "B", {"SHS00001": "P"}, "teacher-1")

    assert result.stats.total == 0
    assert store.attendance[f"{DAY}_10_B"].records == {}
    assert store.notifications == []


def test_teacher_attendance(attendance_service, store):
    result = attendance_service.mark_teacher_attendance(DAY, {"T001": "P", "T002": "A", "T404": "P"}, "admin-1")

    assert (result.stats.present, result.stats.absent) == (1, 1)
    record = store.attendance[f"TEACHERS_{DAY}"]
    assert record.cohort_type == CohortType.TEACHERS
    assert record.class_id is None
    assert store.audit[-1].entry.user_role == Role.ADMIN
    assert {n.target for n in store.notifications} == {NotificationTarget.TEACHER}


def test_staff_attendance(attendance_service, store):
    result = attendance_service.mark_staff_attendance(DAY, {"S001": "P", "S002": "P"}, "admin-1")

    assert result.stats.total == 2
    assert f"STAFF_{DAY}" in store.attendance
    assert [n.user_id for n in store.notifications] == ["uid-s2"]
    assert store.notifications[0].target == NotificationTarget.STAFF


def test_each_cohort_locks_independently(attendance_service):
    attendance_service.mark_teacher_attendance(DAY, {"T001": "P"}, "admin-1")
    attendance_service.mark_staff_attendance(DAY, {"S001": "P"}, "admin-1")
    attendance_service.mark_attendance(DAY, "10", "A", {"SHS00001": "P"}, "teacher-1")

    with pytest.raises(AttendanceLockedError):
        attendance_service.mark_teacher_attendance(DAY, {"T001": "A"}, "admin-1")


def test_get_record(attendance_service):
    attendance_service.mark_attendance(DAY, "10", "A", {"SHS00001": "P"}, "teacher-1")
    assert attendance_service.get_record(f"{DAY}_10_A").stats.present == 1
    with pytest.raises(NotFoundError):
        attendance_service.get_record(f"{DAY}_10_C")
