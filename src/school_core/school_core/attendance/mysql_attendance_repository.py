from __future__ import annotations

from typing import Any, Optional, Sequence

import mysql.connector

from ..common.serialization import dumps, loads
from ..core.enums import AppStatus, AttendanceMark, CohortType
from ..core.exceptions import AttendanceLockedError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, AttendanceStats, RosterMember
from .repository import AttendanceRepository, RosterRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists(self, attendance_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM attendance_daily WHERE attendance_id=%s", (attendance_id,))
            return fetchone(cur) is not None

    def insert(self, tx: Any, record: AttendanceRecord) -> None:
        try:
            tx.execute(
                """
                INSERT INTO attendance_daily(attendance_id, attendance_date, cohort_type, class_id, section_id,
                                             marked_by, records, present_count, absent_count, total_count,
                                             created_at, is_modified)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    record.attendance_id,
                    record.attendance_date,
                    record.cohort_type.value,
                    record.class_id,
                    record.section_id,
                    record.marked_by,
                    dumps(record.records),
                    record.stats.present,
                    record.stats.absent,
                    record.stats.total,
                    record.created_at,
                ),
            )
        except mysql.connector.Error as e:
            if is_duplicate_key(e):
                raise AttendanceLockedError(
                    "Attendance is read-only after being marked and cannot be updated."
                ) from e
            raise

    def fetch(self, attendance_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, attendance_date, cohort_type, class_id, section_id, marked_by, records,
                       present_count, absent_count, total_count, created_at, is_modified
                FROM attendance_daily
                WHERE attendance_id=%s
                """,
                (attendance_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceRecord(
                attendance_id=r["attendance_id"],
                attendance_date=r["attendance_date"],
                cohort_type=CohortType(r["cohort_type"]),
                marked_by=r["marked_by"],
                records={k: AttendanceMark(v) for k, v in (loads(r["records"]) or {}).items()},
                stats=AttendanceStats(
                    present=int(r["present_count"]),
                    absent=int(r["absent_count"]),
                    total=int(r["total_count"]),
                ),
                created_at=r["created_at"],
                class_id=r.get("class_id"),
                section_id=r.get("section_id"),
                is_modified=bool(r.get("is_modified")),
            )


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _members(self, sql: str, params: tuple = ()) -> Sequence[RosterMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [RosterMember(person_id=r["person_id"], uid=r.get("uid") or None) for r in fetchall(cur)]

    def active_students(self, class_id: str, section_id: str) -> Sequence[RosterMember]:
        return self._members(
            "SELECT school_id AS person_id, uid FROM students WHERE class_id=%s AND section_id=%s AND status=%s",
            (class_id, section_id, AppStatus.ACTIVE.value),
        )

    def active_teachers(self) -> Sequence[RosterMember]:
        return self._members(
            "SELECT school_id AS person_id, uid FROM teachers WHERE status=%s",
            (AppStatus.ACTIVE.value,),
        )

    def all_staff(self) -> Sequence[RosterMember]:
        return self._members("SELECT staff_id AS person_id, uid FROM staff")
