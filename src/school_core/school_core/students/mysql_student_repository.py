from __future__ import annotations

from typing import Any, Optional, Sequence

from ..common.serialization import dumps, loads
from ..core.enums import AppStatus, SnapshotReason
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Student, StudentSnapshot
from .repository import StudentDirectory, StudentRepository

_STUDENT_COLUMNS = (
    "school_id, uid, student_name, class_id, section_id, academic_year, status, version, "
    "profile, created_at, updated_at"
)


def _to_student(r: dict) -> Student:
    return Student(
        school_id=r["school_id"],
        uid=r["uid"],
        student_name=r["student_name"],
        class_id=r["class_id"],
        section_id=r["section_id"],
        academic_year=r["academic_year"],
        status=AppStatus(r["status"]),
        version=int(r["version"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        profile=loads(r.get("profile")) or {},
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def next_sequence(self, tx: Any, counter_name: str) -> int:
        # Creates the counter row on first use, then locks it for the rest of the transaction.
        tx.execute("INSERT IGNORE INTO counters(name, current) VALUES(%s, 0)", (counter_name,))
        tx.execute("SELECT current FROM counters WHERE name=%s FOR UPDATE", (counter_name,))
        r = fetchone(tx)
        nxt = int(r["current"] if r else 0) + 1
        tx.execute("UPDATE counters SET current=%s WHERE name=%s", (nxt, counter_name))
        return nxt

    def get(self, tx: Any, school_id: str, *, for_update: bool = False) -> Optional[Student]:
        lock = " FOR UPDATE" if for_update else ""
        tx.execute(f"SELECT {_STUDENT_COLUMNS} FROM students WHERE school_id=%s{lock}", (school_id,))
        r = fetchone(tx)
        return _to_student(r) if r else None

    def insert(self, tx: Any, student: Student) -> None:
        tx.execute(
            f"""
            INSERT INTO students({_STUDENT_COLUMNS})
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                student.school_id,
                student.uid,
                student.student_name,
                student.class_id,
                student.section_id,
                student.academic_year,
                student.status.value,
                int(student.version),
                dumps(student.profile),
                student.created_at,
                student.updated_at,
            ),
        )

    def update(self, tx: Any, student: Student) -> None:
        tx.execute(
            """
            UPDATE students
            SET student_name=%s, class_id=%s, section_id=%s, academic_year=%s, status=%s,
                version=%s, profile=%s, updated_at=%s
            WHERE school_id=%s
            """,
            (
                student.student_name,
                student.class_id,
                student.section_id,
                student.academic_year,
                student.status.value,
                int(student.version),
                dumps(student.profile),
                student.updated_at,
                student.school_id,
            ),
        )

    def insert_snapshot(self, tx: Any, snapshot: StudentSnapshot) -> None:
        # Plain INSERT: a duplicate (school_id, version) must fail, never overwrite.
        tx.execute(
            """
            INSERT INTO student_history(school_id, version, snapshot, snapshot_reason, changed_by, snapshot_timestamp)
            VALUES(%s,%s,%s,%s,%s,%s)
            """,
            (
                snapshot.school_id,
                int(snapshot.version),
                dumps(snapshot.snapshot),
                snapshot.snapshot_reason.value,
                snapshot.changed_by,
                snapshot.snapshot_timestamp,
            ),
        )

    def fetch(self, school_id: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self.get(cur, school_id)

    def list_snapshots(self, school_id: str) -> Sequence[StudentSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT school_id, version, snapshot, snapshot_reason, changed_by, snapshot_timestamp
                FROM student_history
                WHERE school_id=%s
                ORDER BY version ASC
                """,
                (school_id,),
            )
            return [
                StudentSnapshot(
                    school_id=r["school_id"],
                    version=int(r["version"]),
                    snapshot=loads(r["snapshot"]) or {},
                    snapshot_reason=SnapshotReason(r["snapshot_reason"]),
                    changed_by=r["changed_by"],
                    snapshot_timestamp=r["snapshot_timestamp"],
                )
                for r in fetchall(cur)
            ]


class MySQLStudentDirectory(StudentDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def sync(self, student: Student) -> None:
        """Upsert the read-model row, never replacing a newer version with an older one."""
        with db_cursor(self._conn_factory) as (_, cur):
            # Assignments apply left to right, so `version` must be updated last.
            cur.execute(
                """
                INSERT INTO student_directory(school_id, student_name, class_id, section_id, status, version, synced_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    student_name=IF(VALUES(version) > version, VALUES(student_name), student_name),
                    class_id=IF(VALUES(version) > version, VALUES(class_id), class_id),
                    section_id=IF(VALUES(version) > version, VALUES(section_id), section_id),
                    status=IF(VALUES(version) > version, VALUES(status), status),
                    synced_at=IF(VALUES(version) > version, VALUES(synced_at), synced_at),
                    version=GREATEST(version, VALUES(version))
                """,
                (
                    student.school_id,
                    student.student_name,
                    student.class_id,
                    student.section_id,
                    student.status.value,
                    int(student.version),
                    student.updated_at,
                ),
            )
