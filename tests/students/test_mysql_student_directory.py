from __future__ import annotations

import re
from datetime import datetime

from src.school_core.school_core.core.enums import AppStatus
from src.school_core.school_core.students.model import Student
from src.school_core.school_core.students.mysql_student_repository import MySQLStudentDirectory


class RecordingCursor:
    def __init__(self, log):
        self._log = log

    def execute(self, sql, params=None):
        self._log.append((sql, params))

    def close(self):
        pass


class RecordingConnection:
    def __init__(self, log):
        self._log = log
        self.committed = False

    def cursor(self, dictionary=False):
        return RecordingCursor(self._log)

    def commit(self):
        self.committed = True

    def rollback(self):
        pass

    def close(self):
        pass


class RecordingConnectionFactory:
    def __init__(self):
        self.statements = []
        self.connections = []

    def connect(self):
        conn = RecordingConnection(self.statements)
        self.connections.append(conn)
        return conn


def _student(version):
    return Student(
        school_id="SHS00001",
        uid="uid-1",
        student_name="Asha Rao",
        class_id="10",
        section_id="B",
        academic_year="2026-2027",
        status=AppStatus.ACTIVE,
        version=version,
        profile={},
        created_at=datetime(2026, 7, 15, 10, 0),
        updated_at=datetime(2026, 7, 15, 10, 5),
    )


def _update_clause(sql):
    return sql.split("ON DUPLICATE KEY UPDATE", 1)[1]


def test_sync_upserts_and_commits():
    conns = RecordingConnectionFactory()
    MySQLStudentDirectory(conns).sync(_student(3))

    [(sql, params)] = conns.statements
    assert "INSERT INTO student_directory" in sql
    assert params[0] == "SHS00001"
    assert params[5] == 3
    assert conns.connections[0].committed is True


def test_sync_never_overwrites_a_newer_row():
    conns = RecordingConnectionFactory()
    MySQLStudentDirectory(conns).sync(_student(2))

    [(sql, _)] = conns.statements
    assignments = [a.strip() for a in _update_clause(sql).strip().split(",\n")]
    columns = [a.split("=", 1)[0] for a in assignments]

    assert set(columns) == {"student_name", "class_id", "section_id", "status", "synced_at", "version"}
    # Every data column is gated on the incoming version being newer.
    for assignment in assignments[:-1]:
        assert re.match(r"^\w+=IF\(VALUES\(version\) > version, VALUES\(\w+\), \w+\)$", assignment), assignment
    # The gate reads the stored version, so it must be assigned last.
    assert columns[-1] == "version"
    assert assignments[-1] == "version=GREATEST(version, VALUES(version))"
