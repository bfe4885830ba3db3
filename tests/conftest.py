from __future__ import annotations

import copy
import itertools
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime

import pytest

from src.school_core.school_core.attendance.model import AttendanceRecord, RosterMember
from src.school_core.school_core.attendance.service import AttendanceService
from src.school_core.school_core.audit.model import AuditRecord
from src.school_core.school_core.audit.service import AuditService
from src.school_core.school_core.core.enums import AppStatus, Role
from src.school_core.school_core.core.exceptions import (
    AttendanceLockedError,
    AuthenticationError,
    ValidationError,
)
from src.school_core.school_core.database.transaction import RetryableConflict
from src.school_core.school_core.identity.model import Identity
from src.school_core.school_core.ledger.invoice import InvoiceService
from src.school_core.school_core.ledger.model import LedgerAccount
from src.school_core.school_core.ledger.service import FeeLedgerService
from src.school_core.school_core.students.service import StudentService
from src.school_core.school_core.users.service import UserService

FIXED_NOW = datetime(2026, 7, 15, 10, 0, 0)
ACADEMIC_YEAR = "2026-2027"
FEE_CATEGORY = "3f2b8c1e-9d4a-4b7e-8a51-2c6d0e9f7a10"


@dataclass
class InMemoryStore:
    """All tables in one place so a failed unit of work can be rolled back as a whole."""

    counters: dict = field(default_factory=dict)
    audit: list = field(default_factory=list)
    accounts: dict = field(default_factory=dict)
    entries: dict = field(default_factory=dict)
    students: dict = field(default_factory=dict)
    history: dict = field(default_factory=dict)
    profiles: dict = field(default_factory=dict)
    attendance: dict = field(default_factory=dict)
    notifications: list = field(default_factory=list)

    def snapshot(self) -> dict:
        return copy.deepcopy(vars(self))

    def restore(self, snap: dict) -> None:
        self.__dict__.update(snap)


class InMemoryTransactionRunner:
    """Serializes units of work and restores the store when one raises."""

    def __init__(self, store: InMemoryStore):
        self._store = store
        self._lock = threading.Lock()
        self.runs = 0

    def run(self, work):
        with self._lock:
            self.runs += 1
            snap = self._store.snapshot()
            try:
                return work(object())
            except BaseException:
                self._store.restore(snap)
                raise


class InMemoryAuditRepo:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def append(self, tx, entry):
        self._store.audit.append(
            AuditRecord(log_id=len(self._store.audit) + 1, entry=entry, timestamp=FIXED_NOW)
        )

    def list_for_entity(self, entity_type, entity_id):
        return [r for r in self._store.audit if r.entry.entity_type == entity_type and r.entry.entity_id == entity_id]


class InMemoryLedgerRepo:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_account(self, tx, account_id, *, for_update=False):
        return self._store.accounts.get(account_id)

    def create_account(self, tx, account: LedgerAccount):
        if account.account_id in self._store.accounts:
            raise RetryableConflict(account.account_id)
        self._store.accounts[account.account_id] = account
        self._store.entries.setdefault(account.account_id, [])

    def update_balance(self, tx, account_id, *, balance, updated_at):
        acc = self._store.accounts[account_id]
        self._store.accounts[account_id] = replace(acc, balance=balance, updated_at=updated_at)

    def insert_entry(self, tx, entry):
        self._store.entries.setdefault(entry.account_id, []).append(entry)

    def get_entry(self, tx, account_id, entry_id, *, for_update=False):
        for e in self._store.entries.get(account_id, []):
            if e.entry_id == entry_id:
                return e
        return None

    def mark_reversed(self, tx, account_id, entry_id, *, reversal_id, reversed_at):
        rows = self._store.entries.get(account_id, [])
        for i, e in enumerate(rows):
            if e.entry_id == entry_id and e.reversed_by_transaction_id is None:
                rows[i] = replace(e, reversed_by_transaction_id=reversal_id, reversed_at=reversed_at)
                return True
        return False

    def fetch_account(self, account_id):
        return self._store.accounts.get(account_id)

    def list_entries(self, account_id):
        return list(self._store.entries.get(account_id, []))


class InMemoryStudentRepo:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def next_sequence(self, tx, counter_name):
        self._store.counters[counter_name] = self._store.counters.get(counter_name, 0) + 1
        return self._store.counters[counter_name]

    def get(self, tx, school_id, *, for_update=False):
        return self._store.students.get(school_id)

    def insert(self, tx, student):
        if student.school_id in self._store.students:
            raise ValueError(f"duplicate student {student.school_id}")
        self._store.students[student.school_id] = student

    def update(self, tx, student):
        self._store.students[student.school_id] = student

    def insert_snapshot(self, tx, snapshot):
        key = (snapshot.school_id, snapshot.version)
        if key in self._store.history:
            raise ValueError(f"duplicate history {key}")
        self._store.history[key] = snapshot

    def fetch(self, school_id):
        return self._store.students.get(school_id)

    def list_snapshots(self, school_id):
        return [s for (sid, _), s in sorted(self._store.history.items()) if sid == school_id]


class InMemoryProfileRepo:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def insert(self, tx, profile):
        self._store.profiles[profile.uid] = profile

    def get(self, tx, uid, *, for_update=False):
        return self._store.profiles.get(uid)

    def mark_suspended(self, tx, uid, *, reason, suspended_at):
        p = self._store.profiles[uid]
        self._store.profiles[uid] = replace(
            p, status=AppStatus.SUSPENDED, suspended_at=suspended_at, suspension_reason=reason
        )


class InMemoryAttendanceRepo:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def exists(self, attendance_id):
        return attendance_id in self._store.attendance

    def insert(self, tx, record: AttendanceRecord):
        if record.attendance_id in self._store.attendance:
            raise AttendanceLockedError("Attendance is read-only after being marked and cannot be updated.")
        self._store.attendance[record.attendance_id] = record

    def fetch(self, attendance_id):
        return self._store.attendance.get(attendance_id)


@dataclass
class InMemoryRoster:
    students: dict = field(default_factory=dict)
    teachers: list = field(default_factory=list)
    staff: list = field(default_factory=list)

    def active_students(self, class_id, section_id):
        return list(self.students.get((class_id, section_id), []))

    def active_teachers(self):
        return list(self.teachers)

    def all_staff(self):
        return list(self.staff)


class InMemoryNotificationRepo:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def insert(self, tx, notification):
        self._store.notifications.append(notification)

    def list_for_user(self, user_id):
        return [n for n in self._store.notifications if n.user_id == user_id]


class FakeIdentityProvider:
    def __init__(self):
        self.users: dict[str, Identity] = {}
        self.passwords: dict[str, str] = {}
        self.deleted: list[str] = []
        self.fail_delete = False

    def create_user(self, *, email, password, display_name, role, mobile=None):
        email = email.lower()
        if any(u.email == email for u in self.users.values()):
            raise ValidationError("An account with this email already exists")
        uid = uuid.uuid4().hex
        self.users[uid] = Identity(
            uid=uid,
            email=email,
            display_name=display_name,
            role=role,
            mobile=mobile,
            disabled=False,
            created_at=FIXED_NOW,
        )
        self.passwords[uid] = password
        return uid

    def delete_user(self, uid):
        if self.fail_delete:
            raise RuntimeError("identity backend unavailable")
        self.users.pop(uid, None)
        self.deleted.append(uid)

    def disable_user(self, uid):
        self.users[uid] = replace(self.users[uid], disabled=True)

    def authenticate(self, email, password):
        for uid, u in self.users.items():
            if u.email == (email or "").lower() and not u.disabled and self.passwords[uid] == password:
                return u
        raise AuthenticationError("Invalid email or password")

    def get(self, uid):
        return self.users.get(uid)


class RecordingDirectory:
    def __init__(self):
        self.synced = []
        self.fail = False

    def sync(self, student):
        if self.fail:
            raise ConnectionError("read model offline")
        self.synced.append(student)


def sequential_ids(prefix: str = "txn"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def tx_runner(store) -> InMemoryTransactionRunner:
    return InMemoryTransactionRunner(store)


@pytest.fixture
def audit_service(store, tx_runner) -> AuditService:
    return AuditService(InMemoryAuditRepo(store), tx_runner)


@pytest.fixture
def ledger_repo(store) -> InMemoryLedgerRepo:
    return InMemoryLedgerRepo(store)


@pytest.fixture
def fee_ledger_service(ledger_repo, audit_service, tx_runner) -> FeeLedgerService:
    return FeeLedgerService(
        ledger_repo,
        audit_service,
        tx_runner,
        current_academic_year=lambda: ACADEMIC_YEAR,
        clock=lambda: FIXED_NOW,
        id_factory=sequential_ids(),
    )


@pytest.fixture
def invoice_service(ledger_repo) -> InvoiceService:
    return InvoiceService(ledger_repo, clock=lambda: FIXED_NOW)


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def directory() -> RecordingDirectory:
    return RecordingDirectory()


@pytest.fixture
def student_service(store, ledger_repo, identity, audit_service, tx_runner, directory) -> StudentService:
    return StudentService(
        InMemoryStudentRepo(store),
        InMemoryProfileRepo(store),
        ledger_repo,
        identity,
        audit_service,
        tx_runner,
        directory=directory,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def user_service(store, identity, audit_service, tx_runner) -> UserService:
    return UserService(InMemoryProfileRepo(store), identity, audit_service, tx_runner, clock=lambda: FIXED_NOW)


@pytest.fixture
def roster() -> InMemoryRoster:
    return InMemoryRoster(
        students={
            ("10", "A"): [
                RosterMember("SHS00001", uid="uid-1"),
                RosterMember("SHS00002", uid="uid-2"),
                RosterMember("SHS00003", uid=None),
            ]
        },
        teachers=[RosterMember("T001", uid="uid-t1"), RosterMember("T002", uid="uid-t2")],
        staff=[RosterMember("S001", uid=None), RosterMember("S002", uid="uid-s2")],
    )


@pytest.fixture
def attendance_service(store, roster, audit_service, tx_runner) -> AttendanceService:
    return AttendanceService(
        InMemoryAttendanceRepo(store),
        roster,
        InMemoryNotificationRepo(store),
        audit_service,
        tx_runner,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def admin(identity) -> tuple[str, str]:
    identity.create_user(email="admin@school.local", password="admin-pass-1", display_name="Admin", role=Role.ADMIN)
    return "admin@school.local", "admin-pass-1"
