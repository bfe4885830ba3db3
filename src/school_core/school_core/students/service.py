"""Student registry: admissions and versioned profile updates.

Rules:
- School ids come from an atomic counter (`SHS00001`, ...); a burned number is an accepted gap.
- Every accepted state is kept as an immutable history snapshot keyed by version.
- Updates carrying a stale `expected_version` are rejected before anything is written.
- The directory mirror is best-effort and never fails a call.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence

from ..audit.model import AuditLogEntry
from ..audit.service import AuditService
from ..common.datetime_utils import now_local
from ..common.validators import (
    require_choice,
    require_iso_date,
    require_length_between,
    require_max_length,
    require_mobile,
    require_non_empty,
)
from ..core.constants import (
    DEFAULT_SCHOOL_ID_PREFIX,
    DEFAULT_STUDENT_EMAIL_DOMAIN,
    MAX_ACADEMIC_YEAR_LENGTH,
    MAX_ADDRESS_LENGTH,
    MAX_ID_LENGTH,
    MAX_NAME_LENGTH,
    MIN_ACADEMIC_YEAR_LENGTH,
    MIN_NAME_LENGTH,
    SCHOOL_ID_DIGITS,
    STUDENT_COUNTER_NAME,
)
from ..core.enums import AppStatus, AuditAction, EntityType, Gender, Role, SnapshotReason
from ..core.exceptions import ConcurrencyError, NotFoundError, ValidationError
from ..database.transaction import TransactionRunner
from ..identity.compensation import delete_orphaned_identity
from ..identity.repository import IdentityProvider
from ..ledger.model import LedgerAccount
from ..ledger.repository import LedgerRepository
from ..users.model import UserProfile
from ..users.repository import UserProfileRepository
from .model import (
    PROFILE_FIELDS,
    UPDATABLE_FIELDS,
    CreateStudentPayload,
    CreateStudentResult,
    Student,
    StudentSnapshot,
    UpdateStudentPayload,
    UpdateStudentResult,
    format_school_id,
)
from .repository import StudentDirectory, StudentRepository

logger = logging.getLogger(__name__)

_REQUIRED_IDS = ("village_id", "class_id", "section_id")


def _validate_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Validate whichever student attributes are present and return them cleaned."""

    out = dict(fields)
    if "student_name" in out:
        out["student_name"] = require_length_between(
            out["student_name"], "student_name", MIN_NAME_LENGTH, MAX_NAME_LENGTH
        )
    if "parent_mobile" in out:
        out["parent_mobile"] = require_mobile(out["parent_mobile"])
    for name in _REQUIRED_IDS:
        if name in out:
            out[name] = require_length_between(out[name], name, 1, MAX_ID_LENGTH)
    if "academic_year" in out:
        out["academic_year"] = require_length_between(
            out["academic_year"], "academic_year", MIN_ACADEMIC_YEAR_LENGTH, MAX_ACADEMIC_YEAR_LENGTH
        )
    if out.get("parent_name") is not None:
        out["parent_name"] = require_max_length(out["parent_name"], "parent_name", MAX_NAME_LENGTH)
    if out.get("date_of_birth"):
        out["date_of_birth"] = require_iso_date(out["date_of_birth"], "date_of_birth")
    if out.get("gender") is not None:
        out["gender"] = require_choice(out["gender"], "gender", Gender).value
    if out.get("address") is not None:
        out["address"] = require_max_length(out["address"], "address", MAX_ADDRESS_LENGTH)
    if out.get("transport_required") is not None and not isinstance(out["transport_required"], bool):
        raise ValidationError("transport_required must be true or false")
    if "status" in out:
        out["status"] = require_choice(out["status"], "status", AppStatus)
    return out


class StudentService:
    def __init__(
        self,
        students: StudentRepository,
        profiles: UserProfileRepository,
        ledger: LedgerRepository,
        identity: IdentityProvider,
        audit: AuditService,
        tx_runner: TransactionRunner,
        *,
        directory: Optional[StudentDirectory] = None,
        school_id_prefix: str = DEFAULT_SCHOOL_ID_PREFIX,
        email_domain: str = DEFAULT_STUDENT_EMAIL_DOMAIN,
        clock: Callable[[], datetime] = now_local,
    ):
        self._students = students
        self._profiles = profiles
        self._ledger = ledger
        self._identity = identity
        self._audit = audit
        self._tx = tx_runner
        self._directory = directory
        self._prefix = school_id_prefix
        self._email_domain = email_domain
        self._clock = clock

    def _allocate_school_id(self) -> str:
        n = self._tx.run(lambda tx: self._students.next_sequence(tx, STUDENT_COUNTER_NAME))
        return format_school_id(self._prefix, n, SCHOOL_ID_DIGITS)

    def _sync_directory(self, student: Student) -> None:
        if self._directory is None:
            return
        try:
            self._directory.sync(student)
        except Exception:
            logger.warning("directory sync failed for %s (v%d)", student.school_id, student.version, exc_info=True)

    def create_student(self, payload: CreateStudentPayload, created_by: str) -> CreateStudentResult:
        """Admit a student: identity, live record, history v1, profile mapping, empty ledger and audit.

        The identity lives outside the store's transaction, so it is deleted
        again if the batch that follows it fails.
        """

        for name in ("student_name", "parent_mobile", "academic_year") + _REQUIRED_IDS:
            require_non_empty(getattr(payload, name), name)
        fields = _validate_fields({k: v for k, v in vars(payload).items() if v is not None})
        created_by = require_non_empty(created_by, "created_by")

        school_id = self._allocate_school_id()
        email = f"{school_id}@{self._email_domain}".lower()

        uid = self._identity.create_user(
            email=email,
            password=fields["parent_mobile"],
            display_name=fields["student_name"],
            role=Role.STUDENT,
        )

        now = self._clock()
        student = Student(
            school_id=school_id,
            uid=uid,
            student_name=fields["student_name"],
            class_id=fields["class_id"],
            section_id=fields["section_id"],
            academic_year=fields["academic_year"],
            status=AppStatus.ACTIVE,
            version=1,
            created_at=now,
            updated_at=now,
            profile={k: v for k, v in fields.items() if k in PROFILE_FIELDS},
        )
        document = student.to_document()

        def work(tx) -> None:
            self._students.insert(tx, student)
            self._students.insert_snapshot(
                tx,
                StudentSnapshot(
                    school_id=school_id,
                    version=1,
                    snapshot=document,
                    snapshot_reason=SnapshotReason.INITIAL_CREATION,
                    changed_by=created_by,
                    snapshot_timestamp=now,
                ),
            )
            self._profiles.insert(
                tx,
                UserProfile(
                    uid=uid,
                    email=email,
                    display_name=student.student_name,
                    role=Role.STUDENT,
                    status=AppStatus.ACTIVE,
                    created_at=now,
                    school_id=school_id,
                    created_by=created_by,
                ),
            )
            self._ledger.create_account(tx, LedgerAccount.open(school_id, student.academic_year, now))
            self._audit.log(
                AuditLogEntry(
                    user_id=created_by,
                    user_role=Role.ADMIN,
                    action=AuditAction.CREATE_STUDENT,
                    entity_id=school_id,
                    entity_type=EntityType.STUDENT,
                    old_value=None,
                    new_value=document,
                ),
                tx=tx,
            )

        try:
            self._tx.run(work)
        except Exception:
            delete_orphaned_identity(self._identity, uid, context=f"admission of {school_id}")
            raise

        logger.info("student %s admitted by %s", school_id, created_by)
        self._sync_directory(student)
        return CreateStudentResult(success=True, school_id=school_id, uid=uid)

    def update_student(self, student_id: str, payload: UpdateStudentPayload, updated_by: str) -> UpdateStudentResult:
        """Apply a partial update as version N+1.

        `payload.expected_version`, when given, must equal the stored version or
        `ConcurrencyError` is raised and nothing is written.
        """

        student_id = require_non_empty(student_id, "student_id")
        updated_by = require_non_empty(updated_by, "updated_by")
        unknown = sorted(set(payload.changes) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown student fields: {', '.join(unknown)}")
        changes = _validate_fields(payload.changes)

        expected = payload.expected_version
        if expected is not None and (isinstance(expected, bool) or not isinstance(expected, int)):
            raise ValidationError("expected_version must be an integer")

        def work(tx) -> Student:
            current = self._students.get(tx, student_id, for_update=True)
            if current is None:
                raise NotFoundError("Student does not exist")
            if expected is not None and expected != current.version:
                raise ConcurrencyError(
                    f"Version mismatch: expected {expected}, current is {current.version}. "
                    "Reload the student and try again.",
                    expected=expected,
                    actual=current.version,
                )

            now = self._clock()
            updated = current.with_changes(changes, now=now)
            self._students.update(tx, updated)
            self._students.insert_snapshot(
                tx,
                StudentSnapshot(
                    school_id=student_id,
                    version=updated.version,
                    snapshot=updated.to_document(),
                    snapshot_reason=SnapshotReason.USER_UPDATE,
                    changed_by=updated_by,
                    snapshot_timestamp=now,
                ),
            )
            self._audit.log(
                AuditLogEntry(
                    user_id=updated_by,
                    user_role=Role.ADMIN,
                    action=AuditAction.UPDATE_STUDENT,
                    entity_id=student_id,
                    entity_type=EntityType.STUDENT,
                    old_value=current.to_document(),
                    new_value=updated.to_document(),
                ),
                tx=tx,
            )
            return updated

        updated = self._tx.run(work)
        logger.info("student %s updated to v%d by %s", student_id, updated.version, updated_by)
        self._sync_directory(updated)
        return UpdateStudentResult(success=True, new_version=updated.version)

    def get_student(self, student_id: str) -> Student:
        student = self._students.fetch(require_non_empty(student_id, "student_id"))
        if student is None:
            raise NotFoundError("Student does not exist")
        return student

    def history(self, student_id: str) -> Sequence[StudentSnapshot]:
        return self._students.list_snapshots(require_non_empty(student_id, "student_id"))
