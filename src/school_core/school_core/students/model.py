from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import AppStatus, SnapshotReason

# Attributes stored as real columns; everything else lives in the `profile` JSON.
CORE_FIELDS = ("student_name", "class_id", "section_id", "academic_year", "status")

PROFILE_FIELDS = (
    "parent_name",
    "parent_mobile",
    "date_of_birth",
    "gender",
    "village_id",
    "village_name",
    "class_name",
    "section_name",
    "transport_required",
    "admission_number",
    "address",
    "first_name",
    "last_name",
)

UPDATABLE_FIELDS = frozenset(CORE_FIELDS + PROFILE_FIELDS)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def snake_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Accept both `studentName` and `student_name` style request bodies."""
    return {_CAMEL_RE.sub("_", str(k)).lower(): v for k, v in data.items()}


def format_school_id(prefix: str, number: int, digits: int) -> str:
    return f"{prefix}{int(number):0{digits}d}"


@dataclass(frozen=True)
class Student:
    """Live student record. `version` starts at 1 and grows by one per accepted update."""

    school_id: str
    uid: str
    student_name: str
    class_id: str
    section_id: str
    academic_year: str
    status: AppStatus
    version: int
    created_at: datetime
    updated_at: datetime
    profile: dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        """Full flat view of the record, as kept in history snapshots and audit entries."""
        doc: dict[str, Any] = dict(self.profile)
        doc.update(
            school_id=self.school_id,
            uid=self.uid,
            student_name=self.student_name,
            class_id=self.class_id,
            section_id=self.section_id,
            academic_year=self.academic_year,
            status=self.status.value,
            version=self.version,
            created_at=self.created_at.isoformat(),
            updated_at=self.updated_at.isoformat(),
        )
        return doc

    def with_changes(self, changes: Mapping[str, Any], *, now: datetime) -> "Student":
        core = {k: v for k, v in changes.items() if k in CORE_FIELDS}
        profile = dict(self.profile)
        profile.update({k: v for k, v in changes.items() if k in PROFILE_FIELDS})
        return dataclasses.replace(
            self,
            **core,
            profile=profile,
            version=self.version + 1,
            updated_at=now,
        )


@dataclass(frozen=True)
class StudentSnapshot:
    """Immutable history entry: the full document as it was at `version`."""

    school_id: str
    version: int
    snapshot: dict[str, Any]
    snapshot_reason: SnapshotReason
    changed_by: str
    snapshot_timestamp: datetime


@dataclass(frozen=True)
class CreateStudentPayload:
    student_name: str
    parent_mobile: str
    village_id: str
    class_id: str
    section_id: str
    academic_year: str
    parent_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    village_name: Optional[str] = None
    class_name: Optional[str] = None
    section_name: Optional[str] = None
    transport_required: Optional[bool] = None
    admission_number: Optional[str] = None
    address: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CreateStudentPayload":
        body = snake_keys(data)
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in body.items() if k in names})

    def profile(self) -> dict[str, Any]:
        return {k: getattr(self, k) for k in PROFILE_FIELDS if getattr(self, k) is not None}


@dataclass(frozen=True)
class UpdateStudentPayload:
    """Partial update. `expected_version` is the version the caller last read."""

    changes: dict[str, Any]
    expected_version: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UpdateStudentPayload":
        body = snake_keys(data)
        expected = body.pop("expected_version", None)
        # Form posts and query strings carry the version as text.
        if isinstance(expected, str) and expected.strip().isdecimal():
            expected = int(expected.strip())
        return cls(changes=body, expected_version=expected)


@dataclass(frozen=True)
class CreateStudentResult:
    success: bool
    school_id: str
    uid: str


@dataclass(frozen=True)
class UpdateStudentResult:
    success: bool
    new_version: int
