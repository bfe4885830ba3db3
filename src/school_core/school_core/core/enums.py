from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles carried by identities and recorded on audit entries."""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    TEACHER = "TEACHER"
    ACCOUNTANT = "ACCOUNTANT"
    STUDENT = "STUDENT"


# Legacy/elevated role names that collapse into ADMIN for permission checks.
ADMIN_ALIASES = frozenset({"SUPER_ADMIN", "SUPERADMIN", "OWNER", "DEVELOPER"})


def normalize_role(value: str) -> Role:
    raw = str(value or "").strip().upper()
    if raw in ADMIN_ALIASES:
        return Role.ADMIN
    return Role(raw)


class AppStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"
    SUSPENDED = "SUSPENDED"


class AuditAction(str, Enum):
    """Closed set of sensitive actions tracked by the audit trail."""

    CREATE_STUDENT = "CREATE_STUDENT"
    UPDATE_STUDENT = "UPDATE_STUDENT"
    DELETE_STUDENT = "DELETE_STUDENT"
    MARK_ATTENDANCE = "MARK_ATTENDANCE"
    UPDATE_ATTENDANCE = "UPDATE_ATTENDANCE"
    POST_FEE = "POST_FEE"
    REVERSE_FEE = "REVERSE_FEE"
    UPDATE_FEE_STRUCTURE = "UPDATE_FEE_STRUCTURE"
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    SYSTEM_CONFIG_CHANGE = "SYSTEM_CONFIG_CHANGE"


class EntityType(str, Enum):
    STUDENT = "student"
    ATTENDANCE = "attendance"
    FEE_LEDGER = "fee_ledger"
    USER = "user"
    SYSTEM = "system"


class EntryType(str, Enum):
    """CREDIT = payment received (balance up), DEBIT = fee charged (balance down)."""

    CREDIT = "CREDIT"
    DEBIT = "DEBIT"

    @property
    def inverse(self) -> "EntryType":
        return EntryType.DEBIT if self is EntryType.CREDIT else EntryType.CREDIT

    def signed(self, amount: int) -> int:
        return amount if self is EntryType.CREDIT else -abs(amount)


class AttendanceMark(str, Enum):
    PRESENT = "P"
    ABSENT = "A"


class CohortType(str, Enum):
    CLASS_SECTION = "CLASS_SECTION"
    TEACHERS = "TEACHERS"
    STAFF = "STAFF"


class InvoiceStatus(str, Enum):
    PAID = "PAID"
    PARTIAL = "PARTIAL"
    DUE = "DUE"


class SnapshotReason(str, Enum):
    INITIAL_CREATION = "INITIAL_CREATION"
    USER_UPDATE = "USER_UPDATE"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    SELECT = "select"


class NotificationType(str, Enum):
    ATTENDANCE = "ATTENDANCE"


class NotificationStatus(str, Enum):
    UNREAD = "UNREAD"
    READ = "READ"


class NotificationTarget(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    STAFF = "staff"
