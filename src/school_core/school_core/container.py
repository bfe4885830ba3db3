from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .attendance.factory import CohortFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLRosterRepository
from .attendance.service import AttendanceService
from .attendance.window import AttendanceWindow
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.service import AuditService
from .common.datetime_utils import academic_year_for, now_local
from .core.constants import (
    DEFAULT_ACADEMIC_YEAR_START_MONTH,
    DEFAULT_ATTENDANCE_WINDOW_END_HOUR,
    DEFAULT_ATTENDANCE_WINDOW_START_HOUR,
    DEFAULT_SCHOOL_ID_PREFIX,
    DEFAULT_STUDENT_EMAIL_DOMAIN,
    DEFAULT_TX_MAX_ATTEMPTS,
)
from .database.connection import DBConfig, DatabaseConnection
from .database.transaction import MySQLTransactionRunner
from .identity.mysql_identity_provider import MySQLIdentityProvider
from .ledger.invoice import InvoiceService
from .ledger.mysql_ledger_repository import MySQLLedgerRepository
from .ledger.service import FeeLedgerService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .students.mysql_student_repository import MySQLStudentDirectory, MySQLStudentRepository
from .students.service import StudentService
from .users.mysql_user_profile_repository import MySQLUserProfileRepository
from .users.service import UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    tx_runner: MySQLTransactionRunner

    identity: MySQLIdentityProvider
    audit_repo: MySQLAuditRepository
    ledger_repo: MySQLLedgerRepository
    students_repo: MySQLStudentRepository
    profiles_repo: MySQLUserProfileRepository
    attendance_repo: MySQLAttendanceRepository
    roster_repo: MySQLRosterRepository
    notifications_repo: MySQLNotificationRepository

    audit_service: AuditService
    fee_ledger_service: FeeLedgerService
    invoice_service: InvoiceService
    student_service: StudentService
    user_service: UserService
    attendance_service: AttendanceService


def academic_year_provider(
    current_academic_year: Optional[str],
    *,
    start_month: int = DEFAULT_ACADEMIC_YEAR_START_MONTH,
) -> Callable[[], str]:
    """A fixed configured year wins; otherwise derive it from today's date."""
    if current_academic_year:
        return lambda: current_academic_year
    return lambda: academic_year_for(now_local().date(), start_month=start_month)


def build_container(*, db_config: dict, settings: Optional[Mapping[str, Any]] = None) -> Container:
    settings = dict(settings or {})
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    tx_runner = MySQLTransactionRunner(
        conn, max_attempts=int(settings.get("TX_MAX_ATTEMPTS", DEFAULT_TX_MAX_ATTEMPTS))
    )

    identity = MySQLIdentityProvider(conn)
    audit_repo = MySQLAuditRepository(conn)
    ledger_repo = MySQLLedgerRepository(conn)
    students_repo = MySQLStudentRepository(conn)
    profiles_repo = MySQLUserProfileRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    roster_repo = MySQLRosterRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)

    audit_service = AuditService(audit_repo, tx_runner)
    fee_ledger_service = FeeLedgerService(
        ledger_repo,
        audit_service,
        tx_runner,
        current_academic_year=academic_year_provider(
            settings.get("CURRENT_ACADEMIC_YEAR"),
            start_month=int(settings.get("ACADEMIC_YEAR_START_MONTH", DEFAULT_ACADEMIC_YEAR_START_MONTH)),
        ),
    )
    invoice_service = InvoiceService(ledger_repo)
    student_service = StudentService(
        students_repo,
        profiles_repo,
        ledger_repo,
        identity,
        audit_service,
        tx_runner,
        directory=MySQLStudentDirectory(conn),
        school_id_prefix=str(settings.get("SCHOOL_ID_PREFIX", DEFAULT_SCHOOL_ID_PREFIX)),
        email_domain=str(settings.get("STUDENT_EMAIL_DOMAIN", DEFAULT_STUDENT_EMAIL_DOMAIN)),
    )
    user_service = UserService(profiles_repo, identity, audit_service, tx_runner)
    attendance_service = AttendanceService(
        attendance_repo,
        roster_repo,
        notifications_repo,
        audit_service,
        tx_runner,
        window=AttendanceWindow(
            start_hour=int(settings.get("ATTENDANCE_WINDOW_START_HOUR", DEFAULT_ATTENDANCE_WINDOW_START_HOUR)),
            end_hour=int(settings.get("ATTENDANCE_WINDOW_END_HOUR", DEFAULT_ATTENDANCE_WINDOW_END_HOUR)),
        ),
        cohort_factory=CohortFactory(),
    )

    return Container(
        conn=conn,
        tx_runner=tx_runner,
        identity=identity,
        audit_repo=audit_repo,
        ledger_repo=ledger_repo,
        students_repo=students_repo,
        profiles_repo=profiles_repo,
        attendance_repo=attendance_repo,
        roster_repo=roster_repo,
        notifications_repo=notifications_repo,
        audit_service=audit_service,
        fee_ledger_service=fee_ledger_service,
        invoice_service=invoice_service,
        student_service=student_service,
        user_service=user_service,
        attendance_service=attendance_service,
    )
