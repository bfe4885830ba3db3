from __future__ import annotations

from typing import Sequence

from ...core.enums import CohortType, NotificationTarget, Role
from ..model import RosterMember
from ..repository import RosterRepository
from .base import Cohort


class StaffCohort(Cohort):
    """Every staff member; the staff roster has no status column."""

    cohort_type = CohortType.STAFF
    notification_target = NotificationTarget.STAFF
    audit_role = Role.ADMIN

    def attendance_id(self, day: str) -> str:
        return f"STAFF_{day}"

    def load_roster(self, roster: RosterRepository) -> Sequence[RosterMember]:
        return roster.all_staff()
