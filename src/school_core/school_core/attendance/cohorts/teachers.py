from __future__ import annotations

from typing import Sequence

from ...core.enums import CohortType, NotificationTarget, Role
from ..model import RosterMember
from ..repository import RosterRepository
from .base import Cohort


class TeachersCohort(Cohort):
    cohort_type = CohortType.TEACHERS
    notification_target = NotificationTarget.TEACHER
    audit_role = Role.ADMIN

    def attendance_id(self, day: str) -> str:
        return f"TEACHERS_{day}"

    def load_roster(self, roster: RosterRepository) -> Sequence[RosterMember]:
        return roster.active_teachers()
