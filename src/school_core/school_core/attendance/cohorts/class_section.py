from __future__ import annotations

from typing import Sequence

from ...common.validators import require_length_between
from ...core.constants import MAX_ID_LENGTH
from ...core.enums import CohortType, NotificationTarget, Role
from ..model import RosterMember
from ..repository import RosterRepository
from .base import Cohort


class ClassSectionCohort(Cohort):
    """ACTIVE students of one class section, marked by a teacher."""

    cohort_type = CohortType.CLASS_SECTION
    notification_target = NotificationTarget.STUDENT
    audit_role = Role.TEACHER

    def __init__(self, class_id: str, section_id: str):
        self.class_id = require_length_between(class_id, "class_id", 1, MAX_ID_LENGTH)
        self.section_id = require_length_between(section_id, "section_id", 1, MAX_ID_LENGTH)

    def attendance_id(self, day: str) -> str:
        return f"{day}_{self.class_id}_{self.section_id}"

    def load_roster(self, roster: RosterRepository) -> Sequence[RosterMember]:
        return roster.active_students(self.class_id, self.section_id)
