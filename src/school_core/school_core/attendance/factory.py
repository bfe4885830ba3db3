from __future__ import annotations

from dataclasses import dataclass

from .cohorts.base import Cohort
from .cohorts.class_section import ClassSectionCohort
from .cohorts.staff import StaffCohort
from .cohorts.teachers import TeachersCohort


@dataclass
class CohortFactory:
    """Factory Pattern: choose the cohort strategy for a marking request."""

    def for_class_section(self, class_id: str, section_id: str) -> Cohort:
        return ClassSectionCohort(class_id, section_id)

    def for_teachers(self) -> Cohort:
        return TeachersCohort()

    def for_staff(self) -> Cohort:
        return StaffCohort()
