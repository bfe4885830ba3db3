from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ...core.enums import CohortType, NotificationTarget, Role
from ..model import RosterMember
from ..repository import RosterRepository


class Cohort(ABC):
    """Strategy Pattern: what differs between marking a class section, the teachers or the staff."""

    cohort_type: CohortType
    notification_target: NotificationTarget
    audit_role: Role

    class_id: Optional[str] = None
    section_id: Optional[str] = None

    @abstractmethod
    def attendance_id(self, day: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def load_roster(self, roster: RosterRepository) -> Sequence[RosterMember]:
        raise NotImplementedError
