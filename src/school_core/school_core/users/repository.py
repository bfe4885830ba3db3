from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from .model import UserProfile


class UserProfileRepository(Protocol):
    def insert(self, tx: Any, profile: UserProfile) -> None:
        raise NotImplementedError

    def get(self, tx: Any, uid: str, *, for_update: bool = False) -> Optional[UserProfile]:
        raise NotImplementedError

    def mark_suspended(self, tx: Any, uid: str, *, reason: str, suspended_at: datetime) -> None:
        raise NotImplementedError
