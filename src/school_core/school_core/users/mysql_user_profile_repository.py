from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..core.enums import AppStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import fetchone
from .model import UserProfile
from .repository import UserProfileRepository

_COLUMNS = (
    "uid, email, display_name, role, status, school_id, created_at, created_by, "
    "suspended_at, suspension_reason"
)


class MySQLUserProfileRepository(UserProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, tx: Any, profile: UserProfile) -> None:
        tx.execute(
            f"INSERT INTO user_profiles({_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)",
            (
                profile.uid,
                profile.email,
                profile.display_name,
                profile.role.value,
                profile.status.value,
                profile.school_id,
                profile.created_at,
                profile.created_by,
                profile.suspended_at,
                profile.suspension_reason,
            ),
        )

    def get(self, tx: Any, uid: str, *, for_update: bool = False) -> Optional[UserProfile]:
        lock = " FOR UPDATE" if for_update else ""
        tx.execute(f"SELECT {_COLUMNS} FROM user_profiles WHERE uid=%s{lock}", (uid,))
        r = fetchone(tx)
        if not r:
            return None
        return UserProfile(
            uid=r["uid"],
            email=r["email"],
            display_name=r.get("display_name"),
            role=Role(r["role"]),
            status=AppStatus(r["status"]),
            created_at=r["created_at"],
            school_id=r.get("school_id"),
            created_by=r.get("created_by"),
            suspended_at=r.get("suspended_at"),
            suspension_reason=r.get("suspension_reason"),
        )

    def mark_suspended(self, tx: Any, uid: str, *, reason: str, suspended_at: datetime) -> None:
        tx.execute(
            "UPDATE user_profiles SET status=%s, suspended_at=%s, suspension_reason=%s WHERE uid=%s",
            (AppStatus.SUSPENDED.value, suspended_at, reason, uid),
        )
