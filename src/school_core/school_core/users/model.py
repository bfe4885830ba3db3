from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import AppStatus, Role


@dataclass(frozen=True)
class UserProfile:
    """Application-side profile of an identity (role, status, student mapping)."""

    uid: str
    email: str
    display_name: Optional[str]
    role: Role
    status: AppStatus
    created_at: datetime
    school_id: Optional[str] = None
    created_by: Optional[str] = None
    suspended_at: Optional[datetime] = None
    suspension_reason: Optional[str] = None


@dataclass(frozen=True)
class CreateUserPayload:
    email: str
    password: str
    display_name: str
    role: str
    mobile: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CreateUserPayload":
        return cls(
            email=data.get("email") or "",
            password=data.get("password") or "",
            display_name=data.get("display_name") or data.get("displayName") or "",
            role=data.get("role") or "",
            mobile=data.get("mobile") or None,
        )


@dataclass(frozen=True)
class CreateUserResult:
    success: bool
    uid: str
    email: str
