from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Identity:
    """Login credentials record. The password hash never leaves the provider."""

    uid: str
    email: str
    display_name: str
    role: Role
    mobile: Optional[str]
    disabled: bool
    created_at: datetime

    @property
    def is_active(self) -> bool:
        return not self.disabled
