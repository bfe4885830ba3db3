from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.enums import NotificationStatus, NotificationTarget, NotificationType


@dataclass(frozen=True)
class Notification:
    user_id: str
    title: str
    message: str
    type: NotificationType
    target: NotificationTarget
    created_at: datetime
    status: NotificationStatus = NotificationStatus.UNREAD
    metadata: dict[str, Any] = field(default_factory=dict)
