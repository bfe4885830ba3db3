from __future__ import annotations

from typing import Any, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def insert(self, tx: Any, notification: Notification) -> None:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[Notification]:
        raise NotImplementedError
