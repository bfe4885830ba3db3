from __future__ import annotations

from typing import Any, Sequence

from ..common.serialization import dumps, loads
from ..core.enums import NotificationStatus, NotificationTarget, NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, tx: Any, notification: Notification) -> None:
        tx.execute(
            """
            INSERT INTO notifications(user_id, title, message, type, status, target, metadata, created_at)
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                notification.user_id,
                notification.title,
                notification.message,
                notification.type.value,
                notification.status.value,
                notification.target.value,
                dumps(notification.metadata),
                notification.created_at,
            ),
        )

    def list_for_user(self, user_id: str) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, title, message, type, status, target, metadata, created_at
                FROM notifications
                WHERE user_id=%s
                ORDER BY notification_id DESC
                """,
                (user_id,),
            )
            return [
                Notification(
                    user_id=r["user_id"],
                    title=r["title"],
                    message=r["message"],
                    type=NotificationType(r["type"]),
                    target=NotificationTarget(r["target"]),
                    created_at=r["created_at"],
                    status=NotificationStatus(r["status"]),
                    metadata=loads(r.get("metadata")) or {},
                )
                for r in fetchall(cur)
            ]
