from __future__ import annotations

from typing import Any, Sequence

from ..common.serialization import dumps, loads
from ..core.enums import AuditAction, EntityType, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import AuditLogEntry, AuditRecord
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, tx: Any, entry: AuditLogEntry) -> None:
        # `timestamp` is filled by the server (DEFAULT CURRENT_TIMESTAMP(6)).
        tx.execute(
            """
            INSERT INTO audit_logs(user_id, user_role, action, entity_id, entity_type,
                                   old_value, new_value, ip_address, metadata, archived)
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
            """,
            (
                entry.user_id,
                entry.user_role.value,
                entry.action.value,
                entry.entity_id,
                entry.entity_type.value,
                dumps(entry.old_value),
                dumps(entry.new_value),
                entry.ip_address,
                dumps(entry.metadata),
            ),
        )

    def list_for_entity(self, entity_type: EntityType, entity_id: str) -> Sequence[AuditRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, user_id, user_role, action, entity_id, entity_type,
                       old_value, new_value, ip_address, metadata, `timestamp`, archived
                FROM audit_logs
                WHERE entity_type=%s AND entity_id=%s
                ORDER BY log_id ASC
                """,
                (entity_type.value, entity_id),
            )
            rows = fetchall(cur)
            return [
                AuditRecord(
                    log_id=int(r["log_id"]),
                    entry=AuditLogEntry(
                        user_id=r["user_id"],
                        user_role=Role(r["user_role"]),
                        action=AuditAction(r["action"]),
                        entity_id=r["entity_id"],
                        entity_type=EntityType(r["entity_type"]),
                        old_value=loads(r.get("old_value")),
                        new_value=loads(r.get("new_value")),
                        ip_address=r.get("ip_address"),
                        metadata=loads(r.get("metadata")),
                    ),
                    timestamp=r["timestamp"],
                    archived=bool(r.get("archived")),
                )
                for r in rows
            ]
