from __future__ import annotations

from typing import Any, Protocol, Sequence

from ..core.enums import EntityType
from .model import AuditLogEntry, AuditRecord


class AuditRepository(Protocol):
    """Append-only store: there is deliberately no update or delete method."""

    def append(self, tx: Any, entry: AuditLogEntry) -> None:
        raise NotImplementedError

    def list_for_entity(self, entity_type: EntityType, entity_id: str) -> Sequence[AuditRecord]:
        raise NotImplementedError
