from __future__ import annotations

import dataclasses
from typing import Any, Optional, Sequence

from ..common.serialization import to_jsonable
from ..core.enums import EntityType
from ..database.transaction import TransactionRunner
from .model import AuditLogEntry, AuditRecord
from .repository import AuditRepository


class AuditService:
    """Append-only audit trail for every sensitive mutation.

    Pass the caller's transaction handle as `tx` so the audit row commits or
    rolls back together with the change it describes. Without `tx` the write
    runs in its own transaction and any failure is raised to the caller.
    """

    def __init__(self, audit: AuditRepository, tx_runner: TransactionRunner):
        self._audit = audit
        self._tx = tx_runner

    def log(self, entry: AuditLogEntry, tx: Optional[Any] = None) -> None:
        entry = dataclasses.replace(
            entry,
            old_value=to_jsonable(entry.old_value),
            new_value=to_jsonable(entry.new_value),
            metadata=to_jsonable(entry.metadata),
        )
        if tx is not None:
            self._audit.append(tx, entry)
            return
        self._tx.run(lambda t: self._audit.append(t, entry))

    def history(self, entity_type: EntityType, entity_id: str) -> Sequence[AuditRecord]:
        return self._audit.list_for_entity(entity_type, entity_id)
