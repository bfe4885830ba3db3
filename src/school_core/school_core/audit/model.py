from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AuditAction, EntityType, Role


@dataclass(frozen=True)
class AuditLogEntry:
    """One before/after record of a sensitive mutation.

    `old_value` is None on creation, `new_value` is None on removal-type actions.
    """

    user_id: str
    user_role: Role
    action: AuditAction
    entity_id: str
    entity_type: EntityType
    old_value: Optional[dict[str, Any]]
    new_value: Optional[dict[str, Any]]
    ip_address: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class AuditRecord:
    """Stored audit row: the entry plus what the store assigned on write."""

    log_id: int
    entry: AuditLogEntry
    timestamp: datetime
    archived: bool = False
