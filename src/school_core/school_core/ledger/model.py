from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import AppStatus, EntryType, InvoiceStatus


def new_entry_id() -> str:
    return uuid.uuid4().hex


def account_key(student_id: str, academic_year: str) -> str:
    return f"{student_id}_{academic_year}"


@dataclass(frozen=True)
class LedgerAccount:
    """Per-student, per-academic-year running balance.

    Positive balance = overpaid (credits exceed debits), negative = amount owed.
    """

    account_id: str
    student_id: str
    academic_year: str
    balance: int
    status: AppStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def open(cls, student_id: str, academic_year: str, now: datetime) -> "LedgerAccount":
        return cls(
            account_id=account_key(student_id, academic_year),
            student_id=student_id,
            academic_year=academic_year,
            balance=0,
            status=AppStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True)
class LedgerEntry:
    """Append-only ledger line. Only the reversal stamp is ever added afterwards."""

    entry_id: str
    account_id: str
    student_id: str
    type: EntryType
    amount: int
    fee_category_id: Optional[str]
    description: str
    reference_id: Optional[str]
    posted_by: str
    posted_at: datetime
    running_balance: int
    is_reversal: bool = False
    reverses_transaction_id: Optional[str] = None
    reversed_by_transaction_id: Optional[str] = None
    reversed_at: Optional[datetime] = None

    @property
    def delta(self) -> int:
        return self.type.signed(self.amount)

    @property
    def is_reversed(self) -> bool:
        return self.reversed_by_transaction_id is not None


@dataclass(frozen=True)
class FeeLedgerEntryPayload:
    student_id: str
    type: EntryType
    amount: int
    fee_category_id: str
    description: str
    reference_id: Optional[str] = None
    academic_year: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeeLedgerEntryPayload":
        """Build from a request body; field validation happens in the service."""
        return cls(
            student_id=data.get("student_id") or data.get("studentId") or "",
            type=data.get("type"),
            amount=data.get("amount"),
            fee_category_id=data.get("fee_category_id") or data.get("feeCategoryId") or "",
            description=data.get("description") or "",
            reference_id=data.get("reference_id") or data.get("referenceId"),
            academic_year=data.get("academic_year") or data.get("academicYear"),
        )


@dataclass(frozen=True)
class PostResult:
    success: bool
    transaction_id: str
    new_balance: int


@dataclass(frozen=True)
class ReversalResult:
    success: bool
    reversal_id: str
    new_balance: int


@dataclass(frozen=True)
class AccountVerification:
    account_id: str
    stored_balance: int
    recomputed_balance: int
    entry_count: int

    @property
    def consistent(self) -> bool:
        return self.stored_balance == self.recomputed_balance


@dataclass(frozen=True)
class InvoiceLineItem:
    id: str
    date: str
    description: str
    amount: int
    type: EntryType


@dataclass(frozen=True)
class Invoice:
    """Read-only settlement summary rebuilt from ledger entries."""

    student_id: str
    academic_year: str
    generation_date: str
    total_charges: int
    total_paid: int
    outstanding_balance: int
    status: InvoiceStatus
    line_items: list[InvoiceLineItem] = field(default_factory=list)
