from __future__ import annotations

from datetime import datetime
from typing import Callable

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import EntryType, InvoiceStatus
from .model import Invoice, InvoiceLineItem, account_key
from .repository import LedgerRepository


class InvoiceService:
    """Builds invoices strictly from the immutable ledger entries.

    Everything is pre-computed here so that no caller does its own arithmetic.
    """

    def __init__(self, ledger: LedgerRepository, *, clock: Callable[[], datetime] = now_local):
        self._ledger = ledger
        self._clock = clock

    def generate_invoice(self, student_id: str, academic_year: str) -> Invoice:
        student_id = require_non_empty(student_id, "student_id")
        academic_year = require_non_empty(academic_year, "academic_year")

        total_charges = 0
        total_paid = 0
        line_items: list[InvoiceLineItem] = []

        for entry in self._ledger.list_entries(account_key(student_id, academic_year)):
            # A reversed original and its reversal net to zero; neither is billed.
            if entry.is_reversed or entry.is_reversal:
                continue

            if entry.type == EntryType.DEBIT:
                total_charges += entry.amount
            else:
                total_paid += entry.amount

            line_items.append(
                InvoiceLineItem(
                    id=entry.entry_id,
                    date=entry.posted_at.isoformat(),
                    description=entry.description or "System Transaction",
                    amount=entry.amount,
                    type=entry.type,
                )
            )

        outstanding = total_charges - total_paid
        if outstanding <= 0:
            status = InvoiceStatus.PAID
        elif total_paid > 0:
            status = InvoiceStatus.PARTIAL
        else:
            status = InvoiceStatus.DUE

        return Invoice(
            student_id=student_id,
            academic_year=academic_year,
            generation_date=self._clock().isoformat(),
            total_charges=total_charges,
            total_paid=total_paid,
            outstanding_balance=outstanding,
            status=status,
            line_items=line_items,
        )
