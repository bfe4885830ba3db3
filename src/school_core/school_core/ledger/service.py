"""Append-only fee ledger.

Rules:
- Financial records are never overwritten or deleted.
- Mistakes are corrected only by posting a reversal entry.
- The account balance moves in the same transaction as the entry that explains it.
- Every posting is mirrored in the audit trail.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..audit.model import AuditLogEntry
from ..audit.service import AuditService
from ..common.datetime_utils import academic_year_for, now_local
from ..common.validators import (
    require_choice,
    require_length_between,
    require_max_length,
    require_non_empty,
    require_positive_amount,
    require_uuid,
)
from ..core.constants import (
    MAX_ACADEMIC_YEAR_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_ID_LENGTH,
    MAX_REASON_LENGTH,
    MAX_REFERENCE_LENGTH,
    MIN_DESCRIPTION_LENGTH,
)
from ..core.enums import AuditAction, EntityType, EntryType, Role
from ..core.exceptions import BusinessRuleViolation, NotFoundError
from ..database.transaction import TransactionRunner
from .model import (
    AccountVerification,
    FeeLedgerEntryPayload,
    LedgerAccount,
    LedgerEntry,
    PostResult,
    ReversalResult,
    account_key,
    new_entry_id,
)
from .repository import LedgerRepository

logger = logging.getLogger(__name__)


class FeeLedgerService:
    def __init__(
        self,
        ledger: LedgerRepository,
        audit: AuditService,
        tx_runner: TransactionRunner,
        *,
        current_academic_year: Optional[Callable[[], str]] = None,
        clock: Callable[[], datetime] = now_local,
        id_factory: Callable[[], str] = new_entry_id,
    ):
        self._ledger = ledger
        self._audit = audit
        self._tx = tx_runner
        self._clock = clock
        self._current_year = current_academic_year or (lambda: academic_year_for(self._clock().date()))
        self._new_id = id_factory

    @staticmethod
    def _validate(payload: FeeLedgerEntryPayload) -> FeeLedgerEntryPayload:
        return FeeLedgerEntryPayload(
            student_id=require_length_between(payload.student_id, "student_id", 1, MAX_ID_LENGTH),
            type=require_choice(payload.type, "type", EntryType),
            amount=require_positive_amount(payload.amount),
            fee_category_id=require_uuid(payload.fee_category_id, "fee_category_id"),
            description=require_length_between(
                payload.description, "description", MIN_DESCRIPTION_LENGTH, MAX_DESCRIPTION_LENGTH
            ),
            reference_id=require_max_length(payload.reference_id, "reference_id", MAX_REFERENCE_LENGTH),
            academic_year=require_max_length(
                payload.academic_year.strip() if payload.academic_year else None,
                "academic_year",
                MAX_ACADEMIC_YEAR_LENGTH,
            ),
        )

    def post_transaction(
        self,
        payload: FeeLedgerEntryPayload,
        posted_by: str,
        *,
        actor_role: Role = Role.ACCOUNTANT,
    ) -> PostResult:
        """Record a CREDIT (payment) or DEBIT (charge) and move the running balance.

        The sign always comes from `type`; `amount` is a magnitude.
        """

        payload = self._validate(payload)
        posted_by = require_non_empty(posted_by, "posted_by")
        academic_year = payload.academic_year or self._current_year()
        account_id = account_key(payload.student_id, academic_year)
        entry_id = self._new_id()

        def work(tx) -> PostResult:
            now = self._clock()
            account = self._ledger.get_account(tx, account_id, for_update=True)
            if account is None:
                account = LedgerAccount.open(payload.student_id, academic_year, now)
                self._ledger.create_account(tx, account)

            current_balance = account.balance
            new_balance = current_balance + payload.type.signed(payload.amount)

            entry = LedgerEntry(
                entry_id=entry_id,
                account_id=account_id,
                student_id=payload.student_id,
                type=payload.type,
                amount=payload.amount,
                fee_category_id=payload.fee_category_id,
                description=payload.description,
                reference_id=payload.reference_id,
                posted_by=posted_by,
                posted_at=now,
                running_balance=new_balance,
            )
            self._ledger.insert_entry(tx, entry)
            self._ledger.update_balance(tx, account_id, balance=new_balance, updated_at=now)

            self._audit.log(
                AuditLogEntry(
                    user_id=posted_by,
                    user_role=actor_role,
                    action=AuditAction.POST_FEE,
                    entity_id=entry_id,
                    entity_type=EntityType.FEE_LEDGER,
                    old_value={"balance": current_balance},
                    new_value={"balance": new_balance, "entry": entry},
                ),
                tx=tx,
            )
            return PostResult(success=True, transaction_id=entry_id, new_balance=new_balance)

        result = self._tx.run(work)
        logger.info(
            "posted %s %d on %s (entry=%s, balance=%d)",
            payload.type.value,
            payload.amount,
            account_id,
            result.transaction_id,
            result.new_balance,
        )
        return result

    def reverse_transaction(
        self,
        original_transaction_id: str,
        student_id: str,
        academic_year: str,
        reversed_by: str,
        reason: str,
        *,
        actor_role: Role = Role.ACCOUNTANT,
    ) -> ReversalResult:
        """Post the inverse of an earlier entry and flag the original as reversed.

        This is the only way to correct a ledger mistake.
        """

        original_transaction_id = require_length_between(
            original_transaction_id, "original_transaction_id", 1, MAX_ID_LENGTH
        )
        student_id = require_length_between(student_id, "student_id", 1, MAX_ID_LENGTH)
        academic_year = require_length_between(academic_year, "academic_year", 1, MAX_ACADEMIC_YEAR_LENGTH)
        reversed_by = require_non_empty(reversed_by, "reversed_by")
        reason = require_length_between(reason, "reason", 1, MAX_REASON_LENGTH)

        account_id = account_key(student_id, academic_year)
        reversal_id = self._new_id()

        def work(tx) -> ReversalResult:
            now = self._clock()
            original = self._ledger.get_entry(tx, account_id, original_transaction_id, for_update=True)
            if original is None:
                raise NotFoundError("Original transaction not found.")
            if original.is_reversal or original.is_reversed:
                raise BusinessRuleViolation("Transaction is already a reversal or has been reversed.")

            account = self._ledger.get_account(tx, account_id, for_update=True)
            if account is None:
                raise NotFoundError("Ledger account not found.")

            reversal_type = original.type.inverse
            current_balance = account.balance
            new_balance = current_balance + reversal_type.signed(original.amount)

            reversal = LedgerEntry(
                entry_id=reversal_id,
                account_id=account_id,
                student_id=student_id,
                type=reversal_type,
                amount=original.amount,
                fee_category_id=original.fee_category_id,
                description=f"REVERSAL of {original_transaction_id}: {reason}",
                reference_id=f"REV-{original_transaction_id}",
                posted_by=reversed_by,
                posted_at=now,
                running_balance=new_balance,
                is_reversal=True,
                reverses_transaction_id=original_transaction_id,
            )
            self._ledger.insert_entry(tx, reversal)
            if not self._ledger.mark_reversed(
                tx, account_id, original_transaction_id, reversal_id=reversal_id, reversed_at=now
            ):
                raise BusinessRuleViolation("Transaction is already a reversal or has been reversed.")
            self._ledger.update_balance(tx, account_id, balance=new_balance, updated_at=now)

            self._audit.log(
                AuditLogEntry(
                    user_id=reversed_by,
                    user_role=actor_role,
                    action=AuditAction.REVERSE_FEE,
                    entity_id=reversal_id,
                    entity_type=EntityType.FEE_LEDGER,
                    old_value={"originalTransaction": original, "balance": current_balance},
                    new_value={"reversalTransaction": reversal, "newBalance": new_balance},
                    metadata={"reason": reason},
                ),
                tx=tx,
            )
            return ReversalResult(success=True, reversal_id=reversal_id, new_balance=new_balance)

        result = self._tx.run(work)
        logger.info(
            "reversed %s on %s with %s (balance=%d)",
            original_transaction_id,
            account_id,
            result.reversal_id,
            result.new_balance,
        )
        return result

    def get_account(self, student_id: str, academic_year: str) -> Optional[LedgerAccount]:
        return self._ledger.fetch_account(account_key(student_id, academic_year))

    def list_entries(self, student_id: str, academic_year: str) -> Sequence[LedgerEntry]:
        return self._ledger.list_entries(account_key(student_id, academic_year))

    def verify_account(self, student_id: str, academic_year: str) -> AccountVerification:
        """Recompute the balance from the entries and compare with the stored one."""

        account_id = account_key(student_id, academic_year)
        account = self._ledger.fetch_account(account_id)
        if account is None:
            raise NotFoundError("Ledger account not found.")

        entries = self._ledger.list_entries(account_id)
        # An original and its reversal cancel out, so summing every delta is
        # the same as summing only the live (non-reversed, non-reversal) lines.
        recomputed = sum(e.delta for e in entries)
        report = AccountVerification(
            account_id=account_id,
            stored_balance=account.balance,
            recomputed_balance=recomputed,
            entry_count=len(entries),
        )
        if not report.consistent:
            logger.error(
                "ledger %s inconsistent: stored=%d recomputed=%d", account_id, account.balance, recomputed
            )
        return report
