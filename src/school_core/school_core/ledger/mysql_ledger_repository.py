from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import AppStatus, EntryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..database.transaction import RetryableConflict
from .model import LedgerAccount, LedgerEntry
from .repository import LedgerRepository

_ACCOUNT_COLUMNS = "account_id, student_id, academic_year, balance, status, created_at, updated_at"
_ENTRY_COLUMNS = (
    "entry_id, account_id, student_id, type, amount, fee_category_id, description, reference_id, "
    "posted_by, posted_at, running_balance, is_reversal, reverses_transaction_id, "
    "reversed_by_transaction_id, reversed_at"
)


def _to_account(r: dict) -> LedgerAccount:
    return LedgerAccount(
        account_id=r["account_id"],
        student_id=r["student_id"],
        academic_year=r["academic_year"],
        balance=int(r["balance"]),
        status=AppStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


def _to_entry(r: dict) -> LedgerEntry:
    return LedgerEntry(
        entry_id=r["entry_id"],
        account_id=r["account_id"],
        student_id=r["student_id"],
        type=EntryType(r["type"]),
        amount=int(r["amount"]),
        fee_category_id=r.get("fee_category_id"),
        description=r["description"],
        reference_id=r.get("reference_id"),
        posted_by=r["posted_by"],
        posted_at=r["posted_at"],
        running_balance=int(r["running_balance"]),
        is_reversal=bool(r.get("is_reversal")),
        reverses_transaction_id=r.get("reverses_transaction_id"),
        reversed_by_transaction_id=r.get("reversed_by_transaction_id"),
        reversed_at=r.get("reversed_at"),
    )


class MySQLLedgerRepository(LedgerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_account(self, tx: Any, account_id: str, *, for_update: bool = False) -> Optional[LedgerAccount]:
        lock = " FOR UPDATE" if for_update else ""
        tx.execute(f"SELECT {_ACCOUNT_COLUMNS} FROM fee_ledger_accounts WHERE account_id=%s{lock}", (account_id,))
        r = fetchone(tx)
        return _to_account(r) if r else None

    def create_account(self, tx: Any, account: LedgerAccount) -> None:
        try:
            tx.execute(
                f"""
                INSERT INTO fee_ledger_accounts({_ACCOUNT_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    account.account_id,
                    account.student_id,
                    account.academic_year,
                    int(account.balance),
                    account.status.value,
                    account.created_at,
                    account.updated_at,
                ),
            )
        except mysql.connector.Error as e:
            if is_duplicate_key(e):
                # Another transaction opened the same account first; replaying sees and locks it.
                raise RetryableConflict(f"ledger account {account.account_id} opened concurrently") from e
            raise

    def update_balance(self, tx: Any, account_id: str, *, balance: int, updated_at: datetime) -> None:
        tx.execute(
            "UPDATE fee_ledger_accounts SET balance=%s, updated_at=%s WHERE account_id=%s",
            (int(balance), updated_at, account_id),
        )

    def insert_entry(self, tx: Any, entry: LedgerEntry) -> None:
        tx.execute(
            f"""
            INSERT INTO fee_ledger_entries({_ENTRY_COLUMNS})
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                entry.entry_id,
                entry.account_id,
                entry.student_id,
                entry.type.value,
                int(entry.amount),
                entry.fee_category_id,
                entry.description,
                entry.reference_id,
                entry.posted_by,
                entry.posted_at,
                int(entry.running_balance),
                1 if entry.is_reversal else 0,
                entry.reverses_transaction_id,
                entry.reversed_by_transaction_id,
                entry.reversed_at,
            ),
        )

    def get_entry(self, tx: Any, account_id: str, entry_id: str, *, for_update: bool = False) -> Optional[LedgerEntry]:
        lock = " FOR UPDATE" if for_update else ""
        tx.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM fee_ledger_entries WHERE account_id=%s AND entry_id=%s{lock}",
            (account_id, entry_id),
        )
        r = fetchone(tx)
        return _to_entry(r) if r else None

    def mark_reversed(self, tx: Any, account_id: str, entry_id: str, *, reversal_id: str, reversed_at: datetime) -> bool:
        tx.execute(
            """
            UPDATE fee_ledger_entries
            SET reversed_by_transaction_id=%s, reversed_at=%s
            WHERE account_id=%s AND entry_id=%s AND reversed_by_transaction_id IS NULL
            """,
            (reversal_id, reversed_at, account_id, entry_id),
        )
        return tx.rowcount > 0

    def fetch_account(self, account_id: str) -> Optional[LedgerAccount]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self.get_account(cur, account_id)

    def list_entries(self, account_id: str) -> Sequence[LedgerEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM fee_ledger_entries WHERE account_id=%s ORDER BY seq ASC",
                (account_id,),
            )
            return [_to_entry(r) for r in fetchall(cur)]
