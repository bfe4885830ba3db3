from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from .model import LedgerAccount, LedgerEntry


class LedgerRepository(Protocol):
    """Ledger store.

    Methods taking `tx` run inside the caller's unit of work. There is no
    method to delete an entry or to change one other than `mark_reversed`.
    """

    def get_account(self, tx: Any, account_id: str, *, for_update: bool = False) -> Optional[LedgerAccount]:
        raise NotImplementedError

    def create_account(self, tx: Any, account: LedgerAccount) -> None:
        raise NotImplementedError

    def update_balance(self, tx: Any, account_id: str, *, balance: int, updated_at: datetime) -> None:
        raise NotImplementedError

    def insert_entry(self, tx: Any, entry: LedgerEntry) -> None:
        raise NotImplementedError

    def get_entry(self, tx: Any, account_id: str, entry_id: str, *, for_update: bool = False) -> Optional[LedgerEntry]:
        raise NotImplementedError

    def mark_reversed(self, tx: Any, account_id: str, entry_id: str, *, reversal_id: str, reversed_at: datetime) -> bool:
        """Stamp the original entry; returns False if it was already stamped."""

        raise NotImplementedError

    def fetch_account(self, account_id: str) -> Optional[LedgerAccount]:
        raise NotImplementedError

    def list_entries(self, account_id: str) -> Sequence[LedgerEntry]:
        """Entries in commit order."""

        raise NotImplementedError
