from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import Student, StudentSnapshot


class StudentRepository(Protocol):
    """Live records plus their version history.

    History rows are insert-only; `(school_id, version)` is unique.
    """

    def next_sequence(self, tx: Any, counter_name: str) -> int:
        raise NotImplementedError

    def get(self, tx: Any, school_id: str, *, for_update: bool = False) -> Optional[Student]:
        raise NotImplementedError

    def insert(self, tx: Any, student: Student) -> None:
        raise NotImplementedError

    def update(self, tx: Any, student: Student) -> None:
        raise NotImplementedError

    def insert_snapshot(self, tx: Any, snapshot: StudentSnapshot) -> None:
        raise NotImplementedError

    def fetch(self, school_id: str) -> Optional[Student]:
        raise NotImplementedError

    def list_snapshots(self, school_id: str) -> Sequence[StudentSnapshot]:
        raise NotImplementedError


class StudentDirectory(Protocol):
    """Denormalized read model. Writes are best-effort and never part of a transaction."""

    def sync(self, student: Student) -> None:
        raise NotImplementedError
