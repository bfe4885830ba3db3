"""Unit-of-work runner.

Services hand a callable to `TransactionRunner.run`; the callable receives an
open transaction handle (a MySQL cursor here) and every repository call made
with that handle commits or rolls back as one unit.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, TypeVar

import mysql.connector

from ..core.constants import DEFAULT_TX_MAX_ATTEMPTS
from ..core.exceptions import TransactionConflictError
from .connection import DatabaseConnection
from .mysql_base import ER_LOCK_DEADLOCK, ER_LOCK_WAIT_TIMEOUT, db_transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRNOS = frozenset({ER_LOCK_DEADLOCK, ER_LOCK_WAIT_TIMEOUT})


class RetryableConflict(Exception):
    """Raised by a repository when a concurrent writer won a race the work can simply replay."""


class TransactionRunner(Protocol):
    def run(self, work: Callable[[Any], T]) -> T:
        raise NotImplementedError


class MySQLTransactionRunner(TransactionRunner):
    def __init__(self, conn_factory: DatabaseConnection, *, max_attempts: int = DEFAULT_TX_MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._conn_factory = conn_factory
        self._max_attempts = int(max_attempts)

    def run(self, work: Callable[[Any], T]) -> T:
        for attempt in range(1, self._max_attempts + 1):
            try:
                with db_transaction(self._conn_factory) as cur:
                    return work(cur)
            except RetryableConflict as e:
                reason = str(e)
            except mysql.connector.Error as e:
                if e.errno not in RETRYABLE_ERRNOS:
                    raise
                reason = f"mysql errno {e.errno}"

            if attempt == self._max_attempts:
                logger.error("transaction gave up after %d attempts (%s)", attempt, reason)
                raise TransactionConflictError(
                    "The record is being changed by someone else right now. Please try again."
                )
            logger.warning("transaction conflict on attempt %d/%d (%s); retrying", attempt, self._max_attempts, reason)

        raise AssertionError("unreachable")
