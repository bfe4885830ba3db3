"""Create the database and apply `schema.sql`.

Used by `create_app` when AUTO_INIT_DB is set and by `scripts/init_db.py`.
Every statement in the schema is idempotent.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Mapping

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

_SAFE_DB_NAME = re.compile(r"[A-Za-z0-9_]+")


@contextmanager
def _admin_connection(config: DBConfig, *, select_database: bool = True):
    params = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if select_database:
        params["database"] = config.database
    conn = mysql.connector.connect(**params)
    try:
        yield conn
    finally:
        conn.close()


# Quoted literals are kept whole so a ';' inside them does not end a statement.
_SQL_TOKEN_RE = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|;|[^'\";]+|.", re.S)


def iter_sql_statements(sql: str) -> Iterable[str]:
    text = "\n".join(ln for ln in sql.splitlines() if not ln.lstrip().startswith("--"))
    parts: list[str] = []
    for match in _SQL_TOKEN_RE.finditer(text):
        token = match.group(0)
        if token != ";":
            parts.append(token)
            continue
        stmt = "".join(parts).strip()
        parts = []
        if stmt:
            yield stmt

    tail = "".join(parts).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: Mapping) -> None:
    config = DBConfig.from_mapping(db_config)
    if not _SAFE_DB_NAME.fullmatch(config.database):
        raise ValueError(f"Unsafe database name: {config.database!r}")

    with _admin_connection(config, select_database=False) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: Mapping, *, schema_path: str | Path = DEFAULT_SCHEMA_PATH) -> None:
    config = DBConfig.from_mapping(db_config)
    ensure_database_exists(db_config)

    statements = list(iter_sql_statements(Path(schema_path).read_text(encoding="utf-8")))
    with _admin_connection(config) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    logger.info("applied %d schema statements to %s/%s", len(statements), config.host, config.database)


def list_tables(db_config: Mapping) -> list[str]:
    with _admin_connection(DBConfig.from_mapping(db_config)) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
