from __future__ import annotations

import logging
import uuid
from typing import Optional

import mysql.connector
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..core.enums import Role, normalize_role
from ..core.exceptions import AuthenticationError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, is_duplicate_key
from .model import Identity
from .repository import IdentityProvider

logger = logging.getLogger(__name__)

_COLUMNS = "uid, email, password_hash, display_name, role, mobile, disabled, created_at"


def _to_identity(r: dict) -> Identity:
    return Identity(
        uid=r["uid"],
        email=r["email"],
        display_name=r["display_name"],
        role=normalize_role(r["role"]),
        mobile=r.get("mobile"),
        disabled=bool(r.get("disabled")),
        created_at=r["created_at"],
    )


class MySQLIdentityProvider(IdentityProvider):
    """Identity store backed by the `identities` table, with werkzeug password hashes.

    Each call runs on its own short connection and commits immediately.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_user(
        self,
        *,
        email: str,
        password: str,
        display_name: str,
        role: Role,
        mobile: Optional[str] = None,
    ) -> str:
        uid = uuid.uuid4().hex
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"INSERT INTO identities({_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s,0,%s)",
                    (
                        uid,
                        email.lower(),
                        generate_password_hash(password),
                        display_name,
                        role.value,
                        mobile,
                        now_local(),
                    ),
                )
        except mysql.connector.Error as e:
            if is_duplicate_key(e):
                raise ValidationError("An account with this email already exists") from e
            raise
        logger.info("identity %s created for %s", uid, email.lower())
        return uid

    def delete_user(self, uid: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM identities WHERE uid=%s", (uid,))

    def disable_user(self, uid: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE identities SET disabled=1 WHERE uid=%s", (uid,))

    def authenticate(self, email: str, password: str) -> Identity:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM identities WHERE email=%s", ((email or "").strip().lower(),))
            r = fetchone(cur)

        if not r or r.get("disabled"):
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(r["password_hash"], password or "")
        except ValueError:
            # unknown hash method in a hand-edited row
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")
        return _to_identity(r)

    def get(self, uid: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM identities WHERE uid=%s", (uid,))
            r = fetchone(cur)
            return _to_identity(r) if r else None
