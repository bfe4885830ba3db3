from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Role
from .model import Identity


class IdentityProvider(Protocol):
    """Credential store that lives outside the main transactional store.

    Calls are not part of any `TransactionRunner` unit of work, so callers that
    provision an identity must compensate with `delete_user` if their own
    transaction fails.
    """

    def create_user(
        self,
        *,
        email: str,
        password: str,
        display_name: str,
        role: Role,
        mobile: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def delete_user(self, uid: str) -> None:
        raise NotImplementedError

    def disable_user(self, uid: str) -> None:
        raise NotImplementedError

    def authenticate(self, email: str, password: str) -> Identity:
        raise NotImplementedError

    def get(self, uid: str) -> Optional[Identity]:
        raise NotImplementedError
