from __future__ import annotations

import logging

from .repository import IdentityProvider

logger = logging.getLogger(__name__)


def delete_orphaned_identity(identity: IdentityProvider, uid: str, *, context: str) -> None:
    """Undo an identity provisioned for a transaction that did not commit.

    Never raises: the caller is already propagating the original failure.
    """

    try:
        identity.delete_user(uid)
    except Exception:
        logger.exception("compensation failed, identity %s is orphaned (%s)", uid, context)
        return
    logger.warning("rolled back identity %s after failed %s", uid, context)
