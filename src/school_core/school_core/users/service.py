from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..audit.model import AuditLogEntry
from ..audit.service import AuditService
from ..common.datetime_utils import now_local
from ..common.validators import (
    require_choice,
    require_e164,
    require_email,
    require_length_between,
    require_max_length,
    require_min_length,
    require_non_empty,
)
from ..core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_REASON_LENGTH,
    MIN_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
)
from ..core.enums import AppStatus, AuditAction, EntityType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..database.transaction import TransactionRunner
from ..identity.compensation import delete_orphaned_identity
from ..identity.repository import IdentityProvider
from .model import CreateUserPayload, CreateUserResult, UserProfile
from .repository import UserProfileRepository

logger = logging.getLogger(__name__)

# Roles an administrator may provision directly.
PROVISIONABLE_ROLES = frozenset({Role.ADMIN, Role.TEACHER, Role.ACCOUNTANT, Role.STUDENT})


class UserService:
    """Use case: provision and suspend user accounts (admin).

    Accounts are never deleted; access is revoked by suspension.
    """

    def __init__(
        self,
        profiles: UserProfileRepository,
        identity: IdentityProvider,
        audit: AuditService,
        tx_runner: TransactionRunner,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._profiles = profiles
        self._identity = identity
        self._audit = audit
        self._tx = tx_runner
        self._clock = clock

    def create_user(self, payload: CreateUserPayload, created_by: str) -> CreateUserResult:
        email = require_max_length(require_email(payload.email), "email", MAX_EMAIL_LENGTH)
        password = require_min_length(payload.password, "password", MIN_PASSWORD_LENGTH)
        display_name = require_length_between(payload.display_name, "display_name", MIN_NAME_LENGTH, MAX_NAME_LENGTH)
        role = require_choice(str(payload.role or "").upper(), "role", Role)
        if role not in PROVISIONABLE_ROLES:
            raise ValidationError("role must be one of: ADMIN, TEACHER, ACCOUNTANT, STUDENT")
        mobile = require_e164(payload.mobile) if payload.mobile else None
        created_by = require_non_empty(created_by, "created_by")

        uid = self._identity.create_user(
            email=email,
            password=password,
            display_name=display_name,
            role=role,
            mobile=mobile,
        )

        def work(tx) -> None:
            profile = UserProfile(
                uid=uid,
                email=email,
                display_name=display_name,
                role=role,
                status=AppStatus.ACTIVE,
                created_at=self._clock(),
                created_by=created_by,
            )
            self._profiles.insert(tx, profile)
            self._audit.log(
                AuditLogEntry(
                    user_id=created_by,
                    user_role=Role.ADMIN,
                    action=AuditAction.CREATE_USER,
                    entity_id=uid,
                    entity_type=EntityType.USER,
                    old_value=None,
                    new_value=profile,
                ),
                tx=tx,
            )

        try:
            self._tx.run(work)
        except Exception:
            delete_orphaned_identity(self._identity, uid, context="user creation")
            raise

        logger.info("user %s (%s) created by %s", uid, role.value, created_by)
        return CreateUserResult(success=True, uid=uid, email=email)

    def revoke_access(self, uid: str, revoked_by: str, reason: str) -> str:
        uid = require_non_empty(uid, "uid")
        revoked_by = require_non_empty(revoked_by, "revoked_by")
        reason = require_length_between(reason, "reason", 1, MAX_REASON_LENGTH)

        def work(tx) -> None:
            current = self._profiles.get(tx, uid, for_update=True)
            if current is None:
                raise NotFoundError("User does not exist.")

            # Idempotent, so a replayed transaction can call it again.
            self._identity.disable_user(uid)
            self._profiles.mark_suspended(tx, uid, reason=reason, suspended_at=self._clock())
            self._audit.log(
                AuditLogEntry(
                    user_id=revoked_by,
                    user_role=Role.ADMIN,
                    action=AuditAction.UPDATE_USER,
                    entity_id=uid,
                    entity_type=EntityType.USER,
                    old_value={"status": current.status},
                    new_value={"status": AppStatus.SUSPENDED, "reason": reason},
                ),
                tx=tx,
            )

        self._tx.run(work)
        logger.info("access revoked for %s by %s", uid, revoked_by)
        return uid
