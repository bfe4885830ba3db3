from __future__ import annotations

import pytest

from src.school_core.school_core.core.enums import AppStatus, AuditAction, EntityType, Role
from src.school_core.school_core.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from src.school_core.school_core.users.model import CreateUserPayload
from src.school_core.school_core.users.service import UserService


def _payload(**overrides):
    data = dict(
        email="Priya.Teacher@School.Local",
        password="chalk-and-talk",
        display_name="Priya Nair",
        role="teacher",
        mobile="+919876543210",
    )
    data.update(overrides)
    return CreateUserPayload(**data)


def test_create_user_provisions_identity_profile_and_audit(user_service, identity, store):
    result = user_service.create_user(_payload(), "admin-1")

    assert result.success is True
    assert result.email == "priya.teacher@school.local"

    user = identity.get(result.uid)
    assert user.role == Role.TEACHER
    assert user.mobile == "+919876543210"

    profile = store.profiles[result.uid]
    assert profile.status == AppStatus.ACTIVE
    assert profile.created_by == "admin-1"

    [record] = store.audit
    assert record.entry.action == AuditAction.CREATE_USER
    assert record.entry.entity_type == EntityType.USER
    assert record.entry.old_value is None
    assert record.entry.new_value["role"] == "TEACHER"


def test_create_user_from_request_body(user_service):
    payload = CreateUserPayload.from_dict(
        {"email": "acc@school.local", "password": "ledger-pass", "displayName": "Ana Costa", "role": "ACCOUNTANT"}
    )
    result = user_service.create_user(payload, "admin-1")
    assert result.email == "acc@school.local"


@pytest.mark.parametrize(
    "overrides",
    [
        {"email": "not-an-email"},
        {"password": "short"},
        {"display_name": "P"},
        {"role": "JANITOR"},
        {"role": "MANAGER"},
        {"mobile": "98765-43210"},
        {"email": "a" * 250 + "@x.org"},
    ],
)
def test_invalid_user_is_rejected_before_provisioning(user_service, identity, overrides):
    with pytest.raises(ValidationError):
        user_service.create_user(_payload(**overrides), "admin-1")
    assert identity.users == {}


def test_duplicate_email_is_rejected(user_service):
    user_service.create_user(_payload(), "admin-1")
    with pytest.raises(ValidationError, match="already exists"):
        user_service.create_user(_payload(display_name="Someone Else"), "admin-1")


def test_profile_failure_deletes_the_identity(store, identity, audit_service, tx_runner, fixed_now):
    class BrokenProfiles:
        def insert(self, tx, profile):
            raise RuntimeError("profile store down")

    service = UserService(BrokenProfiles(), identity, audit_service, tx_runner, clock=lambda: fixed_now)

    with pytest.raises(RuntimeError):
        service.create_user(_payload(), "admin-1")

    assert identity.users == {}
    assert len(identity.deleted) == 1
    assert store.audit == []


def test_revoke_access_suspends_and_blocks_login(user_service, identity, store):
    uid = user_service.create_user(_payload(), "admin-1").uid

    assert user_service.revoke_access(uid, "admin-1", "left the school") == uid

    profile = store.profiles[uid]
    assert profile.status == AppStatus.SUSPENDED
    assert profile.suspension_reason == "left the school"
    assert identity.get(uid).disabled is True
    with pytest.raises(AuthenticationError):
        identity.authenticate("priya.teacher@school.local", "chalk-and-talk")

    entry = store.audit[-1].entry
    assert entry.action == AuditAction.UPDATE_USER
    assert entry.old_value == {"status": "ACTIVE"}
    assert entry.new_value == {"status": "SUSPENDED", "reason": "left the school"}


def test_revoke_unknown_user(user_service):
    with pytest.raises(NotFoundError, match="User does not exist"):
        user_service.revoke_access("ghost", "admin-1", "cleanup")


@pytest.mark.parametrize("reason", ["", "r" * 256])
def test_revoke_requires_a_reason_that_fits(user_service, store, reason):
    uid = user_service.create_user(_payload(), "admin-1").uid
    with pytest.raises(ValidationError):
        user_service.revoke_access(uid, "admin-1", reason)
    assert store.profiles[uid].status == AppStatus.ACTIVE
