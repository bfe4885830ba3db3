from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user, json_body, make_role_required
from ..common.serialization import to_jsonable
from ..container import Container
from ..core.enums import Role
from .model import CreateUserPayload


def register(app: Flask, container: Container) -> None:
    role_required = make_role_required(container.identity)

    @app.route("/api/admin/users/create", methods=["POST"], endpoint="users_create")
    @role_required(Role.ADMIN)
    def create_user():
        payload = CreateUserPayload.from_dict(json_body())
        result = container.user_service.create_user(payload, current_user().uid)
        return jsonify(to_jsonable(result)), 201

    @app.route("/api/admin/users/<uid>/revoke", methods=["POST"], endpoint="users_revoke")
    @role_required(Role.ADMIN)
    def revoke_access(uid: str):
        reason = json_body().get("reason") or ""
        container.user_service.revoke_access(uid, current_user().uid, reason)
        return jsonify({"success": True, "uid": uid})
