from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user, make_role_required
from ..common.serialization import to_jsonable
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    role_required = make_role_required(container.identity)

    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_mine")
    @role_required(*Role)
    def my_notifications():
        items = container.notifications_repo.list_for_user(current_user().uid)
        return jsonify({"items": to_jsonable(list(items))})
