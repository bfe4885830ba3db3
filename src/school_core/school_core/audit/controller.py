from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import make_role_required
from ..common.serialization import to_jsonable
from ..common.validators import require_choice
from ..container import Container
from ..core.enums import EntityType, Role


def register(app: Flask, container: Container) -> None:
    role_required = make_role_required(container.identity)

    @app.route("/api/admin/audit/<entity_type>/<entity_id>", methods=["GET"], endpoint="audit_history")
    @role_required(Role.ADMIN)
    def history(entity_type: str, entity_id: str):
        kind = require_choice(entity_type, "entity_type", EntityType)
        return jsonify({"items": to_jsonable(list(container.audit_service.history(kind, entity_id)))})
