from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user, json_body, make_role_required
from ..common.serialization import to_jsonable
from ..container import Container
from ..core.enums import Role
from .model import CreateStudentPayload, UpdateStudentPayload


def register(app: Flask, container: Container) -> None:
    role_required = make_role_required(container.identity)

    @app.route("/api/admin/students/create", methods=["POST"], endpoint="students_create")
    @role_required(Role.ADMIN, Role.MANAGER)
    def create_student():
        payload = CreateStudentPayload.from_dict(json_body())
        result = container.student_service.create_student(payload, current_user().uid)
        return jsonify(to_jsonable(result)), 201

    @app.route("/api/admin/students/<student_id>/update", methods=["POST"], endpoint="students_update")
    @role_required(Role.ADMIN, Role.MANAGER)
    def update_student(student_id: str):
        payload = UpdateStudentPayload.from_dict(json_body())
        result = container.student_service.update_student(student_id, payload, current_user().uid)
        return jsonify(to_jsonable(result))
