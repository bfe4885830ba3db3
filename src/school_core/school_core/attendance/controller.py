from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user, json_body, make_role_required
from ..common.serialization import to_jsonable
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    role_required = make_role_required(container.identity)

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @role_required(Role.ADMIN, Role.TEACHER)
    def mark_attendance():
        data = json_body()
        result = container.attendance_service.mark_attendance(
            data.get("date") or "",
            data.get("class_id") or data.get("classId") or "",
            data.get("section_id") or data.get("sectionId") or "",
            data.get("records") or {},
            current_user().uid,
        )
        return jsonify(to_jsonable(result)), 201

    @app.route("/api/admin/attendance/teachers/mark", methods=["POST"], endpoint="attendance_mark_teachers")
    @role_required(Role.ADMIN)
    def mark_teacher_attendance():
        data = json_body()
        result = container.attendance_service.mark_teacher_attendance(
            data.get("date") or "", data.get("records") or {}, current_user().uid
        )
        return jsonify(to_jsonable(result)), 201

    @app.route("/api/admin/attendance/staff/mark", methods=["POST"], endpoint="attendance_mark_staff")
    @role_required(Role.ADMIN)
    def mark_staff_attendance():
        data = json_body()
        result = container.attendance_service.mark_staff_attendance(
            data.get("date") or "", data.get("records") or {}, current_user().uid
        )
        return jsonify(to_jsonable(result)), 201
