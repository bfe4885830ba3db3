from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user, json_body, make_role_required
from ..common.serialization import to_jsonable
from ..container import Container
from ..core.enums import Role
from .model import FeeLedgerEntryPayload


def register(app: Flask, container: Container) -> None:
    role_required = make_role_required(container.identity)

    @app.route("/api/admin/fees/post-transaction", methods=["POST"], endpoint="fees_post_transaction")
    @role_required(Role.ADMIN, Role.ACCOUNTANT)
    def post_transaction():
        user = current_user()
        payload = FeeLedgerEntryPayload.from_dict(json_body())
        result = container.fee_ledger_service.post_transaction(payload, user.uid, actor_role=user.role)
        return jsonify(to_jsonable(result)), 201

    @app.route("/api/admin/fees/reverse", methods=["POST"], endpoint="fees_reverse")
    @role_required(Role.ADMIN, Role.ACCOUNTANT)
    def reverse_transaction():
        user = current_user()
        data = json_body()
        result = container.fee_ledger_service.reverse_transaction(
            data.get("original_transaction_id") or data.get("originalTransactionId") or "",
            data.get("student_id") or data.get("studentId") or "",
            data.get("academic_year") or data.get("academicYear") or "",
            user.uid,
            data.get("reason") or "",
            actor_role=user.role,
        )
        return jsonify(to_jsonable(result)), 201

    @app.route("/api/admin/fees/<student_id>/<academic_year>/invoice", methods=["GET"], endpoint="fees_invoice")
    @role_required(Role.ADMIN, Role.ACCOUNTANT)
    def invoice(student_id: str, academic_year: str):
        return jsonify(to_jsonable(container.invoice_service.generate_invoice(student_id, academic_year)))
