from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BusinessRuleViolation,
    ConcurrencyError,
    DomainError,
    NotFoundError,
    TransactionConflictError,
    ValidationError,
)
from ..identity.model import Identity
from ..identity.repository import IdentityProvider

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConcurrencyError, 409),
    (TransactionConflictError, 409),
    (BusinessRuleViolation, 409),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        body: dict[str, Any] = {"success": False, "message": str(e), "error": type(e).__name__}
        if isinstance(e, ConcurrencyError):
            body.update(expected_version=e.expected, current_version=e.actual)
        headers = {"WWW-Authenticate": 'Basic realm="school-core"'} if status == 401 else {}
        return jsonify(body), status, headers

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Internal server error"}), 500


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def current_user() -> Identity:
    return g.current_user


def make_role_required(identity: IdentityProvider) -> Callable[..., Callable]:
    """Build a `role_required(*roles)` decorator that checks HTTP Basic credentials.

    The authenticated identity is available to the view as `current_user()`.
    """

    def role_required(*roles: Role):
        allowed = frozenset(roles)

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                auth = request.authorization
                if auth is None or not auth.username:
                    raise AuthenticationError("Authentication required")
                user = identity.authenticate(auth.username, auth.password or "")
                if user.role not in allowed:
                    raise AuthorizationError("You do not have permission to perform this action")
                g.current_user = user
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return role_required
