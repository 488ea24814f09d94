# Overview: JSON response shaping shared by all blueprints.

from __future__ import annotations

from flask import current_app, jsonify, request

from .services.pagination import PageRequest, page_request
from .validation import ConflictError, PermissionDenied, ValidationError


def error_response(code: str, message: str, status: int, **extra):
    """Uniform error body: {"success": false, "error": <code>, "message": <text>}."""
    body = {"success": False, "error": code, "message": message}
    body.update(extra)
    return jsonify(body), status


def domain_error_response(exc: Exception, *, not_found: tuple[type, ...] = ()):
    """
    Map a domain exception to its HTTP response.

    ``not_found`` lists exception types that mean 404 for this route.
    Anything unrecognized is re-raised so the route's infrastructure
    handler can log it and answer 500.
    """
    code = getattr(exc, "code", type(exc).__name__)
    if not_found and isinstance(exc, not_found):
        return error_response(code, str(exc), 404)
    if isinstance(exc, ValidationError):
        extra = {"field": exc.field} if exc.field else {}
        return error_response(exc.code, str(exc), 400, **extra)
    if isinstance(exc, PermissionDenied):
        return error_response("PermissionDenied", str(exc), 403)
    if isinstance(exc, ConflictError):
        return error_response("Conflict", str(exc), 409)
    raise exc


def internal_error_response():
    return error_response("InternalError", "Internal server error", 500)


def request_page() -> PageRequest:
    """PageRequest from ?page=&pageSize= using the app's page size limits."""
    return page_request(
        request.args.get("page"),
        request.args.get("pageSize"),
        default_size=current_app.config.get("DEFAULT_PAGE_SIZE", 10),
        max_size=current_app.config.get("MAX_PAGE_SIZE", 100),
    )
