# Overview: Request decorators for API routes (authentication and admin checks).

from functools import wraps
from flask import request, g

from .responses import error_response
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    # The admin console keeps the token in a cookie instead of a header
    return request.cookies.get("token") or None


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.token: The plaintext bearer token (for logout)

    Returns 401 if the token is missing, unknown, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return error_response("Unauthorized", "Authentication required", 401)

        user = session_service.validate_session(token)
        if not user:
            return error_response("Unauthorized", "Invalid or expired token", 401)

        g.current_user = user
        g.token = token
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require the authenticated user to be an admin. Use after @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not hasattr(g, "current_user"):
            return error_response("Unauthorized", "Authentication required", 401)
        if not g.current_user.is_admin:
            return error_response("PermissionDenied", "Admin privileges required", 403)
        return f(*args, **kwargs)
    return decorated_function
