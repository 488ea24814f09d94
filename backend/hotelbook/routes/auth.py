# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST  /api/register     self-registration (admin role needs adminCode)
- POST  /api/login        returns a bearer token
- GET   /api/me           current user
- PATCH /api/me/profile   nickname / avatar_url
- POST  /api/logout       revokes the presented token
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..services import auth_service
from ..services import session_service
from ..validation import ConflictError, PermissionDenied, ValidationError
from ..decorators import require_auth
from ..responses import domain_error_response, error_response, internal_error_response


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.post("/register")
def register_route():
    try:
        user = auth_service.register_user(request.get_json(silent=True) or {})
        current_app.logger.info("User registered: id=%s admin=%s", user.id, user.is_admin)
        return jsonify({"success": True, "message": "Registration successful"}), 201
    except (ValidationError, ConflictError, PermissionDenied) as e:
        db.session.rollback()
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to register user")
        return internal_error_response()


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    The token must be sent as "Authorization: Bearer <token>" on protected routes.
    """
    try:
        data = request.get_json(silent=True)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return error_response("ValidationError", "Invalid JSON payload", 400)
        username = data.get("username")
        password = data.get("password")

        if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
            return error_response("ValidationError", "username and password required", 400)

        user = auth_service.authenticate(username, password)
        if not user:
            return error_response("Unauthorized", "Invalid username or password", 401)

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        body = {
            "success": True,
            "message": "Login successful",
            "token": token,
            "expires_at": session.to_dict()["expires_at"],
            "user": user.to_dict(),
        }
        # Flat copies for the mini-program client
        body.update({
            "user_id": user.id,
            "user_name": user.username,
            "isAdmin": user.is_admin,
            "nickname": user.nickname,
            "avatar_url": user.avatar_url,
        })
        return jsonify(body), 200

    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to login user")
        return internal_error_response()


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"success": True, "user": g.current_user.to_dict()}), 200


@auth_bp.patch("/me/profile")
@require_auth
def update_profile_route():
    try:
        user = auth_service.update_profile(g.current_user, request.get_json(silent=True) or {})
        return jsonify({"success": True, "user": user.to_dict()}), 200
    except ValidationError as e:
        db.session.rollback()
        return domain_error_response(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update profile")
        return internal_error_response()


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.token)
        response = jsonify({"success": True, "message": "Logged out"})
        response.delete_cookie("token")
        return response, 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to logout user")
        return internal_error_response()
