# Overview: Service-layer operations for auth; registration, password hashing and login.

"""
Authentication Service

Registration and credential checks for the admin console and the
mini-program. Passwords are hashed with bcrypt; the cost factor comes from
BCRYPT_ROUNDS so tests can run with a cheap one.

SECURITY NOTES:
- Only bcrypt hashes are stored
- Minimum 6 characters
- Admin accounts need the ADMIN_REGISTRATION_CODE at registration time
- Session tokens managed separately (see session_service.py)
"""

import hmac

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..validation import ConflictError, PermissionDenied, ValidationError, optional_text, require_text
from hotelbook.time_utils import utcnow


MIN_PASSWORD_LENGTH = 6


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field="password",
        )


def hash_password(password: str) -> str:
    """Hash password using bcrypt. Password is validated for strength before hashing."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash verifies as False.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def register_user(payload: dict) -> User:
    """
    Self-registration.

    Payload: username, password, email, optional role ("admin") and adminCode.

    Raises:
        ValidationError: missing fields or weak password
        ConflictError: username or email already taken
        PermissionDenied: role=admin with a wrong adminCode
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    username = require_text(payload, "username", max_length=50)
    email = require_text(payload, "email", max_length=100)
    password = payload.get("password")
    if "@" not in email:
        raise ValidationError("email is not valid", field="email")

    is_admin = False
    if payload.get("role") == "admin":
        expected = current_app.config.get("ADMIN_REGISTRATION_CODE") or ""
        supplied = str(payload.get("adminCode") or "")
        if not expected or not hmac.compare_digest(supplied, expected):
            raise PermissionDenied("Invalid admin registration code")
        is_admin = True

    return create_user(username=username, email=email, password=password, is_admin=is_admin)


def create_user(username: str, email: str, password: str, is_admin: bool = False) -> User:
    """Create a user with a bcrypt password hash. Used by registration and the CLI."""
    if db.session.query(User).filter_by(username=username).first():
        raise ConflictError("Username already exists")
    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate with username (or email) and password.

    Returns the User and stamps last_login_at on success, None otherwise.
    """
    user = db.session.query(User).filter(
        db.or_(User.username == username, User.email == username),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def update_profile(user: User, payload: dict) -> User:
    """Mini-program profile edit: nickname and avatar_url only."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = set(payload) - {"nickname", "avatar_url"}
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    if "nickname" in payload:
        nickname = optional_text(payload, "nickname")
        if nickname is not None and len(nickname) > 50:
            raise ValidationError("nickname exceeds max length 50", field="nickname")
        user.nickname = nickname
    if "avatar_url" in payload:
        avatar_url = optional_text(payload, "avatar_url")
        if avatar_url is not None and len(avatar_url) > 512:
            raise ValidationError("avatar_url exceeds max length 512", field="avatar_url")
        user.avatar_url = avatar_url

    db.session.commit()
    return user
