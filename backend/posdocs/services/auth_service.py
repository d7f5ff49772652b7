# Overview: Service-layer operations for auth; users, roles and password checks.

"""
Authentication Service

Every document records who created it, so every request is attributable to
a user. Passwords are hashed with bcrypt (cost factor 12) and must pass a
strength check before hashing. Session tokens live in session_service.py.
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Role, User
from ..permissions import DEFAULT_ROLE_PERMISSIONS, validate_permission_code
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError


class PasswordValidationError(ValidationError):
    """Raised when a password doesn't meet strength requirements."""

    def __init__(self, message: str):
        super().__init__(message, field="password")


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter, one lowercase letter and one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe. Malformed hashes verify as False."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def ensure_default_roles() -> list[Role]:
    """Create the default roles if missing; existing roles keep their permissions."""
    roles = []
    for name, permissions in DEFAULT_ROLE_PERMISSIONS.items():
        role = db.session.query(Role).filter_by(name=name).first()
        if not role:
            role = Role(name=name, permissions=list(permissions))
            db.session.add(role)
        roles.append(role)
    db.session.commit()
    return roles


def create_role(name: str, permissions: list[str]) -> Role:
    invalid = [code for code in permissions if not validate_permission_code(code)]
    if invalid:
        raise ValidationError(f"Unknown permission keys: {', '.join(invalid)}", field="permissions")
    if db.session.query(Role).filter_by(name=name).first():
        raise ConflictError(f"Role {name} already exists")

    role = Role(name=name, permissions=list(permissions))
    db.session.add(role)
    db.session.commit()
    return role


def create_user(
    username: str,
    email: str,
    password: str,
    role_name: str,
    full_name: str | None = None,
) -> User:
    """
    Create a user holding exactly one role.

    Raises NotFoundError for an unknown role, ConflictError when the username
    or email is taken, PasswordValidationError for weak passwords.
    """
    role = db.session.query(Role).filter_by(name=role_name).first()
    if not role:
        raise NotFoundError(f"Role {role_name} not found")

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise ConflictError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        role_id=role.id,
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("User %s created with role %s", username, role_name)
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Check credentials by username or email.

    Returns the active User on success (and stamps last_login_at), None otherwise.
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


def principal_for(user: User) -> dict:
    """The request principal: {userId, role, permissions}."""
    role = user.role
    return {
        "userId": user.id,
        "role": role.name if role else None,
        "permissions": sorted(role.permissions or []) if role else [],
    }
