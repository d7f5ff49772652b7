# Overview: Service-layer operations for session tokens.

"""
Session Token Management Service

- Random tokens (32 bytes) from the secrets module
- Only the SHA-256 hash is stored; the plaintext goes to the client once
- Absolute expiry (SESSION_TTL_HOURS), no idle timeout
- Revocable on logout
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow
from ..validation import NotFoundError


@dataclass
class SessionContext:
    user: User
    session: SessionToken


def generate_token() -> str:
    """64-character hex string, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 rather than bcrypt: tokens are already high-entropy, so a fast
    one-way hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(user_id: int) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token)."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + timedelta(hours=current_app.config["SESSION_TTL_HOURS"]),
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token.

    Returns None when the token is unknown, revoked or expired, or when its
    user has been deactivated.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < utcnow():
        return None

    user = session.user
    if not user or not user.is_active:
        return None

    return SessionContext(user=user, session=session)


def revoke_session(token: str) -> bool:
    """Returns True if an active session was revoked, False if not found."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return True
