# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Self-registration does not exist: users are created with the
`flask users create` command.
"""

from flask import Blueprint, g, jsonify

from ..decorators import bearer_token, require_auth
from ..services import auth_service, session_service
from ..time_utils import to_utc_z
from .common import internal_error_response, json_body


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    The token must be sent as "Authorization: Bearer <token>" on protected routes.
    """
    try:
        data = json_body()
        username = data.get("username") or data.get("email")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username/email and password required"}), 400

        user = auth_service.authenticate(username, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(user.id)

        return jsonify({
            "user": user.to_dict(),
            "principal": auth_service.principal_for(user),
            "token": token,
            "expiresAt": to_utc_z(session.expires_at),
            "message": "Login successful",
        }), 200

    except Exception as e:
        return internal_error_response("Failed to login user", e)


@auth_bp.post("/logout")
def logout_route():
    """Revoke the presented session token."""
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        if not session_service.revoke_session(token):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception as e:
        return internal_error_response("Failed to logout user", e)


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict(), "principal": g.principal}), 200
