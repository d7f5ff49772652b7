# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .permissions import has_permission
from .services import auth_service, session_service


IDEMPOTENCY_HEADER = "X-Idempotency-Key"


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'principal')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


def require_auth(f):
    """
    Require a valid bearer session.

    Sets on Flask g:
    - g.current_user: the authenticated User
    - g.principal: {userId, role, permissions}

    Returns 401 when the header is missing, or the token is unknown,
    expired or revoked, or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.principal = auth_service.principal_for(context.user)

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a permission key in the principal's capability set (wildcards honoured)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not has_permission(g.principal["permissions"], permission_code):
                current_app.logger.warning(
                    "Permission %s denied for user %s on %s %s",
                    permission_code,
                    g.principal["userId"],
                    request.method,
                    request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "requiredPermission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def idempotent(f):
    """
    Reject a repeated X-Idempotency-Key within its TTL with 409.

    Requests without the header pass through untouched.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        key = (request.headers.get(IDEMPOTENCY_HEADER) or "").strip()
        if not key:
            return f(*args, **kwargs)

        store = current_app.extensions["idempotency_store"]
        ttl = current_app.config["IDEMPOTENCY_TTL_SECONDS"]
        if not store.set_if_absent(key, ttl):
            current_app.logger.info("Duplicate submission rejected for key %s on %s", key, request.path)
            return jsonify({
                "error": "Duplicate submission. Please wait for the previous request to complete.",
            }), 409

        return f(*args, **kwargs)

    return decorated_function
