# backend/posdocs/routes/system.py
"""System health endpoint."""

import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import Role
from ..permissions import DEFAULT_ROLE_PERMISSIONS
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        role_names = {name for (name,) in db.session.query(Role.name).all()}
        elapsed_ms = (time.time() - start_time) * 1000

        missing_roles = sorted(set(DEFAULT_ROLE_PERMISSIONS) - role_names)
        if missing_roles:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": f"Missing roles: {', '.join(missing_roles)}",
            }

        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy, or degraded (default roles not initialised)
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 503 if database_health["status"] == "unhealthy" else 200

    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, http_status
