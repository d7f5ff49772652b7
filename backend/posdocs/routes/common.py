# Overview: Response helpers shared by the API blueprints.

from flask import current_app, jsonify, request

from ..validation import DomainError


DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def domain_error_response(e: DomainError):
    return jsonify(e.to_dict()), e.status_code


def internal_error_response(log_message: str, e: Exception):
    """Log with traceback; echo the exception text only when EXPOSE_ERROR_DETAILS is on."""
    current_app.logger.exception(log_message)
    payload = {"error": "Internal server error"}
    if current_app.config.get("EXPOSE_ERROR_DETAILS"):
        payload["details"] = str(e)
    return jsonify(payload), 500


def pagination_args() -> tuple[int, int]:
    limit = request.args.get("limit", DEFAULT_PAGE_SIZE, type=int)
    offset = request.args.get("offset", 0, type=int)
    return max(1, min(limit, MAX_PAGE_SIZE)), max(0, offset)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
