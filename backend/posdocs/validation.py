from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """
    Base class for business-rule failures surfaced to API clients.

    Routes render these as {"error": message, ...details} with status_code.
    Anything that is not a DomainError is an unexpected failure (500).
    """
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        payload.update(self.details)
        return payload


class ValidationError(DomainError, ValueError):
    """400-level input problem, optionally addressed to a field."""
    status_code = 400

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.field = field


class NotFoundError(DomainError):
    """404-level missing customer/sales rep/invoice/edit/credit note."""
    status_code = 404


class ConflictError(DomainError, ValueError):
    """409-level conflict (reference collisions, duplicate submissions)."""
    status_code = 409


class ForbiddenError(DomainError):
    """403-level role mismatch or write against a terminal document."""
    status_code = 403


class InternalError(DomainError):
    """500-level persistence failure that is not a recoverable collision."""
    status_code = 500


def require_id(value: Any, field: str) -> int:
    """Coerce a positive integer id; bools, floats and junk are rejected."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Valid {field} is required", field=field)
    if isinstance(value, int):
        ident = value
    elif isinstance(value, str) and value.strip().isdigit():
        ident = int(value.strip())
    else:
        raise ValidationError(f"Valid {field} is required", field=field)
    if ident <= 0:
        raise ValidationError(f"Valid {field} is required", field=field)
    return ident


def require_string(value: Any, field: str, *, max_length: int | None = None) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    cleaned = value.strip()
    if max_length and len(cleaned) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}", field=field)
    return cleaned


def optional_string(value: Any, field: str, *, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    cleaned = value.strip()
    if not cleaned:
        return None
    if max_length and len(cleaned) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}", field=field)
    return cleaned


def require_choice(value: Any, field: str, choices) -> str:
    if not isinstance(value, str) or value not in choices:
        raise ValidationError(
            f"{field} must be one of: {', '.join(sorted(choices))}",
            field=field,
        )
    return value


def optional_bool(value: Any, field: str, default: bool = False) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean", field=field)
    return value
