# Overview: Service-layer operations for document reference numbers.

"""
Reference Number Service

Document references look like PREFIX-XXXX-XXXX, built from eight random
upper-case hex characters.

UNIQUENESS:
- generate_reference() checks the store and retries on collision. This is
  only a pre-filter that makes collisions unlikely.
- The unique column on each document table is the authority. A duplicate
  key raised on commit is the real collision signal; insert_with_reference()
  handles it by retrying with a fresh number under the same bound.
"""

from __future__ import annotations

import uuid
from typing import Callable

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..validation import ConflictError, InternalError


INVOICE_PREFIX = "INV"
RECEIPT_PREFIX = "RCP"
CREDIT_NOTE_PREFIX = "CN"
REFUND_PREFIX = "REF"

MAX_ATTEMPTS = 5


class GenerationExhausted(ConflictError):
    """Raised when no unused reference could be produced within MAX_ATTEMPTS."""


def new_candidate(prefix: str) -> str:
    raw = uuid.uuid4().hex[:8].upper()
    return f"{prefix}-{raw[:4]}-{raw[4:8]}"


def reference_exists(column, reference: str) -> bool:
    return db.session.query(column).filter(column == reference).first() is not None


def generate_reference(
    prefix: str,
    column,
    *,
    attempts: int = MAX_ATTEMPTS,
    candidate_factory: Callable[[str], str] = new_candidate,
) -> str:
    """
    Produce a reference not currently present in `column`.

    Advisory only: a concurrent writer may still claim the same value before
    our insert commits.
    """
    for _ in range(attempts):
        candidate = candidate_factory(prefix)
        if not reference_exists(column, candidate):
            return candidate
    raise GenerationExhausted(f"Unable to generate unique {prefix} reference number")


def insert_with_reference(
    build,
    *,
    prefix: str,
    column,
    attempts: int = MAX_ATTEMPTS,
    recover=None,
    candidate_factory: Callable[[str], str] = new_candidate,
):
    """
    Insert a document whose unique reference is generated here.

    build(reference) must return a new, fully populated model instance.
    recover(), when given, is called after a duplicate-key failure; if it
    returns a document, that document won a race on another unique key and
    is returned as (document, True) instead of retrying.

    Returns (document, already_existed).
    """
    for attempt in range(1, attempts + 1):
        reference = generate_reference(
            prefix, column, attempts=attempts, candidate_factory=candidate_factory
        )
        document = build(reference)
        db.session.add(document)
        try:
            db.session.commit()
            return document, False
        except IntegrityError:
            db.session.rollback()

        if recover is not None:
            winner = recover()
            if winner is not None:
                return winner, True

        if not reference_exists(column, reference):
            # Not a reference collision; nothing sensible to retry
            current_app.logger.error(
                "Insert of %s document failed on a constraint other than its reference", prefix
            )
            raise InternalError("Failed to persist document")

        current_app.logger.warning(
            "Reference %s collided on insert (attempt %d/%d)", reference, attempt, attempts
        )

    raise GenerationExhausted(f"Unable to generate unique {prefix} reference number")
