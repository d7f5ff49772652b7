from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


# Days until payment is due, keyed by invoice payment terms
PAYMENT_TERM_DAYS = {
    "dueOnReceipt": 0,
    "net7": 7,
    "net15": 15,
    "net30": 30,
    "net60": 60,
}


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def due_date_for_terms(issued_at: datetime, payment_terms: str) -> datetime:
    """
    Compute the due date implied by payment terms.

    Unknown terms are treated as due on receipt; term validation happens
    before this is called.
    """
    return issued_at + timedelta(days=PAYMENT_TERM_DAYS.get(payment_terms, 0))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
