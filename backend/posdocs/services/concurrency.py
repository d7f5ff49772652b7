# Overview: Retry helpers for transient database contention.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError

from ..extensions import db


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on transient lock failures.

    Retries on OperationalError (deadlocks, "database is locked"). Unique
    constraint violations are not transient and are left to the caller:
    for reference numbers and dependent documents they carry meaning.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
