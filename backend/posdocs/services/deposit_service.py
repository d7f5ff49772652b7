# Overview: Acceptance policy for cumulative deposits along an invoice edit chain.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..validation import ValidationError


REASON_REDUCED = "DEPOSIT_REDUCED"
REASON_SETTLED = "ALREADY_SETTLED"


class DepositReduced(ValidationError):
    """Deposits are cumulative and never decrease across the chain."""

    def __init__(self, message: str = "Deposit amount cannot be reduced"):
        super().__init__(message, field="depositReceived", details={"reason": REASON_REDUCED})


class AlreadySettled(ValidationError):
    """The invoice was already paid or overpaid before this deposit."""

    def __init__(
        self,
        message: str = "This invoice is already fully paid. No further deposits can be accepted.",
    ):
        super().__init__(message, field="depositReceived", details={"reason": REASON_SETTLED})


@dataclass(frozen=True)
class DepositDecision:
    allowed: bool
    reason: str | None = None


def can_accept_deposit(
    current_balance: Decimal,
    previous_deposit: Decimal,
    new_deposit: Decimal,
) -> DepositDecision:
    """
    Decide whether the cumulative deposit may move from previous to new.

    current_balance is the balance of the current snapshot, before the
    change. A positive balance accepts any increase, even one that overpays:
    that crossing can happen once, because afterwards the balance is <= 0.
    """
    if new_deposit < previous_deposit:
        return DepositDecision(False, REASON_REDUCED)

    if new_deposit == previous_deposit:
        return DepositDecision(True)

    if current_balance <= 0:
        return DepositDecision(False, REASON_SETTLED)

    return DepositDecision(True)


def ensure_deposit_accepted(
    current_balance: Decimal,
    previous_deposit: Decimal,
    new_deposit: Decimal,
) -> None:
    decision = can_accept_deposit(current_balance, previous_deposit, new_deposit)
    if decision.allowed:
        return
    if decision.reason == REASON_REDUCED:
        raise DepositReduced()
    raise AlreadySettled()
