"""Deposit acceptance policy tests."""

from decimal import Decimal

import pytest

from posdocs.services.deposit_service import (
    AlreadySettled,
    DepositReduced,
    REASON_REDUCED,
    REASON_SETTLED,
    can_accept_deposit,
    ensure_deposit_accepted,
)
from posdocs.validation import ValidationError


D = Decimal


@pytest.mark.parametrize(
    "balance,previous,new,allowed,reason",
    [
        ("125", "100", "225", True, None),       # pays off
        ("125", "100", "300", True, None),       # crosses into overpaid once
        ("125", "100", "100", True, None),       # no-op
        ("0", "225", "225", True, None),         # no-op on a paid invoice
        ("0", "225", "300", False, REASON_SETTLED),
        ("-75", "300", "400", False, REASON_SETTLED),
        ("125", "100", "50", False, REASON_REDUCED),
        ("0", "225", "200", False, REASON_REDUCED),
    ],
)
def test_decision_table(balance, previous, new, allowed, reason):
    decision = can_accept_deposit(D(balance), D(previous), D(new))
    assert decision.allowed is allowed
    assert decision.reason == reason


def test_reduction_raises_validation_error():
    with pytest.raises(DepositReduced) as exc:
        ensure_deposit_accepted(D("125"), D("100"), D("99.99"))
    assert isinstance(exc.value, ValidationError)
    assert exc.value.status_code == 400
    assert exc.value.to_dict()["reason"] == REASON_REDUCED
    assert exc.value.to_dict()["field"] == "depositReceived"


def test_settled_raises_validation_error():
    with pytest.raises(AlreadySettled) as exc:
        ensure_deposit_accepted(D("0"), D("225"), D("300"))
    assert exc.value.status_code == 400
    assert exc.value.to_dict()["reason"] == REASON_SETTLED


def test_accepted_returns_none():
    assert ensure_deposit_accepted(D("125"), D("100"), D("300")) is None
