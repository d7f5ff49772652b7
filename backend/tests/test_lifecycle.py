"""Two-state lifecycle tests for credit notes and refunds."""

import pytest

from posdocs.services.lifecycle_service import (
    APPROVED,
    CREDIT_NOTE_LIFECYCLE,
    DRAFT,
    REFUNDED,
    REFUND_LIFECYCLE,
    LifecycleError,
)
from posdocs.validation import ForbiddenError


@pytest.mark.parametrize(
    "lifecycle,terminal",
    [(CREDIT_NOTE_LIFECYCLE, APPROVED), (REFUND_LIFECYCLE, REFUNDED)],
)
class TestTwoStateLifecycle:

    def test_initial_is_draft(self, lifecycle, terminal):
        assert lifecycle.initial_status() == DRAFT

    def test_target_status(self, lifecycle, terminal):
        assert lifecycle.target_status(True) == DRAFT
        assert lifecycle.target_status(False) == terminal

    def test_draft_is_writable(self, lifecycle, terminal):
        assert lifecycle.next_status(DRAFT, save_draft=True) == DRAFT
        assert lifecycle.next_status(DRAFT, save_draft=False) == terminal

    @pytest.mark.parametrize("save_draft", [True, False])
    def test_terminal_is_absorbing(self, lifecycle, terminal, save_draft):
        with pytest.raises(ForbiddenError):
            lifecycle.next_status(terminal, save_draft=save_draft)

    def test_transition_table(self, lifecycle, terminal):
        assert lifecycle.can_transition(DRAFT, DRAFT)
        assert lifecycle.can_transition(DRAFT, terminal)
        assert not lifecycle.can_transition(terminal, DRAFT)
        assert not lifecycle.can_transition(terminal, terminal)

    def test_unknown_status_rejected(self, lifecycle, terminal):
        with pytest.raises(LifecycleError):
            lifecycle.validate_status("VOID")


def test_states_do_not_leak_between_documents():
    with pytest.raises(LifecycleError):
        CREDIT_NOTE_LIFECYCLE.validate_status(REFUNDED)
    with pytest.raises(LifecycleError):
        REFUND_LIFECYCLE.validate_status(APPROVED)
