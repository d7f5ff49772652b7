# Overview: Service-layer rules for two-state document lifecycles.

"""
Document Lifecycle Service

================================================================================
PURPOSE: Enforce DRAFT -> terminal lifecycle for credit notes and refunds
================================================================================

STATE MACHINE:
    DRAFT -> DRAFT       (re-edit, saveDraft=true)
    DRAFT -> APPROVED    (credit notes, saveDraft=false)
    DRAFT -> REFUNDED    (refunds, saveDraft=false)

    DRAFT:     Editable. Every write chooses the next state via saveDraft.
    terminal:  Absorbing. Any further write is Forbidden.

Invoices do NOT use this module. Their status is derived from balance and
deposit on every write (see calculation_service.derive_status) and has no
transition table.

RULES:
1. Initial state is always DRAFT
2. Terminal states are never left
3. There is no path back to DRAFT from a terminal state
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass

from ..validation import ForbiddenError, ValidationError


DRAFT = "DRAFT"
APPROVED = "APPROVED"
REFUNDED = "REFUNDED"


class LifecycleError(ValidationError):
    """Raised when a status value is outside the document's state set."""


@dataclass(frozen=True)
class TwoStateLifecycle:
    """DRAFT plus one absorbing terminal state."""
    document_label: str
    terminal: str
    draft: str = DRAFT

    @property
    def statuses(self) -> set[str]:
        return {self.draft, self.terminal}

    def initial_status(self) -> str:
        return self.draft

    def validate_status(self, status: str) -> None:
        if status not in self.statuses:
            raise LifecycleError(
                f"Invalid status '{status}'. Must be one of: {', '.join(sorted(self.statuses))}"
            )

    def is_terminal(self, status: str) -> bool:
        return status == self.terminal

    def can_transition(self, from_status: str, to_status: str) -> bool:
        """
        Valid transitions:
        - DRAFT -> DRAFT
        - DRAFT -> terminal

        Nothing leaves the terminal state, including terminal -> terminal.
        """
        self.validate_status(from_status)
        self.validate_status(to_status)
        return from_status == self.draft

    def target_status(self, save_draft: bool) -> str:
        return self.draft if save_draft else self.terminal

    def ensure_writable(self, current_status: str) -> None:
        """Raise ForbiddenError once the document reached its terminal state."""
        self.validate_status(current_status)
        if self.is_terminal(current_status):
            raise ForbiddenError(
                f"{self.document_label} with status {current_status} cannot be edited"
            )

    def next_status(self, current_status: str, save_draft: bool) -> str:
        """Guard a write against the current status and return the resulting status."""
        self.ensure_writable(current_status)
        target = self.target_status(save_draft)
        if not self.can_transition(current_status, target):
            raise ForbiddenError(
                f"{self.document_label} cannot move from {current_status} to {target}"
            )
        return target


CREDIT_NOTE_LIFECYCLE = TwoStateLifecycle(document_label="Credit note", terminal=APPROVED)
REFUND_LIFECYCLE = TwoStateLifecycle(document_label="Refund", terminal=REFUNDED)
