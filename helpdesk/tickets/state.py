from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Sequence


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class TransitionResult(str, Enum):
    UNCHANGED = "unchanged"
    APPLIED = "applied"
    REJECTED = "rejected"


class RejectionReason(str, Enum):
    INVALID_TRANSITION = "invalid_transition"
    CLOSED_WITHOUT_COMMENT = "closed_without_comment"


@dataclass(frozen=True, slots=True)
class TransitionOutcome:
    """Decision produced for a requested status change.

    ``status`` is the status the ticket holds once the decision is honoured:
    the requested one when applied, the current one otherwise.
    """

    result: TransitionResult
    status: TicketStatus
    reason: RejectionReason | None = None

    @classmethod
    def unchanged(cls, status: TicketStatus) -> TransitionOutcome:
        return cls(result=TransitionResult.UNCHANGED, status=status)

    @classmethod
    def applied(cls, status: TicketStatus) -> TransitionOutcome:
        return cls(result=TransitionResult.APPLIED, status=status)

    @classmethod
    def rejected(cls, status: TicketStatus, reason: RejectionReason) -> TransitionOutcome:
        return cls(result=TransitionResult.REJECTED, status=status, reason=reason)

    @property
    def is_applied(self) -> bool:
        return self.result is TransitionResult.APPLIED

    @property
    def is_rejected(self) -> bool:
        return self.result is TransitionResult.REJECTED


STRICT_TRANSITIONS: Mapping[TicketStatus, Sequence[TicketStatus]] = {
    TicketStatus.OPEN: (TicketStatus.IN_PROGRESS, TicketStatus.CLOSED),
    TicketStatus.IN_PROGRESS: (TicketStatus.CLOSED,),
    TicketStatus.CLOSED: (),
}

REOPEN_TRANSITIONS: Mapping[TicketStatus, Sequence[TicketStatus]] = {
    TicketStatus.OPEN: (TicketStatus.IN_PROGRESS, TicketStatus.CLOSED),
    TicketStatus.IN_PROGRESS: (TicketStatus.OPEN, TicketStatus.CLOSED),
    TicketStatus.CLOSED: (TicketStatus.OPEN,),
}


class TicketStateMachine:
    """Decide ticket status transitions and comment eligibility.

    The machine holds no state besides its transition table, so every decision
    is a pure function of its arguments.
    """

    def __init__(self, transitions: Mapping[TicketStatus, Sequence[TicketStatus]] | None = None) -> None:
        self._transitions = STRICT_TRANSITIONS if transitions is None else transitions

    @classmethod
    def with_reopen(cls) -> TicketStateMachine:
        return cls(REOPEN_TRANSITIONS)

    @staticmethod
    def initial_state() -> TicketStatus:
        return TicketStatus.OPEN

    def can_transition(self, current: TicketStatus, target: TicketStatus) -> bool:
        return target in self._transitions.get(current, ())

    def request_transition(
        self,
        current: TicketStatus,
        requested: TicketStatus,
        comment_count: int,
    ) -> TransitionOutcome:
        if current == requested:
            return TransitionOutcome.unchanged(current)
        if not self.can_transition(current, requested):
            return TransitionOutcome.rejected(current, RejectionReason.INVALID_TRANSITION)
        # closing needs at least one comment on record
        if requested is TicketStatus.CLOSED and comment_count < 1:
            return TransitionOutcome.rejected(current, RejectionReason.CLOSED_WITHOUT_COMMENT)
        return TransitionOutcome.applied(requested)

    @staticmethod
    def can_add_comment(status: TicketStatus) -> bool:
        return status is not TicketStatus.CLOSED
