"""Ticket lifecycle domain: models, state machine, persistence and service."""

from .clock import Clock, SystemClock
from .errors import (
    ClosedTicketError,
    InvalidTicketTransitionError,
    TicketCloseWithoutCommentError,
    TicketNotFoundError,
    TicketServiceError,
    TicketValidationError,
)
from .models import (
    Comment,
    SortOrder,
    StatusChange,
    Ticket,
    TicketAggregate,
    TicketCategory,
    TicketFilters,
    TicketPriority,
    TicketSummary,
)
from .repository import TicketRepository, TicketStore
from .service import TicketService
from .state import RejectionReason, TicketStateMachine, TicketStatus, TransitionOutcome, TransitionResult

__all__ = [
    "Clock",
    "ClosedTicketError",
    "Comment",
    "InvalidTicketTransitionError",
    "RejectionReason",
    "SortOrder",
    "StatusChange",
    "SystemClock",
    "Ticket",
    "TicketAggregate",
    "TicketCategory",
    "TicketCloseWithoutCommentError",
    "TicketFilters",
    "TicketNotFoundError",
    "TicketPriority",
    "TicketRepository",
    "TicketService",
    "TicketServiceError",
    "TicketStateMachine",
    "TicketStatus",
    "TicketStore",
    "TicketSummary",
    "TicketValidationError",
    "TransitionOutcome",
    "TransitionResult",
]
