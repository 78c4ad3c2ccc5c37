from __future__ import annotations

from typing import Mapping

from .state import TicketStatus


class TicketServiceError(RuntimeError):
    """Base error for ticket service issues."""


class TicketValidationError(TicketServiceError):
    """Raised when input violates field constraints; carries one message per field."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        details = "; ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(f"Invalid ticket input: {details}")


class TicketNotFoundError(TicketServiceError):
    """Raised when a ticket could not be located."""

    def __init__(self, ticket_id: int) -> None:
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} not found")


class InvalidTicketTransitionError(TicketServiceError):
    """Raised when the requested status edge is not permitted."""

    def __init__(self, current: TicketStatus, requested: TicketStatus) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid status transition: {current.value} -> {requested.value}")


class TicketCloseWithoutCommentError(TicketServiceError):
    """Raised when closing a ticket that has no comments."""

    def __init__(self, ticket_id: int) -> None:
        self.ticket_id = ticket_id
        super().__init__("Cannot close a ticket without at least one comment")


class ClosedTicketError(TicketServiceError):
    """Raised when commenting on a closed ticket."""

    def __init__(self, ticket_id: int) -> None:
        self.ticket_id = ticket_id
        super().__init__("Cannot add comments to a closed ticket")
