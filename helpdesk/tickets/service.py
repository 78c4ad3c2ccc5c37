from __future__ import annotations

import logging
from dataclasses import replace

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
    StatusChange,
    Ticket,
    TicketAggregate,
    TicketCategory,
    TicketFilters,
    TicketPriority,
    TicketSummary,
)
from .repository import TicketRepository
from .state import RejectionReason, TicketStateMachine, TicketStatus
from .validation import validate_new_comment, validate_new_ticket

logger = logging.getLogger(__name__)

STATUS_UNCHANGED_MESSAGE = "Status unchanged."
STATUS_UPDATED_MESSAGE = "Status updated."


class TicketService:
    """High level orchestration for ticket lifecycle operations.

    Every write runs inside a single store transaction. The ticket row is read
    with a row lock before a comment is attached or a status changes, so the
    comment-count check and the write observe one consistent snapshot.
    """

    def __init__(
        self,
        repository: TicketRepository,
        *,
        state_machine: TicketStateMachine | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository
        self._state_machine = state_machine or TicketStateMachine()
        self._clock = clock or SystemClock()

    async def ensure_schema(self) -> None:
        await self._repository.ensure_schema()

    async def create_ticket(
        self,
        *,
        title: str,
        description: str,
        created_by: str,
        category: TicketCategory,
        priority: TicketPriority,
    ) -> Ticket:
        fields = validate_new_ticket(title=title, description=description, created_by=created_by)
        now = self._clock.now()
        async with self._repository.transaction() as store:
            ticket = await store.insert_ticket(
                title=fields.title,
                description=fields.description,
                created_by=fields.created_by,
                category=category,
                priority=priority,
                status=self._state_machine.initial_state(),
                created_at=now,
                updated_at=now,
            )
        logger.info("Created ticket %s (%s/%s)", ticket.id, category.value, priority.value)
        return ticket

    async def get_ticket(self, ticket_id: int) -> TicketAggregate:
        async with self._repository.transaction() as store:
            ticket = await store.find_ticket_by_id(ticket_id)
            if ticket is None:
                raise TicketNotFoundError(ticket_id)
            comments = await store.list_comments(ticket_id)
        return TicketAggregate(ticket=ticket, comments=comments)

    async def list_tickets(self, filters: TicketFilters | None = None) -> list[TicketSummary]:
        async with self._repository.transaction() as store:
            return await store.list_tickets(filters or TicketFilters())

    async def list_comments(self, ticket_id: int) -> list[Comment]:
        async with self._repository.transaction() as store:
            if await store.find_ticket_by_id(ticket_id) is None:
                raise TicketNotFoundError(ticket_id)
            return await store.list_comments(ticket_id)

    async def add_comment(self, ticket_id: int, *, author: str, message: str) -> Comment:
        fields = validate_new_comment(author=author, message=message)
        async with self._repository.transaction() as store:
            ticket = await store.find_ticket_by_id(ticket_id, for_update=True)
            if ticket is None:
                raise TicketNotFoundError(ticket_id)
            if not self._state_machine.can_add_comment(ticket.status):
                logger.info("Rejected comment on closed ticket %s", ticket_id)
                raise ClosedTicketError(ticket_id)
            comment = await store.insert_comment(
                ticket_id=ticket_id,
                author=fields.author,
                message=fields.message,
                created_at=self._clock.now(),
            )
        logger.info("Added comment %s to ticket %s", comment.id, ticket_id)
        return comment

    async def update_status(self, ticket_id: int, *, status: TicketStatus) -> StatusChange:
        async with self._repository.transaction() as store:
            ticket = await store.find_ticket_by_id(ticket_id, for_update=True)
            if ticket is None:
                raise TicketNotFoundError(ticket_id)
            comment_count = await store.count_comments(ticket_id)
            outcome = self._state_machine.request_transition(ticket.status, status, comment_count)

            if outcome.is_rejected:
                logger.info(
                    "Rejected transition %s -> %s on ticket %s: %s",
                    ticket.status.value,
                    status.value,
                    ticket_id,
                    outcome.reason.value if outcome.reason else "unknown",
                )
                if outcome.reason is RejectionReason.CLOSED_WITHOUT_COMMENT:
                    raise TicketCloseWithoutCommentError(ticket_id)
                raise InvalidTicketTransitionError(ticket.status, status)

            if not outcome.is_applied:
                return StatusChange(
                    ticket_id=ticket_id,
                    message=STATUS_UNCHANGED_MESSAGE,
                    status=ticket.status,
                    updated_at=ticket.updated_at,
                    changed=False,
                )

            updated = await store.update_ticket(replace(ticket, status=outcome.status, updated_at=self._clock.now()))
            if updated is None:
                raise TicketNotFoundError(ticket_id)

        logger.info("Ticket %s moved %s -> %s", ticket_id, ticket.status.value, updated.status.value)
        return StatusChange(
            ticket_id=ticket_id,
            message=STATUS_UPDATED_MESSAGE,
            status=updated.status,
            updated_at=updated.updated_at,
            changed=True,
        )

    async def delete_ticket(self, ticket_id: int) -> None:
        async with self._repository.transaction() as store:
            deleted = await store.delete_ticket(ticket_id)
        if not deleted:
            raise TicketNotFoundError(ticket_id)
        logger.info("Deleted ticket %s", ticket_id)


__all__ = [
    "ClosedTicketError",
    "InvalidTicketTransitionError",
    "TicketCloseWithoutCommentError",
    "TicketNotFoundError",
    "TicketService",
    "TicketServiceError",
    "TicketValidationError",
]
