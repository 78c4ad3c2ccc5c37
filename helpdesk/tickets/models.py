from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Sequence

from .state import TicketStatus


class TicketCategory(str, Enum):
    IT = "it"
    FACILITIES = "facilities"
    GENERAL = "general"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SortOrder(str, Enum):
    """Listing order over ``created_at``."""

    NEWEST = "newest"
    OLDEST = "oldest"


@dataclass(slots=True)
class Ticket:
    """Primary ticket record."""

    id: int
    title: str
    description: str
    created_by: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class Comment:
    """Timestamped note attached to a ticket."""

    id: int
    ticket_id: int
    author: str
    message: str
    created_at: datetime


@dataclass(slots=True)
class TicketAggregate:
    """Container bundling the ticket with its comments, oldest first."""

    ticket: Ticket
    comments: Sequence[Comment]

    @property
    def comment_count(self) -> int:
        return len(self.comments)


@dataclass(slots=True)
class TicketSummary:
    """List projection of a ticket: no description, comment bodies reduced to a count."""

    id: int
    title: str
    created_by: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    created_at: datetime
    updated_at: datetime
    comment_count: int


@dataclass(slots=True)
class TicketFilters:
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    category: TicketCategory | None = None
    search: str | None = None
    sort: SortOrder = SortOrder.NEWEST


@dataclass(slots=True)
class StatusChange:
    """Result of a status update request."""

    ticket_id: int
    message: str
    status: TicketStatus
    updated_at: datetime
    changed: bool
