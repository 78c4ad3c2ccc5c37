"""Demo tickets for local development."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .models import TicketCategory, TicketFilters, TicketPriority
from .service import TicketService
from .state import TicketStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DemoTicket:
    title: str
    description: str
    created_by: str
    category: TicketCategory
    priority: TicketPriority
    comments: tuple[str, ...] = ()
    status: TicketStatus = TicketStatus.OPEN


DEMO_AUTHOR = "Support Agent"

DEMO_TICKETS: tuple[DemoTicket, ...] = (
    DemoTicket(
        title="Cannot login to dashboard",
        description="User receives invalid credentials error although password is correct.",
        created_by="Joseph",
        category=TicketCategory.IT,
        priority=TicketPriority.HIGH,
    ),
    DemoTicket(
        title="Air conditioning issue in meeting room",
        description="AC not cooling properly in meeting room 3.",
        created_by="Collins",
        category=TicketCategory.FACILITIES,
        priority=TicketPriority.MEDIUM,
        comments=(
            "Technician assigned, investigating root cause.",
            "Temporary fix applied; monitoring performance.",
        ),
        status=TicketStatus.IN_PROGRESS,
    ),
    DemoTicket(
        title="Request: Add new user role",
        description="Need a new role for contractor access with limited permissions.",
        created_by="Noah",
        category=TicketCategory.GENERAL,
        priority=TicketPriority.LOW,
    ),
    DemoTicket(
        title="Printer not working on floor 5",
        description="Printer shows paper jam error even after clearing tray.",
        created_by="Alessandra",
        category=TicketCategory.FACILITIES,
        priority=TicketPriority.MEDIUM,
    ),
    DemoTicket(
        title="API timeout when submitting form",
        description="Submission occasionally fails with timeout after 30 seconds.",
        created_by="Dennis",
        category=TicketCategory.IT,
        priority=TicketPriority.HIGH,
        comments=("Can you share the steps to reproduce + timestamp?",),
    ),
)


async def seed_demo_data(service: TicketService, tickets: tuple[DemoTicket, ...] = DEMO_TICKETS) -> int:
    """Insert demo tickets through the service when the store is empty.

    Returns the number of tickets created.
    """

    if await service.list_tickets(TicketFilters()):
        logger.debug("Store already holds tickets; skipping demo data")
        return 0

    for demo in tickets:
        ticket = await service.create_ticket(
            title=demo.title,
            description=demo.description,
            created_by=demo.created_by,
            category=demo.category,
            priority=demo.priority,
        )
        for message in demo.comments:
            await service.add_comment(ticket.id, author=DEMO_AUTHOR, message=message)
        if demo.status is not ticket.status:
            await service.update_status(ticket.id, status=demo.status)

    logger.info("Seeded %d demo tickets", len(tickets))
    return len(tickets)
