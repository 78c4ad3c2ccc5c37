from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from helpdesk.tickets.models import TicketCategory, TicketPriority
from helpdesk.tickets.repository import TicketRepository
from helpdesk.tickets.service import TicketService
from helpdesk.tickets.state import TicketStateMachine


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def repository(engine: AsyncEngine) -> TicketRepository:
    repository = TicketRepository(async_sessionmaker(engine, expire_on_commit=False), engine=engine)
    await repository.ensure_schema()
    return repository


@pytest.fixture
def service(repository: TicketRepository, clock: ManualClock) -> TicketService:
    return TicketService(repository, state_machine=TicketStateMachine(), clock=clock)


@pytest.fixture
def ticket_fields() -> dict[str, object]:
    return {
        "title": "Printer not working on floor 5",
        "description": "Printer shows paper jam error even after clearing tray.",
        "created_by": "Alessandra",
        "category": TicketCategory.FACILITIES,
        "priority": TicketPriority.MEDIUM,
    }
