from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from helpdesk.db.models import CommentTable, TicketTable

from .models import (
    Comment,
    SortOrder,
    Ticket,
    TicketCategory,
    TicketFilters,
    TicketPriority,
    TicketSummary,
)
from .state import TicketStatus


class TicketStore:
    """Ticket and comment persistence bound to one open transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert_ticket(
        self,
        *,
        title: str,
        description: str,
        created_by: str,
        category: TicketCategory,
        priority: TicketPriority,
        status: TicketStatus,
        created_at: datetime,
        updated_at: datetime,
    ) -> Ticket:
        row = TicketTable(
            title=title,
            description=description,
            created_by=created_by,
            category=category.value,
            priority=priority.value,
            status=status.value,
            created_at=created_at,
            updated_at=updated_at,
        )
        self._session.add(row)
        await self._session.flush()
        return _table_to_ticket(row)

    async def insert_comment(self, *, ticket_id: int, author: str, message: str, created_at: datetime) -> Comment:
        row = CommentTable(ticket_id=ticket_id, author=author, message=message, created_at=created_at)
        self._session.add(row)
        await self._session.flush()
        return _table_to_comment(row)

    async def find_ticket_by_id(self, ticket_id: int, *, for_update: bool = False) -> Ticket | None:
        statement = select(TicketTable).where(TicketTable.id == ticket_id)
        if for_update:
            statement = statement.with_for_update()
        result = await self._session.execute(statement)
        row = result.scalars().first()
        if row is None:
            return None
        return _table_to_ticket(row)

    async def update_ticket(self, ticket: Ticket) -> Ticket | None:
        """Persist the mutable part of a ticket (status and ``updated_at``)."""

        row = await self._session.get(TicketTable, ticket.id)
        if row is None:
            return None
        row.status = ticket.status.value
        row.updated_at = ticket.updated_at
        await self._session.flush()
        return _table_to_ticket(row)

    async def count_comments(self, ticket_id: int) -> int:
        result = await self._session.execute(
            select(func.count(CommentTable.id)).where(CommentTable.ticket_id == ticket_id)
        )
        return int(result.scalar_one())

    async def list_comments(self, ticket_id: int) -> list[Comment]:
        result = await self._session.execute(
            select(CommentTable)
            .where(CommentTable.ticket_id == ticket_id)
            .order_by(CommentTable.created_at.asc(), CommentTable.id.asc())
        )
        return [_table_to_comment(row) for row in result.scalars().all()]

    async def list_tickets(self, filters: TicketFilters) -> list[TicketSummary]:
        comment_count = (
            select(func.count(CommentTable.id))
            .where(CommentTable.ticket_id == TicketTable.id)
            .correlate(TicketTable)
            .scalar_subquery()
        )
        statement = select(TicketTable, comment_count.label("comment_count"))
        if filters.status is not None:
            statement = statement.where(TicketTable.status == filters.status.value)
        if filters.priority is not None:
            statement = statement.where(TicketTable.priority == filters.priority.value)
        if filters.category is not None:
            statement = statement.where(TicketTable.category == filters.category.value)
        # PostgreSQL folds non-ASCII case; SQLite lower() folds ASCII only
        term = (filters.search or "").strip()
        if term:
            statement = statement.where(
                or_(
                    TicketTable.title.icontains(term, autoescape=True),
                    TicketTable.description.icontains(term, autoescape=True),
                )
            )
        if filters.sort is SortOrder.OLDEST:
            statement = statement.order_by(TicketTable.created_at.asc(), TicketTable.id.asc())
        else:
            statement = statement.order_by(TicketTable.created_at.desc(), TicketTable.id.desc())

        result = await self._session.execute(statement)
        return [_table_to_summary(row, int(count or 0)) for row, count in result.all()]

    async def delete_ticket(self, ticket_id: int) -> bool:
        row = await self._session.get(TicketTable, ticket_id)
        if row is None:
            return False
        # not every backend enforces ON DELETE CASCADE, so remove comments explicitly
        await self._session.execute(delete(CommentTable).where(CommentTable.ticket_id == ticket_id))
        await self._session.delete(row)
        await self._session.flush()
        return True


class TicketRepository:
    """Persistence helper wrapping the `tickets` and `comments` tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[TicketStore]:
        """Open a session and transaction; commits on exit, rolls back on error."""

        async with self._session_factory() as session:
            async with session.begin():
                yield TicketStore(session)


def _table_to_ticket(row: TicketTable) -> Ticket:
    return Ticket(
        id=_require_id(row.id),
        title=row.title,
        description=row.description,
        created_by=row.created_by,
        category=TicketCategory(row.category),
        priority=TicketPriority(row.priority),
        status=TicketStatus(row.status),
        created_at=_ensure_datetime(row.created_at),
        updated_at=_ensure_datetime(row.updated_at),
    )


def _table_to_summary(row: TicketTable, comment_count: int) -> TicketSummary:
    return TicketSummary(
        id=_require_id(row.id),
        title=row.title,
        created_by=row.created_by,
        category=TicketCategory(row.category),
        priority=TicketPriority(row.priority),
        status=TicketStatus(row.status),
        created_at=_ensure_datetime(row.created_at),
        updated_at=_ensure_datetime(row.updated_at),
        comment_count=comment_count,
    )


def _table_to_comment(row: CommentTable) -> Comment:
    return Comment(
        id=_require_id(row.id),
        ticket_id=row.ticket_id,
        author=row.author,
        message=row.message,
        created_at=_ensure_datetime(row.created_at),
    )


def _require_id(value: int | None) -> int:
    if value is None:
        raise RuntimeError("Row has not been flushed; primary key is missing")
    return int(value)


def _ensure_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")


