from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from helpdesk.api.codes import (
    CATEGORY_CODES,
    PRIORITY_CODES,
    STATUS_CODES,
    decode_category,
    decode_priority,
    decode_status,
)
from helpdesk.dependencies.tickets import TicketServiceDep
from helpdesk.tickets.errors import (
    ClosedTicketError,
    InvalidTicketTransitionError,
    TicketCloseWithoutCommentError,
    TicketNotFoundError,
    TicketServiceError,
    TicketValidationError,
)
from helpdesk.tickets.models import (
    Comment,
    SortOrder,
    Ticket,
    TicketAggregate,
    TicketCategory,
    TicketFilters,
    TicketPriority,
    TicketSummary,
)
from helpdesk.tickets.state import TicketStatus

router = APIRouter(prefix="/api/tickets", tags=["tickets"])

CategoryField = Annotated[TicketCategory, BeforeValidator(decode_category)]
PriorityField = Annotated[TicketPriority, BeforeValidator(decode_priority)]
StatusField = Annotated[TicketStatus, BeforeValidator(decode_status)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketCreateRequest(CamelModel):
    title: str
    description: str
    created_by: str
    category: CategoryField
    priority: PriorityField


class CommentCreateRequest(CamelModel):
    author: str
    message: str


class TicketStatusChangeRequest(CamelModel):
    status: StatusField


class CommentModel(CamelModel):
    id: int
    ticket_id: int
    author: str
    message: str
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: Comment) -> CommentModel:
        return cls(
            id=entity.id,
            ticket_id=entity.ticket_id,
            author=entity.author,
            message=entity.message,
            created_at=entity.created_at,
        )


class TicketModel(CamelModel):
    id: int
    title: str
    description: str
    created_by: str
    category: int
    priority: int
    status: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, ticket: Ticket) -> TicketModel:
        return cls(**_ticket_fields(ticket))


class TicketDetailModel(TicketModel):
    comments: list[CommentModel]

    @classmethod
    def from_aggregate(cls, aggregate: TicketAggregate) -> TicketDetailModel:
        return cls(
            **_ticket_fields(aggregate.ticket),
            comments=[CommentModel.from_entity(comment) for comment in aggregate.comments],
        )


class TicketListItemModel(CamelModel):
    id: int
    title: str
    created_by: str
    category: int
    priority: int
    status: int
    created_at: datetime
    updated_at: datetime
    comment_count: int

    @classmethod
    def from_summary(cls, summary: TicketSummary) -> TicketListItemModel:
        return cls(
            id=summary.id,
            title=summary.title,
            created_by=summary.created_by,
            category=CATEGORY_CODES[summary.category],
            priority=PRIORITY_CODES[summary.priority],
            status=STATUS_CODES[summary.status],
            created_at=summary.created_at,
            updated_at=summary.updated_at,
            comment_count=summary.comment_count,
        )


class StatusChangeModel(CamelModel):
    message: str
    id: int
    status: int
    updated_at: datetime


def _ticket_fields(ticket: Ticket) -> dict[str, Any]:
    return {
        "id": ticket.id,
        "title": ticket.title,
        "description": ticket.description,
        "created_by": ticket.created_by,
        "category": CATEGORY_CODES[ticket.category],
        "priority": PRIORITY_CODES[ticket.priority],
        "status": STATUS_CODES[ticket.status],
        "created_at": ticket.created_at,
        "updated_at": ticket.updated_at,
    }


def _camel_keys(errors: dict[str, str]) -> dict[str, str]:
    return {to_camel(field): message for field, message in errors.items()}


def _http_error(exc: TicketServiceError) -> HTTPException:
    if isinstance(exc, TicketNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found.")
    if isinstance(exc, TicketValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "errors": _camel_keys(exc.errors)},
        )
    if isinstance(exc, (InvalidTicketTransitionError, TicketCloseWithoutCommentError, ClosedTicketError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _parse_filter(value: str | None, decoder: Any) -> Any:
    if value is None or not value.strip():
        return None
    try:
        return decoder(value)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("", response_model=list[TicketListItemModel], summary="List tickets")
async def list_tickets(
    service: TicketServiceDep,
    status_filter: str | None = Query(default=None, alias="status"),
    priority: str | None = Query(default=None),
    category: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    sort: SortOrder = Query(default=SortOrder.NEWEST),
) -> list[TicketListItemModel]:
    filters = TicketFilters(
        status=_parse_filter(status_filter, decode_status),
        priority=_parse_filter(priority, decode_priority),
        category=_parse_filter(category, decode_category),
        search=search,
        sort=sort,
    )
    tickets = await service.list_tickets(filters)
    return [TicketListItemModel.from_summary(item) for item in tickets]


@router.post("", response_model=TicketModel, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreateRequest, service: TicketServiceDep) -> TicketModel:
    try:
        ticket = await service.create_ticket(
            title=payload.title,
            description=payload.description,
            created_by=payload.created_by,
            category=payload.category,
            priority=payload.priority,
        )
    except TicketServiceError as exc:
        raise _http_error(exc) from exc
    return TicketModel.from_entity(ticket)


@router.get("/{ticket_id}", response_model=TicketDetailModel)
async def get_ticket(ticket_id: int, service: TicketServiceDep) -> TicketDetailModel:
    try:
        aggregate = await service.get_ticket(ticket_id)
    except TicketServiceError as exc:
        raise _http_error(exc) from exc
    return TicketDetailModel.from_aggregate(aggregate)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(ticket_id: int, service: TicketServiceDep) -> None:
    try:
        await service.delete_ticket(ticket_id)
    except TicketServiceError as exc:
        raise _http_error(exc) from exc


@router.get("/{ticket_id}/comments", response_model=list[CommentModel])
async def list_comments(ticket_id: int, service: TicketServiceDep) -> list[CommentModel]:
    try:
        comments = await service.list_comments(ticket_id)
    except TicketServiceError as exc:
        raise _http_error(exc) from exc
    return [CommentModel.from_entity(comment) for comment in comments]


@router.post("/{ticket_id}/comments", response_model=CommentModel, status_code=status.HTTP_201_CREATED)
async def add_comment(ticket_id: int, payload: CommentCreateRequest, service: TicketServiceDep) -> CommentModel:
    try:
        comment = await service.add_comment(ticket_id, author=payload.author, message=payload.message)
    except TicketServiceError as exc:
        raise _http_error(exc) from exc
    return CommentModel.from_entity(comment)


@router.patch("/{ticket_id}/status", response_model=StatusChangeModel)
async def change_ticket_status(
    ticket_id: int,
    payload: TicketStatusChangeRequest,
    service: TicketServiceDep,
) -> StatusChangeModel:
    try:
        change = await service.update_status(ticket_id, status=payload.status)
    except TicketServiceError as exc:
        raise _http_error(exc) from exc
    return StatusChangeModel(
        message=change.message,
        id=change.ticket_id,
        status=STATUS_CODES[change.status],
        updated_at=change.updated_at,
    )
