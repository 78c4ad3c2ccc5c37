from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from helpdesk.dependencies.tickets import get_ticket_service
from helpdesk.main import create_app
from helpdesk.tickets.errors import (
    ClosedTicketError,
    InvalidTicketTransitionError,
    TicketCloseWithoutCommentError,
    TicketNotFoundError,
    TicketValidationError,
)
from helpdesk.tickets.models import (
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
from helpdesk.tickets.state import TicketStatus

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _make_ticket(*, status: TicketStatus = TicketStatus.OPEN) -> Ticket:
    return Ticket(
        id=7,
        title="Cannot login to dashboard",
        description="Invalid credentials error",
        created_by="Joseph",
        category=TicketCategory.IT,
        priority=TicketPriority.HIGH,
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


def _make_comment(comment_id: int = 1) -> Comment:
    return Comment(id=comment_id, ticket_id=7, author="Support Agent", message="ack", created_at=NOW)


@pytest.fixture
def ticket_client():
    app = create_app()
    service = AsyncMock()

    async def override_service():
        return service

    app.dependency_overrides[get_ticket_service] = override_service

    client = TestClient(app)
    try:
        yield client, service
    finally:
        app.dependency_overrides.clear()


def test_create_ticket_endpoint_returns_created(ticket_client):
    client, service = ticket_client
    service.create_ticket = AsyncMock(return_value=_make_ticket())

    response = client.post(
        "/api/tickets",
        json={
            "title": "Cannot login to dashboard",
            "description": "Invalid credentials error",
            "createdBy": "Joseph",
            "category": 0,
            "priority": "High",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == 7
    assert body["createdBy"] == "Joseph"
    assert (body["category"], body["priority"], body["status"]) == (0, 2, 0)
    service.create_ticket.assert_awaited_with(
        title="Cannot login to dashboard",
        description="Invalid credentials error",
        created_by="Joseph",
        category=TicketCategory.IT,
        priority=TicketPriority.HIGH,
    )


def test_create_ticket_ignores_client_status(ticket_client):
    client, service = ticket_client
    service.create_ticket = AsyncMock(return_value=_make_ticket())

    response = client.post(
        "/api/tickets",
        json={
            "title": "t",
            "description": "d",
            "createdBy": "c",
            "category": 1,
            "priority": 0,
            "status": 2,
        },
    )

    assert response.status_code == 201
    assert "status" not in service.create_ticket.await_args.kwargs


def test_create_ticket_rejects_unknown_enum_code(ticket_client):
    client, service = ticket_client
    service.create_ticket = AsyncMock()

    response = client.post(
        "/api/tickets",
        json={"title": "t", "description": "d", "createdBy": "c", "category": 9, "priority": 0},
    )

    assert response.status_code == 422
    service.create_ticket.assert_not_awaited()


def test_create_ticket_maps_validation_error_to_bad_request(ticket_client):
    client, service = ticket_client
    service.create_ticket = AsyncMock(side_effect=TicketValidationError({"title": "is required"}))

    response = client.post(
        "/api/tickets",
        json={"title": " ", "description": "d", "createdBy": "c", "category": 0, "priority": 0},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == {"title": "is required"}


def test_list_tickets_endpoint_passes_filters(ticket_client):
    client, service = ticket_client
    summary = TicketSummary(
        id=7,
        title="Cannot login to dashboard",
        created_by="Joseph",
        category=TicketCategory.IT,
        priority=TicketPriority.HIGH,
        status=TicketStatus.IN_PROGRESS,
        created_at=NOW,
        updated_at=NOW,
        comment_count=3,
    )
    service.list_tickets = AsyncMock(return_value=[summary])

    response = client.get(
        "/api/tickets",
        params={"status": 1, "priority": "high", "category": "IT", "search": "login", "sort": "oldest"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body[0]["commentCount"] == 3
    assert body[0]["status"] == 1
    assert "description" not in body[0]
    service.list_tickets.assert_awaited_with(
        TicketFilters(
            status=TicketStatus.IN_PROGRESS,
            priority=TicketPriority.HIGH,
            category=TicketCategory.IT,
            search="login",
            sort=SortOrder.OLDEST,
        )
    )


def test_list_tickets_defaults_to_newest_without_filters(ticket_client):
    client, service = ticket_client
    service.list_tickets = AsyncMock(return_value=[])

    response = client.get("/api/tickets")

    assert response.status_code == 200
    assert response.json() == []
    service.list_tickets.assert_awaited_with(TicketFilters())


def test_list_tickets_rejects_unknown_status_filter(ticket_client):
    client, service = ticket_client
    service.list_tickets = AsyncMock()

    response = client.get("/api/tickets", params={"status": "archived"})

    assert response.status_code == 422


def test_get_ticket_returns_ordered_comments(ticket_client):
    client, service = ticket_client
    aggregate = TicketAggregate(ticket=_make_ticket(), comments=[_make_comment(1), _make_comment(2)])
    service.get_ticket = AsyncMock(return_value=aggregate)

    response = client.get("/api/tickets/7")

    assert response.status_code == 200
    body = response.json()
    assert body["description"] == "Invalid credentials error"
    assert [comment["id"] for comment in body["comments"]] == [1, 2]
    assert body["comments"][0]["ticketId"] == 7


def test_get_ticket_returns_not_found(ticket_client):
    client, service = ticket_client
    service.get_ticket = AsyncMock(side_effect=TicketNotFoundError(7))

    response = client.get("/api/tickets/7")

    assert response.status_code == 404
    assert response.json()["detail"] == "Ticket not found."


def test_add_comment_returns_created(ticket_client):
    client, service = ticket_client
    service.add_comment = AsyncMock(return_value=_make_comment())

    response = client.post("/api/tickets/7/comments", json={"author": "Support Agent", "message": "ack"})

    assert response.status_code == 201
    assert response.json()["message"] == "ack"
    service.add_comment.assert_awaited_with(7, author="Support Agent", message="ack")


def test_add_comment_on_closed_ticket_conflicts(ticket_client):
    client, service = ticket_client
    service.add_comment = AsyncMock(side_effect=ClosedTicketError(7))

    response = client.post("/api/tickets/7/comments", json={"author": "Support Agent", "message": "late"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot add comments to a closed ticket"


def test_list_comments_endpoint(ticket_client):
    client, service = ticket_client
    service.list_comments = AsyncMock(return_value=[_make_comment()])

    response = client.get("/api/tickets/7/comments")

    assert response.status_code == 200
    assert response.json()[0]["author"] == "Support Agent"


def test_change_status_returns_message_and_code(ticket_client):
    client, service = ticket_client
    service.update_status = AsyncMock(
        return_value=StatusChange(
            ticket_id=7, message="Status updated.", status=TicketStatus.CLOSED, updated_at=NOW, changed=True
        )
    )

    response = client.patch("/api/tickets/7/status", json={"status": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Status updated."
    assert body["status"] == 2
    assert body["id"] == 7
    assert "updatedAt" in body
    service.update_status.assert_awaited_with(7, status=TicketStatus.CLOSED)


@pytest.mark.parametrize(
    "error",
    [
        InvalidTicketTransitionError(TicketStatus.CLOSED, TicketStatus.OPEN),
        TicketCloseWithoutCommentError(7),
    ],
)
def test_change_status_returns_conflict_on_rejection(ticket_client, error):
    client, service = ticket_client
    service.update_status = AsyncMock(side_effect=error)

    response = client.patch("/api/tickets/7/status", json={"status": "Open"})

    assert response.status_code == 409
    assert response.json()["detail"] == str(error)


def test_delete_ticket_returns_no_content(ticket_client):
    client, service = ticket_client
    service.delete_ticket = AsyncMock(return_value=None)

    response = client.delete("/api/tickets/7")

    assert response.status_code == 204
    service.delete_ticket.assert_awaited_with(7)


def test_missing_service_answers_service_unavailable():
    client = TestClient(create_app())

    response = client.get("/api/tickets")

    assert response.status_code == 503


def test_ping_routes():
    client = TestClient(create_app())

    assert client.get("/ping").json() == {"status": "ok"}
    assert client.get("/ping/db").status_code == 503


def test_validation_error_keys_follow_request_field_names(ticket_client):
    client, service = ticket_client
    service.create_ticket = AsyncMock(
        side_effect=TicketValidationError({"created_by": "is required", "title": "must be at most 200 characters"})
    )

    response = client.post(
        "/api/tickets",
        json={"title": "t" * 201, "description": "d", "createdBy": " ", "category": 0, "priority": 0},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == {
        "createdBy": "is required",
        "title": "must be at most 200 characters",
    }
