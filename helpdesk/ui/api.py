from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import httpx


class APIError(RuntimeError):
    """Error returned by the helpdesk API."""

    def __init__(self, message: str, *, status_code: int | None = None, response: httpx.Response | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response

    def __str__(self) -> str:
        prefix = f"[{self.status_code}] " if self.status_code is not None else ""
        return f"{prefix}{super().__str__()}"


def _extract_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or "Unknown server error"

    if isinstance(data, Mapping):
        detail = data.get("detail")
        if isinstance(detail, str):
            return detail
        if isinstance(detail, Mapping) and "message" in detail:
            return str(detail["message"])
        if isinstance(detail, list) and detail and isinstance(detail[0], Mapping) and "msg" in detail[0]:
            return str(detail[0]["msg"])
    return "The request could not be completed"


@dataclass(slots=True)
class HelpdeskAPIClient:
    """Small synchronous client for the helpdesk REST API."""

    base_url: str
    timeout: float = 10.0
    transport: httpx.BaseTransport | None = None

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers: dict[str, str] = {"Accept": "application/json"}
        headers.update(kwargs.pop("headers", {}))

        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:  # pragma: no cover - network failures are checked manually
            raise APIError(f"API request failed: {exc}") from exc

        if response.status_code >= 400:
            raise APIError(_extract_error_message(response), status_code=response.status_code, response=response)

        if response.status_code == 204 or not response.content:
            return None

        content_type = response.headers.get("Content-Type", "")
        if "application/json" in content_type:
            return response.json()
        return response.text

    def ping(self) -> Mapping[str, Any]:
        return self._request("GET", "/ping")

    def list_tickets(
        self,
        *,
        status: int | None = None,
        priority: int | None = None,
        category: int | None = None,
        search: str | None = None,
        sort: str = "newest",
    ) -> list[Mapping[str, Any]]:
        params: dict[str, Any] = {"sort": sort}
        if status is not None:
            params["status"] = status
        if priority is not None:
            params["priority"] = priority
        if category is not None:
            params["category"] = category
        if search and search.strip():
            params["search"] = search.strip()
        data = self._request("GET", "/api/tickets", params=params)
        return list(data or [])

    def create_ticket(
        self,
        *,
        title: str,
        description: str,
        created_by: str,
        category: int,
        priority: int,
    ) -> Mapping[str, Any]:
        payload = {
            "title": title,
            "description": description,
            "createdBy": created_by,
            "category": category,
            "priority": priority,
        }
        return self._request("POST", "/api/tickets", json=payload)

    def get_ticket(self, ticket_id: int) -> Mapping[str, Any]:
        return self._request("GET", f"/api/tickets/{ticket_id}")

    def list_comments(self, ticket_id: int) -> list[Mapping[str, Any]]:
        return list(self._request("GET", f"/api/tickets/{ticket_id}/comments") or [])

    def add_comment(self, ticket_id: int, *, author: str, message: str) -> Mapping[str, Any]:
        payload = {"author": author, "message": message}
        return self._request("POST", f"/api/tickets/{ticket_id}/comments", json=payload)

    def update_status(self, ticket_id: int, *, status: int) -> Mapping[str, Any]:
        return self._request("PATCH", f"/api/tickets/{ticket_id}/status", json={"status": status})

    def delete_ticket(self, ticket_id: int) -> None:
        self._request("DELETE", f"/api/tickets/{ticket_id}")
