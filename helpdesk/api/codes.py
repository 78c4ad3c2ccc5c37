"""Stable integer codes for ticket enumerations on the wire.

Clients send and receive ``category``, ``priority`` and ``status`` as small
integers. Requests may also spell the value out (``"InProgress"``,
``"in_progress"``) which is convenient for manual calls.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping, TypeVar

from helpdesk.tickets.models import TicketCategory, TicketPriority
from helpdesk.tickets.state import TicketStatus

E = TypeVar("E", bound=Enum)

CATEGORY_CODES: Mapping[TicketCategory, int] = {
    TicketCategory.IT: 0,
    TicketCategory.FACILITIES: 1,
    TicketCategory.GENERAL: 2,
}

PRIORITY_CODES: Mapping[TicketPriority, int] = {
    TicketPriority.LOW: 0,
    TicketPriority.MEDIUM: 1,
    TicketPriority.HIGH: 2,
}

STATUS_CODES: Mapping[TicketStatus, int] = {
    TicketStatus.OPEN: 0,
    TicketStatus.IN_PROGRESS: 1,
    TicketStatus.CLOSED: 2,
}

LABELS: Mapping[Enum, str] = {
    TicketCategory.IT: "IT",
    TicketCategory.FACILITIES: "Facilities",
    TicketCategory.GENERAL: "General",
    TicketPriority.LOW: "Low",
    TicketPriority.MEDIUM: "Medium",
    TicketPriority.HIGH: "High",
    TicketStatus.OPEN: "Open",
    TicketStatus.IN_PROGRESS: "InProgress",
    TicketStatus.CLOSED: "Closed",
}


def _decode(value: object, codes: Mapping[E, int], kind: str) -> E:
    if isinstance(value, Enum):
        if value in codes:
            return value  # type: ignore[return-value]
        raise ValueError(f"Unknown {kind}: {value!r}")
    if isinstance(value, bool):
        raise ValueError(f"Unknown {kind}: {value!r}")
    if isinstance(value, int):
        for member, code in codes.items():
            if code == value:
                return member
        raise ValueError(f"Unknown {kind} code: {value}")
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return _decode(int(text), codes, kind)
        key = text.lower().replace("_", "").replace(" ", "")
        for member in codes:
            if key in (member.value.replace("_", ""), LABELS[member].lower()):
                return member
    raise ValueError(f"Unknown {kind}: {value!r}")


def decode_category(value: object) -> TicketCategory:
    return _decode(value, CATEGORY_CODES, "category")


def decode_priority(value: object) -> TicketPriority:
    return _decode(value, PRIORITY_CODES, "priority")


def decode_status(value: object) -> TicketStatus:
    return _decode(value, STATUS_CODES, "status")


def label(member: Enum) -> str:
    return LABELS[member]
