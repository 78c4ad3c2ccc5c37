from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Mapping

from helpdesk.api.codes import label


def code_options(codes: Mapping[Enum, int]) -> dict[str, int]:
    """Map display labels to wire codes, ordered by code."""

    return {label(member): code for member, code in sorted(codes.items(), key=lambda item: item[1])}


def code_label(codes: Mapping[Enum, int], code: object) -> str:
    for member, value in codes.items():
        if value == code:
            return label(member)
    return "Unknown"


def format_timestamp(value: object) -> str:
    """Render an ISO timestamp from the API as ``YYYY-MM-DD HH:MM``; other input is echoed."""

    if not isinstance(value, str) or not value:
        return "-"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M")
