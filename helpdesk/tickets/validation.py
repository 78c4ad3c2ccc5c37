"""Field constraints for ticket and comment input.

Strings are trimmed before their length is checked, so whitespace-only values
count as empty.
"""

from __future__ import annotations

from typing import Annotated, Any, Mapping

from pydantic import BaseModel, ConfigDict, StringConstraints, ValidationError

from .errors import TicketValidationError

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)]
CreatedBy = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Author = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
Message = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)]


class NewTicketFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: Title
    description: Description
    created_by: CreatedBy


class NewCommentFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: Author
    message: Message


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def field_errors(exc: ValidationError, raw: Mapping[str, Any]) -> dict[str, str]:
    """Collapse pydantic errors into one readable message per field."""

    errors: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__root__"
        if field in errors:
            continue
        ctx = error.get("ctx") or {}
        if _is_blank(raw.get(field)):
            errors[field] = "is required"
        elif error["type"] == "string_too_short":
            errors[field] = f"must be at least {ctx['min_length']} characters"
        elif error["type"] == "string_too_long":
            errors[field] = f"must be at most {ctx['max_length']} characters"
        else:
            errors[field] = error["msg"]
    return errors


def validate_new_ticket(*, title: str | None, description: str | None, created_by: str | None) -> NewTicketFields:
    raw = {"title": title, "description": description, "created_by": created_by}
    try:
        return NewTicketFields.model_validate(raw)
    except ValidationError as exc:
        raise TicketValidationError(field_errors(exc, raw)) from exc


def validate_new_comment(*, author: str | None, message: str | None) -> NewCommentFields:
    raw = {"author": author, "message": message}
    try:
        return NewCommentFields.model_validate(raw)
    except ValidationError as exc:
        raise TicketValidationError(field_errors(exc, raw)) from exc
