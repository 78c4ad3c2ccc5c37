"""Database table definitions."""

from .models import CommentTable, TicketTable

__all__ = ["CommentTable", "TicketTable"]
