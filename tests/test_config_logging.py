import logging

import pytest

from helpdesk.core.config import Settings, get_settings
from helpdesk.core.logging import ROOT_LOGGER_NAME, configure_logging, init_tracer, parse_otlp_headers
from helpdesk.main import _to_async_dsn, build_ticket_service
from helpdesk.tickets.errors import InvalidTicketTransitionError
from helpdesk.tickets.state import TicketStatus


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_read_prefixed_environment(monkeypatch, fresh_settings):
    monkeypatch.setenv("HELPDESK_ALLOW_REOPEN", "true")
    monkeypatch.setenv("HELPDESK_DATABASE_URL", "sqlite+aiosqlite:///./helpdesk.db")
    monkeypatch.setenv("HELPDESK_CORS_ORIGINS", '["http://desk.example"]')

    settings = get_settings()

    assert settings.allow_reopen is True
    assert settings.database_url == "sqlite+aiosqlite:///./helpdesk.db"
    assert settings.cors_origins == ["http://desk.example"]
    assert get_settings() is settings


def test_settings_defaults_keep_strict_lifecycle(monkeypatch):
    monkeypatch.delenv("HELPDESK_ALLOW_REOPEN", raising=False)
    settings = Settings(_env_file=None)

    assert settings.allow_reopen is False
    assert settings.seed_demo_data is False
    assert settings.database_url.startswith("postgresql+asyncpg://")


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, {}),
        ("", {}),
        ("api-key=abc, x-team = desk", {"api-key": "abc", "x-team": "desk"}),
        ("broken,=value,token=a=b", {"token": "a=b"}),
    ],
)
def test_parse_otlp_headers(raw, expected):
    assert parse_otlp_headers(raw) == expected


def test_configure_logging_applies_levels():
    logger = configure_logging(Settings(_env_file=None, log_level="debug"))

    assert logger.name == ROOT_LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    configure_logging(Settings(_env_file=None, log_level="warning", database_echo=True))
    assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.INFO


def test_tracer_is_skipped_when_disabled():
    assert init_tracer(Settings(_env_file=None, otel_enabled=False)) is None


@pytest.mark.parametrize(
    "dsn,expected",
    [
        ("postgresql://u:p@db/helpdesk", "postgresql+asyncpg://u:p@db/helpdesk"),
        ("postgres://u:p@db/helpdesk", "postgresql+asyncpg://u:p@db/helpdesk"),
        ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
    ],
)
def test_async_dsn(dsn, expected):
    assert _to_async_dsn(dsn) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("allow_reopen", [False, True])
async def test_build_ticket_service_honours_reopen_setting(repository, ticket_fields, allow_reopen):
    service = build_ticket_service(repository, Settings(_env_file=None, allow_reopen=allow_reopen))
    ticket = await service.create_ticket(**ticket_fields)
    await service.add_comment(ticket.id, author="Support Agent", message="done")
    await service.update_status(ticket.id, status=TicketStatus.CLOSED)

    if allow_reopen:
        change = await service.update_status(ticket.id, status=TicketStatus.OPEN)
        assert change.status is TicketStatus.OPEN
    else:
        with pytest.raises(InvalidTicketTransitionError):
            await service.update_status(ticket.id, status=TicketStatus.OPEN)
