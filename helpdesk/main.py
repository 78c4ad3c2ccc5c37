from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from helpdesk.api.routes import ping, tickets
from helpdesk.core.config import Settings, get_settings
from helpdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from helpdesk.tickets.repository import TicketRepository
from helpdesk.tickets.seed import seed_demo_data
from helpdesk.tickets.service import TicketService
from helpdesk.tickets.state import TicketStateMachine


def _to_async_dsn(dsn: str) -> str:
    """Ensure a PostgreSQL DSN uses the asyncpg driver."""

    if dsn.startswith("postgresql://"):
        return "postgresql+asyncpg://" + dsn[len("postgresql://") :]
    if dsn.startswith("postgres://"):
        return "postgresql+asyncpg://" + dsn[len("postgres://") :]
    return dsn


def build_ticket_service(repository: TicketRepository, settings: Settings) -> TicketService:
    state_machine = TicketStateMachine.with_reopen() if settings.allow_reopen else TicketStateMachine()
    return TicketService(repository, state_machine=state_machine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    app.state.ticket_service = None
    app.state.db_engine = None

    db_engine: AsyncEngine | None = None
    try:
        db_engine = create_async_engine(_to_async_dsn(settings.database_url), echo=settings.database_echo)
        session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
        repository = TicketRepository(session_factory, engine=db_engine)
        await repository.ensure_schema()
        service = build_ticket_service(repository, settings)
        if settings.seed_demo_data:
            await seed_demo_data(service)
        app.state.ticket_service = service
        app.state.db_engine = db_engine
    except Exception:  # service initialisation is best effort; routes answer 503
        logger.exception("Ticket service initialisation failed")
    try:
        yield
    finally:
        if db_engine is not None:
            await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(ping.router)
    app.include_router(tickets.router)
    return app


app = create_app()
