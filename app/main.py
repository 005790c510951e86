"""Support desk — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from app.adapters.persistence.database import engine
from app.config import settings
from app.infrastructure.api.dependencies import get_glpi_client
from app.infrastructure.api.error_handlers import register_error_handlers
from app.infrastructure.api.routes_auth import router as auth_router
from app.infrastructure.api.routes_conversations import router as conversations_router
from app.infrastructure.api.routes_health import router as health_router
from app.infrastructure.api.routes_tickets import router as tickets_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database not available on startup: %s", e)
    logger.info("Ticket backend: %s", settings.ticket_backend)
    yield
    glpi = get_glpi_client()
    if glpi is not None:
        await glpi.kill_session()
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Support Desk API",
        description="Support tickets, conversation threads and admin ownership handoff",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.session_https_only,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(tickets_router, prefix="/api")
    app.include_router(conversations_router, prefix="/api")

    return app


app = create_app()
