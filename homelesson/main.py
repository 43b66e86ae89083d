"""
Home Lesson Management System: application entry point.

This is the only module that assembles the app.  Business logic lives in
the ``services/`` package; ``api/`` only maps HTTP onto it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select

import homelesson.models  # noqa: F401  registers every table on Base.metadata
from homelesson.api.v1.api import api_router
from homelesson.api.v1.endpoints.auth import limiter
from homelesson.core.config import settings
from homelesson.core.exceptions import register_exception_handlers
from homelesson.core.security import get_password_hash
from homelesson.db.session import Database
from homelesson.models.user import User
from homelesson.schemas.common import ServiceInfo
from homelesson.services import config_store

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def _seed_admin(database: Database) -> None:
    async with database.session_factory() as session:
        result = await session.execute(
            select(User).where(User.email == settings.FIRST_ADMIN_EMAIL)
        )
        if result.scalar_one_or_none() is None:
            session.add(
                User(
                    email=settings.FIRST_ADMIN_EMAIL,
                    hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
                    full_name="System Administrator",
                    role="admin",
                )
            )
            await session.commit()
            logger.info(
                "Default admin created: %s (password: <redacted>)",
                settings.FIRST_ADMIN_EMAIL,
            )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.database
    await database.create_all()
    logger.info("Database tables initialised")

    await _seed_admin(database)
    async with database.session_factory() as session:
        added = await config_store.seed_defaults(session)
    if added:
        logger.info("Seeded %d default settings", added)

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await database.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app(database: Database | None = None) -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Teachers, weekly timetable, attendance and payroll",
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.database = database or Database(settings.DATABASE_URL)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Global exception handlers (no stack traces in responses)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_PREFIX)

    @application.get("/", response_model=ServiceInfo, tags=["meta"])
    async def root() -> ServiceInfo:
        return ServiceInfo(
            message=settings.PROJECT_NAME,
            status="running",
            version=settings.VERSION,
            health=f"{settings.API_PREFIX}/health",
        )

    return application


app = create_app()
