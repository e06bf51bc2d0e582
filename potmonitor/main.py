from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session, sessionmaker

from potmonitor.api.routes import node, pot, user, warning
from potmonitor.core.config import settings
from potmonitor.core.errors import register_exception_handlers
from potmonitor.core.logger import setup_logging
from potmonitor.core.security import InMemoryRateLimiterMiddleware, RequestContextMiddleware
from potmonitor.db.session import build_engine, build_session_factory

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = None
    if app.state.session_factory is None:
        engine = build_engine(settings.database_url)
        app.state.session_factory = build_session_factory(engine)
        logger.info("Database engine created (%s)", engine.url.render_as_string(hide_password=True))
    try:
        yield
    finally:
        if engine is not None:
            engine.dispose()
            app.state.session_factory = None


def create_app(session_factory: sessionmaker[Session] | None = None) -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="Pot Monitor API",
        version="0.1.0",
        description="Telemetry for sensor nodes and their pots, with threshold-breach warnings.",
        lifespan=lifespan,
    )
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )
    if settings.rate_limit_enabled:
        app.add_middleware(InMemoryRateLimiterMiddleware)
    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    app.include_router(user.router, prefix=f"{API_PREFIX}/user", tags=["user"])
    app.include_router(node.router, prefix=f"{API_PREFIX}/node", tags=["node"])
    app.include_router(pot.router, prefix=f"{API_PREFIX}/pot", tags=["pot"])
    app.include_router(warning.router, prefix=API_PREFIX, tags=["warning"])
    return app


app = create_app()
