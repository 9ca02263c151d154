"""Application factory: configuration, database startup, middleware, routers and error handling."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from . import __version__
from .core.config import settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .db import session as db_session
from .db.base import Base
from .db.migrate import run_migrations
from .middlewares import RequestIdMiddleware
from .routers import api_inventory, api_months, api_reports, api_seafarers, api_stores
from .services.stores import get_store_manager

logger = logging.getLogger(__name__)


def prepare_database() -> None:
    """Open the configured database: an explicit ``DB_URL`` or the last active store."""

    if settings.DB_URL:
        Base.metadata.create_all(bind=db_session.engine)
        run_migrations(db_session.engine)
        logger.info("database ready", extra={"extra_data": {"url": settings.DB_URL}})
        return
    manager = get_store_manager()
    manager.switch_store(manager.active_store())


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, version=__version__)
    app.add_middleware(RequestIdMiddleware)
    register_exception_handlers(app)

    for module in (api_months, api_seafarers, api_inventory, api_reports, api_stores):
        app.include_router(module.router)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.on_event("startup")
    async def _startup() -> None:
        prepare_database()
        logger.info("application started", extra={"extra_data": {"env": settings.APP_ENV, "version": __version__}})

    Instrumentator().instrument(app).expose(app)
    return app


configure_logging()
app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("bondstore.main:app", host=settings.HOST, port=settings.PORT)


__all__ = ["app", "create_app", "prepare_database", "run"]
