from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import inspect

from notes import __version__
from notes.api.errors import register_error_handlers
from notes.api.routers import health, notes
from notes.core.settings import Settings
from notes.db.base import Base
from notes.db.session import create_engine_and_sessionmaker
from notes.services.note_service import NoteService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting notes service...")

        app.state.settings = settings

        # --- DB ---
        db_rt = create_engine_and_sessionmaker(settings.database_url, echo=settings.db_echo)
        app.state.db_engine = db_rt.engine
        app.state.db_sessionmaker = db_rt.SessionLocal
        if settings.auto_create_db:
            Base.metadata.create_all(bind=db_rt.engine)
        elif "notes" not in inspect(db_rt.engine).get_table_names():
            raise RuntimeError(
                "Database schema not initialized. Run `shipwright db upgrade` (or set AUTO_CREATE_DB=1 for dev)."
            )

        app.state.note_service = NoteService()

        try:
            yield
        finally:
            logger.info("Stopping notes service...")
            db_rt.engine.dispose()

    app = FastAPI(title="Notes", version=__version__, lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(notes.router)
    return app
