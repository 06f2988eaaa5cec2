from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notes.services.note_service import NoteNotFound

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(_, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "error": {"type": "http", "status": exc.status_code, "detail": exc.detail},
            },
        )

    @app.exception_handler(NoteNotFound)
    async def not_found_handler(_, exc: NoteNotFound):
        return JSONResponse(
            status_code=404,
            content={
                "detail": "Note not found",
                "error": {"type": "not_found", "id": exc.args[0] if exc.args else None},
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "detail": "Validation error",
                "error": {"type": "validation", "issues": exc.errors()},
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": {"type": "internal"},
            },
        )
