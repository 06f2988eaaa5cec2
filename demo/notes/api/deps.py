from __future__ import annotations

from fastapi import Request
from sqlalchemy.orm import Session

from notes.core.settings import Settings
from notes.services.note_service import NoteService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_note_service(request: Request) -> NoteService:
    return request.app.state.note_service


def get_db(request: Request):
    SessionLocal = request.app.state.db_sessionmaker
    db: Session = SessionLocal()  # type: ignore
    try:
        yield db
    finally:
        db.close()
