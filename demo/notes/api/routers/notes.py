from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from notes.api.deps import get_db, get_note_service, get_settings
from notes.api.schemas import NoteCreate, NoteList, NoteOut, NoteUpdate
from notes.core.settings import Settings
from notes.db.models import Note
from notes.services.note_service import NoteService

router = APIRouter(prefix="/api/notes", tags=["notes"])


def _out(note: Note) -> NoteOut:
    return NoteOut(
        id=note.id,
        title=note.title,
        body=note.body,
        pinned=note.pinned,
        tags=[t.tag for t in note.tags],
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


@router.get("", response_model=NoteList)
def list_notes(
    tag: Optional[str] = Query(default=None, max_length=64),
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    svc: NoteService = Depends(get_note_service),
    settings: Settings = Depends(get_settings),
):
    limit = min(limit, settings.max_page_size)
    items = svc.list(db, tag=tag, limit=limit, offset=offset)
    return NoteList(total=svc.count(db), items=[_out(n) for n in items])


@router.post("", response_model=NoteOut, status_code=201)
def create_note(req: NoteCreate, db: Session = Depends(get_db), svc: NoteService = Depends(get_note_service)):
    note = svc.create(db, title=req.title, body=req.body, pinned=req.pinned, tags=req.tags)
    return _out(note)


@router.get("/{note_id}", response_model=NoteOut)
def get_note(note_id: int, db: Session = Depends(get_db), svc: NoteService = Depends(get_note_service)):
    return _out(svc.get(db, note_id))


@router.patch("/{note_id}", response_model=NoteOut)
def update_note(
    note_id: int,
    req: NoteUpdate,
    db: Session = Depends(get_db),
    svc: NoteService = Depends(get_note_service),
):
    fields = req.model_dump(exclude_unset=True)
    return _out(svc.update(db, note_id, **fields))


@router.delete("/{note_id}", status_code=204)
def delete_note(note_id: int, db: Session = Depends(get_db), svc: NoteService = Depends(get_note_service)):
    svc.delete(db, note_id)
    return Response(status_code=204)
