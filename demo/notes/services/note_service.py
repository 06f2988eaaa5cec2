from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from notes.db.models import Note, NoteTag

logger = logging.getLogger(__name__)


class NoteNotFound(LookupError):
    pass


def _clean_tags(tags: Iterable[str]) -> List[str]:
    out: List[str] = []
    for t in tags:
        t = str(t).strip().lower()
        if t and t not in out:
            out.append(t)
    return out


class NoteService:
    def list(self, db: Session, *, tag: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[Note]:
        q = select(Note).order_by(Note.pinned.desc(), Note.id.desc())
        if tag:
            q = q.join(NoteTag).where(NoteTag.tag == tag.strip().lower())
        return list(db.scalars(q.limit(limit).offset(offset)).unique())

    def count(self, db: Session) -> int:
        return int(db.scalar(select(func.count(Note.id))) or 0)

    def get(self, db: Session, note_id: int) -> Note:
        note = db.get(Note, note_id)
        if note is None:
            raise NoteNotFound(note_id)
        return note

    def create(self, db: Session, *, title: str, body: str = "", pinned: bool = False, tags: Iterable[str] = ()) -> Note:
        note = Note(title=title.strip(), body=body, pinned=pinned)
        note.tags = [NoteTag(tag=t) for t in _clean_tags(tags)]
        db.add(note)
        db.commit()
        db.refresh(note)
        logger.info("Created note id=%s", note.id)
        return note

    def update(
        self,
        db: Session,
        note_id: int,
        *,
        title: Optional[str] = None,
        body: Optional[str] = None,
        pinned: Optional[bool] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Note:
        note = self.get(db, note_id)
        if title is not None:
            note.title = title.strip()
        if body is not None:
            note.body = body
        if pinned is not None:
            note.pinned = pinned
        if tags is not None:
            # Replace-on-write; flush the removals first so the unique constraint holds.
            note.tags.clear()
            db.flush()
            note.tags.extend(NoteTag(tag=t) for t in _clean_tags(tags))
        db.commit()
        db.refresh(note)
        return note

    def delete(self, db: Session, note_id: int) -> None:
        note = self.get(db, note_id)
        db.delete(note)
        db.commit()
        logger.info("Deleted note id=%s", note_id)
