from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(default="", max_length=100_000)
    pinned: bool = False
    tags: List[str] = Field(default_factory=list, max_length=32)


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    body: Optional[str] = Field(default=None, max_length=100_000)
    pinned: Optional[bool] = None
    tags: Optional[List[str]] = Field(default=None, max_length=32)


class NoteOut(BaseModel):
    id: int
    title: str
    body: str
    pinned: bool
    tags: List[str]
    created_at: dt.datetime
    updated_at: dt.datetime


class NoteList(BaseModel):
    total: int
    items: List[NoteOut]
