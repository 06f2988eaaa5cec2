from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# Register the mapped classes on Base.metadata for Alembic autogenerate.
from notes.db import models  # noqa: E402,F401
