"""Database package: declarative base, models and session management."""

from .base import Base
from .session import create_engine_and_sessionmaker

__all__ = ["Base", "create_engine_and_sessionmaker"]
