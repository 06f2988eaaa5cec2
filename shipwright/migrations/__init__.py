"""Alembic helpers: env.py runtime and autogenerate against a scratch SQLite database."""

from .workflow import MigrationWorkflow

__all__ = ["MigrationWorkflow"]
