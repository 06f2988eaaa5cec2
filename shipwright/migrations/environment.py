"""Runtime for Alembic's ``env.py``.

A migration repository's ``env.py`` only needs::

    from alembic import context

    from shipwright.migrations.environment import run_migrations

    run_migrations(context)

The database URL comes from ``Settings`` (``DATABASE_URL``) unless the caller
put a ``Settings`` instance in ``config.attributes["settings"]``. Target
metadata comes from ``config.attributes["target_metadata"]`` or the
``TARGET_METADATA`` import path.
"""

from __future__ import annotations

import importlib
import logging
from logging.config import fileConfig
from typing import Any, Optional

from sqlalchemy import MetaData, create_engine
from sqlalchemy.pool import NullPool

from shipwright.core.logging import is_configured
from shipwright.core.settings import Settings
from shipwright.errors import ConfigError

logger = logging.getLogger(__name__)


def load_metadata(import_path: str) -> MetaData:
    """Resolve ``"package.module:Base.metadata"`` to a MetaData object."""
    module_name, _, attr_path = import_path.partition(":")
    if not module_name or not attr_path:
        raise ConfigError(f"TARGET_METADATA must look like 'module:attr', got {import_path!r}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import {module_name!r} for target metadata") from e
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigError(f"{import_path!r}: no attribute {part!r}") from e
    if not isinstance(obj, MetaData):
        raise ConfigError(f"{import_path!r} is not a sqlalchemy MetaData")
    return obj


def _settings(config) -> Settings:
    return config.attributes.get("settings") or Settings()


def _target_metadata(config, settings: Settings) -> MetaData:
    md: Optional[MetaData] = config.attributes.get("target_metadata")
    if md is not None:
        return md
    return load_metadata(settings.target_metadata)


def _skip_empty_revisions(config):
    def process_revision_directives(context, revision, directives):
        autogenerate = config.attributes.get("autogenerate") or getattr(config.cmd_opts, "autogenerate", False)
        if not autogenerate or not directives:
            return
        script = directives[0]
        if script.upgrade_ops.is_empty():
            logger.info("No schema changes detected")
            directives[:] = []

    return process_revision_directives


def run_migrations(context) -> None:
    config = context.config

    configure_logger = config.attributes.get("configure_logger", True)
    if config.config_file_name is not None and configure_logger and not is_configured():
        fileConfig(config.config_file_name, disable_existing_loggers=False)

    settings = _settings(config)
    target_metadata = _target_metadata(config, settings)
    url = settings.database_url
    is_sqlite = url.startswith("sqlite")

    opts = dict(
        target_metadata=target_metadata,
        render_as_batch=is_sqlite,
        compare_type=True,
        process_revision_directives=_skip_empty_revisions(config),
    )

    if context.is_offline_mode():
        context.configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"}, **opts)
        with context.begin_transaction():
            context.run_migrations()
        return

    # NullPool so the SQLite file is released as soon as the run ends.
    engine = create_engine(url, poolclass=NullPool, future=True)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **opts)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()
