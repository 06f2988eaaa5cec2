from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config
from alembic.util import CommandError
from sqlalchemy import MetaData, create_engine
from sqlalchemy.pool import NullPool

from shipwright.core.settings import Settings
from shipwright.errors import MigrationError

logger = logging.getLogger(__name__)

ENV_PY = '''\
from alembic import context

from shipwright.migrations.environment import run_migrations

run_migrations(context)
'''

_SQLITE_SIDE_FILES = ("-journal", "-wal", "-shm")


class MigrationWorkflow:
    """Alembic commands for one application.

    ``autogenerate`` never touches the application's real database: it replays
    the existing revisions on a scratch SQLite file, diffs that schema against
    the models and deletes the file again, whatever the outcome.
    """

    def __init__(self, settings: Optional[Settings] = None, *, target_metadata: Optional[MetaData] = None) -> None:
        self.settings = settings or Settings()
        self.target_metadata = target_metadata

    def alembic_config(self, settings: Optional[Settings] = None) -> Config:
        settings = settings or self.settings
        cfg = Config(str(Path(settings.alembic_config_file)))
        cfg.set_main_option("script_location", str(Path(settings.migrations_dir).resolve()))
        # ConfigParser interpolation
        cfg.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))
        cfg.attributes["settings"] = settings
        cfg.attributes["configure_logger"] = False
        if self.target_metadata is not None:
            cfg.attributes["target_metadata"] = self.target_metadata
        return cfg

    # ---- repository / database commands ----

    def init(self, directory: Optional[str] = None) -> Path:
        """Create a migration repository whose env.py delegates to shipwright."""
        target = Path(directory or self.settings.migrations_dir)
        cfg = self.alembic_config()
        try:
            command.init(cfg, str(target), template="generic")
        except CommandError as e:
            raise MigrationError(str(e), step="init") from e
        (target / "env.py").write_text(ENV_PY, encoding="utf-8")
        logger.info("Initialized migration repository in %s", target)
        return target

    def upgrade(self, revision: str = "head") -> None:
        cfg = self.alembic_config()
        try:
            command.upgrade(cfg, revision)
        except Exception as e:
            raise MigrationError(f"Upgrade to {revision} failed: {e}", step="upgrade") from e
        logger.info("Database upgraded to %s", revision)

    # ---- autogenerate on a scratch database ----

    def temp_database_path(self) -> Path:
        return Path(self.settings.migration_temp_db).resolve()

    def discard_temp_database(self) -> List[Path]:
        temp = self.temp_database_path()
        removed: List[Path] = []
        for p in [temp] + [temp.with_name(temp.name + s) for s in _SQLITE_SIDE_FILES]:
            if p.exists():
                p.unlink()
                removed.append(p)
        if removed:
            logger.debug("Removed scratch database files: %s", ", ".join(str(p) for p in removed))
        return removed

    def _discard_after_run(self) -> None:
        # must not mask the error that ended the run
        try:
            self.discard_temp_database()
        except OSError as e:
            logger.error("Could not remove scratch database %s: %s", self.temp_database_path(), e)

    def _create_temp_database(self, url: str) -> None:
        engine = create_engine(url, poolclass=NullPool, future=True)
        try:
            with engine.connect():
                pass
        finally:
            engine.dispose()

    def autogenerate(self, message: str) -> Optional[Path]:
        """Write a new revision for model changes; ``None`` when there are none."""
        temp = self.temp_database_path()

        stale = self.discard_temp_database()
        if stale:
            logger.warning("Removed leftover scratch database from a previous run: %s", temp)

        try:
            scratch = replace(self.settings, database_url=f"sqlite:///{temp.as_posix()}")
            self._create_temp_database(scratch.database_url)
            cfg = self.alembic_config(scratch)

            logger.info("Replaying existing migrations on %s", temp.name)
            try:
                command.upgrade(cfg, "head")
            except Exception as e:
                raise MigrationError(f"Existing migrations failed to apply: {e}", step="upgrade") from e

            cfg.attributes["autogenerate"] = True
            try:
                result = command.revision(cfg, message=message, autogenerate=True)
            except Exception as e:
                raise MigrationError(f"Autogenerate failed: {e}", step="autogenerate") from e
        finally:
            self._discard_after_run()

        if isinstance(result, list):
            scripts = [s for s in result if s is not None]
        else:
            scripts = [result] if result is not None else []
        if not scripts:
            logger.info("Models match the migration history; no revision written")
            return None

        path = Path(scripts[0].path)
        logger.info("Generated %s", path.name)
        return path
