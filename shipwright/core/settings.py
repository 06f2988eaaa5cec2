from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_str(key: str, default: str) -> str:
    return os.getenv(key, default).strip() or default


@dataclass(frozen=True, slots=True)
class Settings:
    # Paths are relative to the working directory unless absolute.
    build_config_file: str = field(default_factory=lambda: _env_str("SHIPWRIGHT_CONFIG", "shipwright.yaml"))
    dist_dir: str = field(default_factory=lambda: _env_str("DIST_DIR", "dist"))

    # Database of the application whose models are migrated.
    database_url: str = field(default_factory=lambda: _env_str("DATABASE_URL", "sqlite:///./app.db"))

    # Alembic
    alembic_config_file: str = field(default_factory=lambda: _env_str("ALEMBIC_CONFIG", "alembic.ini"))
    migrations_dir: str = field(default_factory=lambda: _env_str("MIGRATIONS_DIR", "alembic"))
    # Scratch database for autogenerate. Created and deleted by every run; not safe
    # for concurrent runs sharing the same path.
    migration_temp_db: str = field(default_factory=lambda: _env_str("MIGRATION_TEMP_DB", ".autogen.db"))
    # "module:attr" import path of the application's MetaData.
    target_metadata: str = field(
        default_factory=lambda: _env_str("TARGET_METADATA", "notes.db.base:Base.metadata")
    )

    log_level: str = field(default_factory=lambda: _env_str("LOG_LEVEL", "INFO").upper())
