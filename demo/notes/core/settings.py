from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_bool(key: str, default: str = "1") -> bool:
    return os.getenv(key, default).strip().lower() not in ("0", "false", "no", "off")


def _env_int(key: str, default: str) -> int:
    raw = os.getenv(key, default)
    try:
        return int(str(raw).strip())
    except Exception:
        return int(default)


@dataclass(frozen=True, slots=True)
class Settings:
    # Read once at startup.
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./notes.db"))
    db_echo: bool = field(default_factory=lambda: _env_bool("DB_ECHO", "0"))
    # NOTE: In production, run the migrations (shipwright db upgrade). AUTO_CREATE_DB is a dev/test escape hatch.
    auto_create_db: bool = field(default_factory=lambda: _env_bool("AUTO_CREATE_DB", "0"))

    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("PORT", "8000"))

    max_page_size: int = field(default_factory=lambda: _env_int("MAX_PAGE_SIZE", "100"))
