from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    global _configured
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
    logging.getLogger("shipwright").setLevel(getattr(logging, str(level).upper(), logging.INFO))
    _configured = True


def is_configured() -> bool:
    """True once shipwright installed its own logging setup."""
    return _configured
