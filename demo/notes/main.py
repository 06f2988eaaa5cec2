"""Entry point. Kept as plain source in the wheel so it can be run directly."""

from __future__ import annotations

import logging

import uvicorn

from notes.api.app import create_app
from notes.core.settings import Settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def main() -> None:
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
