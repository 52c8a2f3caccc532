"""
Start the ChatPulse API under uvicorn.

Usage:
    python run.py

Environment variables (set in .env file):
    DEBUG=true - Debug logging and auto-reload
    HOST / PORT - Bind address (default 127.0.0.1:8000)
    REFERENCE_TIMEZONE - Day bucketing timezone (default UTC)
"""

import logging
import os

import uvicorn

from app.config import get_settings

logger = logging.getLogger("app.run")


def main() -> None:
    settings = get_settings()
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    log_level = "debug" if settings.debug else "info"

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        f"Starting {settings.app_name} on http://{host}:{port} "
        f"(log level {log_level}, timezone {settings.reference_timezone}, docs at /docs)"
    )

    # Single process: the in-memory store and workers live in it
    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level=log_level,
        access_log=True,
    )


if __name__ == "__main__":
    main()
