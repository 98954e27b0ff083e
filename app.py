#!/usr/bin/env python3
"""
Shortener HTTP server.

Usage:
    python app.py

Settings come from the environment or a .env file (see shortener.config),
e.g. DATABASE_DSN or FILE_STORAGE_PATH to pick the backend, REDIS_URL for
the cache, TRUSTED_SUBNET for /api/internal/stats.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from shortener.coder import build_coder
from shortener.config import load_config
from shortener.common.logging_config import setup_logging
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the coder for the lifetime of the server."""
    coder = await build_coder(app.state.config, logger=app.state.logger)
    app.state.coder = coder
    try:
        yield
    finally:
        # Stops the deletion worker after a last flush
        await coder.close()
        app.state.logger.info("Shortener stopped")


def main():
    config = load_config()
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    app = create_app(coder=None, config=config, lifespan=lifespan)
    app.state.logger = logger

    logger.info(f"Serving {config.base_url} on {config.host}:{config.port} ({config.storage_kind} storage)")
    # Request lines are logged by LoggingMiddleware
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
