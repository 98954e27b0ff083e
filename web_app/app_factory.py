"""FastAPI application factory."""

from fastapi import FastAPI
from starlette.middleware.gzip import GZipMiddleware

from .api import api_router
from .web import web_router
from .middleware.auth import AuthCookieMiddleware
from .middleware.logging import LoggingMiddleware


def create_app(coder, config, lifespan=None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        coder: Coder instance (may be None when ``lifespan`` creates it)
        config: Configuration instance
        lifespan: Optional lifespan context manager

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Shortener",
        description="URL shortening service",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # Store instances in app state for access in routes
    app.state.coder = coder
    app.state.config = config

    app.add_middleware(AuthCookieMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(LoggingMiddleware)

    # API routes first: the root router ends with a catch-all /{code}
    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, tags=["Web"])

    return app
