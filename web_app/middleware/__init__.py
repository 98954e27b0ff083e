"""Middleware for the shortener web app."""

from .auth import AuthCookieMiddleware
from .logging import LoggingMiddleware

__all__ = ["AuthCookieMiddleware", "LoggingMiddleware"]
