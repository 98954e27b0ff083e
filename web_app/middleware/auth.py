"""Cookie middleware for issued user tokens."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from ..auth import TOKEN_COOKIE


class AuthCookieMiddleware(BaseHTTPMiddleware):
    """Attach the token issued while handling a request to its response."""
    
    async def dispatch(self, request: Request, call_next: Callable):
        # Creates the shared state dict before the route sees the scope
        request.state.issued_token = None
        response = await call_next(request)
        
        token = request.state.issued_token
        if token:
            config = request.app.state.config
            response.set_cookie(
                TOKEN_COOKIE,
                token,
                max_age=config.token_ttl_seconds,
                httponly=True,
            )
            response.headers["Authorization"] = token
        
        return response
