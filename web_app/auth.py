"""Placeholder user identification through a signed cookie.

Each client receives a JWT holding a random user id. It only separates one
client's history from another's; it is not an authentication scheme.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt

TOKEN_COOKIE = "token"
ALGORITHM = "HS256"
ANONYMOUS_USER_ID = 0


def build_token(user_id: int, secret_key: str, ttl_seconds: int) -> str:
    """Sign a token carrying ``user_id``."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
    return jwt.encode({"user_id": user_id, "exp": expire}, secret_key, algorithm=ALGORITHM)


def read_user_id(token: Optional[str], secret_key: str) -> int:
    """Return the user id held by a token, or 0 if it is missing or invalid."""
    if not token:
        return ANONYMOUS_USER_ID
    try:
        claims = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return ANONYMOUS_USER_ID

    user_id = claims.get("user_id")
    if not isinstance(user_id, int) or user_id < 0:
        return ANONYMOUS_USER_ID
    return user_id


async def current_user_id(request: Request) -> int:
    """Dependency: user id from the request cookie, 0 when anonymous."""
    config = request.app.state.config
    return read_user_id(request.cookies.get(TOKEN_COOKIE), config.secret_key)


async def issue_user_id(request: Request) -> int:
    """Dependency: like current_user_id, but enrols anonymous clients.

    A new id is drawn and its token is left on ``request.state`` for
    AuthCookieMiddleware to set on the response.
    """
    user_id = await current_user_id(request)
    if user_id != ANONYMOUS_USER_ID:
        return user_id

    config = request.app.state.config
    user_id = random.randint(1, 999)
    request.state.issued_token = build_token(user_id, config.secret_key, config.token_ttl_seconds)
    return user_id
