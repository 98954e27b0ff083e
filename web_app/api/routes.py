"""API routes implementation."""

from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from shortener.common.url_builder import build_short_url
from shortener.errors import ConflictError, ShortenerError

from ..auth import current_user_id, issue_user_id
from ..errors import to_http_error
from ..subnet import require_trusted_subnet
from .schemas import (
    BatchShortenItem,
    BatchShortenResult,
    ShortenRequest,
    ShortenResponse,
    StatsResponse,
    UserURLResponse,
)

router = APIRouter()


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid URL"},
        409: {"model": ShortenResponse, "description": "URL already shortened"},
    },
    summary="Create short URL",
)
async def shorten_url(
    request: Request,
    body: ShortenRequest,
    user_id: int = Depends(issue_user_id),
):
    """Create a shortened URL; a URL shortened before answers 409 with its existing short URL."""
    coder = request.app.state.coder
    config = request.app.state.config

    try:
        code = await coder.to_code(body.url, user_id, timeout=config.request_timeout_seconds)
    except ConflictError as e:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"result": build_short_url(e.code, config.base_url)},
        )
    except ShortenerError as e:
        raise to_http_error(e)

    return ShortenResponse(result=build_short_url(code, config.base_url))


@router.post(
    "/shorten/batch",
    response_model=List[BatchShortenResult],
    status_code=status.HTTP_201_CREATED,
    summary="Create short URLs in batch",
)
async def shorten_batch(
    request: Request,
    body: List[BatchShortenItem],
    user_id: int = Depends(issue_user_id),
):
    """Shorten every URL of the batch; nothing is stored if one of them is invalid."""
    coder = request.app.state.coder
    config = request.app.state.config

    try:
        codes = await coder.to_codes(
            [item.original_url for item in body],
            user_id,
            timeout=config.request_timeout_seconds,
        )
    except ShortenerError as e:
        raise to_http_error(e)

    return [
        BatchShortenResult(
            correlation_id=item.correlation_id,
            short_url=build_short_url(code, config.base_url),
        )
        for item, code in zip(body, codes)
    ]


@router.get(
    "/user/urls",
    response_model=List[UserURLResponse],
    responses={
        204: {"description": "No URLs shortened by this user"},
        401: {"description": "Anonymous user"},
    },
    summary="List the caller's URLs",
)
async def user_urls(request: Request, user_id: int = Depends(current_user_id)):
    coder = request.app.state.coder
    config = request.app.state.config

    if not user_id:
        return Response(status_code=status.HTTP_401_UNAUTHORIZED)

    try:
        history = await coder.get_history(user_id, timeout=config.request_timeout_seconds)
    except ShortenerError as e:
        raise to_http_error(e)

    if not history:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return [
        UserURLResponse(
            short_url=build_short_url(entry.code, config.base_url),
            original_url=entry.original_uri,
        )
        for entry in history
    ]


@router.delete(
    "/user/urls",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Delete the caller's URLs",
    description="Queue the given short codes for deletion. Deletion happens in the background.",
)
async def delete_user_urls(
    request: Request,
    codes: List[str],
    user_id: int = Depends(issue_user_id),
):
    coder = request.app.state.coder
    await coder.delete_urls(codes, user_id)
    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.get(
    "/internal/stats",
    response_model=StatsResponse,
    dependencies=[Depends(require_trusted_subnet)],
    responses={403: {"description": "Caller outside the trusted subnet"}},
    summary="Get statistics",
)
async def get_statistics(request: Request):
    coder = request.app.state.coder
    config = request.app.state.config

    try:
        stats = await coder.get_stats(timeout=config.request_timeout_seconds)
    except ShortenerError as e:
        raise to_http_error(e)

    return StatsResponse(urls=stats.urls, users=stats.users)
