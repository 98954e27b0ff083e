"""Plain-text and redirect routes served at the root."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from shortener.common.url_builder import build_short_url
from shortener.errors import ConflictError, ShortenerError
from shortener.shortcode import ShortCodeGenerator

from ..auth import issue_user_id
from ..errors import to_http_error
from ..api.schemas import HealthResponse

router = APIRouter()


@router.post("/", response_class=PlainTextResponse, status_code=status.HTTP_201_CREATED)
async def shorten_plain(request: Request, user_id: int = Depends(issue_user_id)):
    """Shorten the URL sent as the raw request body."""
    coder = request.app.state.coder
    config = request.app.state.config

    uri = (await request.body()).decode("utf-8", errors="replace").strip()
    try:
        code = await coder.to_code(uri, user_id, timeout=config.request_timeout_seconds)
    except ConflictError as e:
        return PlainTextResponse(
            build_short_url(e.code, config.base_url),
            status_code=status.HTTP_409_CONFLICT,
        )
    except ShortenerError as e:
        raise to_http_error(e)

    return PlainTextResponse(build_short_url(code, config.base_url), status_code=status.HTTP_201_CREATED)


@router.get("/ping", response_model=HealthResponse)
async def ping(request: Request):
    """Storage health check."""
    coder = request.app.state.coder
    config = request.app.state.config

    try:
        await coder.health_check(timeout=config.health_timeout_seconds)
    except ShortenerError as e:
        raise to_http_error(e)

    return HealthResponse(status="healthy", storage=coder.storage.name)


@router.get("/{code}", include_in_schema=False)
async def redirect_to_url(request: Request, code: str, user_id: int = Depends(issue_user_id)):
    """Redirect to the original URL."""
    coder = request.app.state.coder
    config = request.app.state.config

    if not ShortCodeGenerator.is_valid_format(code):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Short code '{code}' not found")

    try:
        uri = await coder.to_uri(code, user_id, timeout=config.request_timeout_seconds)
    except ShortenerError as e:
        raise to_http_error(e)

    return RedirectResponse(url=uri, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
