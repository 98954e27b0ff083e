"""Translation of core errors into HTTP errors."""

import logging

from fastapi import HTTPException, status

from shortener.errors import (
    ConflictError,
    InvalidURIError,
    NotFoundError,
    RowDeletedError,
    ShortenerError,
    StorageUnavailableError,
)

logger = logging.getLogger("shortener.web")

_STATUS_BY_ERROR = (
    (InvalidURIError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (RowDeletedError, status.HTTP_410_GONE),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StorageUnavailableError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_error(error: ShortenerError) -> HTTPException:
    """Map a core error onto the matching HTTPException."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if status_code >= 500:
        logger.error(f"Storage failure: {error}")

    return HTTPException(status_code=status_code, detail=str(error))
