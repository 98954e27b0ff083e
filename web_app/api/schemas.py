"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field


class ShortenRequest(BaseModel):
    """Request to shorten a URL."""

    url: str = Field(..., description="The URL to shorten")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://example.com/very/long/path/to/resource"}
            ]
        }
    }


class ShortenResponse(BaseModel):
    """Response after shortening a URL."""

    result: str = Field(..., description="The complete short URL")


class BatchShortenItem(BaseModel):
    """One URL of a batch request."""

    correlation_id: str
    original_url: str


class BatchShortenResult(BaseModel):
    """Short URL produced for one batch item."""

    correlation_id: str
    short_url: str


class UserURLResponse(BaseModel):
    """One entry of the caller's history."""

    short_url: str
    original_url: str


class StatsResponse(BaseModel):
    """Statistics response."""

    urls: int = Field(..., description="Number of stored URLs")
    users: int = Field(..., description="Number of distinct users")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    storage: str = Field(..., description="Storage backend name")
