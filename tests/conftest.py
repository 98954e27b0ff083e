"""Pytest configuration and fixtures."""

import pytest
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient

from shortener.coder import Coder
from shortener.common.logging_config import setup_logging
from shortener.config import Config
from shortener.shortcode import ShortCodeGenerator
from shortener.storage import FileStorage, MemoryStorage
from web_app import create_app


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=8)


@pytest.fixture
def memory_storage(short_code_generator, logger):
    """Create in-memory storage."""
    return MemoryStorage(short_code_generator=short_code_generator, logger=logger)


@pytest.fixture
def storage_path(tmp_path):
    """Path of a not yet existing storage file."""
    return str(tmp_path / "urls.json")


@pytest.fixture
def file_storage(storage_path, short_code_generator, logger):
    """Create file storage in a temporary directory."""
    return FileStorage(
        file_path=storage_path,
        short_code_generator=short_code_generator,
        logger=logger,
    )


@pytest.fixture
async def coder(memory_storage, logger) -> AsyncGenerator[Coder, None]:
    """Create coder over in-memory storage with a short flush interval."""
    instance = Coder(memory_storage, logger=logger, flush_interval=0.05)

    yield instance

    await instance.close()


@pytest.fixture
def config():
    """Create test configuration."""
    return Config(
        base_url="http://testserver",
        trusted_subnet="10.0.0.0/24",
        secret_key="test-secret",
        _env_file=None,
    )


@pytest.fixture
def app(coder, config):
    """Create test FastAPI app."""
    return create_app(coder=coder, config=config)


@pytest.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
