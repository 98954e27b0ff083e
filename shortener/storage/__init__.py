"""Storage backends for the shortener."""

import logging
from typing import Optional

from .base import StorageBase
from .memory import MemoryStorage
from .file import FileStorage
from .database import DatabaseStorage
from ..config import Config
from ..shortcode import ShortCodeGenerator

__all__ = [
    "StorageBase",
    "MemoryStorage",
    "FileStorage",
    "DatabaseStorage",
    "build_storage",
]


def build_storage(config: Config, logger: Optional[logging.Logger] = None) -> StorageBase:
    """Create the storage backend selected by the configuration.

    Precedence: database DSN, then file path, then in-memory.

    Args:
        config: Application configuration
        logger: Optional logger passed to the backend

    Returns:
        Storage backend instance
    """
    generator = ShortCodeGenerator(default_length=config.short_code_length)

    if config.database_dsn:
        return DatabaseStorage(
            dsn=config.database_dsn,
            short_code_generator=generator,
            max_collision_retries=config.max_collision_retries,
            pool_max_size=config.db_pool_max_size,
            connection_timeout_seconds=config.db_connection_timeout_seconds,
            logger=logger,
        )

    if config.file_storage_path:
        return FileStorage(
            file_path=config.file_storage_path,
            short_code_generator=generator,
            max_collision_retries=config.max_collision_retries,
            logger=logger,
        )

    return MemoryStorage(
        short_code_generator=generator,
        max_collision_retries=config.max_collision_retries,
        logger=logger,
    )
