"""JSON file storage backend."""

import asyncio
import json
import logging
import os
import tempfile
from typing import Dict, Optional

from ..errors import StorageError, StorageUnavailableError
from ..models import ShortLink
from ..shortcode import ShortCodeGenerator
from .memory import MemoryStorage


class FileStorage(MemoryStorage):
    """In-memory map persisted to a JSON file.

    The file holds a single JSON object mapping code to URI and is rewritten
    in full on every insert. Owner ids and deletion flags are not part of
    that layout: rows loaded from disk belong to the anonymous user and
    deletions last for the lifetime of the process.

    Writes are serialised: a ``set`` cancelled by a timeout still waits for
    its write to finish, and a mapping that reached disk stays in the map
    so the file and the map never disagree.

    An empty ``file_path`` disables persistence.
    """

    name = "file"

    def __init__(
        self,
        file_path: str,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        max_collision_retries: int = 5,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize file storage and load existing mappings.

        Args:
            file_path: Path of the JSON file
            short_code_generator: Optional short code generator
            max_collision_retries: Attempts before giving up on a colliding code
            logger: Optional logger instance

        Raises:
            StorageError: If the file exists but is not a JSON object of strings
        """
        super().__init__(
            short_code_generator=short_code_generator,
            max_collision_retries=max_collision_retries,
            logger=logger,
        )
        self.file_path = file_path
        self._lock = asyncio.Lock()
        self._load()

    def _load(self) -> None:
        if not self.file_path:
            return

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            self.logger.info(f"Storage file {self.file_path} not found, starting empty")
            return
        except OSError as e:
            raise StorageError(f"Cannot read storage file {self.file_path}: {e}") from e

        if not content.strip():
            return

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(f"Storage file {self.file_path} is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise StorageError(f"Storage file {self.file_path} must map codes to URIs")

        for code, uri in data.items():
            self._links[code] = ShortLink(code=code, original_uri=uri)

        self.logger.info(f"Loaded {len(data)} mappings from {self.file_path}")

    def _snapshot(self) -> Dict[str, str]:
        return {code: link.original_uri for code, link in self._links.items()}

    def _write(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.file_path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".shortener-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.file_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def _save(self) -> None:
        if not self.file_path:
            return
        try:
            await asyncio.to_thread(self._write, self._snapshot())
        except OSError as e:
            raise StorageError(f"Cannot write storage file {self.file_path}: {e}") from e

    async def set(self, uri: str, owner_id: int = 0) -> str:
        async with self._lock:
            link = self._insert(uri, owner_id)
            # The writer thread cannot be interrupted, so the lock is held
            # until it finishes even if this call is cancelled meanwhile
            write = asyncio.ensure_future(self._save())
            cancelled = False
            while not write.done():
                try:
                    await asyncio.wait({write})
                except asyncio.CancelledError:
                    cancelled = True

            error = write.exception()
            if error is not None:
                # A code is only handed out once it is on disk
                del self._links[link.code]
            if cancelled:
                raise asyncio.CancelledError()
            if error is not None:
                raise error

        self.logger.debug(f"Stored {link.code} -> {uri} (owner {owner_id})")
        return link.code

    async def health_check(self) -> None:
        if not self.file_path:
            return
        directory = os.path.dirname(os.path.abspath(self.file_path))
        if not os.path.isdir(directory) or not os.access(directory, os.W_OK):
            raise StorageUnavailableError(f"Storage directory {directory} is not writable")
