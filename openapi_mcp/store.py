"""
API Store

Owns the in-memory ApiStore document and its backing JSON file. Access to
the document goes through `read()` / `write()` so concurrent tasks see it
under a reader/writer discipline.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Union

import pydantic

from .base import CorruptStoreError, PersistenceError
from .models import ApiStore
from .rwlock import AsyncRWLock

logger = logging.getLogger(__name__)


class Store:
    """File-backed holder of the ApiStore document."""

    def __init__(self, path: Union[str, Path], document: ApiStore = None):
        self.path = Path(path)
        self._document = document if document is not None else ApiStore()
        self._lock = AsyncRWLock()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Store":
        """
        Load the document from `path`, or start from an empty default
        document when the file does not exist.

        Raises:
            CorruptStoreError: the file exists but is not a valid store document
            PersistenceError: the file exists but cannot be read
        """
        path = Path(path)

        if not path.exists():
            logger.info(f"No store file at {path}, starting with an empty store")
            return cls(path)

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read API store file {path}: {e}")

        try:
            data = json.loads(content)
            document = ApiStore.model_validate(data)
        except (json.JSONDecodeError, pydantic.ValidationError) as e:
            raise CorruptStoreError(f"Failed to parse API store file {path}: {e}")

        logger.info(f"Loaded {len(document.apis)} APIs from {path}")
        return cls(path, document)

    @asynccontextmanager
    async def read(self) -> AsyncIterator[ApiStore]:
        """Shared access; callers must not mutate the yielded document."""
        async with self._lock.read():
            yield self._document

    @asynccontextmanager
    async def write(self) -> AsyncIterator[ApiStore]:
        """Exclusive access for in-memory mutation."""
        async with self._lock.write():
            yield self._document

    def serialize(self) -> str:
        return json.dumps(self._document.to_document(), ensure_ascii=False, indent=2)

    async def persist(self) -> None:
        """
        Rewrite the backing file with the full document.

        Raises:
            PersistenceError: the file or its parent directories cannot be written
        """
        async with self._lock.read():
            content = self.serialize()
        await asyncio.to_thread(self._write_file, content)

    def _write_file(self, content: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to write API store file {self.path}: {e}")
        logger.debug(f"Saved API store to {self.path}")
