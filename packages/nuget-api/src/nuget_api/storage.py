# SPDX-License-Identifier: MIT
"""Byte-oriented key-value storage for package artifacts.

Three backends share one asynchronous contract:

- ``InMemoryStorage``: process-local dict, used by tests and throwaway feeds
- ``FileStorage``: one file per key under a root directory
- ``DatabaseStorage``: one row per key in a SQLAlchemy table

Writes to different keys are independent; no backend offers atomicity across
keys. Concurrent writes to the same key are last-write-wins.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .db.models import Blob
from .middleware.errors import StorageError

if TYPE_CHECKING:
    from .config import APIConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class KeyNotFoundError(LookupError):
    """Raised when a key has no stored value."""

    def __init__(self, key: Key):
        self.key = key
        super().__init__(f"No value for key '{key}'")


@dataclass(frozen=True, slots=True)
class Key:
    """Storage key made of '/'-separated path parts.

    Parts are never empty, never '.' or '..', and never contain '/', so a key
    always maps to a location strictly inside a backend's namespace.
    """

    parts: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.parts:
            raise ValueError("Key must have at least one part")
        for part in self.parts:
            if not part or part in (".", "..") or "/" in part:
                raise ValueError(f"Invalid key part: {part!r}")

    @classmethod
    def of(cls, *parts: str) -> Key:
        """Create a key from individual parts."""
        return cls(tuple(parts))

    @classmethod
    def parse(cls, value: str) -> Key:
        """Create a key from a '/'-joined string."""
        return cls(tuple(value.split("/")))

    def child(self, part: str) -> Key:
        """Return a key one level below this one."""
        return Key(self.parts + (part,))

    @property
    def parent(self) -> Key | None:
        """Return the key one level above, or None for a single-part key."""
        if len(self.parts) == 1:
            return None
        return Key(self.parts[:-1])

    @property
    def string(self) -> str:
        """Return the '/'-joined form of the key."""
        return "/".join(self.parts)

    def __str__(self) -> str:
        return self.string


class Storage(Protocol):
    """Asynchronous key-value byte store."""

    async def exists(self, key: Key) -> bool:
        """Return True if a value is stored under key."""
        ...

    async def save(self, key: Key, content: bytes) -> None:
        """Store content under key, replacing any previous value."""
        ...

    async def load(self, key: Key) -> AsyncIterator[bytes]:
        """Return a chunk stream of the value stored under key.

        Raises:
            KeyNotFoundError: If nothing is stored under key. Raised before
                any chunk is produced.
        """
        ...


async def read_all(storage: Storage, key: Key) -> bytes:
    """Load the complete value stored under key."""
    chunks = [chunk async for chunk in await storage.load(key)]
    return b"".join(chunks)


class InMemoryStorage:
    """Storage kept in a process-local dict."""

    def __init__(self, chunk_size: int = CHUNK_SIZE):
        self._data: dict[Key, bytes] = {}
        self._chunk_size = chunk_size

    async def exists(self, key: Key) -> bool:
        return key in self._data

    async def save(self, key: Key, content: bytes) -> None:
        self._data[key] = bytes(content)

    async def load(self, key: Key) -> AsyncIterator[bytes]:
        try:
            content = self._data[key]
        except KeyError:
            raise KeyNotFoundError(key) from None
        return self._chunks(content)

    async def _chunks(self, content: bytes) -> AsyncIterator[bytes]:
        for start in range(0, len(content), self._chunk_size):
            yield content[start : start + self._chunk_size]

    def keys(self) -> list[Key]:
        """Return all stored keys in insertion order."""
        return list(self._data)


class FileStorage:
    """Storage with one file per key under a root directory.

    Blocking file operations run in worker threads so the event loop is never
    held for the duration of disk I/O.
    """

    def __init__(self, root: Path | str, chunk_size: int = CHUNK_SIZE):
        self.root = Path(root)
        self._chunk_size = chunk_size

    def _path(self, key: Key) -> Path:
        return self.root.joinpath(*key.parts)

    async def exists(self, key: Key) -> bool:
        return await asyncio.to_thread(self._path(key).is_file)

    async def save(self, key: Key, content: bytes) -> None:
        try:
            await asyncio.to_thread(self._write, self._path(key), content)
        except OSError as e:
            raise StorageError(f"Failed to save '{key}': {e}") from e

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write to a sibling temp file so readers never see a partial value
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def load(self, key: Key) -> AsyncIterator[bytes]:
        path = self._path(key)
        try:
            stream = await asyncio.to_thread(open, path, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise KeyNotFoundError(key) from None
        except OSError as e:
            raise StorageError(f"Failed to load '{key}': {e}") from e
        return self._chunks(stream)

    async def _chunks(self, stream: BinaryIO) -> AsyncIterator[bytes]:
        try:
            while chunk := await asyncio.to_thread(stream.read, self._chunk_size):
                yield chunk
        finally:
            stream.close()


class DatabaseStorage:
    """Storage with one row per key in the ``blobs`` table."""

    def __init__(self, engine: AsyncEngine, chunk_size: int = CHUNK_SIZE):
        self.engine = engine
        self._chunk_size = chunk_size
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def exists(self, key: Key) -> bool:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Blob.key).where(Blob.key == key.string))
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to check '{key}': {e}") from e

    async def save(self, key: Key, content: bytes) -> None:
        try:
            async with self._session_factory() as session:
                await session.merge(Blob(key=key.string, content=bytes(content)))
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save '{key}': {e}") from e

    async def load(self, key: Key) -> AsyncIterator[bytes]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Blob.content).where(Blob.key == key.string))
                content = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load '{key}': {e}") from e
        if content is None:
            raise KeyNotFoundError(key)
        return self._chunks(content)

    async def _chunks(self, content: bytes) -> AsyncIterator[bytes]:
        for start in range(0, len(content), self._chunk_size):
            yield content[start : start + self._chunk_size]


async def create_storage(config: APIConfig) -> Storage:
    """Create the storage backend selected by configuration.

    Args:
        config: API configuration

    Returns:
        Ready-to-use storage backend

    Raises:
        ValueError: If the configured backend is unknown
    """
    backend = config.storage.backend
    if backend == "memory":
        storage: Storage = InMemoryStorage()
    elif backend == "local":
        storage = FileStorage(config.storage.local_path)
    elif backend == "database":
        from .db import init_db

        storage = DatabaseStorage(await init_db(config.database))
    else:
        raise ValueError(f"Unknown storage backend: {backend}")
    logger.info("Using %s storage backend", backend)
    return storage


async def close_storage(storage: Storage) -> None:
    """Release resources held by a storage backend."""
    if isinstance(storage, DatabaseStorage):
        await storage.engine.dispose()
