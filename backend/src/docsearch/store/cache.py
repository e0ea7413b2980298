"""File-backed cache invalidated by modification time."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _Entry(Generic[T]):
    mtime_ns: int
    value: T


class MtimeCache(Generic[T]):
    """Holds the parsed form of one file until the file's mtime changes.

    A hit costs one ``stat`` call. A miss runs ``loader(path)`` in a worker
    thread and replaces the cached entry with a single assignment, so readers
    never see a half-built value. Concurrent misses share one load.
    """

    def __init__(
        self,
        path: Path,
        loader: Callable[[Path], T],
        missing_error: Callable[[Path], Exception] | None = None,
        stat: Callable[[Path], os.stat_result] = os.stat,
    ) -> None:
        """Initialize the cache.

        Args:
            path: File to watch.
            loader: Parses the file; runs off the event loop.
            missing_error: Builds the exception raised when the file is absent.
            stat: ``os.stat`` replacement for tests.
        """
        self._path = Path(path)
        self._loader = loader
        self._missing_error = missing_error
        self._stat = stat
        self._entry: _Entry[T] | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _current_mtime(self) -> int:
        try:
            return self._stat(self._path).st_mtime_ns
        except FileNotFoundError as e:
            if self._missing_error is not None:
                raise self._missing_error(self._path) from e
            raise

    async def get(self) -> T:
        """Return the cached value, reloading if the file changed.

        Raises:
            The ``missing_error`` exception (or FileNotFoundError) if the file
            does not exist, plus whatever the loader raises.
        """
        mtime = self._current_mtime()
        entry = self._entry
        if entry is not None and entry.mtime_ns == mtime:
            return entry.value

        async with self._lock:
            entry = self._entry
            if entry is not None and entry.mtime_ns == mtime:
                return entry.value

            value = await asyncio.to_thread(self._loader, self._path)
            self._entry = _Entry(mtime_ns=mtime, value=value)
            logger.info(f"Loaded {self._path} (mtime_ns={mtime})")
            return value

    def invalidate(self) -> None:
        """Drop the cached value; the next ``get`` reloads."""
        self._entry = None
