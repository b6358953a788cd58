"""Eager, process-resident index reader (server side).

WHY: A server answers many lookups per second; it should read the index
file once at startup and then serve from memory. A missing or broken
index must not take the whole process down — the server keeps running
in a degraded state and recovers once the file appears.

HOW: load() reads and validates the document, keeping the GlossIndex on
success and logging on failure. While degraded, every query retries
load() before answering; the async path runs that retry in a worker
thread (asyncio.to_thread) so disk I/O never blocks the event loop.
Once loaded the index is never reloaded.

RULES:
- load() never raises; it returns True/False
- Queries while degraded (and still failing) raise IndexUnavailableError
- Missing file and malformed file both count as "unavailable"
- No locking: the loaded GlossIndex is immutable
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from gloss_index.core.index import GlossIndex, load_index
from gloss_index.errors import IndexFormatError, IndexUnavailableError
from gloss_index.readers.base import IndexReader, LookupResult, query_index

logger = logging.getLogger(__name__)


class EagerIndexReader(IndexReader):
    """Reads the index document from disk once, then serves from memory.

    RULES:
    - Construct once per process and call load() at startup
    - index_path is fixed for the reader's lifetime
    """

    def __init__(self, index_path: str | Path) -> None:
        self.index_path = Path(index_path)
        self._index: GlossIndex | None = None
        self._last_error: str | None = None

    @property
    def is_loaded(self) -> bool:
        return self._index is not None

    @property
    def key_count(self) -> int:
        return len(self._index) if self._index is not None else 0

    @property
    def entry_count(self) -> int:
        return self._index.entry_count if self._index is not None else 0

    @property
    def last_error(self) -> str | None:
        """Why the last load attempt failed, or None."""
        return self._last_error

    @property
    def index(self) -> GlossIndex | None:
        return self._index

    def load(self) -> bool:
        """Load the index document if not already loaded.

        WHY: Called at startup and again on each degraded query, so a
        document that appears after startup is picked up without restart.

        RULES:
        - Returns True if an index is in memory afterwards
        - A missing file is logged as a warning, a broken one as an error
        """
        if self._index is not None:
            return True

        if not self.index_path.is_file():
            self._last_error = "Index not found at {}".format(self.index_path)
            logger.warning("Video index not found at %s", self.index_path)
            return False

        try:
            index = load_index(self.index_path)
        except (OSError, IndexFormatError) as exc:
            self._last_error = str(exc)
            logger.error("Failed to load video index from %s: %s", self.index_path, exc)
            return False

        self._index = index
        self._last_error = None
        logger.info("Video index loaded: %d entries", len(index))
        return True

    def find(self, key: str) -> LookupResult:
        """Synchronous lookup, retrying load() first while degraded.

        Raises:
            IndexUnavailableError: If the index is still not loadable.
        """
        if self._index is None:
            self.load()
        return self._query(key)

    async def lookup(self, key: str) -> LookupResult:
        """Async lookup; a degraded retry reads the file off the event loop."""
        if self._index is None:
            await asyncio.to_thread(self.load)
        return self._query(key)

    def _query(self, key: str) -> LookupResult:
        if self._index is None:
            raise IndexUnavailableError(
                "Video index unavailable: {}".format(self._last_error)
            )
        return query_index(self._index, key)
