"""Reader interface and lookup result types.

WHY: The same "resolve a key to a video" contract is served from two
deployment contexts: a server that loads the index from disk at startup,
and a client that fetches it over the network on first use. Callers
should depend on one interface and never know which one is active.

HOW: IndexReader is an ABC with one async query method. LookupResult
carries a three-way status so "no such sign" and "index unavailable"
are never conflated. Readers signal an unavailable index by raising
IndexUnavailableError; the lookup facade converts that into a result.

RULES:
- lookup() receives an already normalized key
- An absent key returns LookupResult.not_found(), never raises
- Readers raise IndexUnavailableError when they have no index to query
- Ties between candidates are resolved by GlossIndex.best()
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass

from gloss_index.core.index import GlossIndex


class LookupStatus(str, enum.Enum):
    """Outcome of a lookup.

    HOW: Inherits from str so values serialize cleanly to JSON.
    """

    FOUND = "found"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class LookupResult:
    """Result of resolving one key.

    RULES:
    - video_url is set only when status is FOUND
    """

    status: LookupStatus
    video_url: str | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @classmethod
    def hit(cls, video_url: str) -> LookupResult:
        return cls(LookupStatus.FOUND, video_url)

    @classmethod
    def not_found(cls) -> LookupResult:
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def unavailable(cls) -> LookupResult:
        return cls(LookupStatus.UNAVAILABLE)


def query_index(index: GlossIndex, key: str) -> LookupResult:
    """Exact-match lookup of a normalized key in a loaded index."""
    entry = index.best(key)
    if entry is None:
        return LookupResult.not_found()
    return LookupResult.hit(entry.video_url)


class IndexReader(ABC):
    """Abstract base for index readers.

    To add a new reader:
    1. Subclass IndexReader
    2. Implement lookup() and is_loaded
    3. Select it in create_reader() in readers/__init__.py
    """

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """True once an index is held in memory."""

    @property
    def key_count(self) -> int:
        """Number of keys in the held index (0 when not loaded)."""
        return 0

    @property
    def entry_count(self) -> int:
        """Number of video candidates in the held index (0 when not loaded)."""
        return 0

    @abstractmethod
    async def lookup(self, key: str) -> LookupResult:
        """Resolve a normalized key.

        Args:
            key: Normalized key (see gloss_index.core.keys.normalize_key).

        Returns:
            LookupResult with status FOUND or NOT_FOUND.

        Raises:
            IndexUnavailableError: If the index cannot be loaded or fetched.
        """
