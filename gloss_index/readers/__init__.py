"""Index readers — one read contract, two deployment contexts.

WHY: The server pre-loads the index from disk; a client fetches it over
the network on first use. Both answer the same query, so callers receive
an IndexReader and the factory below picks the implementation from the
settings.

HOW: create_reader() maps Settings.index_mode to a reader:
  "eager"  → EagerIndexReader(settings.index_path)
  "cached" → CachedIndexReader over HttpIndexFetcher(settings.resolved_index_url)

RULES:
- Readers are explicitly constructed objects, never module globals
- The eager reader is returned un-loaded; the owner calls load() at startup
"""

from __future__ import annotations

from gloss_index.config import Settings
from gloss_index.readers.base import IndexReader, LookupResult, LookupStatus
from gloss_index.readers.cached import CachedIndexReader, HttpIndexFetcher
from gloss_index.readers.eager import EagerIndexReader

__all__ = [
    "CachedIndexReader",
    "EagerIndexReader",
    "HttpIndexFetcher",
    "IndexReader",
    "LookupResult",
    "LookupStatus",
    "create_reader",
]


def create_reader(settings: Settings | None = None) -> IndexReader:
    """Build the reader for the current deployment context.

    RULES:
    - Unknown modes raise ValueError
    """
    settings = settings or Settings.from_env()
    if settings.index_mode == "eager":
        return EagerIndexReader(settings.index_path)
    if settings.index_mode == "cached":
        return CachedIndexReader.from_url(
            settings.resolved_index_url,
            timeout=settings.fetch_timeout_s,
        )
    raise ValueError("Unknown index mode: {}".format(settings.index_mode))
