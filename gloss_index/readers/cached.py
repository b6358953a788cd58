"""Lazy, single-flight cached index reader (client side) and HTTP fetcher.

WHY: A client (browser-side service, translation worker) should not pay
for the index until the first gloss is resolved, and a burst of
concurrent lookups at startup must not fetch the same document N times.
A transient network failure must not poison the cache either.

HOW: The first lookup starts one fetch as an asyncio.Task and parks it in
an in-flight slot. Every lookup that arrives while it runs awaits that
same task (a shared future, not a polling loop). On success the parsed
GlossIndex is cached for the reader's lifetime; on failure the slot is
cleared so the next lookup starts a fresh fetch. HttpIndexFetcher is the
default fetch callable, built on httpx.AsyncClient.

RULES:
- At most one fetch in flight at a time
- All callers attached to a fetch observe the same index or the same error
- Success is cached; failure is not
- Callers await through asyncio.shield(): cancelling one caller does not
  cancel the shared fetch
- No timeout here; the transport (httpx) owns timeouts
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from gloss_index.core.index import GlossIndex
from gloss_index.errors import IndexFetchError, IndexFormatError, IndexUnavailableError
from gloss_index.readers.base import IndexReader, LookupResult, query_index

logger = logging.getLogger(__name__)

FetchDocument = Callable[[], Awaitable[Any]]
"""Async callable returning the decoded index document (a dict)."""


class HttpIndexFetcher:
    """Fetches the index document over HTTP.

    WHY: The document is published as a static file next to the media
    (``/matignon/index.json``). The cached reader only needs "give me the
    document"; this class owns the HTTP details.

    HOW: Each call GETs the URL with httpx.AsyncClient. A shared client
    can be injected (connection pooling, tests with MockTransport);
    otherwise a short-lived client is opened per fetch.

    RULES:
    - Non-200 responses raise IndexFetchError with the status code
    - Transport errors raise IndexFetchError with status_code=None
    - Bodies that are not JSON raise IndexFormatError
    """

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.url = url
        self._client = client
        self._timeout = timeout

    async def __call__(self) -> Any:
        if self._client is not None:
            return await self._fetch(self._client)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
            return await self._fetch(client)

    async def _fetch(self, client: httpx.AsyncClient) -> Any:
        try:
            resp = await client.get(self.url)
        except httpx.HTTPError as exc:
            raise IndexFetchError(None, str(exc) or type(exc).__name__) from exc

        if resp.status_code != 200:
            raise IndexFetchError(resp.status_code, resp.reason_phrase or resp.text)

        try:
            return resp.json()
        except ValueError as exc:
            raise IndexFormatError("Index document is not valid JSON: {}".format(exc)) from exc


class CachedIndexReader(IndexReader):
    """Fetches the index on first use, memoizes it, de-duplicates fetches.

    RULES:
    - fetch is called at most once per successful load
    - A loaded index is kept for the reader's lifetime
    """

    def __init__(self, fetch: FetchDocument) -> None:
        self._fetch = fetch
        self._index: GlossIndex | None = None
        self._inflight: asyncio.Task[GlossIndex] | None = None
        self.fetch_count = 0

    @classmethod
    def from_url(
        cls,
        url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> CachedIndexReader:
        return cls(HttpIndexFetcher(url, client=client, timeout=timeout))

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
    def is_fetching(self) -> bool:
        return self._inflight is not None

    async def ensure_loaded(self) -> GlossIndex:
        """Return the cached index, fetching it (once) if needed.

        Raises:
            IndexUnavailableError: If the fetch this caller attached to failed.
        """
        if self._index is not None:
            return self._index
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._inflight)

    async def _load(self) -> GlossIndex:
        """Run one fetch; update the cache and clear the in-flight slot."""
        self.fetch_count += 1
        try:
            document = await self._fetch()
            index = GlossIndex.from_document(document)
        except IndexUnavailableError as exc:
            logger.error("Failed to load video index: %s", exc)
            raise
        except Exception as exc:
            logger.error("Error loading video index: %s", exc)
            raise IndexUnavailableError("Video index unavailable: {}".format(exc)) from exc
        finally:
            self._inflight = None

        self._index = index
        logger.info("Video index fetched: %d entries", len(index))
        return index

    async def lookup(self, key: str) -> LookupResult:
        index = await self.ensure_loaded()
        return query_index(index, key)
