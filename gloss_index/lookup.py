"""Gloss lookup facade and translation enrichment.

WHY: External callers (the translation-enrichment step, the HTTP
endpoint, the CLI) need one operation — "resolve gloss to video" — that
normalizes the gloss, queries whichever reader is active, and never
fails just because a video is missing.

HOW: GlossLookup wraps an IndexReader and an optional mapping of curated
overrides. lookup() returns a three-way LookupResult; resolve() collapses
it to a URL or None. The enrichment helpers resolve every gloss of a
translation concurrently with asyncio.gather and reassemble results in
the original order. create_lookup() wires the overrides file from
Settings.

RULES:
- Gloss strings are normalized with normalize_key() before querying
- Blank / punctuation-only glosses are NOT_FOUND without touching the reader
- A curated override wins over the index, even while the index is unavailable
- IndexUnavailableError becomes LookupStatus.UNAVAILABLE; it never escapes
- Enrichment preserves order and never raises for video resolution
- The facade does not expose which reader implementation it wraps
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Mapping, Sequence

from gloss_index.config import Settings
from gloss_index.core.index import load_overrides
from gloss_index.core.keys import normalize_key
from gloss_index.errors import IndexFormatError, IndexUnavailableError
from gloss_index.models import Gloss, TranslationResult
from gloss_index.readers.base import IndexReader, LookupResult

logger = logging.getLogger(__name__)


class GlossLookup:
    """Single entry point for resolving glosses to video fragment URLs.

    RULES:
    - Override keys are normalized on construction; the first spelling
      of a key wins and keys that normalize to "" are dropped
    """

    def __init__(
        self,
        reader: IndexReader,
        overrides: Mapping[str, str] | None = None,
    ) -> None:
        self._reader = reader
        self._overrides: dict[str, str] = {}
        for gloss, url in (overrides or {}).items():
            key = normalize_key(gloss)
            if key and key not in self._overrides:
                self._overrides[key] = url

    @property
    def is_ready(self) -> bool:
        """True if the underlying index is loaded."""
        return self._reader.is_loaded

    @property
    def override_count(self) -> int:
        return len(self._overrides)

    async def lookup(self, gloss: str) -> LookupResult:
        """Resolve a display-form gloss to a LookupResult.

        RULES:
        - FOUND carries the override URL if one exists, else the
          best-ranked fragment URL
        - NOT_FOUND for unknown or blank glosses
        - UNAVAILABLE when the reader has no index and no override matches
        """
        key = normalize_key(gloss)
        if not key:
            return LookupResult.not_found()
        override = self._overrides.get(key)
        if override is not None:
            return LookupResult.hit(override)
        try:
            return await self._reader.lookup(key)
        except IndexUnavailableError as exc:
            logger.warning("Video lookup for %s skipped: %s", key, exc)
            return LookupResult.unavailable()

    async def resolve(self, gloss: str) -> str | None:
        """Resolve a gloss to a fragment URL, or None if there is no video."""
        result = await self.lookup(gloss)
        return result.video_url if result.found else None

    async def resolve_many(self, glosses: Sequence[str]) -> list[str | None]:
        """Resolve several glosses concurrently, preserving order."""
        return list(await asyncio.gather(*(self.resolve(g) for g in glosses)))

    async def enrich_glosses(self, glosses: Sequence[Gloss]) -> list[Gloss]:
        """Return copies of ``glosses`` with video_url filled in.

        WHY: A translation is still useful without videos. Each gloss is
        resolved independently; a missing video leaves video_url as None.
        """
        urls = await self.resolve_many([g.gloss for g in glosses])
        return [dataclasses.replace(g, video_url=url) for g, url in zip(glosses, urls)]

    async def enrich_translation(self, result: TranslationResult) -> TranslationResult:
        """Return a copy of ``result`` whose glosses carry video URLs."""
        glosses = await self.enrich_glosses(result.glosses)
        found = sum(1 for g in glosses if g.video_url)
        logger.info("Resolved videos for %d/%d glosses", found, len(glosses))
        return dataclasses.replace(result, glosses=glosses)


def create_lookup(reader: IndexReader, settings: Settings) -> GlossLookup:
    """Build a GlossLookup, loading curated overrides if configured.

    RULES:
    - No GLOSS_OVERRIDES_FILE → no overrides
    - An unreadable or invalid overrides file is logged and ignored; the
      index alone still serves lookups
    """
    path = settings.overrides_path
    if path is None:
        return GlossLookup(reader)
    try:
        overrides = load_overrides(path)
    except (OSError, IndexFormatError) as exc:
        logger.error("Ignoring video overrides file %s: %s", path, exc)
        return GlossLookup(reader)
    lookup = GlossLookup(reader, overrides)
    logger.info("Loaded %d video overrides from %s", lookup.override_count, path)
    return lookup
