"""GlossIndex data structures and the JSON index document format.

WHY: The builder and the readers run in different processes (often on
different machines). The index document is the only thing they share,
so its shape is defined once here, validated with jsonschema on load,
and serialized deterministically so rebuilds are byte-identical.

HOW: Two pieces form the in-memory side:
  VideoEntry  — one candidate video fragment for a key (url, source, score)
  GlossIndex  — immutable mapping key → non-empty tuple of VideoEntry
The document side is a JSON object ``{KEY: [{videoUrl, source, score}]}``
described by INDEX_DOCUMENT_SCHEMA.

RULES:
- A key present in the index always has at least one entry
- Entries keep first-encountered order; best() picks the highest score
  and breaks ties on that order (stable), never on dict iteration
- GlossIndex is never mutated after construction
- dump_index() sorts top-level keys and preserves entry order
- Fragment URLs use the media fragment syntax ``path#t=start,end``
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

import jsonschema

from gloss_index.errors import IndexFormatError

INDEX_DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Gloss video index",
    "type": "object",
    "additionalProperties": {
        "type": "array",
        "minItems": 1,
        "items": {
            "type": "object",
            "required": ["videoUrl", "source", "score"],
            "properties": {
                "videoUrl": {"type": "string", "minLength": 1},
                "source": {"type": "string"},
                "score": {"type": "number"},
            },
        },
    },
}

_FRAGMENT_RE = re.compile(r"^(?P<path>[^#]*)#t=(?P<start>[0-9.]+)(?:,(?P<end>[0-9.]+))?$")


# ---------------------------------------------------------------------------
# Fragment URLs
# ---------------------------------------------------------------------------


def format_seconds(value: float) -> str:
    """Render seconds with up to millisecond precision and no trailing zeros.

    RULES:
    - 0.0 → "0", 1.5 → "1.5", 3.4 → "3.4", 12.125 → "12.125"
    """
    text = "{:.3f}".format(value).rstrip("0").rstrip(".")
    return text or "0"


def format_fragment_url(media_path: str, start: float, end: float) -> str:
    """Build a media fragment URL ``<media_path>#t=<start>,<end>``."""
    return "{}#t={},{}".format(media_path, format_seconds(start), format_seconds(end))


def parse_fragment_url(url: str) -> tuple[str, float, float | None]:
    """Split a media fragment URL into (path, start, end).

    WHY: Consumers that cannot seek by URL fragment (e.g. an ffmpeg
    slicing step) need the offsets back as numbers.

    RULES:
    - ``#t=start`` without an end returns end=None
    - Raises ValueError if the URL carries no ``#t=`` fragment
    """
    match = _FRAGMENT_RE.match(url)
    if match is None:
        raise ValueError("Not a media fragment URL: {!r}".format(url))
    end = match.group("end")
    return (
        match.group("path"),
        float(match.group("start")),
        float(end) if end is not None else None,
    )


# ---------------------------------------------------------------------------
# In-memory index
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VideoEntry:
    """One candidate video fragment for a key.

    RULES:
    - video_url: fragment URL (media path + ``#t=start,end``)
    - source: provenance label, e.g. "Matignon-LSF"
    - score: higher is better; the builder assigns a uniform base score
    """

    video_url: str
    source: str
    score: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VideoEntry:
        return cls(
            video_url=data["videoUrl"],
            source=data["source"],
            score=float(data["score"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"videoUrl": self.video_url, "source": self.source, "score": self.score}


def best_entry(entries: Iterable[VideoEntry]) -> VideoEntry | None:
    """Pick the highest-scoring entry; the earliest one wins a tie.

    HOW: A single forward scan that only replaces the current best on a
    strictly greater score, which is exactly a stable descending sort's
    first element.
    """
    best: VideoEntry | None = None
    for entry in entries:
        if best is None or entry.score > best.score:
            best = entry
    return best


class GlossIndex(Mapping[str, "tuple[VideoEntry, ...]"]):
    """Immutable mapping from normalized key to candidate video fragments.

    WHY: Readers hold the loaded index for the lifetime of a process and
    share it between concurrent requests. Making it read-only removes the
    need for locking.

    HOW: Wraps a MappingProxyType over a dict of tuples. Construction
    drops empty candidate lists so "present" always means "has a video".

    RULES:
    - Keys are expected in normalized form; no normalization happens here
    - get()/[] return a tuple in first-encountered order
    - best(key) returns None for unknown keys, never raises
    """

    def __init__(self, entries: Mapping[str, Iterable[VideoEntry]] | None = None) -> None:
        data: dict[str, tuple[VideoEntry, ...]] = {}
        for key, candidates in (entries or {}).items():
            frozen = tuple(candidates)
            if frozen:
                data[key] = frozen
        self._data = MappingProxyType(data)

    def __getitem__(self, key: str) -> tuple[VideoEntry, ...]:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return "GlossIndex({} keys)".format(len(self._data))

    @property
    def entry_count(self) -> int:
        """Total number of candidates across all keys."""
        return sum(len(candidates) for candidates in self._data.values())

    def best(self, key: str) -> VideoEntry | None:
        """Return the best candidate for ``key``, or None if absent."""
        candidates = self._data.get(key)
        if not candidates:
            return None
        return best_entry(candidates)

    # ------------------------------------------------------------------
    # Document conversion
    # ------------------------------------------------------------------

    @classmethod
    def from_document(cls, document: Any) -> GlossIndex:
        """Build a GlossIndex from a decoded index document.

        RULES:
        - Raises IndexFormatError if the document violates INDEX_DOCUMENT_SCHEMA
        """
        try:
            jsonschema.validate(instance=document, schema=INDEX_DOCUMENT_SCHEMA)
        except jsonschema.ValidationError as exc:
            raise IndexFormatError(
                "Invalid index document at {}: {}".format(
                    "/".join(str(p) for p in exc.absolute_path) or "<root>",
                    exc.message,
                )
            ) from exc

        return cls({
            key: [VideoEntry.from_dict(item) for item in items]
            for key, items in document.items()
        })

    def to_document(self) -> dict[str, list[dict[str, Any]]]:
        """Convert to the JSON-ready document form, keys sorted."""
        return {
            key: [entry.to_dict() for entry in self._data[key]]
            for key in sorted(self._data)
        }


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def dump_index(index: GlossIndex) -> str:
    """Serialize an index to its JSON text form.

    RULES:
    - Deterministic: same index → same bytes
    - indent=2, non-ASCII kept as-is, trailing newline
    """
    return json.dumps(index.to_document(), indent=2, ensure_ascii=False) + "\n"


def loads_index(text: str | bytes) -> GlossIndex:
    """Parse index JSON text.

    RULES:
    - Invalid JSON and schema violations both raise IndexFormatError
    """
    try:
        document = json.loads(text)
    except ValueError as exc:
        raise IndexFormatError("Index document is not valid JSON: {}".format(exc)) from exc
    return GlossIndex.from_document(document)


def load_index(path: str | Path) -> GlossIndex:
    """Read and parse an index document from disk.

    RULES:
    - Raises OSError (FileNotFoundError etc.) if the file cannot be read
    - Raises IndexFormatError if the content is not a valid index
    """
    return loads_index(Path(path).read_bytes())


# ---------------------------------------------------------------------------
# Curated overrides
# ---------------------------------------------------------------------------

OVERRIDES_DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Gloss video overrides",
    "type": "object",
    "additionalProperties": {"type": "string", "minLength": 1},
}


def load_overrides(path: str | Path) -> dict[str, str]:
    """Read a curated gloss → video URL overrides file.

    WHY: A few glosses have a hand-picked video that should win over
    whatever the caption corpus produced (a cleaner take, a sign the
    subtitles never mention). Those live in a small JSON object next to
    the generated index.

    RULES:
    - The document is a flat JSON object of non-empty URL strings
    - Keys are returned as written; GlossLookup normalizes them
    - Raises OSError if the file cannot be read
    - Raises IndexFormatError on invalid JSON or a schema violation
    """
    try:
        document = json.loads(Path(path).read_bytes())
    except ValueError as exc:
        raise IndexFormatError("Overrides file is not valid JSON: {}".format(exc)) from exc
    try:
        jsonschema.validate(instance=document, schema=OVERRIDES_DOCUMENT_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise IndexFormatError(
            "Invalid overrides document at {}: {}".format(
                "/".join(str(p) for p in exc.absolute_path) or "<root>",
                exc.message,
            )
        ) from exc
    return dict(document)
