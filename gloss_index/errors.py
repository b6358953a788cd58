"""Exception hierarchy for the gloss index.

WHY: Callers must be able to tell "no such sign" apart from "index
unavailable". An absent key is a normal result, so only genuine failures
get an exception type, and each failure mode gets its own type so the
HTTP layer and the facade can branch on it.

HOW: Everything derives from GlossIndexError. Parse and format errors
also derive from ValueError, the missing corpus from FileNotFoundError,
so generic handlers keep working.

RULES:
- Never raise for an unknown key — return a not-found result instead
- IndexUnavailableError covers every reason a reader has no index
- IndexFetchError carries the HTTP status code when there is one
"""

from __future__ import annotations


class GlossIndexError(Exception):
    """Base class for all gloss index errors."""


class CaptionParseError(GlossIndexError, ValueError):
    """Raised when a timecode or caption block cannot be parsed.

    WHY: The parser skips malformed blocks, but the timecode helper is
    also public and needs a typed error for direct callers.

    RULES:
    - Only raised by parse_timecode(); block iteration catches it
    """


class IndexFormatError(GlossIndexError, ValueError):
    """Raised when an index document does not match the expected schema.

    WHY: A corrupt or hand-edited index must not crash a server at
    startup. Readers catch this and report the index as unavailable.
    """


class IndexUnavailableError(GlossIndexError):
    """Raised by a reader when its index cannot be loaded or fetched.

    WHY: "Index unavailable" is distinct from "key not found". The
    lookup facade turns this into LookupStatus.UNAVAILABLE and the HTTP
    endpoint into a 503.

    RULES:
    - Never raised for an absent key
    - The original cause is chained via ``raise ... from``
    """


class IndexFetchError(IndexUnavailableError):
    """Raised when the index document cannot be fetched over HTTP.

    HOW: Wraps the HTTP status code (None for transport errors) and a
    short message.
    """

    def __init__(self, status_code: int | None, message: str) -> None:
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__("Index fetch failed: {}".format(message))
        else:
            super().__init__("Index fetch failed ({}): {}".format(status_code, message))


class CorpusNotFoundError(GlossIndexError, FileNotFoundError):
    """Raised when the corpus directory given to the builder does not exist."""
