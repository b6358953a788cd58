"""Timed-caption (SRT) parser.

WHY: The corpus pairs every interpreted speech with a subtitle file. The
subtitles tell us *when* each French phrase is signed, which is what lets
us address a sign by a time range inside a long video.

HOW: The document is split into blocks on blank lines. Each block is an
optional numeric index line, a ``start --> end`` timecode line, and one or
more text lines. Timecodes ``HH:MM:SS,mmm`` are converted to float
seconds. Anything that does not look like a caption is skipped.

RULES:
- A block needs at least 3 non-empty lines, otherwise it is skipped
- The timecode line is line 2 or line 1 (whichever contains "-->");
  text starts on the line after it
- Malformed timecodes and end <= start skip the block, never raise
- No trailing blank line is required after the last block
- "." is accepted as the millisecond separator (WebVTT style)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from gloss_index.errors import CaptionParseError

logger = logging.getLogger(__name__)

ARROW = "-->"

_BLOCK_SPLIT_RE = re.compile(r"\n[ \t]*\n")
_TIMECODE_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})[,.](\d{1,3})$")


@dataclass(frozen=True)
class CaptionInterval:
    """One timed caption: a time range in seconds and its text.

    RULES:
    - start >= 0
    - end > start
    - text is the caption lines joined with single spaces
    """

    start: float
    end: float
    text: str


def parse_timecode(value: str) -> float:
    """Convert an ``H:M:S,ms`` timecode to float seconds.

    WHY: Fragment URLs address media in seconds, SRT files use
    ``00:05:12,400``.

    HOW: Regex-matches the four numeric fields and combines them as
    ``H*3600 + M*60 + S + ms/1000``. The millisecond field is scaled by
    its digit count, so ``,5`` and ``,500`` are both half a second.

    RULES:
    - Raises CaptionParseError on missing or non-numeric components
    - Surrounding whitespace is ignored

    Args:
        value: Timecode string, e.g. "00:00:03,400".

    Returns:
        Seconds as float, e.g. 3.4.
    """
    match = _TIMECODE_RE.match(value.strip())
    if match is None:
        raise CaptionParseError("Malformed timecode: {!r}".format(value))

    hours, minutes, seconds, millis = match.groups()
    fraction = int(millis) / (10 ** len(millis))
    return int(hours) * 3600 + int(minutes) * 60 + int(seconds) + fraction


def _parse_block(block: str) -> CaptionInterval | None:
    """Parse one caption block, or return None if it is not a caption."""
    lines = [line.strip() for line in block.strip().split("\n")]
    lines = [line for line in lines if line]
    if len(lines) < 3:
        return None

    # Line 2 wins when there is an index line, otherwise line 1
    if ARROW in lines[1]:
        time_idx = 1
    elif ARROW in lines[0]:
        time_idx = 0
    else:
        return None

    parts = lines[time_idx].split(ARROW)
    if len(parts) != 2:
        return None

    try:
        start = parse_timecode(parts[0])
        # WebVTT cue settings may follow the end timecode
        end_field = parts[1].strip().split()
        end = parse_timecode(end_field[0] if end_field else "")
    except CaptionParseError:
        logger.debug("Skipping caption block with bad timecode: %r", lines[time_idx])
        return None

    if end <= start:
        logger.debug("Skipping caption block with end <= start: %r", lines[time_idx])
        return None

    text = " ".join(lines[time_idx + 1:]).strip()
    return CaptionInterval(start=start, end=end, text=text)


def iter_captions(content: str) -> Iterator[CaptionInterval]:
    """Yield CaptionIntervals from a timed-caption document, in file order.

    Args:
        content: Full text of the caption document.

    Yields:
        One CaptionInterval per well-formed block.
    """
    normalized = content.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    for block in _BLOCK_SPLIT_RE.split(normalized):
        interval = _parse_block(block)
        if interval is not None:
            yield interval


def parse_captions(content: str) -> list[CaptionInterval]:
    """Parse a timed-caption document into a list of intervals.

    WHY: Callers may walk the intervals more than once (indexing, then
    reporting), so a reusable list is returned rather than a one-shot
    generator.
    """
    return list(iter_captions(content))


def load_captions(path: str | Path) -> list[CaptionInterval]:
    """Read and parse a caption file.

    RULES:
    - Decoded as UTF-8; undecodable bytes are replaced, not fatal
    """
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return parse_captions(text)
