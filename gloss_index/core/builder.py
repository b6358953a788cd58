"""Offline index builder: corpus directory → media sink + index document.

WHY: Subtitle/video pairs from the corpus have to be turned into a
lookup table once, offline, so that request-time lookups are a dict
access. The builder is the only writer of the index document.

HOW: A run has four steps:
  1. discover_pairs()   — match each caption file to its media file by stem
  2. ensure_media()     — copy the media into the public sink if absent
  3. IndexBuilder       — parse captions, extract keys, accumulate entries
  4. write_index_atomic — write the whole document via temp file + rename

RULES:
- Captions without media are skipped with a warning, never fatal
- Media already present in the sink is never overwritten or re-copied
- Every key occurrence becomes its own VideoEntry with the base score
- The index is a full overwrite each run, not an incremental merge
- Readers never observe a partially written index (os.replace)
- Single-threaded, run-to-completion; no shared state beyond the builder
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

from gloss_index.config import (
    CAPTION_EXTENSIONS,
    DEFAULT_BASE_SCORE,
    DEFAULT_SOURCE_LABEL,
    MEDIA_EXTENSIONS,
)
from gloss_index.core.captions import CaptionInterval, load_captions
from gloss_index.core.index import GlossIndex, VideoEntry, dump_index, format_fragment_url
from gloss_index.core.keys import extract_keys
from gloss_index.errors import CorpusNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorpusPair:
    """A caption file and the media file it subtitles (same stem)."""

    stem: str
    caption_path: Path
    media_path: Path


@dataclass
class BuildReport:
    """Summary of one builder run.

    RULES:
    - pairs: caption/media pairs that were indexed
    - skipped_captions: caption files with no matching media
    - orphan_media: media files with no matching caption
    - copied_media: media files copied into the sink this run
    - intervals / keys / entries: parsed captions, distinct keys, candidates
    """

    index_path: Path
    pairs: list[str] = field(default_factory=list)
    skipped_captions: list[str] = field(default_factory=list)
    orphan_media: list[str] = field(default_factory=list)
    copied_media: list[str] = field(default_factory=list)
    intervals: int = 0
    keys: int = 0
    entries: int = 0


# ---------------------------------------------------------------------------
# Step 1: discovery
# ---------------------------------------------------------------------------


def discover_pairs(
    corpus_dir: str | Path,
    caption_exts: Sequence[str] = CAPTION_EXTENSIONS,
    media_exts: Sequence[str] = MEDIA_EXTENSIONS,
) -> tuple[list[CorpusPair], list[Path], list[Path]]:
    """Pair caption files with media files sharing the same stem.

    WHY: The corpus is a flat directory of ``<base>.srt`` / ``<base>.mp4``
    files. Partial downloads are common, so unmatched files are reported
    rather than treated as errors.

    HOW: Lists the directory once, groups files by lowercase extension,
    then looks up each caption's stem among the media files in
    ``media_exts`` priority order.

    RULES:
    - Results are sorted by filename so runs are deterministic
    - Stem match is exact (``speech_01.srt`` pairs with ``speech_01.mp4``
      but not with ``speech_01_hd.mp4``)
    - Raises CorpusNotFoundError if corpus_dir is not a directory

    Returns:
        (pairs, captions without media, media without captions)
    """
    corpus_dir = Path(corpus_dir)
    if not corpus_dir.is_dir():
        raise CorpusNotFoundError("Corpus directory not found: {}".format(corpus_dir))

    caption_exts = [ext.lower() for ext in caption_exts]
    media_exts = [ext.lower() for ext in media_exts]

    captions: list[Path] = []
    media_by_stem: dict[str, dict[str, Path]] = {}
    for path in sorted(corpus_dir.iterdir()):
        if not path.is_file():
            continue
        ext = path.suffix.lower()
        if ext in caption_exts:
            captions.append(path)
        elif ext in media_exts:
            media_by_stem.setdefault(path.stem, {})[ext] = path

    pairs: list[CorpusPair] = []
    unmatched: list[Path] = []
    used_stems: set[str] = set()
    for caption in captions:
        if caption.stem in used_stems:
            # Same stem with both .srt and .vtt: first extension in sort order wins
            logger.info("Ignoring duplicate caption file for %s: %s", caption.stem, caption.name)
            continue
        candidates = media_by_stem.get(caption.stem, {})
        media = next((candidates[ext] for ext in media_exts if ext in candidates), None)
        if media is None:
            logger.warning("No media found for caption file: %s", caption.name)
            unmatched.append(caption)
            continue
        used_stems.add(caption.stem)
        pairs.append(CorpusPair(stem=caption.stem, caption_path=caption, media_path=media))

    caption_stems = {caption.stem for caption in captions}
    orphans = [
        path
        for stem, by_ext in sorted(media_by_stem.items())
        if stem not in caption_stems
        for path in sorted(by_ext.values())
    ]
    for path in orphans:
        logger.info("No caption file for media: %s", path.name)

    return pairs, unmatched, orphans


# ---------------------------------------------------------------------------
# Step 2: media sink
# ---------------------------------------------------------------------------


def ensure_media(source: str | Path, media_dir: str | Path) -> bool:
    """Copy a media file into the sink directory unless it is already there.

    WHY: Corpus videos are large; re-runs must not copy them again, and a
    file already in the sink may be in use by a running server.

    HOW: If the destination exists, nothing happens. Otherwise the file
    is copied to a temp name in the sink and renamed into place, so a
    half-copied video is never visible under its real name.

    RULES:
    - Never overwrites an existing destination
    - Creates media_dir if needed
    - Returns True if a copy happened, False if the file was present
    """
    source = Path(source)
    media_dir = Path(media_dir)
    destination = media_dir / source.name
    if destination.exists():
        return False

    media_dir.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=media_dir, prefix=".{}.".format(source.name), suffix=".part")
    os.close(fd)
    try:
        shutil.copyfile(source, tmp_name)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, destination)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return True


# ---------------------------------------------------------------------------
# Step 3: accumulation
# ---------------------------------------------------------------------------


class IndexBuilder:
    """Accumulates VideoEntry candidates per key across a corpus run.

    WHY: Keeps the accumulation logic (key extraction, URL construction,
    first-encountered ordering) separate from file-system side effects so
    it can be tested with in-memory intervals.

    HOW: add_intervals() extracts keys from each interval's text and
    appends one VideoEntry per key occurrence. build() freezes the
    accumulated dict into a GlossIndex.

    RULES:
    - video_url is ``<url_prefix>/<media filename>#t=<start>,<end>``
    - The media filename is percent-encoded ("my clip #2.mp4" → "my%20clip%20%232.mp4")
    - Every entry gets the same base_score and source label
    - Insertion order is preserved (it is the tie-break at lookup time)
    """

    def __init__(
        self,
        url_prefix: str = "/matignon/videos",
        source: str = DEFAULT_SOURCE_LABEL,
        base_score: float = DEFAULT_BASE_SCORE,
    ) -> None:
        self.url_prefix = url_prefix.rstrip("/")
        self.source = source
        self.base_score = base_score
        self._entries: dict[str, list[VideoEntry]] = {}
        self.interval_count = 0

    def add_intervals(self, media_name: str, intervals: Iterable[CaptionInterval]) -> int:
        """Index all intervals of one media file.

        Returns:
            Number of entries added.
        """
        media_path = "{}/{}".format(self.url_prefix, quote(media_name))
        added = 0
        for interval in intervals:
            self.interval_count += 1
            keys = extract_keys(interval.text)
            if not keys:
                continue
            url = format_fragment_url(media_path, interval.start, interval.end)
            for key in keys:
                self._entries.setdefault(key, []).append(
                    VideoEntry(video_url=url, source=self.source, score=self.base_score)
                )
                added += 1
        return added

    def build(self) -> GlossIndex:
        return GlossIndex(self._entries)


# ---------------------------------------------------------------------------
# Step 4: atomic write
# ---------------------------------------------------------------------------


def write_index_atomic(index: GlossIndex, index_path: str | Path) -> Path:
    """Write the index document so readers see either the old or the new file.

    HOW: Writes to a temp file in the target directory, fsyncs, then
    os.replace()s it over the destination (atomic on POSIX and Windows
    when both paths are on the same file system).

    RULES:
    - Creates the parent directory if needed
    - The temp file is removed if anything fails
    """
    index_path = Path(index_path)
    index_path.parent.mkdir(parents=True, exist_ok=True)
    content = dump_index(index).encode("utf-8")

    fd, tmp_name = tempfile.mkstemp(dir=index_path.parent, prefix=".index-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, index_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return index_path


# ---------------------------------------------------------------------------
# Full run
# ---------------------------------------------------------------------------


def build_index(
    corpus_dir: str | Path,
    media_dir: str | Path,
    index_path: str | Path,
    url_prefix: str = "/matignon/videos",
    source: str = DEFAULT_SOURCE_LABEL,
    base_score: float = DEFAULT_BASE_SCORE,
    caption_exts: Sequence[str] = CAPTION_EXTENSIONS,
    media_exts: Sequence[str] = MEDIA_EXTENSIONS,
) -> BuildReport:
    """Run the full indexing pipeline over a corpus directory.

    WHY: This is the one-shot batch job behind ``gloss-index build``.

    HOW: discover → copy-if-absent → parse + extract → write atomically.
    The index is written last, after every pair has been processed.

    RULES:
    - Raises CorpusNotFoundError if corpus_dir does not exist
    - Re-running over an unchanged corpus writes byte-identical output
      and copies no media

    Args:
        corpus_dir: Directory with paired caption/media files.
        media_dir: Sink directory for media (served publicly).
        index_path: Destination of the index document.
        url_prefix: Public URL prefix of media_dir.
        source: Provenance label stored on every entry.
        base_score: Score stored on every entry.

    Returns:
        BuildReport summarising the run.
    """
    report = BuildReport(index_path=Path(index_path))
    pairs, unmatched, orphans = discover_pairs(corpus_dir, caption_exts, media_exts)
    report.skipped_captions = [path.name for path in unmatched]
    report.orphan_media = [path.name for path in orphans]

    builder = IndexBuilder(url_prefix=url_prefix, source=source, base_score=base_score)
    for pair in pairs:
        logger.info("Processing: %s", pair.stem)
        if ensure_media(pair.media_path, media_dir):
            logger.info("  Copied %s to %s", pair.media_path.name, media_dir)
            report.copied_media.append(pair.media_path.name)

        intervals = load_captions(pair.caption_path)
        added = builder.add_intervals(pair.media_path.name, intervals)
        logger.info("  %d captions, %d entries", len(intervals), added)
        report.pairs.append(pair.stem)

    index = builder.build()
    report.intervals = builder.interval_count
    report.keys = len(index)
    report.entries = index.entry_count

    logger.info("Writing index with %d gloss entries to %s", report.keys, index_path)
    write_index_atomic(index, index_path)
    return report
