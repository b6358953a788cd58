"""Shared test fixtures for the gloss_index test suite.

WHY: The parser, builder, readers, and HTTP tests all need the same small
subtitled corpus and the index it produces. Centralizing the sample here
keeps every module testing against one known-good case.

HOW: SAMPLE_SRT is a three-block subtitle file whose keys and fragment
URLs are listed in SAMPLE_KEYS. The ``corpus`` fixture lays it out in
tmp_path next to a fake video, an unpaired caption, and an orphan video.
``sample_document`` is the decoded index document for the same content.

RULES:
- Media files are tiny fake byte strings, never real video
- Every fixture writes under tmp_path; nothing touches the repository
- SAMPLE_KEYS must stay in sync with SAMPLE_SRT
"""

from pathlib import Path
from typing import Any, Dict, List

import pytest


# ---------------------------------------------------------------------------
# Sample subtitle content
# ---------------------------------------------------------------------------

SAMPLE_SRT = (
    "1\n"
    "00:00:00,000 --> 00:00:01,500\n"
    "Bonjour à tous\n"
    "\n"
    "2\n"
    "00:00:01,500 --> 00:00:04,200\n"
    "La maison est belle\n"
    "\n"
    "3\n"
    "00:00:04,200 --> 00:00:06,000\n"
    "l'été arrive\n"
)

MEDIA_URL = "/matignon/videos/speech_01.mp4"

# key -> fragment URL for every key extracted from SAMPLE_SRT
SAMPLE_KEYS: Dict[str, str] = {
    "BONJOUR": MEDIA_URL + "#t=0,1.5",
    "TOUS": MEDIA_URL + "#t=0,1.5",
    "MAISON": MEDIA_URL + "#t=1.5,4.2",
    "BELLE": MEDIA_URL + "#t=1.5,4.2",
    "ETE": MEDIA_URL + "#t=4.2,6",
    "ARRIVE": MEDIA_URL + "#t=4.2,6",
}

FAKE_VIDEO = b"\x00\x00\x00\x18ftypmp42fake-video"


def _entry(url: str, score: float = 1.0, source: str = "Matignon-LSF") -> Dict[str, Any]:
    return {"videoUrl": url, "source": source, "score": score}


@pytest.fixture
def sample_srt() -> str:
    """The three-block subtitle file used across the suite."""
    return SAMPLE_SRT


@pytest.fixture
def sample_keys() -> Dict[str, str]:
    return dict(SAMPLE_KEYS)


@pytest.fixture
def sample_document() -> Dict[str, List[Dict[str, Any]]]:
    """Decoded index document equivalent to indexing SAMPLE_SRT."""
    return {key: [_entry(url)] for key, url in sorted(SAMPLE_KEYS.items())}


@pytest.fixture
def corpus(tmp_path) -> Path:
    """A corpus directory with one complete pair and two unmatched files.

    Layout:
        speech_01.srt + speech_01.mp4   — indexed
        speech_02.srt                   — caption without media
        orphan.mp4                      — media without caption
        notes.txt                       — ignored
    """
    corpus_dir = tmp_path / "corpus"
    corpus_dir.mkdir()
    (corpus_dir / "speech_01.srt").write_text(SAMPLE_SRT, encoding="utf-8")
    (corpus_dir / "speech_01.mp4").write_bytes(FAKE_VIDEO)
    (corpus_dir / "speech_02.srt").write_text(SAMPLE_SRT, encoding="utf-8")
    (corpus_dir / "orphan.mp4").write_bytes(FAKE_VIDEO)
    (corpus_dir / "notes.txt").write_text("not part of the corpus", encoding="utf-8")
    return corpus_dir


@pytest.fixture
def public_dir(tmp_path) -> Path:
    """Empty public directory (media sink + index document live here)."""
    path = tmp_path / "public"
    path.mkdir()
    return path
