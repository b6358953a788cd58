"""Configuration constants, corpus conventions, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. File extensions, directory layout, and scoring
defaults are plain data structures — not buried in logic — so both
humans and coding agents can modify them confidently.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level tuples and strings. Settings bundles the values a
process needs into one object that is passed explicitly to the
reader factory, the app factory, and the builder.

RULES:
- All defaults can be overridden via GLOSS_* environment variables
- CAPTION_EXTENSIONS / MEDIA_EXTENSIONS are lowercase, with dot, in
  priority order (first match wins when pairing)
- The media sink and the index document live under PUBLIC_DIR so the
  HTTP server can expose both at PUBLIC_URL_PREFIX
- INDEX_MODE selects the reader: "eager" (server) or "cached" (client)
- OVERRIDES_FILE (optional) names a JSON object of curated gloss → URL
  entries that win over the index
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Corpus conventions
# ---------------------------------------------------------------------------

CAPTION_EXTENSIONS: tuple[str, ...] = (".srt", ".vtt")
"""Caption file extensions recognised by the builder."""

MEDIA_EXTENSIONS: tuple[str, ...] = (".mp4", ".webm", ".mov", ".mkv")
"""Media file extensions recognised by the builder, in pairing priority."""

DEFAULT_SOURCE_LABEL = os.getenv("GLOSS_SOURCE_LABEL", "Matignon-LSF")
DEFAULT_BASE_SCORE = float(os.getenv("GLOSS_BASE_SCORE", "1.0"))

# ---------------------------------------------------------------------------
# Paths and URLs
# ---------------------------------------------------------------------------

CORPUS_DIR = Path(os.getenv("GLOSS_CORPUS_DIR", "tools/Matignon-LSF/data"))
PUBLIC_DIR = Path(os.getenv("GLOSS_PUBLIC_DIR", "public/matignon"))
MEDIA_SUBDIR = os.getenv("GLOSS_MEDIA_SUBDIR", "videos")
INDEX_FILENAME = os.getenv("GLOSS_INDEX_FILENAME", "index.json")
PUBLIC_URL_PREFIX = os.getenv("GLOSS_PUBLIC_URL_PREFIX", "/matignon")

INDEX_URL = os.getenv("GLOSS_INDEX_URL", "")
SERVER_URL = os.getenv("GLOSS_SERVER_URL", "http://localhost:8000")
INDEX_MODE = os.getenv("GLOSS_INDEX_MODE", "eager").strip().lower()
FETCH_TIMEOUT_S = float(os.getenv("GLOSS_FETCH_TIMEOUT", "30"))
OVERRIDES_FILE = os.getenv("GLOSS_OVERRIDES_FILE", "")

SERVER_HOST = os.getenv("GLOSS_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("GLOSS_PORT", "8000"))

INDEX_MODES = ("eager", "cached")


@dataclass(frozen=True)
class Settings:
    """Resolved settings for one process.

    WHY: The loaded index is owned by an explicitly constructed reader.
    Factories need paths and URLs without reaching into module globals,
    and tests need to build isolated settings pointing at tmp_path.

    HOW: Field defaults are the module-level values read at import;
    from_env() re-reads the environment. Derived paths (media_dir,
    index_path, media_url_prefix) are computed properties.

    RULES:
    - index_mode must be one of INDEX_MODES
    - index_url / server_url are only used in "cached" mode
    """

    corpus_dir: Path = CORPUS_DIR
    public_dir: Path = PUBLIC_DIR
    media_subdir: str = MEDIA_SUBDIR
    index_filename: str = INDEX_FILENAME
    public_url_prefix: str = PUBLIC_URL_PREFIX
    index_url: str = INDEX_URL
    server_url: str = SERVER_URL
    index_mode: str = INDEX_MODE
    source_label: str = DEFAULT_SOURCE_LABEL
    base_score: float = DEFAULT_BASE_SCORE
    fetch_timeout_s: float = FETCH_TIMEOUT_S
    overrides_file: str = OVERRIDES_FILE

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the current environment.

        Re-reads the GLOSS_* variables so that values set after import
        (tests, process managers) are honoured.
        """
        mode = os.getenv("GLOSS_INDEX_MODE", "eager").strip().lower()
        if mode not in INDEX_MODES:
            raise ValueError(
                "GLOSS_INDEX_MODE must be one of {}, got '{}'".format(
                    ", ".join(INDEX_MODES), mode
                )
            )
        return cls(
            corpus_dir=Path(os.getenv("GLOSS_CORPUS_DIR", "tools/Matignon-LSF/data")),
            public_dir=Path(os.getenv("GLOSS_PUBLIC_DIR", "public/matignon")),
            media_subdir=os.getenv("GLOSS_MEDIA_SUBDIR", "videos"),
            index_filename=os.getenv("GLOSS_INDEX_FILENAME", "index.json"),
            public_url_prefix=os.getenv("GLOSS_PUBLIC_URL_PREFIX", "/matignon"),
            index_url=os.getenv("GLOSS_INDEX_URL", ""),
            server_url=os.getenv("GLOSS_SERVER_URL", "http://localhost:8000"),
            index_mode=mode,
            source_label=os.getenv("GLOSS_SOURCE_LABEL", "Matignon-LSF"),
            base_score=float(os.getenv("GLOSS_BASE_SCORE", "1.0")),
            fetch_timeout_s=float(os.getenv("GLOSS_FETCH_TIMEOUT", "30")),
            overrides_file=os.getenv("GLOSS_OVERRIDES_FILE", ""),
        )

    @property
    def media_dir(self) -> Path:
        return self.public_dir / self.media_subdir

    @property
    def index_path(self) -> Path:
        return self.public_dir / self.index_filename

    @property
    def media_url_prefix(self) -> str:
        return "{}/{}".format(self.public_url_prefix.rstrip("/"), self.media_subdir)

    @property
    def overrides_path(self) -> Path | None:
        """Curated gloss → URL overrides file, or None when not configured."""
        return Path(self.overrides_file) if self.overrides_file else None

    @property
    def resolved_index_url(self) -> str:
        """Index URL for the cached reader, defaulting to the server's public mount."""
        if self.index_url:
            return self.index_url
        return "{}{}/{}".format(
            self.server_url.rstrip("/"),
            self.public_url_prefix.rstrip("/"),
            self.index_filename,
        )
