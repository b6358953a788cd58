"""FastAPI application serving gloss → video lookups and the public media.

WHY: The front-end resolves each gloss of a translation to a playable
video fragment. The server holds the index in memory (loaded once at
startup) and answers point queries; it also serves the copied media and
the index document itself so fragment URLs and client-side readers
resolve against the same origin.

HOW: create_app() builds a FastAPI app around an explicitly owned
reader. The lifespan hook calls reader.load() once; a failed load leaves
the reader degraded and each query retries. Endpoints:
  GET /api/videos?gloss=...  — best fragment URL for a gloss
  GET /health                — liveness, index status and dataset stats
  /matignon/...              — static media and index.json (if present)

RULES:
- 200 {"videoUrl": ...} when found
- 404 {"detail": "Video not found", "videoUrl": null} when the key is absent
- 503 when the index is unavailable (never conflated with 404)
- 400 when ``gloss`` is missing, blank, or given more than once
- Error responses use a consistent ErrorResponse schema
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from gloss_index import __version__
from gloss_index.config import SERVER_HOST, SERVER_PORT, Settings
from gloss_index.lookup import GlossLookup, create_lookup
from gloss_index.readers import create_reader
from gloss_index.readers.base import IndexReader, LookupStatus
from gloss_index.readers.eager import EagerIndexReader
from gloss_index.server.models import (
    ErrorResponse,
    HealthResponse,
    VideoNotFoundResponse,
    VideoResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    reader: Optional[IndexReader] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the FastAPI app with its own reader.

    WHY: The loaded index is process state with a defined lifecycle.
    Owning it on app.state (instead of a module global) lets tests build
    isolated apps against tmp_path indexes.

    HOW: Without an explicit reader, create_reader() picks one from
    settings.index_mode (GLOSS_INDEX_MODE). An eager reader's load()
    runs in the lifespan hook; a cached reader fetches on first query.
    Curated overrides come from settings.overrides_path. The public
    directory is mounted when it exists at startup.

    RULES:
    - app.state.reader is the reader, app.state.lookup the facade
    - A missing public directory is logged, not fatal
    """
    settings = settings or Settings.from_env()
    if reader is None:
        reader = create_reader(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load the index once on startup (eager readers only)."""
        if isinstance(reader, EagerIndexReader):
            reader.load()
        yield

    app = FastAPI(
        lifespan=lifespan,
        title="Gloss Video Index API",
        description=(
            "Resolve LSF glosses to video fragments extracted from a "
            "subtitled sign-language corpus. Returns media fragment URLs "
            "(path#t=start,end) playable by standard HTML5 players."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.reader = reader
    app.state.lookup = create_lookup(reader, settings)
    app.state.source = settings.source_label
    app.include_router(router)

    public_dir = settings.public_dir
    if public_dir.is_dir():
        app.mount(
            settings.public_url_prefix.rstrip("/") or "/",
            StaticFiles(directory=str(public_dir)),
            name="public",
        )
    else:
        logger.warning("Public directory not found, media not served: %s", public_dir)

    return app


# ---------------------------------------------------------------------------
# Endpoints: Videos
# ---------------------------------------------------------------------------


@router.get(
    "/api/videos",
    response_model=VideoResponse,
    tags=["videos"],
    summary="Resolve a gloss to a video fragment",
    description=(
        "Normalizes the gloss (accents, case, punctuation, elided articles) "
        "and returns the best-ranked video fragment URL from the index."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed gloss parameter"},
        404: {"model": VideoNotFoundResponse, "description": "No video for this gloss"},
        503: {"model": ErrorResponse, "description": "Video index not available"},
    },
)
async def get_video(
    request: Request,
    gloss: Annotated[
        Optional[str],
        Query(description="Gloss to resolve, e.g. 'MAISON' or 'l'été'."),
    ] = None,
):
    values = request.query_params.getlist("gloss")
    if len(values) != 1 or not values[0].strip():
        raise HTTPException(status_code=400, detail="Gloss query parameter is required")

    lookup: GlossLookup = request.app.state.lookup
    result = await lookup.lookup(values[0])

    if result.status is LookupStatus.UNAVAILABLE:
        raise HTTPException(
            status_code=503,
            detail="Service Unavailable: Dictionary index missing",
        )

    if result.status is LookupStatus.NOT_FOUND:
        return JSONResponse(
            status_code=404,
            content={"detail": "Video not found", "videoUrl": None},
        )

    return VideoResponse(videoUrl=result.video_url)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description=(
        "Liveness check, whether the video index is loaded, and dataset "
        "stats (source label, keys, candidate videos, curated overrides)."
    ),
)
async def health_check(request: Request) -> HealthResponse:
    reader: IndexReader = request.app.state.reader
    lookup: GlossLookup = request.app.state.lookup
    loaded = reader.is_loaded
    return HealthResponse(
        status="ok" if loaded else "degraded",
        version=__version__,
        index_loaded=loaded,
        source=request.app.state.source,
        keys=reader.key_count,
        entries=reader.entry_count,
        overrides=lookup.override_count,
    )


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


app = create_app()


def run_api(host: str = SERVER_HOST, port: int = SERVER_PORT) -> None:
    """Entry point for ``gloss-index serve``."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)
