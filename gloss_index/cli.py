"""Command-line interface for the gloss video index.

WHY: The indexer is an offline batch job run by hand (or by a cron job)
whenever the corpus changes, and operators need a quick way to check
what a gloss resolves to without starting the server.

HOW: argparse with three subcommands:
  build   — run the Index Builder over a corpus directory
  lookup  — resolve one gloss against a local file, a remote index, or
            the reader selected by GLOSS_INDEX_MODE
  serve   — start the FastAPI read endpoint with uvicorn
Status messages go to stderr; the lookup result goes to stdout so it can
be piped.

RULES:
- Defaults come from gloss_index.config (GLOSS_* env vars / .env)
- build exits 1 if the corpus directory does not exist
- lookup exits 0 when found, 1 when not found, 2 when the index is unavailable
- Logging is configured here (and only here) via logging.basicConfig
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from gloss_index.config import SERVER_HOST, SERVER_PORT, Settings
from gloss_index.core.builder import build_index
from gloss_index.core.index import format_seconds, parse_fragment_url
from gloss_index.errors import CorpusNotFoundError
from gloss_index.lookup import create_lookup
from gloss_index.readers import CachedIndexReader, EagerIndexReader, create_reader
from gloss_index.readers.base import IndexReader, LookupStatus

EXIT_NOT_FOUND = 1
EXIT_UNAVAILABLE = 2


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_build(args: argparse.Namespace, settings: Settings) -> int:
    """Run the Index Builder and print a summary."""
    corpus_dir = Path(args.corpus) if args.corpus else settings.corpus_dir
    media_dir = Path(args.media_dir) if args.media_dir else settings.media_dir
    index_path = Path(args.index) if args.index else settings.index_path
    url_prefix = args.url_prefix or settings.media_url_prefix

    _status("Starting Matignon-LSF importer...")
    try:
        report = build_index(
            corpus_dir=corpus_dir,
            media_dir=media_dir,
            index_path=index_path,
            url_prefix=url_prefix,
            source=args.source or settings.source_label,
            base_score=settings.base_score,
        )
    except CorpusNotFoundError as exc:
        print("Error: {}".format(exc), file=sys.stderr)
        _status("Create it and place paired .srt and .mp4 files there.")
        return 1

    _status("")
    _status("Done! Indexed {} pair(s): {} captions, {} keys, {} entries".format(
        len(report.pairs), report.intervals, report.keys, report.entries,
    ))
    _status("  Copied {} new media file(s) to {}".format(len(report.copied_media), media_dir))
    if report.skipped_captions:
        _status("  Skipped {} caption file(s) without media: {}".format(
            len(report.skipped_captions), ", ".join(report.skipped_captions),
        ))
    if report.orphan_media:
        _status("  {} media file(s) without captions".format(len(report.orphan_media)))
    _status("  Index: {}".format(report.index_path))
    return 0


def _make_reader(args: argparse.Namespace, settings: Settings) -> IndexReader:
    """--url and --index pick the reader; otherwise GLOSS_INDEX_MODE does."""
    if args.url:
        return CachedIndexReader.from_url(args.url, timeout=settings.fetch_timeout_s)
    if args.index:
        reader: IndexReader = EagerIndexReader(Path(args.index))
    else:
        reader = create_reader(settings)
    if isinstance(reader, EagerIndexReader):
        reader.load()
    return reader


def _describe_fragment(url: str) -> Optional[str]:
    """Media path and offsets of a fragment URL, or None for a plain URL."""
    try:
        path, start, end = parse_fragment_url(url)
    except ValueError:
        return None
    if end is None:
        return "Fragment: {} from {}s".format(path, format_seconds(start))
    return "Fragment: {} [{}s → {}s]".format(path, format_seconds(start), format_seconds(end))


def _cmd_lookup(args: argparse.Namespace, settings: Settings) -> int:
    """Resolve one gloss and print its fragment URL."""
    lookup = create_lookup(_make_reader(args, settings), settings)
    result = asyncio.run(lookup.lookup(args.gloss))

    if result.status is LookupStatus.FOUND:
        print(result.video_url)
        fragment = _describe_fragment(result.video_url)
        if fragment:
            _status(fragment)
        return 0
    if result.status is LookupStatus.UNAVAILABLE:
        print("Error: video index unavailable", file=sys.stderr)
        return EXIT_UNAVAILABLE
    _status("No video found for '{}'".format(args.gloss))
    return EXIT_NOT_FOUND


def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Start the HTTP read endpoint."""
    from gloss_index.server.app import run_api
    run_api(host=args.host, port=args.port)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable — tests can inspect the parser without running anything.
    """
    parser = argparse.ArgumentParser(
        prog="gloss-index",
        description="Build and query a gloss → sign-video index from a subtitled corpus.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser(
        "build",
        help="Index a corpus of paired caption/video files.",
    )
    build.add_argument(
        "--corpus",
        default=None,
        help="Corpus directory with <base>.srt + <base>.mp4 pairs "
             "(default: GLOSS_CORPUS_DIR).",
    )
    build.add_argument(
        "--media-dir",
        default=None,
        help="Directory the media files are copied into (default: <public>/videos).",
    )
    build.add_argument(
        "--index",
        default=None,
        help="Path of the index document to write (default: <public>/index.json).",
    )
    build.add_argument(
        "--source",
        default=None,
        help="Provenance label stored on every entry (default: GLOSS_SOURCE_LABEL).",
    )
    build.add_argument(
        "--url-prefix",
        default=None,
        help="Public URL prefix of the media directory (default: /matignon/videos).",
    )

    lookup = subparsers.add_parser(
        "lookup",
        help="Resolve one gloss to a video fragment URL.",
    )
    lookup.add_argument("gloss", help="Gloss to resolve, e.g. MAISON.")
    source = lookup.add_mutually_exclusive_group()
    source.add_argument(
        "--index",
        default=None,
        help="Local index document (default: reader chosen by GLOSS_INDEX_MODE).",
    )
    source.add_argument(
        "--url",
        default=None,
        help="Fetch the index document from this URL instead.",
    )

    serve = subparsers.add_parser(
        "serve",
        help="Run the HTTP lookup endpoint.",
    )
    serve.add_argument("--host", default=SERVER_HOST, help="Bind address (default: %(default)s).")
    serve.add_argument("--port", type=int, default=SERVER_PORT, help="Port (default: %(default)s).")

    return parser


_COMMANDS = {
    "build": _cmd_build,
    "lookup": _cmd_lookup,
    "serve": _cmd_serve,
}


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Exits with the subcommand's return code
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    settings = Settings.from_env()
    sys.exit(_COMMANDS[args.command](args, settings))


if __name__ == "__main__":
    main()
