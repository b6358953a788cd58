"""Tests for corpus discovery, media copying, and index building.

WHY: The builder is the only writer of the index and the media sink.
It must pair files correctly, never re-copy or overwrite media, and
write the index atomically and deterministically.

HOW: Runs against the ``corpus`` fixture in tmp_path (one complete pair,
one caption without media, one orphan video). IndexBuilder is also
exercised with in-memory CaptionIntervals.

RULES:
- All file system effects stay under tmp_path
- Log assertions use caplog on the builder's logger
"""

import json
import logging
import os
from unittest.mock import patch

import pytest

from gloss_index.core.builder import (
    IndexBuilder,
    build_index,
    discover_pairs,
    ensure_media,
    write_index_atomic,
)
from gloss_index.core.captions import CaptionInterval
from gloss_index.core.index import GlossIndex, VideoEntry, load_index, parse_fragment_url
from gloss_index.errors import CorpusNotFoundError


def _run(corpus, public_dir):
    return build_index(
        corpus_dir=corpus,
        media_dir=public_dir / "videos",
        index_path=public_dir / "index.json",
    )


# ---------------------------------------------------------------------------
# discover_pairs
# ---------------------------------------------------------------------------


class TestDiscoverPairs:
    def test_pairs_by_stem(self, corpus):
        pairs, unmatched, orphans = discover_pairs(corpus)
        assert [p.stem for p in pairs] == ["speech_01"]
        assert pairs[0].caption_path.name == "speech_01.srt"
        assert pairs[0].media_path.name == "speech_01.mp4"
        assert [p.name for p in unmatched] == ["speech_02.srt"]
        assert [p.name for p in orphans] == ["orphan.mp4"]

    def test_missing_media_logged_as_warning(self, corpus, caplog):
        with caplog.at_level(logging.WARNING, logger="gloss_index.core.builder"):
            discover_pairs(corpus)
        assert "speech_02.srt" in caplog.text

    def test_media_extension_priority(self, tmp_path, sample_srt):
        (tmp_path / "talk.srt").write_text(sample_srt, encoding="utf-8")
        (tmp_path / "talk.webm").write_bytes(b"webm")
        (tmp_path / "talk.mp4").write_bytes(b"mp4")
        pairs, _, _ = discover_pairs(tmp_path)
        assert pairs[0].media_path.name == "talk.mp4"

    def test_stem_match_is_exact(self, tmp_path, sample_srt):
        (tmp_path / "talk.srt").write_text(sample_srt, encoding="utf-8")
        (tmp_path / "talk_hd.mp4").write_bytes(b"mp4")
        pairs, unmatched, orphans = discover_pairs(tmp_path)
        assert pairs == []
        assert [p.name for p in unmatched] == ["talk.srt"]
        assert [p.name for p in orphans] == ["talk_hd.mp4"]

    def test_uppercase_extensions_recognised(self, tmp_path, sample_srt):
        (tmp_path / "talk.SRT").write_text(sample_srt, encoding="utf-8")
        (tmp_path / "talk.MP4").write_bytes(b"mp4")
        pairs, _, _ = discover_pairs(tmp_path)
        assert len(pairs) == 1

    def test_missing_corpus_raises(self, tmp_path):
        with pytest.raises(CorpusNotFoundError):
            discover_pairs(tmp_path / "absent")

    def test_corpus_error_is_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            discover_pairs(tmp_path / "absent")


# ---------------------------------------------------------------------------
# ensure_media
# ---------------------------------------------------------------------------


class TestEnsureMedia:
    def test_copies_when_absent(self, corpus, tmp_path):
        sink = tmp_path / "sink"
        assert ensure_media(corpus / "speech_01.mp4", sink) is True
        assert (sink / "speech_01.mp4").read_bytes() == (corpus / "speech_01.mp4").read_bytes()

    def test_existing_file_never_overwritten(self, corpus, tmp_path):
        sink = tmp_path / "sink"
        sink.mkdir()
        (sink / "speech_01.mp4").write_bytes(b"already served")
        assert ensure_media(corpus / "speech_01.mp4", sink) is False
        assert (sink / "speech_01.mp4").read_bytes() == b"already served"

    def test_no_temp_files_left(self, corpus, tmp_path):
        sink = tmp_path / "sink"
        ensure_media(corpus / "speech_01.mp4", sink)
        assert sorted(p.name for p in sink.iterdir()) == ["speech_01.mp4"]


# ---------------------------------------------------------------------------
# IndexBuilder
# ---------------------------------------------------------------------------


class TestIndexBuilder:
    def test_one_entry_per_key_occurrence(self):
        builder = IndexBuilder(url_prefix="/v")
        added = builder.add_intervals("a.mp4", [CaptionInterval(0.0, 1.5, "maison maison belle")])
        index = builder.build()
        assert added == 3
        assert len(index["MAISON"]) == 2
        assert index.best("BELLE").video_url == "/v/a.mp4#t=0,1.5"

    def test_first_encountered_order_across_media(self):
        builder = IndexBuilder(url_prefix="/v")
        builder.add_intervals("a.mp4", [CaptionInterval(1.0, 2.0, "maison")])
        builder.add_intervals("b.mp4", [CaptionInterval(3.0, 4.0, "maison")])
        index = builder.build()
        assert [e.video_url for e in index["MAISON"]] == ["/v/a.mp4#t=1,2", "/v/b.mp4#t=3,4"]
        assert index.best("MAISON").video_url == "/v/a.mp4#t=1,2"

    def test_source_and_score_applied(self):
        builder = IndexBuilder(url_prefix="/v", source="Corpus-X", base_score=0.5)
        builder.add_intervals("a.mp4", [CaptionInterval(0.0, 1.0, "voiture")])
        assert builder.build()["VOITURE"] == (VideoEntry("/v/a.mp4#t=0,1", "Corpus-X", 0.5),)

    def test_trailing_slash_in_prefix(self):
        builder = IndexBuilder(url_prefix="/v/")
        builder.add_intervals("a.mp4", [CaptionInterval(0.0, 1.0, "voiture")])
        assert builder.build().best("VOITURE").video_url == "/v/a.mp4#t=0,1"

    def test_media_name_is_percent_encoded(self):
        builder = IndexBuilder(url_prefix="/v")
        builder.add_intervals("my clip #2.mp4", [CaptionInterval(0.0, 1.0, "voiture")])
        url = builder.build().best("VOITURE").video_url
        assert url == "/v/my%20clip%20%232.mp4#t=0,1"
        assert parse_fragment_url(url) == ("/v/my%20clip%20%232.mp4", 0.0, 1.0)

    def test_interval_without_keys_counted_but_not_indexed(self):
        builder = IndexBuilder()
        assert builder.add_intervals("a.mp4", [CaptionInterval(0.0, 1.0, "et la")]) == 0
        assert builder.interval_count == 1
        assert len(builder.build()) == 0


# ---------------------------------------------------------------------------
# write_index_atomic
# ---------------------------------------------------------------------------


class TestWriteIndexAtomic:
    def test_writes_and_creates_parent(self, tmp_path):
        path = tmp_path / "nested" / "index.json"
        write_index_atomic(GlossIndex({"A": [VideoEntry("/a", "s", 1.0)]}), path)
        assert set(load_index(path)) == {"A"}
        assert [p.name for p in path.parent.iterdir()] == ["index.json"]

    def test_failed_replace_keeps_old_file(self, tmp_path):
        path = tmp_path / "index.json"
        path.write_text("old", encoding="utf-8")
        with patch("gloss_index.core.builder.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_index_atomic(GlossIndex({"A": [VideoEntry("/a", "s", 1.0)]}), path)
        assert path.read_text(encoding="utf-8") == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["index.json"]


# ---------------------------------------------------------------------------
# build_index (full run)
# ---------------------------------------------------------------------------


class TestBuildIndex:
    def test_report(self, corpus, public_dir, sample_keys):
        report = _run(corpus, public_dir)
        assert report.pairs == ["speech_01"]
        assert report.skipped_captions == ["speech_02.srt"]
        assert report.orphan_media == ["orphan.mp4"]
        assert report.copied_media == ["speech_01.mp4"]
        assert report.intervals == 3
        assert report.keys == len(sample_keys)
        assert report.entries == len(sample_keys)

    def test_index_contents(self, corpus, public_dir, sample_keys):
        _run(corpus, public_dir)
        index = load_index(public_dir / "index.json")
        for key, url in sample_keys.items():
            assert index.best(key).video_url == url

    def test_only_paired_media_copied(self, corpus, public_dir):
        _run(corpus, public_dir)
        assert sorted(p.name for p in (public_dir / "videos").iterdir()) == ["speech_01.mp4"]

    def test_rebuild_is_byte_identical_and_copies_nothing(self, corpus, public_dir):
        _run(corpus, public_dir)
        first = (public_dir / "index.json").read_bytes()
        report = _run(corpus, public_dir)
        assert (public_dir / "index.json").read_bytes() == first
        assert report.copied_media == []

    def test_rebuild_replaces_stale_index(self, corpus, public_dir):
        (public_dir / "index.json").write_text(json.dumps({"STALE": []}), encoding="utf-8")
        _run(corpus, public_dir)
        assert "STALE" not in json.loads((public_dir / "index.json").read_text(encoding="utf-8"))

    def test_index_file_is_world_readable(self, corpus, public_dir):
        _run(corpus, public_dir)
        mode = os.stat(public_dir / "index.json").st_mode & 0o777
        assert mode & 0o444 == 0o444

    def test_missing_corpus_writes_nothing(self, tmp_path, public_dir):
        with pytest.raises(CorpusNotFoundError):
            _run(tmp_path / "absent", public_dir)
        assert not (public_dir / "index.json").exists()
