"""Tests for GlossIndex, VideoEntry, fragment URLs, and the document format.

WHY: The index document is the only contract between the builder and the
readers. Its schema, its serialization, and the ranking rule used by
best() must not drift.

HOW: Builds small GlossIndex instances in memory, validates documents
against INDEX_DOCUMENT_SCHEMA with jsonschema, and checks best() under
ties and unequal scores in both insertion orders.

RULES:
- Documents are plain dicts; no file I/O except TestLoadIndex
"""

import json

import jsonschema
import pytest

from gloss_index.core.index import (
    INDEX_DOCUMENT_SCHEMA,
    GlossIndex,
    VideoEntry,
    best_entry,
    dump_index,
    format_fragment_url,
    format_seconds,
    load_index,
    load_overrides,
    loads_index,
    parse_fragment_url,
)
from gloss_index.errors import IndexFormatError


def _entry(url: str, score: float = 1.0) -> VideoEntry:
    return VideoEntry(video_url=url, source="Matignon-LSF", score=score)


# ---------------------------------------------------------------------------
# Fragment URLs
# ---------------------------------------------------------------------------


class TestFragmentUrls:
    @pytest.mark.parametrize("value, expected", [
        (0.0, "0"),
        (1.5, "1.5"),
        (4.2, "4.2"),
        (6.0, "6"),
        (12.125, "12.125"),
    ])
    def test_format_seconds(self, value, expected):
        assert format_seconds(value) == expected

    def test_format_fragment_url(self):
        assert format_fragment_url("/matignon/videos/a.mp4", 0.0, 1.5) == "/matignon/videos/a.mp4#t=0,1.5"

    def test_parse_fragment_url(self):
        assert parse_fragment_url("/matignon/videos/a.mp4#t=12.4,15.1") == (
            "/matignon/videos/a.mp4", 12.4, 15.1,
        )

    def test_parse_inverts_format(self):
        url = format_fragment_url("/v/a.mp4", 4.2, 6.0)
        assert parse_fragment_url(url) == ("/v/a.mp4", 4.2, 6.0)

    def test_parse_fragment_without_end(self):
        assert parse_fragment_url("/v/a.mp4#t=3") == ("/v/a.mp4", 3.0, None)

    def test_parse_rejects_plain_url(self):
        with pytest.raises(ValueError):
            parse_fragment_url("/v/a.mp4")


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


class TestBest:
    def test_tie_keeps_first_encountered(self):
        index = GlossIndex({"MAISON": [_entry("/a#t=0,1"), _entry("/b#t=0,1")]})
        assert index.best("MAISON").video_url == "/a#t=0,1"

    def test_higher_score_wins_when_first(self):
        index = GlossIndex({"MAISON": [_entry("/high", 1.0), _entry("/low", 0.8)]})
        assert index.best("MAISON").video_url == "/high"

    def test_higher_score_wins_when_last(self):
        index = GlossIndex({"MAISON": [_entry("/low", 0.8), _entry("/high", 1.0)]})
        assert index.best("MAISON").video_url == "/high"

    def test_unknown_key_returns_none(self):
        assert GlossIndex({"MAISON": [_entry("/a")]}).best("VOITURE") is None

    def test_best_entry_of_nothing(self):
        assert best_entry([]) is None


# ---------------------------------------------------------------------------
# GlossIndex mapping behaviour
# ---------------------------------------------------------------------------


class TestGlossIndex:
    def test_empty_candidate_lists_dropped(self):
        index = GlossIndex({"MAISON": [_entry("/a")], "VIDE": []})
        assert "VIDE" not in index
        assert len(index) == 1

    def test_entries_are_tuples_in_order(self):
        index = GlossIndex({"MAISON": [_entry("/a"), _entry("/b")]})
        assert index["MAISON"] == (_entry("/a"), _entry("/b"))

    def test_entry_count(self):
        index = GlossIndex({"A": [_entry("/a"), _entry("/b")], "B": [_entry("/c")]})
        assert index.entry_count == 3

    def test_not_mutable(self):
        index = GlossIndex({"A": [_entry("/a")]})
        with pytest.raises(TypeError):
            index["B"] = (_entry("/b"),)

    def test_source_mapping_changes_do_not_leak(self):
        source = {"A": [_entry("/a")]}
        index = GlossIndex(source)
        source["A"].append(_entry("/b"))
        assert len(index["A"]) == 1


# ---------------------------------------------------------------------------
# Document format
# ---------------------------------------------------------------------------


class TestDocument:
    def test_sample_document_matches_schema(self, sample_document):
        jsonschema.validate(instance=sample_document, schema=INDEX_DOCUMENT_SCHEMA)

    def test_from_document(self, sample_document, sample_keys):
        index = GlossIndex.from_document(sample_document)
        assert set(index) == set(sample_keys)
        assert index.best("MAISON") == VideoEntry(sample_keys["MAISON"], "Matignon-LSF", 1.0)

    def test_to_document_uses_camel_case(self):
        document = GlossIndex({"A": [_entry("/a", 0.5)]}).to_document()
        assert document == {"A": [{"videoUrl": "/a", "source": "Matignon-LSF", "score": 0.5}]}

    @pytest.mark.parametrize("document", [
        [],
        {"A": []},
        {"A": [{"videoUrl": "/a", "source": "x"}]},
        {"A": [{"videoUrl": "", "source": "x", "score": 1}]},
        {"A": [{"videoUrl": "/a", "source": "x", "score": "high"}]},
        {"A": {"videoUrl": "/a", "source": "x", "score": 1}},
    ])
    def test_invalid_documents_rejected(self, document):
        with pytest.raises(IndexFormatError):
            GlossIndex.from_document(document)

    def test_error_names_offending_path(self):
        with pytest.raises(IndexFormatError, match="A/0"):
            GlossIndex.from_document({"A": [{"videoUrl": "/a", "source": "x"}]})

    def test_dump_sorts_keys_and_keeps_entry_order(self):
        index = GlossIndex({"ZEBRE": [_entry("/z")], "ABEILLE": [_entry("/b"), _entry("/a")]})
        document = json.loads(dump_index(index))
        assert list(document) == ["ABEILLE", "ZEBRE"]
        assert [e["videoUrl"] for e in document["ABEILLE"]] == ["/b", "/a"]

    def test_dump_is_deterministic(self):
        a = GlossIndex({"B": [_entry("/b")], "A": [_entry("/a")]})
        b = GlossIndex({"A": [_entry("/a")], "B": [_entry("/b")]})
        assert dump_index(a) == dump_index(b)
        assert dump_index(a).endswith("\n")

    def test_loads_rejects_invalid_json(self):
        with pytest.raises(IndexFormatError):
            loads_index("{not json")


class TestLoadIndex:
    def test_reads_document_from_disk(self, tmp_path, sample_document):
        path = tmp_path / "index.json"
        path.write_text(json.dumps(sample_document), encoding="utf-8")
        assert len(load_index(path)) == len(sample_document)

    def test_missing_file_raises_os_error(self, tmp_path):
        with pytest.raises(OSError):
            load_index(tmp_path / "absent.json")


# ---------------------------------------------------------------------------
# Overrides file
# ---------------------------------------------------------------------------


class TestLoadOverrides:
    def test_reads_flat_mapping(self, tmp_path):
        path = tmp_path / "overrides.json"
        path.write_text(json.dumps({"L'été": "/curated/ete.mp4"}), encoding="utf-8")
        assert load_overrides(path) == {"L'été": "/curated/ete.mp4"}

    @pytest.mark.parametrize("document", [
        ["MAISON"],
        {"MAISON": 3},
        {"MAISON": ""},
        {"MAISON": ["/a.mp4"]},
    ])
    def test_invalid_documents_rejected(self, tmp_path, document):
        path = tmp_path / "overrides.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(IndexFormatError):
            load_overrides(path)

    def test_invalid_json_rejected(self, tmp_path):
        path = tmp_path / "overrides.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(IndexFormatError):
            load_overrides(path)

    def test_missing_file_raises_os_error(self, tmp_path):
        with pytest.raises(OSError):
            load_overrides(tmp_path / "absent.json")
