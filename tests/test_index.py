"""Tests for loading and validating the serialized index."""

from pathlib import Path
from typing import Any

import pytest

from blog_search.builder import build_index, serialize_index
from blog_search.index import InvalidIndexError, SearchIndex
from blog_search.models import Document, SectionRecord


@pytest.fixture
def raw_index(documents: list[Document]) -> dict[str, Any]:
    """Build a serialized index from the shared documents.

    Args:
        documents: Shared documents fixture.

    Returns:
        Serialized index mapping.
    """
    return build_index(documents)


def test_from_dict_valid(raw_index: dict[str, Any]) -> None:
    """Test loading a freshly built index."""
    index = SearchIndex.from_dict(raw_index)

    assert len(index) == 6
    assert index.token_count == len(raw_index["tokens"])
    assert index.section(1) == SectionRecord(
        path="/docs/composable-views", anchor="intro", heading="Intro", title="Composable Views in Rails"
    )
    assert [posting.section_id for posting in index.postings("overview")] == [3, 5]
    assert index.postings("missing") == ()


def test_loads_round_trip(raw_index: dict[str, Any]) -> None:
    """Test loading from the canonical JSON text."""
    index = SearchIndex.loads(serialize_index(raw_index))

    assert len(index) == 6
    assert 5 in index
    assert 6 not in index


def test_load_from_file(tmp_path: Path, raw_index: dict[str, Any]) -> None:
    """Test loading from a file on disk."""
    index_path = tmp_path / "search-index.json"
    index_path.write_text(serialize_index(raw_index), encoding="utf-8")

    index = SearchIndex.load(index_path)

    assert index.section(0).title == "Composable Views in Rails"


def test_load_non_utf8_file(tmp_path: Path) -> None:
    """Test that an undecodable file is reported as an invalid index."""
    index_path = tmp_path / "search-index.json"
    index_path.write_bytes(b"\xff\xfe")

    with pytest.raises(InvalidIndexError, match="not UTF-8"):
        SearchIndex.load(index_path)


def test_loads_invalid_json() -> None:
    """Test that broken JSON is reported as an invalid index."""
    with pytest.raises(InvalidIndexError, match="not valid JSON"):
        SearchIndex.loads('{"tokens": {')


def test_empty_index_is_valid() -> None:
    """Test that an index with no content loads."""
    index = SearchIndex.from_dict({"tokens": {}, "sections": {}})

    assert len(index) == 0


def test_section_record_url() -> None:
    """Test link rendering for anchored and page-level sections."""
    assert SectionRecord(path="/docs/a", anchor="intro", heading="Intro", title="A").url == "/docs/a#intro"
    assert SectionRecord(path="/docs/a", anchor="", heading="A", title="A").url == "/docs/a"


def test_tokens_with_prefix(raw_index: dict[str, Any]) -> None:
    """Test prefix lookup over the sorted vocabulary."""
    index = SearchIndex.from_dict(raw_index)

    assert index.tokens_with_prefix("partial") == ["partials"]
    assert index.tokens_with_prefix("struct") == ["struct", "structs"]
    assert index.tokens_with_prefix("zzz") == []


def test_heading_tokens(raw_index: dict[str, Any]) -> None:
    """Test that heading and title tokens are used for field weighting."""
    index = SearchIndex.from_dict(raw_index)

    assert index.heading_tokens(0) == frozenset({"composable", "views", "in", "rails"})
    assert index.heading_tokens(4) == frozenset({"rails", "t", "struct", "in", "context"})


def test_index_is_read_only(raw_index: dict[str, Any]) -> None:
    """Test that loaded data cannot be mutated through the index."""
    index = SearchIndex.from_dict(raw_index)

    with pytest.raises(TypeError):
        index._postings["new"] = ()  # type: ignore[index]
    raw_index["tokens"].clear()
    assert index.postings("overview")


SECTION = {"path": "/docs/a", "anchor": "intro", "heading": "Intro", "title": "Alpha"}


@pytest.mark.parametrize(
    ("data", "message"),
    [
        ([], "must be a JSON object"),
        ({"tokens": {}}, "Index members"),
        ({"tokens": {}, "sections": {}, "version": 1}, "Index members"),
        ({"tokens": {}, "sections": []}, "'sections' must be an object"),
        ({"tokens": [], "sections": {}}, "'tokens' must be an object"),
        ({"tokens": {}, "sections": {"a": SECTION}}, "decimal string"),
        ({"tokens": {}, "sections": {"03": SECTION}}, "canonical decimal string"),
        ({"tokens": {}, "sections": {"\u0663": SECTION}}, "canonical decimal string"),
        ({"tokens": {}, "sections": {" 3": SECTION}}, "canonical decimal string"),
        ({"tokens": {}, "sections": {"0": {"path": "/docs/a"}}}, "exactly the fields"),
        ({"tokens": {}, "sections": {"0": {**SECTION, "extra": "x"}}}, "exactly the fields"),
        ({"tokens": {}, "sections": {"0": {**SECTION, "anchor": None}}}, "must be strings"),
        ({"tokens": {"Intro": [[0, 1]]}, "sections": {"0": SECTION}}, "not normalised"),
        ({"tokens": {"two words": [[0, 1]]}, "sections": {"0": SECTION}}, "not normalised"),
        ({"tokens": {"intro": {"0": 1}}, "sections": {"0": SECTION}}, "must be a list"),
        ({"tokens": {"intro": [0]}, "sections": {"0": SECTION}}, "Malformed entry"),
        ({"tokens": {"intro": [[0]]}, "sections": {"0": SECTION}}, "Malformed entry"),
        ({"tokens": {"intro": [[0, 0]]}, "sections": {"0": SECTION}}, "Malformed entry"),
        ({"tokens": {"intro": [["0", 1]]}, "sections": {"0": SECTION}}, "Malformed entry"),
        ({"tokens": {"intro": [[0, True]]}, "sections": {"0": SECTION}}, "Malformed entry"),
        ({"tokens": {"intro": [[1, 1]]}, "sections": {"0": SECTION}}, "unknown section 1"),
    ],
)
def test_from_dict_rejects_malformed(data: Any, message: str) -> None:
    """Test that schema mismatches are caught at load time."""
    with pytest.raises(InvalidIndexError, match=message):
        SearchIndex.from_dict(data)


def test_invalid_index_is_value_error() -> None:
    """Test that callers catching ValueError also see index errors."""
    assert issubclass(InvalidIndexError, ValueError)
