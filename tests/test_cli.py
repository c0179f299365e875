"""Tests for the command line interface."""

from pathlib import Path

import pytest

from blog_search.cli import build_parser, main


@pytest.fixture
def pages_dir(tmp_path: Path) -> Path:
    """Create a pages directory with one post.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        Path to the pages directory.
    """
    docs = tmp_path / "pages" / "docs"
    docs.mkdir(parents=True)
    (docs / "t-struct-in-context.md").write_text(
        """---
title: T::Struct in Context
---

## Overview

Sorbet structs give typed value objects.
""",
        encoding="utf-8",
    )
    return tmp_path / "pages"


def test_build_and_query(pages_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test building an index and querying it from the command line."""
    output = tmp_path / "search-index.json"

    assert main(["build", str(pages_dir), str(output), "--base-path", ""]) == 0
    assert output.exists()
    assert "Indexed 1 documents" in capsys.readouterr().out

    assert main(["query", str(output), "sorbet"]) == 0
    assert capsys.readouterr().out == "/docs/t-struct-in-context#overview\tT::Struct in Context > Overview\n"


def test_query_no_results(pages_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test the empty-state message."""
    output = tmp_path / "search-index.json"
    main(["build", str(pages_dir), str(output)])
    capsys.readouterr()

    assert main(["query", str(output), "kubernetes"]) == 0
    assert capsys.readouterr().out == "No results\n"


def test_query_prefix(pages_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test the prefix flag."""
    output = tmp_path / "search-index.json"
    main(["build", str(pages_dir), str(output), "--base-path", ""])
    capsys.readouterr()

    assert main(["query", str(output), "sorb", "--prefix"]) == 0
    assert capsys.readouterr().out.startswith("/docs/t-struct-in-context#overview")


def test_query_invalid_index(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test that a broken index reports search as unavailable."""
    index_path = tmp_path / "search-index.json"
    index_path.write_text("[]", encoding="utf-8")

    assert main(["query", str(index_path), "anything"]) == 1
    assert capsys.readouterr().out == "Search unavailable\n"


def test_build_missing_pages(tmp_path: Path) -> None:
    """Test that a missing pages directory fails the build."""
    assert main(["build", str(tmp_path / "missing"), str(tmp_path / "out.json")]) == 1


def test_base_path_defaults_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that the base path falls back to NEXT_PUBLIC_BASE_PATH."""
    monkeypatch.setenv("NEXT_PUBLIC_BASE_PATH", "/blog")

    args = build_parser().parse_args(["build", "pages", "out.json"])

    assert args.base_path == "/blog"
    assert args.section_level == 2


def test_command_required() -> None:
    """Test that a subcommand must be given."""
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_query_rejects_negative_limit(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that --limit must be zero or greater."""
    with pytest.raises(SystemExit):
        build_parser().parse_args(["query", "index.json", "rails", "--limit", "-1"])

    assert "must be zero or greater" in capsys.readouterr().err


def test_query_limit_parsed_as_int() -> None:
    """Test that a valid --limit is converted to an integer."""
    args = build_parser().parse_args(["query", "index.json", "rails", "--limit", "0"])

    assert args.limit == 0
