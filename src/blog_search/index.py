"""Loading and validation of the serialized search index."""

import json
import re
from bisect import bisect_left
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from blog_search.models import SectionRecord
from blog_search.tokenizer import is_normalised, tokenize

INDEX_MEMBERS = frozenset({"tokens", "sections"})
SECTION_FIELDS = ("path", "anchor", "heading", "title")
SECTION_ID_RE = re.compile(r"0|[1-9][0-9]*")


class InvalidIndexError(ValueError):
    """Raised when a serialized index does not match the expected schema."""


@dataclass(frozen=True)
class Posting:
    """One section hit for a token."""

    section_id: int
    frequency: int


class SearchIndex:
    """Read-only, validated view of a serialized index.

    Construct it once with ``load``, ``loads`` or ``from_dict`` and pass it
    to every ``QueryEngine`` that needs it. Validation happens entirely at
    construction time.
    """

    def __init__(
        self,
        postings: Mapping[str, tuple[Posting, ...]],
        sections: Mapping[int, SectionRecord],
    ) -> None:
        self._postings = MappingProxyType(dict(postings))
        self._sections = MappingProxyType(dict(sections))
        self._vocabulary = tuple(sorted(self._postings))
        self._heading_tokens = MappingProxyType(
            {
                section_id: frozenset(tokenize(record.heading)) | frozenset(tokenize(record.title))
                for section_id, record in self._sections.items()
            }
        )

    @classmethod
    def load(cls, path: Path) -> "SearchIndex":
        """Load an index from a JSON file.

        Args:
            path: Path to the index file.

        Returns:
            SearchIndex instance.

        Raises:
            InvalidIndexError: If the file is not valid JSON or fails validation.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            msg = f"Index file is not UTF-8: {path}"
            raise InvalidIndexError(msg) from exc
        return cls.loads(text)

    @classmethod
    def loads(cls, text: str) -> "SearchIndex":
        """Load an index from JSON text."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"Index is not valid JSON: {exc}"
            raise InvalidIndexError(msg) from exc
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> "SearchIndex":
        """Validate a decoded index and build a SearchIndex from it.

        Args:
            data: Decoded JSON value.

        Returns:
            SearchIndex instance.

        Raises:
            InvalidIndexError: On any schema mismatch.
        """
        if not isinstance(data, dict):
            msg = f"Index must be a JSON object, got {type(data).__name__}"
            raise InvalidIndexError(msg)
        if set(data) != INDEX_MEMBERS:
            msg = f"Index members must be {sorted(INDEX_MEMBERS)}, got {sorted(data)}"
            raise InvalidIndexError(msg)

        sections = cls._parse_sections(data["sections"])
        postings = cls._parse_tokens(data["tokens"], sections)
        return cls(postings, sections)

    @staticmethod
    def _parse_sections(raw: Any) -> dict[int, SectionRecord]:
        if not isinstance(raw, dict):
            msg = "Index 'sections' must be an object"
            raise InvalidIndexError(msg)

        sections: dict[int, SectionRecord] = {}
        for key, value in raw.items():
            # Canonical ASCII digits only, so two keys can never name the same id
            if not isinstance(key, str) or not SECTION_ID_RE.fullmatch(key):
                msg = f"Section id must be a canonical decimal string, got {key!r}"
                raise InvalidIndexError(msg)
            if not isinstance(value, dict) or set(value) != set(SECTION_FIELDS):
                msg = f"Section {key} must have exactly the fields {list(SECTION_FIELDS)}"
                raise InvalidIndexError(msg)
            if not all(isinstance(value[name], str) for name in SECTION_FIELDS):
                msg = f"Section {key} fields must be strings"
                raise InvalidIndexError(msg)
            sections[int(key)] = SectionRecord(**{name: value[name] for name in SECTION_FIELDS})
        return sections

    @staticmethod
    def _parse_tokens(raw: Any, sections: Mapping[int, SectionRecord]) -> dict[str, tuple[Posting, ...]]:
        if not isinstance(raw, dict):
            msg = "Index 'tokens' must be an object"
            raise InvalidIndexError(msg)

        postings: dict[str, tuple[Posting, ...]] = {}
        for token, entries in raw.items():
            # A key the query tokenizer could never produce means builder and
            # engine disagree on normalisation
            if not is_normalised(token):
                msg = f"Token {token!r} is not normalised"
                raise InvalidIndexError(msg)
            if not isinstance(entries, list):
                msg = f"Entries for token {token!r} must be a list"
                raise InvalidIndexError(msg)

            parsed = []
            for entry in entries:
                if (
                    not isinstance(entry, list)
                    or len(entry) != 2
                    or not all(type(item) is int for item in entry)
                    or entry[1] < 1
                ):
                    msg = f"Malformed entry for token {token!r}: {entry!r}"
                    raise InvalidIndexError(msg)
                if entry[0] not in sections:
                    msg = f"Token {token!r} references unknown section {entry[0]}"
                    raise InvalidIndexError(msg)
                parsed.append(Posting(section_id=entry[0], frequency=entry[1]))
            postings[token] = tuple(parsed)
        return postings

    def postings(self, token: str) -> tuple[Posting, ...]:
        """Return the postings for an exact token, empty if unknown."""
        return self._postings.get(token, ())

    def tokens_with_prefix(self, prefix: str) -> list[str]:
        """Return indexed tokens starting with ``prefix`` in sorted order."""
        start = bisect_left(self._vocabulary, prefix)
        matches = []
        for token in self._vocabulary[start:]:
            if not token.startswith(prefix):
                break
            matches.append(token)
        return matches

    def section(self, section_id: int) -> SectionRecord:
        """Return the link data for a section.

        Args:
            section_id: Id of an indexed section.

        Returns:
            SectionRecord instance.

        Raises:
            KeyError: If the section is not in the index.
        """
        return self._sections[section_id]

    def heading_tokens(self, section_id: int) -> frozenset[str]:
        """Return the tokens of a section's heading and its document title.

        Query tokens found here earn the heading weight.

        Args:
            section_id: Id of an indexed section.

        Returns:
            Frozen set of normalised tokens.
        """
        return self._heading_tokens[section_id]

    def __len__(self) -> int:
        """Return the number of indexed sections."""
        return len(self._sections)

    def __contains__(self, section_id: object) -> bool:
        """Check whether a section id is indexed."""
        return section_id in self._sections

    @property
    def token_count(self) -> int:
        """Number of distinct tokens in the index."""
        return len(self._postings)
