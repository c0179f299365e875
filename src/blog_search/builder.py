"""Builds the serialized search index from parsed documents."""

import json
import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from typing import Any

from blog_search.anchors import AnchorSlugger
from blog_search.models import Document, SectionRecord
from blog_search.tokenizer import token_counts

logger = logging.getLogger(__name__)


class IndexBuilder:
    """Turns an ordered collection of documents into a serialized index."""

    def build(self, documents: Iterable[Document]) -> dict[str, Any]:
        """Build the serialized index.

        Section ids are assigned in document order, then section order, so
        the same input always yields the same ids.

        Args:
            documents: Documents in the order they should rank on ties.

        Returns:
            JSON-compatible mapping with ``tokens`` and ``sections`` members.
        """
        postings: dict[str, list[list[int]]] = {}
        sections: dict[str, dict[str, str]] = {}
        seen_paths: set[str] = set()
        next_id = 0

        for document in documents:
            if document.path in seen_paths:
                logger.warning("Duplicate document path: %s", document.path)
            seen_paths.add(document.path)

            for record, counts in self._section_records(document):
                section_id = next_id
                next_id += 1
                sections[str(section_id)] = {
                    "path": record.path,
                    "anchor": record.anchor,
                    "heading": record.heading,
                    "title": record.title,
                }
                for token, frequency in counts.items():
                    postings.setdefault(token, []).append([section_id, frequency])

        logger.info("Indexed %d sections with %d distinct tokens", len(sections), len(postings))
        return {
            "tokens": {token: postings[token] for token in sorted(postings)},
            "sections": sections,
        }

    def _section_records(self, document: Document) -> Iterator[tuple[SectionRecord, Counter[str]]]:
        """Yield a record and token counts for each indexable section of a document.

        Args:
            document: Document to split.

        Yields:
            Tuples of (SectionRecord, token Counter).
        """
        slugger = AnchorSlugger()
        page_level_seen = False
        for section in document.sections:
            if not token_counts(section.heading, section.body):
                continue

            heading = section.heading.strip() or document.title
            # Only the first page-level section may link without a fragment
            if section.anchor == "" and not page_level_seen:
                anchor = ""
                page_level_seen = True
            elif not section.anchor:
                anchor = slugger.slug(heading)
            else:
                anchor = slugger.claim(section.anchor)

            # Title words count towards every section of the page
            if heading == document.title:
                counts = token_counts(heading, section.body)
            else:
                counts = token_counts(heading, section.body, document.title)
            yield SectionRecord(path=document.path, anchor=anchor, heading=heading, title=document.title), counts


def serialize_index(index: dict[str, Any]) -> str:
    """Encode a serialized index as canonical JSON.

    Keys are sorted and separators fixed so identical indexes produce
    byte-identical output.
    """
    return json.dumps(index, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def build_index(documents: Iterable[Document]) -> dict[str, Any]:
    """Shorthand for ``IndexBuilder().build(documents)``."""
    return IndexBuilder().build(documents)
