"""Indexer for the blog's Markdoc pages."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from blog_search.builder import IndexBuilder, serialize_index
from blog_search.models import Document
from blog_search.parser import MarkdocParser

logger = logging.getLogger(__name__)


class SiteIndexer:
    """Collects every page under a pages directory and builds the search index."""

    def __init__(self, parser: MarkdocParser | None = None, builder: IndexBuilder | None = None) -> None:
        """Initialise indexer.

        Args:
            parser: Page parser, a default MarkdocParser when omitted.
            builder: Index builder, a default IndexBuilder when omitted.
        """
        self.parser = parser or MarkdocParser()
        self.builder = builder or IndexBuilder()

    def collect_documents(self, pages_path: Path) -> list[Document]:
        """Parse all pages in the pages directory.

        Args:
            pages_path: Path to the pages directory.

        Returns:
            Documents in sorted file path order.

        Raises:
            ValueError: If the pages path does not exist.
        """
        if not pages_path.is_dir():
            msg = f"Pages path does not exist: {pages_path}"
            raise ValueError(msg)

        page_files = sorted(pages_path.rglob(f"*{self.parser.PAGE_SUFFIX}"))
        logger.info("Found %d pages to index", len(page_files))

        documents = []
        for file_path in page_files:
            document = self.parser.parse_file(file_path, pages_path)
            if document:
                documents.append(document)
                logger.debug("Parsed: %s (%d sections)", document.path, len(document.sections))
            else:
                logger.warning("Failed to parse: %s", file_path)
        return documents

    def build_from_path(self, pages_path: Path) -> dict[str, Any]:
        """Build the serialized index for a pages directory."""
        return self.builder.build(self.collect_documents(pages_path))

    def write_index(self, pages_path: Path, output_path: Path) -> int:
        """Rebuild the index from scratch and write it to disk.

        The file is replaced atomically so a deployed site never sees a
        partially written index.

        Args:
            pages_path: Path to the pages directory.
            output_path: Destination of the JSON index.

        Returns:
            Number of documents indexed.
        """
        documents = self.collect_documents(pages_path)
        payload = serialize_index(self.builder.build(documents))

        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=output_path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(temp_name, output_path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

        logger.info("Wrote index for %d documents to %s", len(documents), output_path)
        return len(documents)
