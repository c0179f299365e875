"""Parser for Markdoc blog pages."""

import logging
import re
import xml.etree.ElementTree as etree
from pathlib import Path
from typing import Any

import markdown
import yaml
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import ETX, STX

from blog_search.anchors import AnchorSlugger
from blog_search.models import Document, DocumentMetadata, Section

logger = logging.getLogger(__name__)

FRONT_MATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n---[ \t]*(?:\n|$)", re.DOTALL)
MARKDOC_TAG_RE = re.compile(r"\{%.*?%\}", re.DOTALL)
HEADING_ID_RE = re.compile(r"\{%\s*#([\w-]+)\s*%\}")
PLACEHOLDER_RE = re.compile(f"{STX}[^{ETX}]*{ETX}")

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
# Code and raw markup never reach the index
SKIPPED_TAGS = frozenset({"pre", "script", "style"})
INLINE_TAGS = frozenset(
    {"a", "abbr", "b", "br", "code", "del", "em", "i", "img", "ins", "kbd", "mark"}
    | {"s", "small", "span", "strong", "sub", "sup", "u"}
)


class BlockTreeCollector(Treeprocessor):
    """Keeps a reference to the element tree once inline processing is done."""

    def run(self, root: etree.Element) -> None:
        self.root = root


class BlockTreeExtension(Extension):
    """Registers BlockTreeCollector after the inline and prettify processors."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:  # noqa: N802
        self.collector = BlockTreeCollector(md)
        md.treeprocessors.register(self.collector, "block_tree", 5)


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from page content.

    Args:
        content: Full page source.

    Returns:
        Tuple of (front_matter_dict, markdown_content). Without front matter
        the dict is empty and the content is returned unchanged; invalid
        YAML also yields an empty dict but the block is still removed.
    """
    match = FRONT_MATTER_RE.match(content)
    if not match:
        return {}, content

    body = content[match.end() :]
    try:
        metadata = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        logger.debug("Ignoring invalid front matter")
        return {}, body

    if not isinstance(metadata, dict):
        return {}, body
    return metadata, body


def clean_text(text: str) -> str:
    """Remove stash placeholders and Markdoc tags, collapse whitespace."""
    text = PLACEHOLDER_RE.sub(" ", text)
    text = MARKDOC_TAG_RE.sub(" ", text)
    return re.sub(r"\s+", " ", text).strip()


def _collect_text(element: etree.Element, parts: list[str]) -> None:
    if element.tag not in SKIPPED_TAGS:
        if element.text:
            parts.append(element.text)
        for child in element:
            _collect_text(child, parts)
    if element.tag not in INLINE_TAGS:
        parts.append(" ")
    if element.tail:
        parts.append(element.tail)


def element_text(element: etree.Element) -> str:
    """Return the visible text of an element, skipping code blocks.

    Args:
        element: Block-level element from the Markdown tree.

    Returns:
        Raw text, still containing Markdoc tags.
    """
    if element.tag in SKIPPED_TAGS:
        return ""
    parts = [element.text or ""]
    for child in element:
        _collect_text(child, parts)
    return "".join(parts)


class MarkdocParser:
    """Parses Markdoc pages into documents split at headings."""

    PAGE_SUFFIX = ".md"
    MARKDOWN_EXTENSIONS = ("fenced_code", "tables")

    def __init__(self, base_path: str = "", section_level: int = 2) -> None:
        """Initialise parser.

        Args:
            base_path: Prefix prepended to every page URL (e.g. "/blog").
            section_level: Deepest heading level that starts a new section.
        """
        self.base_path = base_path.rstrip("/")
        self.section_level = section_level

    def parse_file(self, file_path: Path, pages_path: Path) -> Document | None:
        """Parse a page file into a Document.

        Args:
            file_path: Path to the page file.
            pages_path: Root of the pages directory.

        Returns:
            Document instance or None if the file cannot be read.
        """
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Cannot read %s: %s", file_path, exc)
            return None

        relative_path = file_path.relative_to(pages_path)
        return self.parse_text(source, self._compute_url(relative_path), self._fallback_title(relative_path))

    def parse_text(self, source: str, path: str, fallback_title: str = "") -> Document:
        """Parse page source into a Document.

        Args:
            source: Page source, optionally with front matter.
            path: URL path of the page.
            fallback_title: Title used when neither front matter nor an h1 provides one.

        Returns:
            Document instance.
        """
        front_matter, content = parse_front_matter(source)
        root = self._parse_markdown(content)
        metadata = self._extract_metadata(front_matter, root, fallback_title or path)
        sections = self._split_sections(root, metadata.title)
        return Document(
            path=path,
            title=metadata.title,
            sections=tuple(sections),
            description=metadata.description,
        )

    def _parse_markdown(self, content: str) -> etree.Element:
        """Run Python-Markdown and return the processed element tree."""
        # convert() returns early on blank input without running treeprocessors
        if not content.strip():
            return etree.Element("div")

        extension = BlockTreeExtension()
        md = markdown.Markdown(extensions=[*self.MARKDOWN_EXTENSIONS, extension])
        md.convert(content)
        return extension.collector.root

    def _extract_metadata(
        self, front_matter: dict[str, Any], root: etree.Element, fallback_title: str
    ) -> DocumentMetadata:
        """Pick title and description from front matter, the first h1, or the fallback."""
        title = front_matter.get("title")
        if not isinstance(title, str) or not title.strip():
            title = None
            for element in root:
                if element.tag == "h1":
                    title = self._heading(element)[0] or None
                    break

        description = front_matter.get("description")
        if not isinstance(description, str):
            description = None

        return DocumentMetadata(title=(title or fallback_title).strip(), description=description)

    def _split_sections(self, root: etree.Element, title: str) -> list[Section]:
        """Split the top-level blocks of a page into sections.

        Text before the first sectioning heading becomes the page-level
        section, headed by the page title. Headings deeper than
        ``section_level`` stay in the current section's body but still
        consume an anchor, keeping ids in step with the rendered page.
        """
        slugger = AnchorSlugger()
        blocks: list[Section] = []
        heading, anchor, parts = title, "", []

        for element in root:
            if element.tag in HEADING_TAGS:
                text, explicit_id = self._heading(element)
                slug = slugger.claim(explicit_id) if explicit_id else slugger.slug(text)
                if int(element.tag[1]) > self.section_level:
                    parts.append(text)
                    continue
                blocks.append(Section(heading=heading, body=" ".join(parts), anchor=anchor))
                heading, anchor, parts = text, slug, []
            else:
                text = clean_text(element_text(element))
                if text:
                    parts.append(text)
        blocks.append(Section(heading=heading, body=" ".join(parts), anchor=anchor))

        preamble, sections = blocks[0], blocks[1:]
        # An empty page-level section is redundant once the title is a heading
        if not preamble.body and any(section.heading == title for section in sections):
            return sections
        return blocks

    def _heading(self, element: etree.Element) -> tuple[str, str | None]:
        """Return heading text and the explicit ``{% #id %}`` annotation if any."""
        raw = element_text(element)
        match = HEADING_ID_RE.search(raw)
        return clean_text(raw), match.group(1) if match else None

    def _compute_url(self, relative_path: Path) -> str:
        """Compute the page URL from its path under the pages directory.

        Args:
            relative_path: Path relative to the pages directory.

        Returns:
            URL path such as "/docs/composable-views".
        """
        parts = list(relative_path.with_suffix("").parts)
        if parts and parts[-1] == "index":
            parts.pop()
        return f"{self.base_path}/{'/'.join(parts)}"

    def _fallback_title(self, relative_path: Path) -> str:
        """Derive a title from the file name ("dark-side-of-dry.md" -> "Dark Side Of Dry")."""
        stem = relative_path.stem
        if stem == "index":
            stem = relative_path.parent.name or "home"
        return stem.replace("-", " ").replace("_", " ").title()
