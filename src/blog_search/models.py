"""Data models for blog documents and search results."""

from dataclasses import dataclass, field


@dataclass
class DocumentMetadata:
    """Metadata extracted from page front matter."""

    title: str
    description: str | None = None


@dataclass(frozen=True)
class Section:
    """A heading and the text beneath it.

    ``anchor`` of ``None`` means "derive from the heading"; an empty anchor
    is the page-level section that links to the top of the page.
    """

    heading: str
    body: str
    anchor: str | None = None


@dataclass(frozen=True)
class Document:
    """Represents a blog page split into sections."""

    path: str
    title: str
    sections: tuple[Section, ...] = field(default_factory=tuple)
    description: str | None = None


@dataclass(frozen=True)
class SectionRecord:
    """Lookup data needed to render a link to an indexed section."""

    path: str
    anchor: str
    heading: str
    title: str

    @property
    def url(self) -> str:
        return f"{self.path}#{self.anchor}" if self.anchor else self.path


@dataclass
class SearchResult:
    """Represents a search result."""

    section_id: int
    path: str
    anchor: str
    heading: str
    title: str
    url: str
    score: float
