"""Anchor id generation for section headings."""

from slugify import slugify

FALLBACK_ANCHOR = "section"


def slugify_heading(heading: str) -> str:
    """Convert heading text into a URL fragment.

    Args:
        heading: Heading text.

    Returns:
        Lowercase ASCII slug with punctuation runs collapsed to one hyphen
        ("T::Struct in Context" -> "t-struct-in-context"); ``"section"`` when
        nothing survives.
    """
    return slugify(heading) or FALLBACK_ANCHOR


class AnchorSlugger:
    """Hands out anchor ids that are unique within one document.

    The first use of a slug is returned as-is, repeats get ``-1``, ``-2``
    and so on, skipping any suffix already taken.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._counters: dict[str, int] = {}

    def claim(self, anchor: str) -> str:
        """Reserve ``anchor`` or the next free suffixed variant of it."""
        if anchor not in self._seen:
            self._seen.add(anchor)
            return anchor

        counter = self._counters.get(anchor, 0)
        while True:
            counter += 1
            candidate = f"{anchor}-{counter}"
            if candidate not in self._seen:
                break
        self._counters[anchor] = counter
        self._seen.add(candidate)
        return candidate

    def slug(self, heading: str) -> str:
        """Derive an anchor from heading text and reserve it."""
        return self.claim(slugify_heading(heading))
