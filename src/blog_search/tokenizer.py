"""Text normalisation shared by the index builder and the query engine."""

import re
from collections import Counter

# Anything that is not a letter or digit separates tokens
_TOKEN_RE = re.compile(r"[^\W_]+")


def tokenize(text: str) -> list[str]:
    """Split text into normalised tokens.

    Text is lowercased and punctuation is treated as whitespace, so
    ``"T::Struct"`` yields ``["t", "struct"]``.

    Args:
        text: Raw text.

    Returns:
        Tokens in order of appearance, duplicates kept.
    """
    return _TOKEN_RE.findall(text.casefold())


def token_counts(*texts: str) -> Counter[str]:
    """Return the token multiset of one or more texts."""
    counts: Counter[str] = Counter()
    for text in texts:
        counts.update(tokenize(text))
    return counts


def is_normalised(token: str) -> bool:
    """Check whether a string is a single token exactly as ``tokenize`` emits it."""
    return tokenize(token) == [token]
