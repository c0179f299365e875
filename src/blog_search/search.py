"""Query engine over a loaded search index."""

import logging
from pathlib import Path

from blog_search.index import InvalidIndexError, SearchIndex
from blog_search.models import SearchResult
from blog_search.tokenizer import tokenize

logger = logging.getLogger(__name__)


class QueryEngine:
    """Resolves free-text queries into ranked section results.

    Each matched query token adds a field weight (heading matches beat
    body-only matches) plus a term-frequency bonus that stays below 1, so
    field weight always dominates.
    """

    DEFAULT_LIMIT = 5
    HEADING_WEIGHT = 2.0
    BODY_WEIGHT = 1.0
    PREFIX_WEIGHT = 0.5
    TF_SATURATION = 1.2

    def __init__(self, index: SearchIndex) -> None:
        """Initialise engine with a loaded index.

        Args:
            index: Validated SearchIndex instance.
        """
        self.index = index

    def search(self, query: str, limit: int | None = DEFAULT_LIMIT, prefix: bool = False) -> list[SearchResult]:
        """Search indexed sections.

        Args:
            query: Free-text query string.
            limit: Maximum number of results, or None for all matches.
            prefix: Also match the last query token as a prefix of indexed tokens.

        Returns:
            List of SearchResult instances, best first, ties in document order.

        Raises:
            ValueError: If limit is negative.
        """
        if limit is not None and limit < 0:
            msg = f"limit must be a non-negative integer or None, got {limit}"
            raise ValueError(msg)

        tokens = list(dict.fromkeys(tokenize(query)))
        if not tokens or limit == 0:
            return []

        scores: dict[int, float] = {}
        for token in tokens:
            for section_id, score in self._score_token(token).items():
                scores[section_id] = scores.get(section_id, 0.0) + score

        if prefix:
            last = tokens[-1]
            for section_id, score in self._score_prefix(last).items():
                scores[section_id] = scores.get(section_id, 0.0) + score

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        if limit is not None:
            ranked = ranked[:limit]

        results = []
        for section_id, score in ranked:
            record = self.index.section(section_id)
            results.append(
                SearchResult(
                    section_id=section_id,
                    path=record.path,
                    anchor=record.anchor,
                    heading=record.heading,
                    title=record.title,
                    url=record.url,
                    score=score,
                )
            )
        logger.debug("Query %r matched %d sections", query, len(scores))
        return results

    def _score_token(self, token: str) -> dict[int, float]:
        """Score every section containing an exact token."""
        scores = {}
        for posting in self.index.postings(token):
            if token in self.index.heading_tokens(posting.section_id):
                weight = self.HEADING_WEIGHT
            else:
                weight = self.BODY_WEIGHT
            scores[posting.section_id] = weight + posting.frequency / (posting.frequency + self.TF_SATURATION)
        return scores

    def _score_prefix(self, prefix: str) -> dict[int, float]:
        """Score sections containing a longer token that starts with ``prefix``.

        Only the best prefix hit per section counts.
        """
        scores: dict[int, float] = {}
        for token in self.index.tokens_with_prefix(prefix):
            if token == prefix:
                continue
            for section_id, score in self._score_token(token).items():
                scores[section_id] = max(scores.get(section_id, 0.0), score * self.PREFIX_WEIGHT)
        return scores


def search(query: str, index: SearchIndex, limit: int | None = QueryEngine.DEFAULT_LIMIT) -> list[SearchResult]:
    """Run a one-off query against an index."""
    return QueryEngine(index).search(query, limit=limit)


def open_engine(index_path: Path) -> QueryEngine | None:
    """Load an index file and wrap it in a QueryEngine.

    A missing, unreadable or malformed index disables search rather than failing the
    caller, so the error is logged once here and None is returned.

    Args:
        index_path: Path to the serialized index.

    Returns:
        QueryEngine instance, or None when search is unavailable.
    """
    try:
        index = SearchIndex.load(index_path)
    except FileNotFoundError:
        logger.error("Search index not found: %s", index_path)
        return None
    except OSError as exc:
        logger.error("Search unavailable, cannot read index %s: %s", index_path, exc)
        return None
    except InvalidIndexError as exc:
        logger.error("Search unavailable, invalid index %s: %s", index_path, exc)
        return None

    logger.info("Loaded search index with %d sections", len(index))
    return QueryEngine(index)
