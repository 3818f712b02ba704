"""Similarity and recency facet counts over a ranked result set."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from doc_search.config import SearchConfig
from doc_search.errors import MalformedEmbeddingError
from doc_search.retrieval.ranker import SimilarityRanker
from doc_search.types import (
    FacetedResults,
    FacetSummary,
    RecencyBand,
    ScoredResult,
    SimilarityBand,
    as_utc,
)

# (label, lower bound); checked top-down, first match wins.
SIMILARITY_BANDS: tuple[tuple[str, float], ...] = (
    ("0.9-1.0", 0.9),
    ("0.7-0.9", 0.7),
    ("0.5-0.7", 0.5),
    ("0.0-0.5", float("-inf")),
)

# (label, maximum age in days); checked top-down, first match wins.
RECENCY_BANDS: tuple[tuple[str, float], ...] = (
    ("Last 24 hours", 1.0),
    ("Last week", 7.0),
    ("Last month", 30.0),
    ("Older", float("inf")),
)

_SECONDS_PER_DAY = 86400.0

logger = logging.getLogger(__name__)


class FacetSummarizer:
    def __init__(self, ranker: SimilarityRanker, config: SearchConfig | None = None) -> None:
        self.ranker = ranker
        self.config = config or SearchConfig()

    def search_with_facets(
        self,
        query_vector: Sequence[float],
        limit: int | None = None,
        *,
        now: datetime | None = None,
    ) -> FacetedResults:
        final_limit = self.config.facet_limit if limit is None else limit
        try:
            results = self.ranker.search_similar(query_vector, final_limit)
        except MalformedEmbeddingError as exc:
            logger.warning("No usable embeddings to facet: %s", exc)
            results = []
        return FacetedResults(results=tuple(results), facets=summarize(results, now=now))


def summarize(results: Sequence[ScoredResult], *, now: datetime | None = None) -> FacetSummary:
    """Count results per similarity band and per recency band."""

    reference = as_utc(now) if now is not None else datetime.now(timezone.utc)
    similarity_counts = [0] * len(SIMILARITY_BANDS)
    recency_counts = [0] * len(RECENCY_BANDS)

    for result in results:
        similarity_counts[_similarity_band(result.similarity)] += 1
        age_days = (reference - result.document.created_at).total_seconds() / _SECONDS_PER_DAY
        recency_counts[_recency_band(age_days)] += 1

    return FacetSummary(
        similarity_bands=tuple(
            SimilarityBand(range=label, count=count)
            for (label, _), count in zip(SIMILARITY_BANDS, similarity_counts, strict=True)
        ),
        recency_bands=tuple(
            RecencyBand(period=label, count=count)
            for (label, _), count in zip(RECENCY_BANDS, recency_counts, strict=True)
        ),
    )


def _similarity_band(similarity: float) -> int:
    for index, (_, lower) in enumerate(SIMILARITY_BANDS):
        if similarity >= lower:
            return index
    return len(SIMILARITY_BANDS) - 1


def _recency_band(age_days: float) -> int:
    for index, (_, max_days) in enumerate(RECENCY_BANDS):
        if age_days <= max_days:
            return index
    return len(RECENCY_BANDS) - 1
