"""Weighted linear fusion of text and similarity results."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from doc_search.config import SearchConfig
from doc_search.retrieval.ranker import SimilarityRanker
from doc_search.retrieval.text_matcher import TextMatcher
from doc_search.types import Document, HybridResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    document: Document
    similarity: float = 0.0
    distance: float = 0.0
    text_score: float = 0.0
    semantic_score: float = 0.0


class HybridFusion:
    """Merges keyword hits and vector hits into one score per document.

    Fusion process:
    1. Run text search and similarity search independently, each oversampled
       to `limit * hybrid_oversample` candidates.
    2. Every text hit contributes a flat `text_weight`, independent of how
       well or how often the query matched.
    3. Every similarity hit contributes `similarity * semantic_weight`.
    4. `total_score` is the sum; results are sorted by it, descending, ties
       broken by document id ascending.
    """

    def __init__(
        self,
        ranker: SimilarityRanker,
        matcher: TextMatcher,
        config: SearchConfig | None = None,
    ) -> None:
        self.ranker = ranker
        self.matcher = matcher
        self.config = config or SearchConfig()

    def hybrid_search(
        self,
        query_text: str,
        query_vector: Sequence[float],
        text_weight: float | None = None,
        semantic_weight: float | None = None,
        limit: int | None = None,
    ) -> list[HybridResult]:
        final_limit = self.config.hybrid_limit if limit is None else limit
        if final_limit < 1:
            raise ValueError(f"limit must be a positive integer, got {final_limit}")
        t_weight = self.config.hybrid_text_weight if text_weight is None else text_weight
        s_weight = self.config.hybrid_semantic_weight if semantic_weight is None else semantic_weight
        candidate_k = final_limit * self.config.hybrid_oversample

        text_hits = self.matcher.search_by_text(query_text, candidate_k)
        semantic_hits = self.ranker.search_similar(query_vector, candidate_k)
        logger.debug(
            "Hybrid search %r: %d text hits, %d semantic hits (weights %.2f/%.2f)",
            query_text,
            len(text_hits),
            len(semantic_hits),
            t_weight,
            s_weight,
        )

        merged: dict[int, _Entry] = {}
        for document in text_hits:
            merged[document.id] = _Entry(document=document, text_score=t_weight)

        for hit in semantic_hits:
            entry = merged.get(hit.document.id)
            if entry is None:
                entry = _Entry(document=hit.document)
                merged[hit.document.id] = entry
            entry.similarity = hit.similarity
            entry.distance = hit.distance
            entry.semantic_score = hit.similarity * s_weight

        results = [
            HybridResult(
                document=entry.document,
                similarity=entry.similarity,
                distance=entry.distance,
                text_score=entry.text_score,
                semantic_score=entry.semantic_score,
                total_score=entry.text_score + entry.semantic_score,
            )
            for entry in merged.values()
        ]
        results.sort(key=lambda item: (-item.total_score, item.document.id))
        return results[:final_limit]
