"""Brute-force similarity ranking over the whole stored corpus."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from doc_search.config import SearchConfig
from doc_search.errors import DimensionMismatchError, MalformedEmbeddingError
from doc_search.obs.logging_utils import Timer
from doc_search.storage.document_store import DocumentStore
from doc_search.types import Document, ScoredResult, SearchFilters, SimilarityMode
from doc_search.vector_math import cosine_similarity, euclidean_distance

logger = logging.getLogger(__name__)

_MODES: tuple[str, ...] = ("cosine", "euclidean")


class SimilarityRanker:
    """Scores every stored document against a query vector.

    Each call is a full corpus scan, O(N * D) for N documents of dimension D,
    computed from one `list_all` snapshot. There is no index and no cache, so
    results always reflect the store at call time.

    Ordering is deterministic: similarity descending, then document id
    ascending, regardless of the order the store returns rows in.
    """

    def __init__(self, store: DocumentStore, config: SearchConfig | None = None) -> None:
        self.store = store
        self.config = config or SearchConfig()

    def search_similar(
        self,
        query_vector: Sequence[float],
        limit: int | None = None,
        mode: SimilarityMode | None = None,
        filters: SearchFilters | None = None,
    ) -> list[ScoredResult]:
        """Return the top matches for `query_vector`.

        Args:
            query_vector: Non-empty query embedding.
            limit: Maximum results; defaults to `SearchConfig.default_limit`.
            mode: `"cosine"` or `"euclidean"`; euclidean distances are mapped
                to `similarity = 1 / (1 + distance)`.
            filters: Optional date window (applied by the store), inclusive
                `min_similarity`, and a `max_results` cap.

        Raises:
            ValueError: empty query, non-positive limit or unknown mode.
            DimensionMismatchError: any candidate embedding differs in length
                from the query.
            MalformedEmbeddingError: every candidate carrying embedding data
                failed to decode.
        """

        if not query_vector:
            raise ValueError("query_vector must not be empty")
        final_limit = self.config.default_limit if limit is None else limit
        if final_limit < 1:
            raise ValueError(f"limit must be a positive integer, got {final_limit}")
        final_mode = mode or self.config.default_mode
        if final_mode not in _MODES:
            raise ValueError(f"Unknown similarity mode: {final_mode}")

        active = filters or SearchFilters()
        query = tuple(float(value) for value in query_vector)

        with Timer() as timer:
            candidates = self.store.list_all(active.date_range())
            scored: list[ScoredResult] = []
            malformed = 0
            embedded = 0
            for candidate in candidates:
                if candidate.malformed:
                    malformed += 1
                    logger.warning("Skipping document with malformed embedding: %s", candidate.embedding_error)
                    continue
                if candidate.embedding is None:
                    continue
                embedded += 1
                scored.append(self._score(query, candidate.document, candidate.embedding, final_mode))

        if malformed and not embedded:
            raise MalformedEmbeddingError(
                f"all {malformed} candidate embeddings are malformed; re-embed the corpus"
            )

        logger.debug(
            "Scored %d of %d candidates (%s) in %.2f ms",
            len(scored),
            len(candidates),
            final_mode,
            timer.elapsed_ms,
        )

        if active.min_similarity is not None:
            scored = [item for item in scored if item.similarity >= active.min_similarity]

        scored.sort(key=lambda item: (-item.similarity, item.document.id))

        cap = final_limit
        if active.max_results is not None:
            cap = min(cap, active.max_results)
        return scored[: max(cap, 0)]

    @staticmethod
    def _score(
        query: tuple[float, ...],
        document: Document,
        embedding: tuple[float, ...],
        mode: str,
    ) -> ScoredResult:
        try:
            if mode == "cosine":
                similarity = cosine_similarity(query, embedding)
                return ScoredResult(document=document, similarity=similarity, distance=1.0 - similarity)
            distance = euclidean_distance(query, embedding)
            return ScoredResult(document=document, similarity=1.0 / (1.0 + distance), distance=distance)
        except DimensionMismatchError as exc:
            raise DimensionMismatchError(
                expected=exc.expected, actual=exc.actual, document_id=document.id
            ) from exc
