"""Greedy seed-based grouping of ranked similarity results."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from doc_search.config import SearchConfig
from doc_search.errors import MalformedEmbeddingError
from doc_search.retrieval.ranker import SimilarityRanker
from doc_search.storage.document_store import DocumentStore
from doc_search.types import Cluster, EmbeddingVector, ScoredResult
from doc_search.vector_math import cosine_similarity

logger = logging.getLogger(__name__)


class ClusterBuilder:
    """Groups ranked results around seeds taken in rank order.

    Membership is decided seed-to-candidate only. Two results that are each
    close to a third can still land in different clusters, and the outcome
    depends on rank order. This is not connected-component clustering.
    """

    def __init__(
        self,
        ranker: SimilarityRanker,
        store: DocumentStore,
        config: SearchConfig | None = None,
    ) -> None:
        self.ranker = ranker
        self.store = store
        self.config = config or SearchConfig()

    def search_with_clustering(
        self,
        query_vector: Sequence[float],
        limit: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[Cluster]:
        final_limit = self.config.cluster_limit if limit is None else limit
        if final_limit < 1:
            raise ValueError(f"limit must be a positive integer, got {final_limit}")
        threshold = (
            self.config.cluster_threshold if similarity_threshold is None else similarity_threshold
        )

        try:
            ranked = self.ranker.search_similar(
                query_vector, final_limit * self.config.cluster_oversample
            )
        except MalformedEmbeddingError as exc:
            logger.warning("No usable embeddings to cluster: %s", exc)
            return []
        embeddings = self._load_embeddings(ranked)

        clusters: list[Cluster] = []
        processed: set[int] = set()
        for index, seed in enumerate(ranked):
            if seed.document.id in processed:
                continue
            processed.add(seed.document.id)
            members = [seed]
            seed_embedding = embeddings.get(seed.document.id)

            if seed_embedding is not None:
                for candidate in ranked[index + 1 :]:
                    candidate_id = candidate.document.id
                    if candidate_id in processed:
                        continue
                    candidate_embedding = embeddings.get(candidate_id)
                    if candidate_embedding is None:
                        continue
                    if cosine_similarity(seed_embedding, candidate_embedding) >= threshold:
                        members.append(candidate)
                        processed.add(candidate_id)

            clusters.append(Cluster(cluster_id=len(clusters), members=tuple(members)))
            if len(clusters) >= final_limit:
                break

        logger.debug(
            "Built %d clusters from %d ranked results (threshold %.2f)",
            len(clusters),
            len(ranked),
            threshold,
        )
        return clusters

    def _load_embeddings(self, ranked: Sequence[ScoredResult]) -> dict[int, EmbeddingVector]:
        """Fetch each result's embedding once; unusable rows are logged and left out."""

        embeddings: dict[int, EmbeddingVector] = {}
        for result in ranked:
            doc_id = result.document.id
            stored = self.store.get_by_id(doc_id)
            if stored is None:
                logger.warning("Document %s disappeared before clustering", doc_id)
                continue
            if stored.malformed:
                logger.warning("Skipping malformed embedding while clustering: %s", stored.embedding_error)
                continue
            if stored.embedding is None:
                logger.warning("Document %s has no embedding; kept as a singleton", doc_id)
                continue
            embeddings[doc_id] = stored.embedding
        return embeddings
