"""Facade exposing every search operation over one injected store."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from doc_search.config import SearchConfig, Settings
from doc_search.retrieval.clustering import ClusterBuilder
from doc_search.retrieval.facets import FacetSummarizer
from doc_search.retrieval.fusion import HybridFusion
from doc_search.retrieval.ranker import SimilarityRanker
from doc_search.retrieval.text_matcher import TextMatcher
from doc_search.storage.codec import get_codec
from doc_search.storage.document_store import DocumentStore
from doc_search.storage.sqlite_store import SqliteDocumentStore
from doc_search.types import (
    Cluster,
    Document,
    FacetedResults,
    HybridResult,
    ScoredResult,
    SearchFilters,
    SimilarityMode,
)


class DocumentSearchService:
    """Bundles ranker, matcher, fusion, clustering and faceting.

    The service holds no connection and no cached results; every call reads
    the store afresh through the components below.
    """

    def __init__(self, store: DocumentStore, config: SearchConfig | None = None) -> None:
        self.store = store
        self.config = config or SearchConfig()
        self.ranker = SimilarityRanker(store, self.config)
        self.matcher = TextMatcher(store, self.config)
        self.fusion = HybridFusion(self.ranker, self.matcher, self.config)
        self.clusters = ClusterBuilder(self.ranker, store, self.config)
        self.facets = FacetSummarizer(self.ranker, self.config)

    def search_similar(
        self,
        query_vector: Sequence[float],
        limit: int | None = None,
        mode: SimilarityMode | None = None,
        filters: SearchFilters | None = None,
    ) -> list[ScoredResult]:
        return self.ranker.search_similar(query_vector, limit, mode, filters)

    def search_by_text(self, term: str, limit: int | None = None) -> list[Document]:
        return self.matcher.search_by_text(term, limit)

    def search_by_text_advanced(
        self, terms: Sequence[str], operator: str = "OR", limit: int | None = None
    ) -> list[Document]:
        return self.matcher.search_by_text_advanced(terms, operator, limit)

    def hybrid_search(
        self,
        query_text: str,
        query_vector: Sequence[float],
        text_weight: float | None = None,
        semantic_weight: float | None = None,
        limit: int | None = None,
    ) -> list[HybridResult]:
        return self.fusion.hybrid_search(query_text, query_vector, text_weight, semantic_weight, limit)

    def search_with_clustering(
        self,
        query_vector: Sequence[float],
        limit: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[Cluster]:
        return self.clusters.search_with_clustering(query_vector, limit, similarity_threshold)

    def search_with_facets(
        self,
        query_vector: Sequence[float],
        limit: int | None = None,
        *,
        now: datetime | None = None,
    ) -> FacetedResults:
        return self.facets.search_with_facets(query_vector, limit, now=now)


def build_search_service(settings: Settings | None = None) -> DocumentSearchService:
    """Wire a service over the SQLite store described by `settings`."""

    cfg = settings or Settings()
    store = SqliteDocumentStore(cfg.store.db_path, codec=get_codec(cfg.store.embedding_codec))
    return DocumentSearchService(store, cfg.search)
