from datetime import datetime, timezone

import pytest

from doc_search.errors import MalformedEmbeddingError
from doc_search.retrieval.clustering import ClusterBuilder
from doc_search.retrieval.ranker import SimilarityRanker
from doc_search.storage.document_store import InMemoryDocumentStore
from doc_search.types import DateRange, Document, StoredDocument


def _builder(*vectors: list[float]) -> ClusterBuilder:
    store = InMemoryDocumentStore()
    for index, vector in enumerate(vectors, start=1):
        store.insert(f"doc {index}", "", vector)
    return ClusterBuilder(SimilarityRanker(store), store)


def test_high_threshold_yields_singletons() -> None:
    clusters = _builder([1.0, 0.0], [0.0, 1.0], [0.7, 0.7]).search_with_clustering(
        [1.0, 0.0], limit=5, similarity_threshold=0.99
    )

    assert [len(cluster.members) for cluster in clusters] == [1, 1, 1]
    assert [cluster.members[0].document.id for cluster in clusters] == [1, 3, 2]
    assert [cluster.cluster_id for cluster in clusters] == [0, 1, 2]


def test_near_duplicates_join_the_seed() -> None:
    clusters = _builder([1.0, 0.0], [0.99, 0.01], [0.0, 1.0]).search_with_clustering(
        [1.0, 0.0], limit=5, similarity_threshold=0.9
    )

    assert [[m.document.id for m in cluster.members] for cluster in clusters] == [[1, 2], [3]]


def test_membership_is_seed_relative_not_transitive() -> None:
    # 2 is close to both 1 and 3, but 1 and 3 are not close to each other.
    clusters = _builder([1.0, 0.0], [0.8, 0.6], [0.28, 0.96]).search_with_clustering(
        [1.0, 0.0], limit=5, similarity_threshold=0.75
    )

    assert [[m.document.id for m in cluster.members] for cluster in clusters] == [[1, 2], [3]]


def test_limit_bounds_cluster_count() -> None:
    clusters = _builder([1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]).search_with_clustering(
        [1.0, 0.0], limit=2, similarity_threshold=0.99
    )
    assert len(clusters) == 2


def test_threshold_is_inclusive() -> None:
    clusters = _builder([1.0, 0.0], [1.0, 0.0]).search_with_clustering(
        [1.0, 0.0], limit=5, similarity_threshold=1.0
    )
    assert len(clusters) == 1
    assert len(clusters[0].members) == 2


def test_non_positive_limit_rejected() -> None:
    with pytest.raises(ValueError):
        _builder([1.0, 0.0]).search_with_clustering([1.0, 0.0], limit=0)


class _PointReadStore:
    """Serves ranked rows from `list_all` but overrides what `get_by_id` returns."""

    def __init__(self, rows: list[StoredDocument], point_reads: dict[int, StoredDocument | None]) -> None:
        self._rows = rows
        self._point_reads = point_reads

    def list_all(self, date_range: DateRange | None = None) -> list[StoredDocument]:
        return list(self._rows)

    def get_by_id(self, document_id: int) -> StoredDocument | None:
        if document_id in self._point_reads:
            return self._point_reads[document_id]
        return next((row for row in self._rows if row.document.id == document_id), None)


def _doc(doc_id: int) -> Document:
    return Document(id=doc_id, title=f"doc {doc_id}", content="", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))


def _unusable(doc_id: int, kind: str) -> StoredDocument | None:
    if kind == "deleted":
        return None
    if kind == "missing":
        return StoredDocument(_doc(doc_id), None)
    return StoredDocument(_doc(doc_id), None, MalformedEmbeddingError("corrupt", document_id=doc_id))


def _near_duplicates() -> list[StoredDocument]:
    return [
        StoredDocument(_doc(1), (1.0, 0.0)),
        StoredDocument(_doc(2), (0.99, 0.01)),
        StoredDocument(_doc(3), (0.98, 0.02)),
    ]


@pytest.mark.parametrize("kind", ["deleted", "missing", "malformed"])
def test_unusable_candidate_stays_singleton_without_blocking_others(kind: str) -> None:
    rows = _near_duplicates()
    store = _PointReadStore(rows, {2: _unusable(2, kind)})

    clusters = ClusterBuilder(SimilarityRanker(store), store).search_with_clustering(
        [1.0, 0.0], limit=5, similarity_threshold=0.9
    )

    assert [[m.document.id for m in cluster.members] for cluster in clusters] == [[1, 3], [2]]


@pytest.mark.parametrize("kind", ["deleted", "missing", "malformed"])
def test_unusable_seed_absorbs_nothing(kind: str) -> None:
    rows = _near_duplicates()
    store = _PointReadStore(rows, {1: _unusable(1, kind)})

    clusters = ClusterBuilder(SimilarityRanker(store), store).search_with_clustering(
        [1.0, 0.0], limit=5, similarity_threshold=0.9
    )

    assert [[m.document.id for m in cluster.members] for cluster in clusters] == [[1], [2, 3]]


def test_all_malformed_corpus_yields_no_clusters() -> None:
    rows = [_unusable(1, "malformed"), _unusable(2, "malformed")]
    store = _PointReadStore(rows, {})

    assert ClusterBuilder(SimilarityRanker(store), store).search_with_clustering([1.0, 0.0]) == []
