from datetime import datetime, timedelta, timezone

from doc_search.errors import MalformedEmbeddingError
from doc_search.retrieval.facets import FacetSummarizer, summarize
from doc_search.retrieval.ranker import SimilarityRanker
from doc_search.storage.document_store import InMemoryDocumentStore
from doc_search.types import Document, ScoredResult, StoredDocument

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _result(doc_id: int, similarity: float, age: timedelta = timedelta(0)) -> ScoredResult:
    document = Document(id=doc_id, title=f"doc {doc_id}", content="", created_at=NOW - age)
    return ScoredResult(document=document, similarity=similarity, distance=1.0 - similarity)


def test_similarity_band_counts() -> None:
    similarities = [0.95, 0.92, 0.8, 0.75, 0.6, 0.55, 0.4, 0.3, 0.2, 0.1]
    summary = summarize([_result(i, s) for i, s in enumerate(similarities, start=1)], now=NOW)

    assert [band.range for band in summary.similarity_bands] == ["0.9-1.0", "0.7-0.9", "0.5-0.7", "0.0-0.5"]
    assert [band.count for band in summary.similarity_bands] == [2, 2, 2, 4]


def test_band_lower_bounds_are_inclusive_and_negatives_fall_lowest() -> None:
    summary = summarize([_result(1, 0.9), _result(2, 0.7), _result(3, 0.5), _result(4, -0.4)], now=NOW)
    assert [band.count for band in summary.similarity_bands] == [1, 1, 1, 1]


def test_recency_band_counts() -> None:
    ages = [timedelta(hours=2), timedelta(days=3), timedelta(days=20), timedelta(days=400), timedelta(days=7)]
    summary = summarize([_result(i, 0.5, age) for i, age in enumerate(ages, start=1)], now=NOW)

    assert [band.period for band in summary.recency_bands] == ["Last 24 hours", "Last week", "Last month", "Older"]
    assert [band.count for band in summary.recency_bands] == [1, 2, 1, 1]


def test_empty_results_give_zero_counts() -> None:
    summary = summarize([], now=NOW)
    assert all(band.count == 0 for band in summary.similarity_bands)
    assert all(band.count == 0 for band in summary.recency_bands)


def test_search_with_facets_counts_cover_every_result() -> None:
    store = InMemoryDocumentStore()
    store.insert("a", "", [1.0, 0.0], created_at=NOW - timedelta(hours=1))
    store.insert("b", "", [0.0, 1.0], created_at=NOW - timedelta(days=90))
    store.insert("c", "", [0.7, 0.7], created_at=NOW - timedelta(days=5))

    faceted = FacetSummarizer(SimilarityRanker(store)).search_with_facets([1.0, 0.0], now=NOW)

    assert [item.document.id for item in faceted.results] == [1, 3, 2]
    assert sum(band.count for band in faceted.facets.similarity_bands) == 3
    assert [band.count for band in faceted.facets.similarity_bands] == [1, 1, 0, 1]
    assert [band.count for band in faceted.facets.recency_bands] == [1, 1, 0, 1]


class _MalformedStore:
    def list_all(self, date_range=None) -> list[StoredDocument]:
        document = Document(id=1, title="broken", content="", created_at=NOW)
        return [StoredDocument(document, None, MalformedEmbeddingError("corrupt", document_id=1))]

    def get_by_id(self, document_id: int) -> StoredDocument | None:
        return None


def test_all_malformed_corpus_gives_empty_facets() -> None:
    faceted = FacetSummarizer(SimilarityRanker(_MalformedStore())).search_with_facets([1.0, 0.0], now=NOW)

    assert faceted.results == ()
    assert all(band.count == 0 for band in faceted.facets.similarity_bands)
    assert all(band.count == 0 for band in faceted.facets.recency_bands)
