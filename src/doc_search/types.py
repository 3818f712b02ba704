"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from doc_search.errors import MalformedEmbeddingError

EmbeddingVector = tuple[float, ...]
SimilarityMode = Literal["cosine", "euclidean"]
TextOperator = Literal["AND", "OR"]


@dataclass(slots=True, frozen=True)
class Document:
    """A stored document as seen by the search core."""

    id: int
    title: str
    content: str
    created_at: datetime
    category: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class StoredDocument:
    """A document plus its decoded embedding.

    `embedding` is None either because the document was never embedded or
    because decoding failed; `embedding_error` tells the two apart.
    """

    document: Document
    embedding: EmbeddingVector | None
    embedding_error: MalformedEmbeddingError | None = None

    @property
    def malformed(self) -> bool:
        return self.embedding_error is not None


@dataclass(slots=True, frozen=True)
class DateRange:
    """Inclusive creation-time window."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


@dataclass(slots=True, frozen=True)
class SearchFilters:
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_similarity: float | None = None
    max_results: int | None = None

    def date_range(self) -> DateRange | None:
        if self.start_date is None or self.end_date is None:
            return None
        return DateRange(start=as_utc(self.start_date), end=as_utc(self.end_date))


@dataclass(slots=True, frozen=True)
class ScoredResult:
    """A similarity search hit; `similarity` and `distance` view the same comparison."""

    document: Document
    similarity: float
    distance: float


@dataclass(slots=True, frozen=True)
class HybridResult:
    """A fused text + semantic hit."""

    document: Document
    similarity: float
    distance: float
    text_score: float
    semantic_score: float
    total_score: float


@dataclass(slots=True, frozen=True)
class Cluster:
    cluster_id: int
    members: tuple[ScoredResult, ...]


@dataclass(slots=True, frozen=True)
class SimilarityBand:
    range: str
    count: int


@dataclass(slots=True, frozen=True)
class RecencyBand:
    period: str
    count: int


@dataclass(slots=True, frozen=True)
class FacetSummary:
    similarity_bands: tuple[SimilarityBand, ...]
    recency_bands: tuple[RecencyBand, ...]


@dataclass(slots=True, frozen=True)
class FacetedResults:
    results: tuple[ScoredResult, ...]
    facets: FacetSummary


@dataclass(slots=True, frozen=True)
class StoreStats:
    documents: int
    embeddings: int
    missing_embeddings: int


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float


@dataclass(slots=True)
class ReembedReport:
    """Outcome of re-embedding every document in a store."""

    migrated: int
    total: int
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.migrated > 0 or self.total == 0


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
