"""Search operations exposed as registry tools with plain-text output."""

from __future__ import annotations

import functools
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Literal, TypeVar

from pydantic import BaseModel, Field, model_validator

from doc_search.errors import DimensionMismatchError, MalformedEmbeddingError
from doc_search.ingest.embedder import Embedder
from doc_search.service import DocumentSearchService
from doc_search.tools.registry import ToolRegistry, ToolSpec
from doc_search.types import Document, ScoredResult, SearchFilters, as_utc

NO_RESULTS = "NO_RESULTS: no matching documents found"

_InputT = TypeVar("_InputT", bound=BaseModel)


# Omitted limits, weights and thresholds stay None so SearchConfig decides.
class SimilarSearchInput(BaseModel):
    query: str = Field(min_length=1)
    limit: int | None = Field(default=None, ge=1, le=50)
    mode: Literal["cosine", "euclidean"] | None = None
    min_similarity: float | None = Field(default=None, ge=-1.0, le=1.0)
    start_date: datetime | None = None
    end_date: datetime | None = None

    @model_validator(mode="after")
    def _check_window(self) -> "SimilarSearchInput":
        if self.start_date and self.end_date and as_utc(self.start_date) > as_utc(self.end_date):
            raise ValueError("start_date must not be after end_date")
        return self


class TextSearchInput(BaseModel):
    term: str = Field(min_length=1)
    limit: int | None = Field(default=None, ge=1, le=50)


class AdvancedTextSearchInput(BaseModel):
    terms: list[str] = Field(min_length=1)
    operator: Literal["AND", "OR"] = "OR"
    limit: int | None = Field(default=None, ge=1, le=50)


class HybridSearchInput(BaseModel):
    query: str = Field(min_length=1)
    text_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    semantic_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    limit: int | None = Field(default=None, ge=1, le=50)


class ClusteredSearchInput(BaseModel):
    query: str = Field(min_length=1)
    limit: int | None = Field(default=None, ge=1, le=50)
    similarity_threshold: float | None = Field(default=None, ge=-1.0, le=1.0)


class FacetedSearchInput(BaseModel):
    query: str = Field(min_length=1)
    limit: int | None = Field(default=None, ge=1, le=100)


def register_search_tools(
    registry: ToolRegistry,
    service: DocumentSearchService,
    embedder: Embedder,
) -> None:
    """Register the document search tool set.

    Tools:
    - `similar_search`: vector ranking with optional date window and score floor.
    - `text_search` / `text_search_advanced`: case-insensitive substring match.
    - `hybrid_search`: weighted text + vector fusion.
    - `clustered_search`: ranked results grouped around seeds.
    - `faceted_search`: ranked results with similarity and recency counts.
    """

    @_guarded
    def _similar(data: SimilarSearchInput) -> str:
        filters = SearchFilters(
            start_date=data.start_date,
            end_date=data.end_date,
            min_similarity=data.min_similarity,
        )
        hits = service.search_similar(embedder.embed_query(data.query), data.limit, data.mode, filters)
        return _render_scored(hits)

    @_guarded
    def _text(data: TextSearchInput) -> str:
        return _render_documents(service.search_by_text(data.term, data.limit))

    @_guarded
    def _text_advanced(data: AdvancedTextSearchInput) -> str:
        return _render_documents(service.search_by_text_advanced(data.terms, data.operator, data.limit))

    @_guarded
    def _hybrid(data: HybridSearchInput) -> str:
        hits = service.hybrid_search(
            data.query,
            embedder.embed_query(data.query),
            data.text_weight,
            data.semantic_weight,
            data.limit,
        )
        lines = [
            f"[{hit.document.id}] score={hit.total_score:.4f} "
            f"(text={hit.text_score:.2f} semantic={hit.semantic_score:.4f}) {hit.document.title}"
            for hit in hits
        ]
        return "\n".join(lines) if lines else NO_RESULTS

    @_guarded
    def _clustered(data: ClusteredSearchInput) -> str:
        clusters = service.search_with_clustering(
            embedder.embed_query(data.query), data.limit, data.similarity_threshold
        )
        if not clusters:
            return NO_RESULTS
        lines: list[str] = []
        for cluster in clusters:
            lines.append(f"cluster {cluster.cluster_id} ({len(cluster.members)} documents)")
            lines.extend(f"  {_scored_line(member)}" for member in cluster.members)
        return "\n".join(lines)

    @_guarded
    def _faceted(data: FacetedSearchInput) -> str:
        faceted = service.search_with_facets(embedder.embed_query(data.query), data.limit)
        if not faceted.results:
            return NO_RESULTS
        similarity = ", ".join(f"{band.range}={band.count}" for band in faceted.facets.similarity_bands)
        recency = ", ".join(f"{band.period}={band.count}" for band in faceted.facets.recency_bands)
        return "\n".join(
            [_render_scored(faceted.results), f"similarity: {similarity}", f"recency: {recency}"]
        )

    for name, description, schema, handler, tags in (
        ("similar_search", "Rank documents by embedding similarity to a query.", SimilarSearchInput, _similar, ["vector"]),
        ("text_search", "Find documents whose title or content contains a term.", TextSearchInput, _text, ["text"]),
        (
            "text_search_advanced",
            "Match several terms combined with AND or OR.",
            AdvancedTextSearchInput,
            _text_advanced,
            ["text"],
        ),
        ("hybrid_search", "Fuse keyword and embedding matches into one ranking.", HybridSearchInput, _hybrid, ["text", "vector"]),
        ("clustered_search", "Group similar results around seed documents.", ClusteredSearchInput, _clustered, ["vector"]),
        ("faceted_search", "Rank documents and count them per score and age band.", FacetedSearchInput, _faceted, ["vector"]),
    ):
        registry.register(
            ToolSpec(name=name, description=description, args_schema=schema, handler=handler, tags=tags)
        )


def _guarded(handler: Callable[[_InputT], str]) -> Callable[[_InputT], str]:
    """Turn corpus-level embedding errors into diagnostics the caller can act on."""

    @functools.wraps(handler)
    def _wrapper(data: _InputT) -> str:
        try:
            return handler(data)
        except DimensionMismatchError as exc:
            return (
                f"DIMENSION_MISMATCH: query has {exc.expected} dimensions but stored embeddings "
                f"have {exc.actual}; re-embed the corpus with the current model"
            )
        except MalformedEmbeddingError as exc:
            return f"MALFORMED_EMBEDDINGS: {exc}"

    return _wrapper


def _render_scored(hits: Sequence[ScoredResult]) -> str:
    if not hits:
        return NO_RESULTS
    return "\n".join(_scored_line(hit) for hit in hits)


def _scored_line(hit: ScoredResult) -> str:
    return f"[{hit.document.id}] score={hit.similarity:.4f} {hit.document.title}"


def _render_documents(documents: Sequence[Document]) -> str:
    if not documents:
        return NO_RESULTS
    return "\n".join(
        f"[{doc.id}] {doc.created_at:%Y-%m-%d} {doc.title}: {_truncate(' '.join(doc.content.split()), 160)}"
        for doc in documents
    )


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
