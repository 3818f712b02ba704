"""Ingest pipeline: compose embedding text -> embed -> insert, plus corpus re-embedding."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from doc_search.ingest.embedder import Embedder
from doc_search.storage.document_store import WritableDocumentStore
from doc_search.types import ReembedReport, StoredDocument

logger = logging.getLogger(__name__)


def embedding_text(
    title: str,
    content: str,
    category: str | None = None,
    tags: Sequence[str] = (),
) -> str:
    """Text that represents a document for embedding, metadata included."""

    text = f"{title}\n\n{content}"
    if category:
        text += f"\nCategory: {category}"
    if tags:
        text += f"\nTags: {', '.join(tags)}"
    return text


@dataclass(slots=True)
class NewDocument:
    title: str
    content: str
    category: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    created_at: datetime | None = None


class DocumentIngestor:
    """Embeds incoming documents and writes them to a store.

    Kept apart from query-time search so indexing can run in batch jobs or
    during deployment warm-up.
    """

    def __init__(self, store: WritableDocumentStore, embedder: Embedder) -> None:
        self._store = store
        self._embedder = embedder

    def add(
        self,
        title: str,
        content: str,
        *,
        category: str | None = None,
        tags: Sequence[str] = (),
        created_at: datetime | None = None,
    ) -> int:
        """Embed and insert one document, returning its id."""

        return self.add_many(
            [NewDocument(title, content, category, tuple(tags), created_at)]
        )[0]

    def add_many(self, documents: Sequence[NewDocument]) -> list[int]:
        """Embed a batch in one provider call and insert each document."""

        if not documents:
            return []
        vectors = self._embedder.embed_documents(
            [embedding_text(doc.title, doc.content, doc.category, doc.tags) for doc in documents]
        )
        ids = [
            self._store.insert(
                doc.title,
                doc.content,
                vector,
                category=doc.category,
                tags=doc.tags,
                created_at=doc.created_at,
            )
            for doc, vector in zip(documents, vectors, strict=True)
        ]
        logger.info("Ingested %d documents", len(ids))
        return ids


def reembed_corpus(
    store: WritableDocumentStore,
    embedder: Embedder,
    *,
    batch_size: int = 10,
) -> ReembedReport:
    """Recompute every stored embedding with `embedder`.

    This is the recovery path after switching embedding models, when stored
    vectors no longer match the query dimension. Failures are collected per
    document in the report; the run always visits the whole corpus.
    """

    if batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size}")

    stored = store.list_all()
    report = ReembedReport(migrated=0, total=len(stored))
    logger.info("Re-embedding %d documents (batch size %d)", report.total, batch_size)

    for start in range(0, len(stored), batch_size):
        _reembed_batch(store, embedder, stored[start : start + batch_size], report)

    logger.info("Re-embedding finished: %d/%d migrated", report.migrated, report.total)
    if report.errors:
        logger.warning("Re-embedding hit %d errors", len(report.errors))
    return report


def _reembed_batch(
    store: WritableDocumentStore,
    embedder: Embedder,
    batch: Sequence[StoredDocument],
    report: ReembedReport,
) -> None:
    texts = [
        embedding_text(item.document.title, item.document.content, item.document.category, item.document.tags)
        for item in batch
    ]
    try:
        vectors = embedder.embed_documents(texts)
    except Exception as exc:  # provider failures are reported per document
        logger.exception("Embedding batch of %d documents failed", len(batch))
        report.errors.extend(f"Failed to embed document {item.document.id}: {exc}" for item in batch)
        return

    for item, vector in zip(batch, vectors, strict=True):
        if store.update_embedding(item.document.id, vector):
            report.migrated += 1
        else:
            report.errors.append(f"Failed to update embedding for document {item.document.id}")
