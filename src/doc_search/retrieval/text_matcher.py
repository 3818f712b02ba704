"""Case-insensitive substring matching over document title and content."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from doc_search.config import SearchConfig
from doc_search.storage.document_store import DocumentStore
from doc_search.types import Document

logger = logging.getLogger(__name__)

_OPERATORS = ("AND", "OR")


class TextMatcher:
    """Keyword search with LIKE-style `%term%` semantics, newest first."""

    def __init__(self, store: DocumentStore, config: SearchConfig | None = None) -> None:
        self.store = store
        self.config = config or SearchConfig()

    def search_by_text(self, term: str, limit: int | None = None) -> list[Document]:
        return self.search_by_text_advanced([term], operator="OR", limit=limit)

    def search_by_text_advanced(
        self,
        terms: Sequence[str],
        operator: str = "OR",
        limit: int | None = None,
    ) -> list[Document]:
        """Match several terms combined with AND or OR.

        Each term matches independently against the title or the content, so
        with AND one term may hit the title and another the content.
        """

        final_limit = self.config.text_limit if limit is None else limit
        if final_limit < 1:
            raise ValueError(f"limit must be a positive integer, got {final_limit}")
        normalized_operator = operator.upper()
        if normalized_operator not in _OPERATORS:
            raise ValueError(f"operator must be AND or OR, got {operator!r}")
        if isinstance(terms, str):
            raise TypeError("terms must be a sequence of strings, not a single string")
        if not terms:
            return []

        needles = [term.casefold() for term in terms]
        combine = all if normalized_operator == "AND" else any

        matches = [
            stored.document
            for stored in self.store.list_all()
            if combine(_matches(stored.document, needle) for needle in needles)
        ]
        matches.sort(key=lambda doc: (doc.created_at, doc.id), reverse=True)
        logger.debug(
            "Text search %s %r matched %d documents", normalized_operator, list(terms), len(matches)
        )
        return matches[:final_limit]


def _matches(document: Document, needle: str) -> bool:
    return needle in document.title.casefold() or needle in document.content.casefold()
