"""Configuration models for the document search engine."""

from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field


class SearchConfig(BaseModel):
    """Default limits, weights and oversampling factors for search operations."""

    default_limit: int = Field(default=5, ge=1)
    default_mode: Literal["cosine", "euclidean"] = "cosine"
    text_limit: int = Field(default=10, ge=1)
    hybrid_text_weight: float = Field(default=0.3, ge=0.0)
    hybrid_semantic_weight: float = Field(default=0.7, ge=0.0)
    hybrid_limit: int = Field(default=10, ge=1)
    hybrid_oversample: int = Field(default=2, ge=1)
    cluster_limit: int = Field(default=10, ge=1)
    cluster_threshold: float = Field(default=0.8, ge=-1.0, le=1.0)
    cluster_oversample: int = Field(default=3, ge=1)
    facet_limit: int = Field(default=20, ge=1)


class StoreConfig(BaseModel):
    """Configures the SQLite document store."""

    db_path: str = Field(default="doc_search.db", min_length=1)
    embedding_codec: Literal["json", "float32"] = "json"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_file: str | None = None


class Settings(BaseModel):
    """Bundle of all runtime configuration sections."""

    search: SearchConfig = Field(default_factory=SearchConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build settings from `DOC_SEARCH_*` environment variables.

    Unset variables fall back to model defaults. Invalid values surface as
    pydantic `ValidationError`.
    """

    env = os.environ if environ is None else environ
    store_values: dict[str, str] = {}
    if env.get("DOC_SEARCH_DB_PATH"):
        store_values["db_path"] = env["DOC_SEARCH_DB_PATH"]
    if env.get("DOC_SEARCH_EMBEDDING_CODEC"):
        store_values["embedding_codec"] = env["DOC_SEARCH_EMBEDDING_CODEC"].lower()

    logging_values: dict[str, str] = {}
    if env.get("DOC_SEARCH_LOG_LEVEL"):
        logging_values["level"] = env["DOC_SEARCH_LOG_LEVEL"].upper()
    if env.get("DOC_SEARCH_LOG_FILE"):
        logging_values["log_file"] = env["DOC_SEARCH_LOG_FILE"]

    return Settings(
        store=StoreConfig.model_validate(store_values),
        logging=LoggingConfig.model_validate(logging_values),
    )
