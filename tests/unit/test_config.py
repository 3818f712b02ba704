import pytest
from pydantic import ValidationError

from doc_search.config import SearchConfig, load_settings


def test_search_defaults() -> None:
    config = SearchConfig()
    assert config.default_limit == 5
    assert config.hybrid_text_weight == 0.3
    assert config.hybrid_semantic_weight == 0.7
    assert config.cluster_threshold == 0.8
    assert config.facet_limit == 20


def test_load_settings_reads_environment() -> None:
    settings = load_settings(
        {
            "DOC_SEARCH_DB_PATH": "/tmp/docs.db",
            "DOC_SEARCH_EMBEDDING_CODEC": "FLOAT32",
            "DOC_SEARCH_LOG_LEVEL": "debug",
        }
    )
    assert settings.store.db_path == "/tmp/docs.db"
    assert settings.store.embedding_codec == "float32"
    assert settings.logging.level == "DEBUG"
    assert settings.logging.log_file is None


def test_load_settings_defaults_when_unset() -> None:
    settings = load_settings({})
    assert settings.store.db_path == "doc_search.db"
    assert settings.store.embedding_codec == "json"


def test_invalid_values_raise_validation_error() -> None:
    with pytest.raises(ValidationError):
        load_settings({"DOC_SEARCH_EMBEDDING_CODEC": "msgpack"})
    with pytest.raises(ValidationError):
        SearchConfig(default_limit=0)
