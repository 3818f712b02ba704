import logging

from doc_search.config import LoggingConfig
from doc_search.obs.logging_utils import Timer, configure_logging


def test_configure_logging_installs_handlers_once(tmp_path, monkeypatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    log_file = tmp_path / "logs" / "search.log"

    configure_logging(LoggingConfig(level="debug", log_file=str(log_file)))
    installed = list(root.handlers)
    configure_logging(LoggingConfig(level="error"))

    try:
        assert len(installed) == 2
        assert root.handlers == installed
        assert root.level == logging.DEBUG
        assert log_file.exists()
    finally:
        for handler in installed:
            handler.close()


def test_timer_measures_elapsed_time() -> None:
    with Timer() as timer:
        sum(range(1000))
    assert timer.elapsed_ms >= 0.0
