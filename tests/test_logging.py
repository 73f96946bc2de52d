"""Tests for fusion logger configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from fusion.logging import configure_logging, get_logger


def _console(logger: logging.Logger) -> logging.Handler:
    (handler,) = [item for item in logger.handlers if not isinstance(item, logging.FileHandler)]
    return handler


def test_get_logger_nests_under_fusion() -> None:
    assert get_logger().name == "fusion"
    assert get_logger("graph").name == "fusion.graph"


def test_console_levels() -> None:
    assert _console(configure_logging()).level == logging.INFO
    assert _console(configure_logging(quiet=True)).level == logging.WARNING
    assert _console(configure_logging(verbose=True, quiet=True)).level == logging.DEBUG


def test_reconfiguring_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging(verbose=True)

    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_log_file_records_debug_even_when_quiet(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "fusion.log"
    logger = configure_logging(quiet=True, log_file=log_file)

    get_logger("resolution").debug("grouped %s", "Button")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert "fusion.resolution: grouped Button" in log_file.read_text(encoding="utf-8")
