"""Tests for buildversion.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from buildversion.logging import configure_logging, get_logger


def test_get_logger_is_namespaced() -> None:
    assert get_logger("collector").name == "buildversion.collector"
    assert get_logger().name == "buildversion"


def test_configure_logging_levels() -> None:
    logger = configure_logging(quiet=True)
    assert logger.handlers[0].level == logging.WARNING

    logger = configure_logging(verbose=True, quiet=True)
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.DEBUG


def test_log_file_records_debug(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "buildversion.log"
    logger = configure_logging(log_file=log_file)

    get_logger("runner").debug("git rev-parse HEAD")
    for handler in logger.handlers:
        handler.flush()

    assert "git rev-parse HEAD" in log_file.read_text(encoding="utf-8")
