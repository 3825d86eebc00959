"""Tests for fhevm_examples.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from fhevm_examples.logging import PACKAGE_LOGGER, configure_logging, get_logger


def test_get_logger_names_components() -> None:
    assert get_logger("scaffold").name == "fhevm_examples.scaffold"
    assert get_logger().name == PACKAGE_LOGGER


def test_console_only_by_default() -> None:
    logger = configure_logging()

    assert logger.level == logging.INFO
    assert [type(handler) for handler in logger.handlers] == [logging.StreamHandler]
    assert logger.propagate is False


def test_verbose_lowers_console_level() -> None:
    logger = configure_logging(verbose=True)

    assert logger.level == logging.DEBUG
    assert logger.handlers[0].level == logging.DEBUG


def test_log_file_keeps_debug_records_while_console_stays_at_info(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "fhevm.log"
    logger = configure_logging(log_file=log_file)

    get_logger("scaffold").debug("copied %s", "FHEAdd.sol")
    get_logger("scaffold").info("Added: %s", "FHEAdd.sol")
    for handler in logger.handlers:
        handler.flush()

    console, transcript = logger.handlers
    assert console.level == logging.INFO
    assert transcript.level == logging.DEBUG
    text = log_file.read_text(encoding="utf-8")
    assert "DEBUG fhevm_examples.scaffold: copied FHEAdd.sol" in text
    assert "INFO fhevm_examples.scaffold: Added: FHEAdd.sol" in text


def test_reconfiguring_replaces_and_closes_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "fhevm.log"
    first = configure_logging(log_file=log_file)
    transcript = first.handlers[1]

    second = configure_logging()

    assert len(second.handlers) == 1
    assert transcript.stream is None
