"""Logging setup shared by the create-fhevm-example and fhevm-examples commands."""

from __future__ import annotations

import logging
from pathlib import Path

PACKAGE_LOGGER = "fhevm_examples"
CONSOLE_FORMAT = "[fhevm] %(levelname)s %(message)s"
TRANSCRIPT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger for one component, e.g. ``get_logger("scaffold")`` -> ``fhevm_examples.scaffold``."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}" if name else PACKAGE_LOGGER)


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send package records to stderr and, with ``log_file``, append a DEBUG transcript.

    The console stays at INFO unless ``verbose``; the transcript always records
    DEBUG.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(PACKAGE_LOGGER)
    _close_handlers(logger)
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is None:
        logger.setLevel(console_level)
        return logger

    log_file.parent.mkdir(parents=True, exist_ok=True)
    transcript = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    transcript.setLevel(logging.DEBUG)
    transcript.setFormatter(logging.Formatter(TRANSCRIPT_FORMAT))
    logger.addHandler(transcript)
    logger.setLevel(logging.DEBUG)
    return logger


__all__ = ["CONSOLE_FORMAT", "PACKAGE_LOGGER", "configure_logging", "get_logger"]
