"""Logging configuration for the open-tasks CLI."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "opentasks"


def setup_logging(
    verbose: bool = False,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """
    Configure dual-handler logging (console + file).

    Calling this again replaces the handlers installed by the previous call.

    Args:
        verbose: Enable DEBUG level on console (default WARNING)
        log_file: Path to log file (None for no file logging)

    Returns:
        The package logger
    """
    # Console handler (stderr, keeps stdout for results)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter("%(levelname)-8s | %(name)s | %(message)s")
    )

    file_handler = None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.addHandler(console_handler)
    if file_handler:
        logger.addHandler(file_handler)

    # Suppress noisy 3rd party loggers
    for noisy in ["httpx", "openai", "httpcore", "urllib3"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
