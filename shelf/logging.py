"""Logging utilities for shelf commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "shelf"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the shelf hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class PackageLogger(logging.LoggerAdapter):
    """Prefixes every message with the package currently being installed."""

    def process(self, msg, kwargs):
        return f"[{self.extra['package']}] {msg}", kwargs


def package_logger(name: str, package: str) -> PackageLogger:
    """Return a logger under ``name`` whose messages carry ``package``."""
    return PackageLogger(get_logger(name), {"package": package})


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the shelf logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[shelf] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["PackageLogger", "configure_logging", "get_logger", "package_logger"]
