"""Logging setup for the Hex AI service.

Modules log through ``logging.getLogger(__name__)``; this module only
installs handlers on the package logger once, so repeated calls (tests,
uvicorn reloads) do not duplicate output.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "HEX_AI_LOG_LEVEL"


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logging(
    name: str = "hex_service",
    level: int | str | None = None,
    log_dir: str | os.PathLike | None = None,
) -> logging.Logger:
    """Configure and return the named logger.

    Args:
        name: Logger to configure; child module loggers propagate to it.
        level: Level name or number. Defaults to ``HEX_AI_LOG_LEVEL``, then INFO.
        log_dir: When given, also write to ``<log_dir>/<name>.log``.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if getattr(logger, "_hex_configured", False):
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_dir is not None:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path / f"{name}.log")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    logger._hex_configured = True  # type: ignore[attr-defined]
    return logger
