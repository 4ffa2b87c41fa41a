"""Unified logging configuration for the Mergers service.

Usage:
    from mergers.core.logging_config import setup_logging

    logger = setup_logging("mergers.main", level="DEBUG")

Module code should keep using ``logging.getLogger(__name__)``; only entry
points call ``setup_logging``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

__all__ = [
    "COMPACT_FORMAT",
    "DEFAULT_FORMAT",
    "DETAILED_FORMAT",
    "STRUCTURED_FORMAT",
    "configure_third_party_loggers",
    "setup_logging",
]

DEFAULT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
COMPACT_FORMAT = "%(levelname)s %(name)s: %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s [%(name)s] %(levelname)s %(filename)s:%(lineno)d: %(message)s"
)
STRUCTURED_FORMAT = (
    '{"time": "%(asctime)s", "logger": "%(name)s", '
    '"level": "%(levelname)s", "message": "%(message)s"}'
)

_FORMATS = {
    "default": DEFAULT_FORMAT,
    "compact": COMPACT_FORMAT,
    "detailed": DETAILED_FORMAT,
    "structured": STRUCTURED_FORMAT,
}

NOISY_PACKAGES = (
    "urllib3",
    "httpx",
    "httpcore",
    "asyncio",
    "multipart",
    "uvicorn.access",
)


def setup_logging(
    name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    log_dir: Optional[Union[str, Path]] = None,
    console: bool = True,
    propagate: bool = False,
    format_style: str = "default",
) -> logging.Logger:
    """Configure and return the logger ``name``.

    Safe to call repeatedly: handlers are only attached the first time a
    given console stream or file is requested.

    Args:
        name: Logger name.
        level: Level as an int or a name such as ``"DEBUG"``.
        log_file: Write to this file as well.
        log_dir: Write to ``<log_dir>/<name>.log`` as well.
        console: Attach a stderr handler.
        propagate: Let records reach the root logger.
        format_style: One of default, compact, detailed or structured.
            Unknown styles use the default format.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = propagate

    formatter = logging.Formatter(_FORMATS.get(format_style, DEFAULT_FORMAT))

    if console and not any(
        type(h) is logging.StreamHandler for h in logger.handlers
    ):
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    paths = []
    if log_file is not None:
        paths.append(Path(log_file))
    if log_dir is not None:
        paths.append(Path(log_dir) / f"{name}.log")

    existing = {
        Path(h.baseFilename).resolve()
        for h in logger.handlers
        if isinstance(h, logging.FileHandler)
    }
    for path in paths:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.resolve() in existing:
            continue
        handler = logging.FileHandler(path)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def configure_third_party_loggers(
    quiet: bool = True, verbose_packages: Optional[Iterable[str]] = None
) -> None:
    """Raise noisy library loggers to WARNING unless listed as verbose."""
    if not quiet:
        return
    verbose = set(verbose_packages or ())
    for package in NOISY_PACKAGES:
        if package in verbose:
            continue
        logging.getLogger(package).setLevel(logging.WARNING)
