"""Logging setup shared by the command line entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Pillow logs every decoded chunk at DEBUG.
_NOISY_LOGGERS = ("PIL",)


def setup_logging(log_file: str | Path | None = None, verbose: bool = False) -> None:
    """Configure root logging to stderr and optionally a file.

    ``verbose`` turns on the ``maptile.*`` debug output (frame creation,
    covering candidate counts, rejected labels) without Pillow's chatter.
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
