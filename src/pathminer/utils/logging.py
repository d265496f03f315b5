from __future__ import annotations

import logging
import os
from typing import Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_LEVEL_ENV_VAR = "PATHMINER_LOG_LEVEL"


def resolve_level(level: Optional[str] = None) -> int:
    name = (level or os.environ.get(_LEVEL_ENV_VAR) or "INFO").upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure stdlib logging once for the CLI entrypoints.

    Respects env var PATHMINER_LOG_LEVEL if `level` is None. Library code never
    calls this; it only asks for loggers through :func:`get_logger`.
    """
    logging.basicConfig(level=resolve_level(level), format=_DEFAULT_FORMAT)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
