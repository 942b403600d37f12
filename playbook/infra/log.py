from __future__ import annotations

import logging
import os
from typing import Optional

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _level_from_env(default: str = "INFO") -> int:
    lvl = os.environ.get("PLAYBOOK_LOG_LEVEL") or os.environ.get("LOG_LEVEL", default)
    return getattr(logging, lvl.upper(), logging.INFO)


def setup_basic_logging(level: Optional[int] = None) -> None:
    """Idempotent basic logging configuration.

    Respects PLAYBOOK_LOG_LEVEL, then LOG_LEVEL (default INFO). Safe to call
    from every CLI entry point and from library code alike.
    """
    if getattr(setup_basic_logging, "_configured", False):  # type: ignore[attr-defined]
        return
    logging.basicConfig(
        level=(level if level is not None else _level_from_env()),
        format=_FORMAT,
    )
    setattr(setup_basic_logging, "_configured", True)  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    setup_basic_logging()
    return logging.getLogger(name)
