# -*- coding: utf-8 -*-
"""
Unified Logger
==============

Thin layer over the standard ``logging`` module used by every agent and
service:

- One named logger per component (``get_logger("Question.Generation")``)
- Extra SUCCESS level between INFO and WARNING
- Console output plus optional per-component log file under ``log_dir``
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
_ROOT_NAME = "questionflow"

_configured: set[str] = set()


class Logger(logging.LoggerAdapter):
    """Logger adapter adding ``success()`` to the stdlib API."""

    def __init__(self, logger: logging.Logger, component: str):
        super().__init__(logger, {})
        self.component = component

    def success(self, msg: str, *args, **kwargs) -> None:
        self.log(SUCCESS, msg, *args, **kwargs)

    def process(self, msg, kwargs):
        return msg, kwargs


def _resolve_level() -> int:
    level_name = os.getenv("QUESTIONFLOW_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str, log_dir: Optional[str | Path] = None) -> Logger:
    """
    Get (or create) a component logger.

    Args:
        name: Component name, e.g. "Question.Orchestrator"
        log_dir: Optional directory; when given, records are also written to
            ``<log_dir>/<name>.log``

    Returns:
        Logger adapter with ``success()`` support
    """
    full_name = f"{_ROOT_NAME}.{name}"
    base = logging.getLogger(full_name)

    if full_name not in _configured:
        base.setLevel(_resolve_level())
        formatter = logging.Formatter(_DEFAULT_FORMAT)

        root = logging.getLogger(_ROOT_NAME)
        if not root.handlers:
            console = logging.StreamHandler()
            console.setFormatter(formatter)
            root.addHandler(console)

        if log_dir:
            path = Path(log_dir)
            path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path / f"{name}.log", encoding="utf-8")
            file_handler.setFormatter(formatter)
            base.addHandler(file_handler)

        _configured.add(full_name)

    return Logger(base, name)


__all__ = ["Logger", "SUCCESS", "get_logger"]
