# -*- coding: utf-8 -*-
"""
LLM Configuration
=================

Resolves provider settings with priority:
1. Environment variables (LLM_BINDING, LLM_HOST, LLM_API_KEY, ...)
2. ``llm`` section of config/main.yaml
3. Built-in defaults (local Ollama)
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from src.services.config import PROJECT_ROOT, load_config_with_main

load_dotenv(PROJECT_ROOT / ".env", override=False)


@dataclass(frozen=True)
class LLMConfig:
    binding: str
    base_url: Optional[str]
    api_key: Optional[str]
    temperature: float
    max_tokens: int
    timeout_seconds: float


def _as_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


def _as_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def get_llm_config(project_root: Path | None = None) -> LLMConfig:
    cfg: dict[str, Any] = {}
    try:
        cfg = load_config_with_main("main.yaml", project_root)
    except (OSError, ValueError):
        cfg = {}

    llm_cfg = cfg.get("llm", {}) if isinstance(cfg, dict) else {}

    return LLMConfig(
        binding=os.getenv("LLM_BINDING") or str(llm_cfg.get("binding", "ollama")),
        base_url=os.getenv("LLM_HOST") or llm_cfg.get("base_url") or None,
        api_key=os.getenv("LLM_API_KEY") or llm_cfg.get("api_key") or None,
        temperature=_as_float(os.getenv("LLM_TEMPERATURE"), float(llm_cfg.get("temperature", 0.7))),
        max_tokens=_as_int(os.getenv("LLM_MAX_TOKENS"), int(llm_cfg.get("max_tokens", 1024))),
        timeout_seconds=_as_float(
            os.getenv("LLM_TIMEOUT_SECONDS"), float(llm_cfg.get("timeout_seconds", 120))
        ),
    )


__all__ = ["LLMConfig", "get_llm_config"]
