# -*- coding: utf-8 -*-
"""Small helpers shared by LLM providers."""

import re
from typing import Optional
from urllib.parse import urlparse

_THINK_PATTERN = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)

_LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "host.docker.internal"}
_LOCAL_PORTS = {11434, 1234, 8000}


def is_local_llm_server(base_url: str) -> bool:
    """Heuristic: Ollama / LM Studio style local endpoints."""
    try:
        parsed = urlparse(base_url)
    except ValueError:
        return False
    return parsed.hostname in _LOCAL_HOSTS and (parsed.port in _LOCAL_PORTS or parsed.port is None)


def has_thinking_tags(binding: str, model: Optional[str]) -> bool:
    """Reasoning models served locally emit <think> blocks."""
    name = (model or "").lower()
    return any(tag in name for tag in ("qwen3", "deepseek-r1", "qwq"))


def clean_thinking_tags(content: str, binding: str, model: Optional[str]) -> str:
    """Strip <think>...</think> blocks from reasoning model output."""
    if not content or not has_thinking_tags(binding, model):
        return content
    return _THINK_PATTERN.sub("", content).strip()


__all__ = ["clean_thinking_tags", "has_thinking_tags", "is_local_llm_server"]
