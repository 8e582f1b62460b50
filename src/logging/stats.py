# -*- coding: utf-8 -*-
"""
LLM call statistics shared per module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from typing import Any

from .logger import get_logger


def _estimate_tokens(text: str) -> int:
    # ~4 characters per token for latin text
    return max(1, len(text) // 4) if text else 0


@dataclass
class _ModelUsage:
    calls: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0


@dataclass
class LLMStats:
    """Accumulates call counts and estimated token usage per model."""

    module_name: str
    _models: dict[str, _ModelUsage] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def add_call(self, model: str, system_prompt: str, user_prompt: str, response: str) -> None:
        with self._lock:
            usage = self._models.setdefault(model, _ModelUsage())
            usage.calls += 1
            usage.prompt_tokens += _estimate_tokens(system_prompt) + _estimate_tokens(user_prompt)
            usage.completion_tokens += _estimate_tokens(response)

    @property
    def total_calls(self) -> int:
        with self._lock:
            return sum(u.calls for u in self._models.values())

    def summary(self) -> dict[str, Any]:
        with self._lock:
            return {
                "module": self.module_name,
                "models": {
                    model: {
                        "calls": u.calls,
                        "prompt_tokens": u.prompt_tokens,
                        "completion_tokens": u.completion_tokens,
                    }
                    for model, u in self._models.items()
                },
            }

    def reset(self) -> None:
        with self._lock:
            self._models.clear()

    def print_summary(self) -> None:
        logger = get_logger(f"{self.module_name}.Stats")
        data = self.summary()
        if not data["models"]:
            logger.info("No LLM calls recorded")
            return
        for model, usage in data["models"].items():
            logger.info(
                f"{model}: calls={usage['calls']}, "
                f"prompt~{usage['prompt_tokens']}, completion~{usage['completion_tokens']}"
            )


__all__ = ["LLMStats"]
