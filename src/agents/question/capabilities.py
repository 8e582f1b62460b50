# -*- coding: utf-8 -*-
"""
External Capabilities
=====================

Interfaces the workflow depends on but does not implement:

- LanguageModelCapability: ``generate(prompt, tier) -> text``
- VectorStoreCapability: ``retrieve(query, top_k, threshold) -> results``
- PersonaStore: key-value persona lookup

Concrete backends live under ``src/services`` and are injected into the
orchestrator.
"""

from __future__ import annotations

import threading
from typing import Optional, Protocol, Sequence, runtime_checkable

from .models import Persona, VectorRetrievalResult
from .routing import ModelTier


@runtime_checkable
class LanguageModelCapability(Protocol):
    async def generate(self, prompt: str, tier: ModelTier) -> str:
        """
        Generate text with the model assigned to ``tier``.

        Raises:
            TransientBackendError: network failure or timeout; the only
                error counted as a circuit breaker failure
            ContentError: the model answered with unusable text; counted
                as a healthy backend

        Any other exception sends the run to the fallback generator without
        touching the breaker's failure count.
        """
        ...

    def model_for(self, tier: ModelTier) -> str: ...


@runtime_checkable
class VectorStoreCapability(Protocol):
    async def retrieve(
        self, query: str, top_k: int, threshold: float
    ) -> Sequence[VectorRetrievalResult]:
        """Return up to ``top_k`` results ranked by relevance, best first."""
        ...


@runtime_checkable
class PersonaStore(Protocol):
    def get(self, user_id: str) -> Optional[Persona]: ...

    def put(self, user_id: str, persona: Persona) -> None: ...


class InMemoryPersonaStore:
    """Thread-safe dict-backed persona store."""

    def __init__(self) -> None:
        self._personas: dict[str, Persona] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[Persona]:
        with self._lock:
            return self._personas.get(user_id)

    def put(self, user_id: str, persona: Persona) -> None:
        with self._lock:
            self._personas[user_id] = persona

    def __len__(self) -> int:
        with self._lock:
            return len(self._personas)


__all__ = [
    "InMemoryPersonaStore",
    "LanguageModelCapability",
    "PersonaStore",
    "VectorStoreCapability",
]
