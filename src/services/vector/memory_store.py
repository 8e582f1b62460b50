# -*- coding: utf-8 -*-
"""
In-Memory Vector Store
======================

Small curriculum store scored by token overlap. Used for local runs and
tests in place of a real vector database.

Scoring: ``|query ∩ doc| / |query|`` over lower-cased word tokens, so a
document containing every query word scores 1.0.
"""

from __future__ import annotations

import asyncio
import re
import threading
from dataclasses import dataclass
from typing import Iterable, Optional

from src.agents.question.models import VectorRetrievalResult
from src.logging import get_logger

logger = get_logger("VectorStore")

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def tokenize(text: str) -> set[str]:
    return set(_TOKEN_RE.findall((text or "").lower()))


@dataclass(frozen=True)
class StoredDocument:
    document_id: str
    text: str
    source: str = "curriculum"


class InMemoryVectorStore:
    """
    Thread-safe document store.

    ``retrieve`` returns the ``top_k`` best-scoring documents ranked by score,
    best first. The threshold is not applied here; callers decide which
    results count as usable context.
    """

    def __init__(self, documents: Optional[Iterable[StoredDocument]] = None):
        self._documents: dict[str, StoredDocument] = {}
        self._lock = threading.Lock()
        for doc in documents or []:
            self.add(doc)

    def add(self, document: StoredDocument) -> None:
        with self._lock:
            self._documents[document.document_id] = document

    def add_text(self, document_id: str, text: str, source: str = "curriculum") -> None:
        self.add(StoredDocument(document_id=document_id, text=text, source=source))

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    @staticmethod
    def score(query_tokens: set[str], text: str) -> float:
        if not query_tokens:
            return 0.0
        return len(query_tokens & tokenize(text)) / len(query_tokens)

    async def retrieve(
        self, query: str, top_k: int = 10, threshold: float = 0.0
    ) -> list[VectorRetrievalResult]:
        await asyncio.sleep(0)

        query_tokens = tokenize(query)
        with self._lock:
            documents = list(self._documents.values())

        scored = [(self.score(query_tokens, doc.text), doc) for doc in documents]
        scored = [item for item in scored if item[0] > 0.0]
        scored.sort(key=lambda item: (-item[0], item[1].document_id))

        results = [
            VectorRetrievalResult(
                document_id=doc.document_id,
                relevance_score=round(score, 3),
                source=doc.source,
                text=doc.text,
            )
            for score, doc in scored[: max(0, top_k)]
        ]
        logger.debug(
            f"Retrieved {len(results)}/{len(documents)} documents "
            f"({sum(1 for r in results if r.relevance_score >= threshold)} >= {threshold})"
        )
        return results


__all__ = ["InMemoryVectorStore", "StoredDocument", "tokenize"]
