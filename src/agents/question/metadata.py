# -*- coding: utf-8 -*-
"""
Metadata Aggregation
====================

Reduces vector-retrieval results and generated questions into summary
statistics.

- ``summarize_retrieval()``: one retrieval -> VectorContext
- ``MetadataAggregator.aggregate()``: a batch of questions -> BatchMetadata

Aggregation is pure and deterministic. Sums run in list order so fixtures
are reproducible; a permutation of the input yields the same values once
rounded to 3 decimals. Fields no question defines aggregate to 0 (quality,
time) or stay absent (relevance, vector context).
"""

from __future__ import annotations

import threading
from typing import Iterable, Optional, Sequence

from .models import (
    BatchMetadata,
    Distribution,
    GeneratedQuestion,
    RetrievalMetrics,
    VectorContext,
    VectorRetrievalResult,
    round_score,
)

HIGH_THRESHOLD = 0.8
MEDIUM_THRESHOLD = 0.6


def summarize_retrieval(
    results: Sequence[VectorRetrievalResult],
    threshold: float,
    retrieval_time_ms: int = 0,
) -> Optional[VectorContext]:
    """
    Summarise one ranked retrieval.

    Only results scoring at or above ``threshold`` count as used context.
    Returns None when nothing was retrieved.
    """
    if not results:
        return None

    above = [r for r in results if r.relevance_score >= threshold]
    metrics = RetrievalMetrics(
        total_retrieved=len(results),
        above_threshold=len(above),
        relevance_threshold=threshold,
        retrieval_time_ms=int(retrieval_time_ms),
        context_sources=sorted({r.source for r in above}),
    )

    if not above:
        return VectorContext(
            used=False,
            similar_questions_found=0,
            top_relevance_score=max(r.relevance_score for r in results),
            retrieval_metrics=metrics,
        )

    total = 0.0
    for r in above:
        total += r.relevance_score

    return VectorContext(
        used=True,
        similar_questions_found=len(above),
        average_relevance_score=total / len(above),
        top_relevance_score=max(r.relevance_score for r in results),
        retrieval_metrics=metrics,
    )


def bucket(scores: Iterable[float]) -> Distribution:
    """high >= 0.8, 0.6 <= medium < 0.8, low < 0.6"""
    dist = Distribution()
    for score in scores:
        if score >= HIGH_THRESHOLD:
            dist.high += 1
        elif score >= MEDIUM_THRESHOLD:
            dist.medium += 1
        else:
            dist.low += 1
    return dist


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    total = 0.0
    for value in values:
        total += value
    return total / len(values)


class MetadataAggregator:
    """
    Batch-level metadata calculator.

    Holds a single-entry cache for the average quality score, keyed by the
    sorted tuple of quality scores. The cache is shared by concurrent batch
    runs and guarded by a lock.
    """

    def __init__(self, use_cache: bool = True):
        self.use_cache = use_cache
        self._lock = threading.Lock()
        self._cache_key: Optional[tuple[float, ...]] = None
        self._cache_value: float = 0.0
        self._hits = 0
        self._misses = 0

    # ------------------------------------------------------------------
    # Individual aggregates
    # ------------------------------------------------------------------

    def average_quality_score(self, questions: Sequence[GeneratedQuestion]) -> float:
        if not questions:
            return 0.0

        scores = [q.metadata.quality_score for q in questions]
        key = tuple(sorted(scores))

        if self.use_cache:
            with self._lock:
                if self._cache_key == key:
                    self._hits += 1
                    return self._cache_value

        value = round_score(_mean(scores) or 0.0)

        if self.use_cache:
            with self._lock:
                self._misses += 1
                self._cache_key = key
                self._cache_value = value
        return value

    @staticmethod
    def average_relevance_score(questions: Sequence[GeneratedQuestion]) -> Optional[float]:
        scores = [q.metadata.relevance_score for q in questions if q.metadata.relevance_score is not None]
        mean = _mean(scores)
        return None if mean is None else round_score(mean)

    @staticmethod
    def average_generation_time(questions: Sequence[GeneratedQuestion]) -> int:
        mean = _mean([q.metadata.generation_time_ms for q in questions])
        return 0 if mean is None else round(mean)

    @staticmethod
    def services_used(questions: Sequence[GeneratedQuestion]) -> list[str]:
        return sorted({q.metadata.service_used for q in questions})

    @staticmethod
    def service_distribution(questions: Sequence[GeneratedQuestion]) -> dict[str, int]:
        distribution: dict[str, int] = {}
        for q in questions:
            distribution[q.metadata.service_used] = distribution.get(q.metadata.service_used, 0) + 1
        return distribution

    @staticmethod
    def vector_context(questions: Sequence[GeneratedQuestion]) -> Optional[VectorContext]:
        """Combine the vector contexts of questions that actually used retrieval."""
        contexts = [
            q.metadata.vector_context
            for q in questions
            if q.metadata.vector_context is not None and q.metadata.vector_context.used
        ]
        if not contexts:
            return None

        averages = [c.average_relevance_score for c in contexts if c.average_relevance_score is not None]
        tops = [c.top_relevance_score for c in contexts if c.top_relevance_score is not None]
        metrics = [c.retrieval_metrics for c in contexts if c.retrieval_metrics is not None]

        mean = _mean(averages)
        return VectorContext(
            used=True,
            similar_questions_found=sum(c.similar_questions_found for c in contexts),
            average_relevance_score=None if mean is None else mean,
            top_relevance_score=max(tops) if tops else None,
            retrieval_metrics=MetadataAggregator._retrieval_metrics(metrics),
        )

    @staticmethod
    def _retrieval_metrics(metrics: Sequence[RetrievalMetrics]) -> Optional[RetrievalMetrics]:
        if not metrics:
            return None
        sources: set[str] = set()
        for m in metrics:
            sources.update(m.context_sources)
        return RetrievalMetrics(
            total_retrieved=sum(m.total_retrieved for m in metrics),
            above_threshold=sum(m.above_threshold for m in metrics),
            relevance_threshold=metrics[0].relevance_threshold,
            retrieval_time_ms=sum(m.retrieval_time_ms for m in metrics),
            context_sources=sorted(sources),
        )

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def aggregate(self, questions: Sequence[GeneratedQuestion]) -> BatchMetadata:
        questions = list(questions)
        if not questions:
            return BatchMetadata()

        avg_time = self.average_generation_time(questions)
        return BatchMetadata(
            average_quality_score=self.average_quality_score(questions),
            average_relevance_score=self.average_relevance_score(questions),
            average_generation_time_ms=avg_time,
            questions_per_second=round(1000 / avg_time, 2) if avg_time > 0 else 0.0,
            services_used=self.services_used(questions),
            service_distribution=self.service_distribution(questions),
            quality_distribution=bucket(q.metadata.quality_score for q in questions),
            relevance_distribution=bucket(
                q.metadata.relevance_score for q in questions if q.metadata.relevance_score is not None
            ),
            vector_context=self.vector_context(questions),
        )

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        with self._lock:
            self._cache_key = None
            self._cache_value = 0.0
            self._hits = 0
            self._misses = 0

    def cache_stats(self) -> dict[str, float]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": 0 if self._cache_key is None else 1,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / lookups, 3) if lookups else 0.0,
            }


__all__ = [
    "HIGH_THRESHOLD",
    "MEDIUM_THRESHOLD",
    "MetadataAggregator",
    "bucket",
    "summarize_retrieval",
]
