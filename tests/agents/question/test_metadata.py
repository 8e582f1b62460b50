from __future__ import annotations

import itertools
import threading

from src.agents.question.metadata import MetadataAggregator, bucket, summarize_retrieval
from src.agents.question.models import (
    BatchMetadata,
    GeneratedQuestion,
    QuestionMetadata,
    RetrievalMetrics,
    VectorContext,
    VectorRetrievalResult,
)


def _results(scores, sources=None):
    sources = sources or ["curriculum"] * len(scores)
    return [
        VectorRetrievalResult(document_id=f"doc-{i}", relevance_score=s, source=sources[i])
        for i, s in enumerate(scores)
    ]


def _context(average, top, sources, above=3, total=5):
    return VectorContext(
        used=True,
        similar_questions_found=above,
        average_relevance_score=average,
        top_relevance_score=top,
        retrieval_metrics=RetrievalMetrics(
            total_retrieved=total,
            above_threshold=above,
            relevance_threshold=0.7,
            retrieval_time_ms=12,
            context_sources=sources,
        ),
    )


def _question(quality, relevance=None, service="agentic-workflow", time_ms=100, context=None, qid="q"):
    return GeneratedQuestion(
        id=qid,
        subject="Mathematics",
        topic="addition",
        difficulty="medium",
        question="What is 35 + 47?",
        answer="82",
        question_type="addition",
        metadata=QuestionMetadata(
            service_used=service,
            quality_score=quality,
            generation_time_ms=time_ms,
            relevance_score=relevance,
            vector_context=context,
        ),
    )


# ---------------------------------------------------------------------------
# summarize_retrieval
# ---------------------------------------------------------------------------

def test_retrieval_summary_counts_results_above_threshold():
    results = _results([0.95, 0.9, 0.85, 0.8, 0.75, 0.72, 0.7, 0.6, 0.5, 0.2])
    context = summarize_retrieval(results, 0.7, retrieval_time_ms=40)

    assert context.used
    assert context.retrieval_metrics.total_retrieved == 10
    assert context.retrieval_metrics.above_threshold == 7
    assert context.retrieval_metrics.relevance_threshold == 0.7
    assert context.retrieval_metrics.retrieval_time_ms == 40
    assert context.similar_questions_found == 7
    assert context.top_relevance_score == 0.95
    assert context.average_relevance_score == 0.81


def test_retrieval_summary_without_results_is_absent():
    assert summarize_retrieval([], 0.7) is None


def test_retrieval_summary_with_nothing_above_threshold_is_unused():
    context = summarize_retrieval(_results([0.5, 0.3]), 0.7)
    assert context.used is False
    assert context.average_relevance_score is None
    assert context.top_relevance_score == 0.5
    assert context.retrieval_metrics.above_threshold == 0


def test_retrieval_sources_are_deduplicated():
    results = _results([0.9, 0.8, 0.75, 0.4], ["textbook", "curriculum", "textbook", "worksheet"])
    context = summarize_retrieval(results, 0.7)
    assert context.retrieval_metrics.context_sources == ["curriculum", "textbook"]


# ---------------------------------------------------------------------------
# aggregate
# ---------------------------------------------------------------------------

def test_empty_batch_has_zero_and_absent_defaults():
    meta = MetadataAggregator().aggregate([])
    assert meta == BatchMetadata()
    assert meta.average_quality_score == 0.0
    assert meta.average_relevance_score is None
    assert meta.vector_context is None


def test_singleton_batch_reproduces_question_metadata():
    context = _context(0.812, 0.93, ["curriculum", "textbook"])
    question = _question(0.9, relevance=0.812, time_ms=250, context=context)

    meta = MetadataAggregator(use_cache=False).aggregate([question])

    assert meta.average_quality_score == question.metadata.quality_score
    assert meta.average_relevance_score == question.metadata.relevance_score
    assert meta.average_generation_time_ms == question.metadata.generation_time_ms
    assert meta.vector_context == context


def test_aggregate_is_permutation_invariant():
    questions = [
        _question(0.9, 0.71, time_ms=120, context=_context(0.71, 0.8, ["a"]), qid="1"),
        _question(0.7, 0.933, service="fallback", time_ms=30, context=_context(0.933, 0.99, ["b", "a"]), qid="2"),
        _question(1.0, None, time_ms=80, qid="3"),
        _question(0.3, 0.6, time_ms=400, context=_context(0.6, 0.65, ["c"]), qid="4"),
    ]
    aggregator = MetadataAggregator(use_cache=False)
    baseline = aggregator.aggregate(questions)

    for perm in itertools.permutations(questions):
        assert aggregator.aggregate(list(perm)) == baseline


def test_aggregate_values():
    questions = [
        _question(0.9, 0.8, time_ms=100, context=_context(0.8, 0.9, ["b", "a"], above=4, total=10)),
        _question(0.5, None, service="fallback", time_ms=20),
        _question(0.7, 0.6, time_ms=60, context=_context(0.6, 0.95, ["a", "c"], above=2, total=10)),
    ]
    meta = MetadataAggregator(use_cache=False).aggregate(questions)

    assert meta.average_quality_score == 0.7
    assert meta.average_relevance_score == 0.7
    assert meta.average_generation_time_ms == 60
    assert meta.questions_per_second == 16.67
    assert meta.services_used == ["agentic-workflow", "fallback"]
    assert meta.service_distribution == {"agentic-workflow": 2, "fallback": 1}
    assert meta.vector_context.top_relevance_score == 0.95
    assert meta.vector_context.similar_questions_found == 6
    assert meta.vector_context.retrieval_metrics.total_retrieved == 20
    assert meta.vector_context.retrieval_metrics.context_sources == ["a", "b", "c"]


def test_relevance_absent_without_vector_questions():
    meta = MetadataAggregator().aggregate([_question(0.9), _question(0.8)])
    assert meta.average_relevance_score is None
    assert meta.vector_context is None
    assert meta.relevance_distribution.model_dump() == {"high": 0, "medium": 0, "low": 0}


def test_buckets_are_closed_open():
    dist = bucket([0.8, 0.79999, 0.6, 0.59999, 1.0, 0.0])
    assert (dist.high, dist.medium, dist.low) == (2, 2, 2)


def test_cache_matches_uncached_computation():
    questions = [_question(0.9), _question(0.733), _question(0.4)]
    cached = MetadataAggregator()

    first = cached.aggregate(questions)
    second = cached.aggregate(list(reversed(questions)))
    uncached = MetadataAggregator(use_cache=False).aggregate(questions)

    assert first.average_quality_score == uncached.average_quality_score
    assert second.average_quality_score == uncached.average_quality_score
    stats = cached.cache_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["size"] == 1


def test_cache_is_single_entry():
    aggregator = MetadataAggregator()
    aggregator.aggregate([_question(0.9)])
    aggregator.aggregate([_question(0.5)])
    aggregator.aggregate([_question(0.9)])
    assert aggregator.cache_stats()["hits"] == 0
    assert aggregator.cache_stats()["misses"] == 3


def test_clear_cache_resets_stats():
    aggregator = MetadataAggregator()
    aggregator.aggregate([_question(0.9)])
    aggregator.clear_cache()
    assert aggregator.cache_stats() == {"size": 0, "hits": 0, "misses": 0, "hit_rate": 0.0}


def test_cache_is_safe_across_threads():
    aggregator = MetadataAggregator()
    batches = [[_question(0.9), _question(0.5)], [_question(0.2)], [_question(1.0), _question(0.6)]]
    expected = [MetadataAggregator(use_cache=False).aggregate(b).average_quality_score for b in batches]
    errors: list[str] = []

    def worker(i: int) -> None:
        for _ in range(200):
            got = aggregator.aggregate(batches[i % 3]).average_quality_score
            if got != expected[i % 3]:
                errors.append(f"{got} != {expected[i % 3]}")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(9)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
