from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import pytest

from src.agents.question.config import CurriculumCatalog, WorkflowSettings
from src.agents.question.models import GenerationRequest, Persona, VectorRetrievalResult
from src.agents.question.orchestrator import WorkflowOrchestrator
from src.agents.question.routing import ModelTier
from src.services.resilience import CircuitBreaker

GOOD_RESPONSE = json.dumps(
    {
        "question": "Mere has 24 stickers and buys 18 more. How many stickers does she have now?",
        "answer": "42",
        "explanation": "24 + 18 = 42",
    }
)


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLanguageModel:
    """
    Scripted model. Each call pops the next script entry: a string is
    returned, an exception instance is raised. An empty script returns
    GOOD_RESPONSE.
    """

    def __init__(self) -> None:
        self.script: list[Any] = []
        self.calls: list[tuple[str, ModelTier]] = []
        self.delay: float = 0.0

    def model_for(self, tier: ModelTier) -> str:
        return f"fake-{tier.value}"

    async def generate(self, prompt: str, tier: ModelTier) -> str:
        self.calls.append((prompt, tier))
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        item = self.script.pop(0) if self.script else GOOD_RESPONSE
        if isinstance(item, BaseException):
            raise item
        return item


class FakeVectorStore:
    def __init__(self, results: list[VectorRetrievalResult] | None = None, error: Exception | None = None):
        self.results = list(results or [])
        self.error = error
        self.queries: list[tuple[str, int, float]] = []

    async def retrieve(self, query: str, top_k: int, threshold: float) -> list[VectorRetrievalResult]:
        self.queries.append((query, top_k, threshold))
        if self.error is not None:
            raise self.error
        return self.results[:top_k]


def make_results(scores: list[float], sources: list[str] | None = None) -> list[VectorRetrievalResult]:
    sources = sources or ["curriculum"] * len(scores)
    return [
        VectorRetrievalResult(
            document_id=f"doc-{i}", relevance_score=score, source=sources[i], text=f"snippet {i}"
        )
        for i, score in enumerate(scores)
    ]


@pytest.fixture
def settings() -> WorkflowSettings:
    return WorkflowSettings(batch_timeout_seconds=None, max_concurrency=3, max_batch_size=10)


@pytest.fixture
def catalog() -> CurriculumCatalog:
    return CurriculumCatalog(
        {
            "mathematics": {
                "addition": {
                    "grades": [3, 8],
                    "objectives": ["Add whole numbers using place value strategies"],
                },
                "algebra": {"grades": [7, 8], "objectives": ["Simplify algebraic expressions"]},
            },
            "science": {
                "ecosystems": {"grades": [3, 8], "objectives": ["Explain food chains and energy flow"]},
            },
        },
        grade_min=3,
        grade_max=8,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock: FakeClock) -> CircuitBreaker:
    return CircuitBreaker(failure_threshold=3, reset_timeout=30.0, clock=clock)


@pytest.fixture
def fake_model() -> FakeLanguageModel:
    return FakeLanguageModel()


@pytest.fixture
def request_factory() -> Callable[..., GenerationRequest]:
    def _make(**overrides: Any) -> GenerationRequest:
        data: dict[str, Any] = {
            "subject": "Mathematics",
            "topic": "addition",
            "grade": 5,
            "difficulty": "medium",
            "question_type": "addition",
            "count": 1,
            "persona": Persona(learning_style="visual", interests=["rugby", "baking"]),
        }
        data.update(overrides)
        return GenerationRequest(**data)

    return _make


@pytest.fixture
def orchestrator_factory(
    settings: WorkflowSettings,
    catalog: CurriculumCatalog,
    breaker: CircuitBreaker,
    fake_model: FakeLanguageModel,
) -> Callable[..., WorkflowOrchestrator]:
    def _make(**overrides: Any) -> WorkflowOrchestrator:
        kwargs: dict[str, Any] = {
            "language_model": fake_model,
            "vector_store": None,
            "breaker": breaker,
            "settings": settings,
            "catalog": catalog,
        }
        kwargs.update(overrides)
        return WorkflowOrchestrator(**kwargs)

    return _make


@pytest.fixture
def vector_store_factory() -> Callable[..., FakeVectorStore]:
    def _make(scores: list[float] | None = None, sources: list[str] | None = None, error: Exception | None = None):
        return FakeVectorStore(make_results(scores or [], sources), error=error)

    return _make
