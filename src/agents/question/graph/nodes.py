# -*- coding: utf-8 -*-
"""
Question Graph Nodes
=====================

Node functions for the LangGraph question generation workflow.

Each node reads the state, returns a partial update and never mutates shared
objects except the circuit breaker. Collaborators arrive through
``config["configurable"]``:

- catalog: CurriculumCatalog
- vector_store: VectorStoreCapability (optional)
- language_model: LanguageModelCapability
- router: ModelRouter
- breaker: CircuitBreaker
- validator: QualityValidator
- settings: WorkflowSettings
- progress_callback: optional async callable receiving progress events
"""

import asyncio
import time
import uuid
from typing import Any, Optional

from langchain_core.runnables import RunnableConfig

from src.agents.question.calibration import calibrate
from src.agents.question.enhancement import enhance_question
from src.agents.question.exceptions import (
    ContentError,
    ContextUnavailable,
    TransientBackendError,
    ValidationFailure,
)
from src.agents.question.fallback import FALLBACK, FALLBACK_CIRCUIT_OPEN, build_fallback_question
from src.agents.question.metadata import summarize_retrieval
from src.agents.question.models import GeneratedQuestion, QuestionMetadata, VectorContext
from src.agents.question.prompts import build_generation_prompt, parse_generation_response
from src.agents.question.routing import ModelTier
from src.logging import get_logger

from .state import QuestionGraphState

logger = get_logger("Question.Graph")

AGENTIC_WORKFLOW = "agentic-workflow"

STAGE_CURRICULUM = "curriculum_context"
STAGE_CALIBRATION = "difficulty_calibration"
STAGE_GENERATION = "generation"
STAGE_VALIDATION = "quality_validation"
STAGE_ENHANCEMENT = "context_enhancement"
STAGE_FALLBACK = "fallback"
STAGE_FINALIZE = "finalize"

MAX_SNIPPETS = 3


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _deps(config: RunnableConfig) -> dict[str, Any]:
    return (config or {}).get("configurable", {}) or {}


async def _progress(config: RunnableConfig, stage: str, state: QuestionGraphState) -> None:
    """Send a progress event if a callback is configured."""
    cb = _deps(config).get("progress_callback")
    if cb:
        try:
            await cb({"type": "progress", "stage": stage, "index": state.get("index", 0)})
        except Exception as e:
            logger.debug(f"Progress callback failed: {e}")


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


def _retrieval_query(state: QuestionGraphState) -> str:
    request = state["request"]
    parts = [request.subject, request.topic, request.subtopic or "", request.question_type]
    return " ".join(p for p in parts if p) + f" grade {request.grade}"


async def _retrieve_context(
    state: QuestionGraphState, config: RunnableConfig
) -> tuple[VectorContext, list[str]]:
    """
    Query the vector store.

    Raises:
        ContextUnavailable: store failed or returned nothing
    """
    deps = _deps(config)
    store = deps.get("vector_store")
    settings = deps["settings"]
    if store is None:
        raise ContextUnavailable("No vector store configured", stage=STAGE_CURRICULUM)

    start = time.perf_counter()
    try:
        results = await store.retrieve(
            _retrieval_query(state), settings.retrieval_top_k, settings.relevance_threshold
        )
    except Exception as e:
        raise ContextUnavailable(f"Vector retrieval failed: {e}", stage=STAGE_CURRICULUM) from e

    summary = summarize_retrieval(list(results), settings.relevance_threshold, _elapsed_ms(start))
    if summary is None:
        raise ContextUnavailable("Vector retrieval returned no results", stage=STAGE_CURRICULUM)

    snippets = [
        r.text for r in results if r.relevance_score >= settings.relevance_threshold and r.text
    ][:MAX_SNIPPETS]
    return summary, snippets


# ---------------------------------------------------------------------------
# Stage 1: Curriculum context (non-fatal)
# ---------------------------------------------------------------------------

async def curriculum_context(state: QuestionGraphState, config: RunnableConfig) -> dict:
    """Collect learning objectives and similar curriculum material."""
    await _progress(config, STAGE_CURRICULUM, state)
    start = time.perf_counter()
    request = state["request"]
    catalog = _deps(config).get("catalog")

    warnings: list[str] = []
    errors: dict[str, str] = {}
    objectives = catalog.objectives(request.subject, request.topic) if catalog else []

    vector_context: Optional[VectorContext] = None
    snippets: list[str] = []
    try:
        vector_context, snippets = await _retrieve_context(state, config)
    except ContextUnavailable as e:
        warnings.append(f"Curriculum context unavailable: {e}")
        errors[STAGE_CURRICULUM] = str(e)
        logger.debug(str(e))

    relevance = None
    if vector_context is not None and vector_context.used:
        relevance = vector_context.average_relevance_score

    return {
        "current_stage": STAGE_CURRICULUM,
        "curriculum": {"objectives": objectives, "snippets": snippets},
        "vector_context": vector_context,
        "relevance_score": relevance,
        "warnings": warnings,
        "stage_errors": errors,
        "stage_timings": {STAGE_CURRICULUM: _elapsed_ms(start)},
    }


# ---------------------------------------------------------------------------
# Stage 2: Difficulty calibration (fatal)
# ---------------------------------------------------------------------------

async def difficulty_calibration(state: QuestionGraphState, config: RunnableConfig) -> dict:
    """Derive number ranges and pick the model tier."""
    await _progress(config, STAGE_CALIBRATION, state)
    start = time.perf_counter()
    request = state["request"]
    router = _deps(config)["router"]

    try:
        settings = calibrate(request.grade, request.difficulty, request.question_type)
        complexity, tier = router.route(
            request.topic, request.question_type, request.grade, request.difficulty
        )
    except Exception as e:
        logger.warning(f"Difficulty calibration failed: {e}")
        return {
            "current_stage": STAGE_CALIBRATION,
            "fallback_reason": f"calibration failed: {e}",
            "stage_errors": {STAGE_CALIBRATION: str(e)},
            "stage_timings": {STAGE_CALIBRATION: _elapsed_ms(start)},
        }

    return {
        "current_stage": STAGE_CALIBRATION,
        "difficulty_settings": settings,
        "complexity": complexity.value,
        "model_tier": tier.value,
        "stage_timings": {STAGE_CALIBRATION: _elapsed_ms(start)},
    }


# ---------------------------------------------------------------------------
# Stage 3: Generation (fatal, circuit-breaker gated)
# ---------------------------------------------------------------------------

async def generation(state: QuestionGraphState, config: RunnableConfig) -> dict:
    """Call the routed language model unless the circuit is open."""
    await _progress(config, STAGE_GENERATION, state)
    start = time.perf_counter()
    deps = _deps(config)
    breaker = deps["breaker"]
    model = deps["language_model"]
    request = state["request"]
    tier = ModelTier(state.get("model_tier", ModelTier.FAST.value))

    permit = breaker.acquire()
    if permit is None:
        logger.warning(f"Circuit open, skipping model call for question #{state.get('index', 0)}")
        return {
            "current_stage": STAGE_GENERATION,
            "service_used": FALLBACK_CIRCUIT_OPEN,
            "fallback_reason": "circuit open",
            "stage_timings": {STAGE_GENERATION: _elapsed_ms(start)},
        }

    prompt = build_generation_prompt(
        request, state.get("difficulty_settings", {}), state.get("curriculum"), state.get("index", 0)
    )
    model_used = model.model_for(tier)

    try:
        text = await model.generate(prompt, tier)
    except TransientBackendError as e:
        breaker.record_failure(permit)
        return _generation_failed(e, start, model_used)
    except ContentError as e:
        # The backend answered, so it counts as healthy
        breaker.record_success(permit)
        return _generation_failed(e, start, model_used)
    except Exception as e:
        # Not a backend health signal; only the trial slot is given back
        breaker.release_trial(permit)
        return _generation_failed(e, start, model_used)
    except asyncio.CancelledError:
        # Cancelled mid-call: the outcome is unknown
        breaker.release_trial(permit)
        raise

    breaker.record_success(permit)

    try:
        draft = parse_generation_response(text)
    except ContentError as e:
        return _generation_failed(e, start, model_used)

    return {
        "current_stage": STAGE_GENERATION,
        "draft": draft,
        "service_used": AGENTIC_WORKFLOW,
        "model_used": model_used,
        "stage_timings": {STAGE_GENERATION: _elapsed_ms(start)},
    }


def _generation_failed(error: Exception, start: float, model_used: Optional[str]) -> dict:
    logger.warning(f"Generation with {model_used} failed ({type(error).__name__}): {error}")
    return {
        "current_stage": STAGE_GENERATION,
        "fallback_reason": f"{type(error).__name__}: {error}",
        "stage_errors": {STAGE_GENERATION: str(error)},
        "stage_timings": {STAGE_GENERATION: _elapsed_ms(start)},
    }


# ---------------------------------------------------------------------------
# Stage 4: Quality validation (fatal on missing answer)
# ---------------------------------------------------------------------------

async def quality_validation(state: QuestionGraphState, config: RunnableConfig) -> dict:
    """Score the draft; fatal issues send the run to the fallback generator."""
    await _progress(config, STAGE_VALIDATION, state)
    start = time.perf_counter()
    validator = _deps(config)["validator"]
    draft = state.get("draft", {})

    try:
        result = validator.validate(
            {
                **draft,
                "service_used": state.get("service_used"),
                "vector_context": state.get("vector_context"),
                "relevance_score": state.get("relevance_score"),
            }
        )
        if result.fatal:
            raise ValidationFailure(
                f"Fatal validation issue: {', '.join(result.issues)}",
                issues=result.issues,
                stage=STAGE_VALIDATION,
            )
    except Exception as e:
        logger.warning(f"Quality validation failed: {e}")
        return {
            "current_stage": STAGE_VALIDATION,
            "fallback_reason": f"validation failed: {e}",
            "stage_errors": {STAGE_VALIDATION: str(e)},
            "stage_timings": {STAGE_VALIDATION: _elapsed_ms(start)},
        }

    return {
        "current_stage": STAGE_VALIDATION,
        "validation": result.as_dict(),
        "warnings": list(result.issues),
        "stage_timings": {STAGE_VALIDATION: _elapsed_ms(start)},
    }


# ---------------------------------------------------------------------------
# Stage 5: Context enhancement (non-fatal)
# ---------------------------------------------------------------------------

async def context_enhancement(state: QuestionGraphState, config: RunnableConfig) -> dict:
    """Personalise the question text for the persona."""
    await _progress(config, STAGE_ENHANCEMENT, state)
    start = time.perf_counter()
    request = state["request"]
    draft = dict(state.get("draft", {}))

    try:
        enhanced = enhance_question(draft.get("question", ""), request.grade, request.persona)
    except Exception as e:
        logger.warning(f"Context enhancement failed: {e}")
        return {
            "current_stage": STAGE_ENHANCEMENT,
            "enhanced_context": None,
            "warnings": [f"Context enhancement unavailable: {e}"],
            "stage_errors": {STAGE_ENHANCEMENT: str(e)},
            "stage_timings": {STAGE_ENHANCEMENT: _elapsed_ms(start)},
        }

    draft["question"] = enhanced.pop("enhanced_text")
    return {
        "current_stage": STAGE_ENHANCEMENT,
        "draft": draft,
        "enhanced_context": enhanced,
        "stage_timings": {STAGE_ENHANCEMENT: _elapsed_ms(start)},
    }


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

async def fallback(state: QuestionGraphState, config: RunnableConfig) -> dict:
    """Replace the draft with a deterministic question."""
    await _progress(config, STAGE_FALLBACK, state)
    start = time.perf_counter()
    deps = _deps(config)
    validator = deps["validator"]
    request = state["request"]

    service = FALLBACK_CIRCUIT_OPEN if state.get("service_used") == FALLBACK_CIRCUIT_OPEN else FALLBACK
    objectives = (state.get("curriculum") or {}).get("objectives") or []
    draft = build_fallback_question(request, state.get("index", 0), objectives)

    result = validator.validate(
        {
            **draft,
            "service_used": service,
            "vector_context": state.get("vector_context"),
            "relevance_score": state.get("relevance_score"),
        }
    )

    reason = state.get("fallback_reason") or "unknown"
    logger.warning(f"Question #{state.get('index', 0)} served by {service} ({reason})")

    return {
        "current_stage": STAGE_FALLBACK,
        "draft": draft,
        "service_used": service,
        "model_used": None,
        "validation": result.as_dict(),
        "warnings": [f"Fallback used: {reason}", *result.issues],
        "stage_timings": {STAGE_FALLBACK: _elapsed_ms(start)},
    }


# ---------------------------------------------------------------------------
# Finalize
# ---------------------------------------------------------------------------

async def finalize(state: QuestionGraphState, config: RunnableConfig) -> dict:
    """Assemble the GeneratedQuestion with its metadata."""
    request = state["request"]
    draft = state.get("draft", {})
    validation = state.get("validation", {})
    timings = dict(state.get("stage_timings", {}))

    metadata = QuestionMetadata(
        service_used=state.get("service_used") or FALLBACK,
        quality_score=validation.get("quality_score", 0.0),
        generation_time_ms=sum(timings.values()),
        relevance_score=state.get("relevance_score"),
        vector_context=state.get("vector_context"),
        model_tier=state.get("model_tier"),
        model_used=state.get("model_used"),
        stage_timings=timings,
        warnings=list(state.get("warnings", [])),
        validation_issues=list(validation.get("issues", [])),
        enhanced_context=state.get("enhanced_context"),
    )

    question = GeneratedQuestion(
        id=f"q_{uuid.uuid4().hex[:12]}",
        subject=request.subject,
        topic=request.topic,
        difficulty=request.difficulty,
        question=draft.get("question", ""),
        answer=draft.get("answer", ""),
        explanation=draft.get("explanation", ""),
        question_type=request.question_type,
        metadata=metadata,
    )

    await _progress(config, STAGE_FINALIZE, state)
    logger.debug(
        f"Question #{state.get('index', 0)} done via {metadata.service_used} "
        f"in {metadata.generation_time_ms}ms (quality {metadata.quality_score})"
    )
    return {"current_stage": STAGE_FINALIZE, "question": question}


# ---------------------------------------------------------------------------
# Routing functions (for conditional edges)
# ---------------------------------------------------------------------------

def _continue_or_fallback(state: QuestionGraphState, next_stage: str) -> str:
    return STAGE_FALLBACK if state.get("fallback_reason") else next_stage


def after_calibration(state: QuestionGraphState) -> str:
    return _continue_or_fallback(state, STAGE_GENERATION)


def after_generation(state: QuestionGraphState) -> str:
    return _continue_or_fallback(state, STAGE_VALIDATION)


def after_validation(state: QuestionGraphState) -> str:
    return _continue_or_fallback(state, STAGE_ENHANCEMENT)


__all__ = [
    "AGENTIC_WORKFLOW",
    "after_calibration",
    "after_generation",
    "after_validation",
    "context_enhancement",
    "curriculum_context",
    "difficulty_calibration",
    "fallback",
    "finalize",
    "generation",
    "quality_validation",
]
