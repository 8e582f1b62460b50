# -*- coding: utf-8 -*-
"""
Fallback Question Generator
===========================

Deterministic, dependency-free question builder used when AI generation is
unavailable (circuit open) or its output cannot be used. The same request
and index always produce the same question.
"""

from __future__ import annotations

import hashlib
import random
from typing import Any, Optional

from .calibration import number_range
from .models import GenerationRequest

FALLBACK = "fallback"
FALLBACK_CIRCUIT_OPEN = "fallback-circuit-open"


def _rng(request: GenerationRequest, index: int) -> random.Random:
    digest = hashlib.sha256(f"{request.fingerprint()}#{index}".encode("utf-8")).hexdigest()
    return random.Random(int(digest[:16], 16))


def _arithmetic(request: GenerationRequest, rng: random.Random) -> dict[str, str]:
    bounds = number_range(request.grade, request.difficulty, request.question_type)
    low, high = bounds["min"], bounds["max"]
    kind = request.question_type.lower()
    topic = request.topic.lower()

    if kind == "subtraction" or topic == "subtraction":
        a, b = sorted((rng.randint(low, high), rng.randint(low, high)), reverse=True)
        return {
            "question": f"What is {a} - {b}?",
            "answer": str(a - b),
            "explanation": f"Subtract {b} from {a} to get {a - b}.",
        }

    if kind == "multiplication" or topic == "multiplication":
        limit = bounds.get("max_factor", 12)
        a, b = rng.randint(2, limit), rng.randint(2, limit)
        return {
            "question": f"What is {a} × {b}?",
            "answer": str(a * b),
            "explanation": f"{a} groups of {b} make {a * b}.",
        }

    if kind == "division" or topic == "division":
        divisor = rng.randint(2, bounds.get("max_divisor", 12))
        quotient = rng.randint(1, max(2, high // divisor))
        dividend = divisor * quotient
        return {
            "question": f"What is {dividend} ÷ {divisor}?",
            "answer": str(quotient),
            "explanation": f"{divisor} × {quotient} = {dividend}, so {dividend} ÷ {divisor} = {quotient}.",
        }

    a, b = rng.randint(low, high), rng.randint(low, high)
    return {
        "question": f"What is {a} + {b}?",
        "answer": str(a + b),
        "explanation": f"Add {a} and {b} to get {a + b}.",
    }


def _recall(request: GenerationRequest, objectives: list[str], rng: random.Random) -> dict[str, str]:
    if objectives:
        objective = objectives[rng.randrange(len(objectives))]
        return {
            "question": f"Which learning goal belongs to the topic '{request.topic}'?",
            "answer": objective,
            "explanation": f"In grade {request.grade} {request.subject}, '{request.topic}' covers: {objective}.",
        }
    return {
        "question": f"Name one key idea you have learned about {request.topic}.",
        "answer": f"Any accurate key idea about {request.topic}",
        "explanation": "Open recall question; accept any correct statement.",
    }


def build_fallback_question(
    request: GenerationRequest,
    index: int = 0,
    objectives: Optional[list[str]] = None,
) -> dict[str, Any]:
    """
    Build a draft question without calling any external service.

    Returns:
        Draft dict with question, answer and explanation
    """
    rng = _rng(request, index)
    if request.subject.strip().lower() in {"mathematics", "math", "maths"}:
        return _arithmetic(request, rng)
    return _recall(request, list(objectives or []), rng)


__all__ = ["FALLBACK", "FALLBACK_CIRCUIT_OPEN", "build_fallback_question"]
