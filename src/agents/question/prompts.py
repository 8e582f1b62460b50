# -*- coding: utf-8 -*-
"""
Generation Prompts
==================

Prompt construction for the Generation stage and parsing of the model's JSON
answer into a draft question.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from .exceptions import ContentError
from .models import GenerationRequest

SYSTEM_PROMPT = (
    "You are an experienced primary and intermediate school teacher writing "
    "practice questions.\n\n"
    "CRITICAL: Return ONLY valid JSON. Do not wrap in markdown code blocks.\n"
    'Output a JSON object with keys "question", "answer" and "explanation".'
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_MAX_CONTEXT_CHARS = 2000


def build_generation_prompt(
    request: GenerationRequest,
    calibration: dict[str, Any],
    curriculum: Optional[dict[str, Any]] = None,
    index: int = 0,
) -> str:
    curriculum = curriculum or {}
    persona = request.persona
    number_range = calibration.get("number_range", {})

    lines = [
        f"Subject: {request.subject}",
        f"Topic: {request.topic}" + (f" ({request.subtopic})" if request.subtopic else ""),
        f"Grade: {request.grade}",
        f"Difficulty: {request.difficulty.value}",
        f"Question Type: {request.question_type}",
        f"Number range: {number_range.get('min', 1)} to {number_range.get('max', 100)}",
        f"Complexity: {calibration.get('complexity', 'moderate')}",
        f"Allowed operations: {', '.join(calibration.get('allowed_operations', [])) or 'any'}",
        f"Learning style: {persona.learning_style.value}",
    ]
    if persona.interests:
        lines.append(f"Student interests: {', '.join(persona.interests)}")
    lines.append(f"Cultural context: {persona.cultural_context}")

    objectives = curriculum.get("objectives") or []
    if objectives:
        lines.append("")
        lines.append("Learning objectives:")
        lines.extend(f"- {objective}" for objective in objectives)

    snippets = curriculum.get("snippets") or []
    if snippets:
        joined = "\n".join(f"- {s}" for s in snippets)
        suffix = "...[truncated]" if len(joined) > _MAX_CONTEXT_CHARS else ""
        lines.append("")
        lines.append("Similar curriculum material:")
        lines.append(joined[:_MAX_CONTEXT_CHARS] + suffix)

    lines.append("")
    lines.append(f"Write question #{index + 1} for this student in JSON.")
    return "\n".join(lines)


def parse_generation_response(text: str) -> dict[str, str]:
    """
    Parse the model answer into ``{question, answer, explanation}``.

    Raises:
        ContentError: the text is not a JSON object or has no question
    """
    cleaned = _FENCE_RE.sub("", (text or "").strip())
    if not cleaned:
        raise ContentError("Empty model response", stage="generation")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        # Some models wrap the object in prose
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ContentError("Model response is not JSON", stage="generation")
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            raise ContentError(f"Model response is not JSON: {e}", stage="generation") from e

    if not isinstance(data, dict):
        raise ContentError("Model response is not a JSON object", stage="generation")

    question = str(data.get("question") or "").strip()
    if not question:
        raise ContentError("Model response has no question", stage="generation")

    answer = data.get("answer")
    return {
        "question": question,
        "answer": "" if answer is None else str(answer).strip(),
        "explanation": str(data.get("explanation") or "").strip(),
    }


__all__ = ["SYSTEM_PROMPT", "build_generation_prompt", "parse_generation_response"]
