# -*- coding: utf-8 -*-
"""
Quality Validator
=================

Scores one question. Starts at 1.0 and subtracts a fixed penalty per issue:

- question text shorter than the minimum length
- missing answer (fatal: forces the fallback path)
- missing service attribution
- vector context used without a relevance score

The score is floored at 0.0 and rounded to 3 decimals. ``is_valid`` is True
iff no issue was found; non-fatal issues surface as warnings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .config import QualityPenalties
from .models import VectorContext, round_score

MISSING_ANSWER = "Missing answer"


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    issues: list[str] = field(default_factory=list)
    quality_score: float = 1.0
    fatal: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "issues": list(self.issues),
            "quality_score": self.quality_score,
            "fatal": self.fatal,
        }


def _vector_context_used(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, VectorContext):
        return value.used
    if isinstance(value, Mapping):
        return bool(value.get("used"))
    return bool(getattr(value, "used", False))


class QualityValidator:
    def __init__(self, penalties: Optional[QualityPenalties] = None, min_length: int = 10):
        self.penalties = penalties or QualityPenalties()
        self.min_length = min_length

    def validate(self, question: Mapping[str, Any]) -> ValidationResult:
        """
        Validate a draft question.

        Args:
            question: Mapping with ``question``, ``answer`` and optional
                ``service_used``, ``vector_context``, ``relevance_score``

        Returns:
            ValidationResult
        """
        issues: list[str] = []
        score = 1.0
        fatal = False

        text = str(question.get("question") or "").strip()
        if len(text) < self.min_length:
            issues.append("Question text too short")
            score -= self.penalties.short_text

        answer = question.get("answer")
        if answer is None or str(answer).strip() == "":
            issues.append(MISSING_ANSWER)
            score -= self.penalties.missing_answer
            fatal = True

        if not question.get("service_used"):
            issues.append("Missing service information")
            score -= self.penalties.missing_service

        if _vector_context_used(question.get("vector_context")) and question.get("relevance_score") is None:
            issues.append("Missing relevance score for vector-enhanced question")
            score -= self.penalties.missing_relevance

        return ValidationResult(
            is_valid=not issues,
            issues=issues,
            quality_score=max(0.0, round_score(score)),
            fatal=fatal,
        )


__all__ = ["MISSING_ANSWER", "QualityValidator", "ValidationResult"]
