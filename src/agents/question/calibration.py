# -*- coding: utf-8 -*-
"""
Difficulty Calibration
======================

Deterministic, age-appropriate difficulty settings:
- number range per grade, scaled by difficulty
- complexity / cognitive load analysis
- allowed operations per question type
"""

from __future__ import annotations

import math
from typing import Any

from .models import Difficulty

GRADE_BASE_RANGES: dict[int, tuple[int, int]] = {
    1: (1, 10),
    2: (1, 20),
    3: (1, 50),
    4: (1, 100),
    5: (1, 200),
    6: (1, 500),
    7: (1, 1000),
    8: (1, 2000),
}

DIFFICULTY_SCALE: dict[Difficulty, float] = {
    Difficulty.EASY: 0.5,
    Difficulty.MEDIUM: 0.75,
    Difficulty.HARD: 1.0,
}

TYPE_COMPLEXITY: dict[str, str] = {
    "addition": "simple",
    "subtraction": "simple",
    "multiplication": "moderate",
    "division": "moderate",
    "pattern": "moderate",
    "area_calculation": "moderate",
    "fraction_addition": "complex",
    "decimal_addition": "complex",
    "word_problem_mixed": "complex",
}

BASE_OPERATIONS: dict[str, list[str]] = {
    "addition": ["single-digit", "double-digit", "carrying"],
    "subtraction": ["single-digit", "double-digit", "borrowing"],
    "multiplication": ["single-digit", "by-10", "double-digit"],
    "division": ["by-single-digit", "remainder", "exact-division"],
    "fraction_addition": ["proper-fractions", "like-denominators", "unlike-denominators"],
    "decimal_addition": ["tenths", "hundredths", "decimal-operations"],
}

_HARDER = {"simple": "moderate", "moderate": "complex", "complex": "complex"}
_EASIER = {"complex": "moderate", "moderate": "simple", "simple": "simple"}


def number_range(grade: int, difficulty: Difficulty, question_type: str = "") -> dict[str, int]:
    low, high = GRADE_BASE_RANGES.get(min(max(grade, 1), 8), (1, 10))
    scaled = max(low + 1, math.floor(high * DIFFICULTY_SCALE[difficulty]))
    result = {"min": low, "max": scaled}
    if question_type == "division":
        result["max_divisor"] = max(2, min(12, high // 4))
    elif question_type == "multiplication":
        result["max_factor"] = max(2, min(12, math.isqrt(high)))
    return result


def analyze_complexity(grade: int, difficulty: Difficulty, question_type: str) -> tuple[str, str]:
    """Return (complexity, cognitive_load)."""
    complexity = TYPE_COMPLEXITY.get(question_type, "moderate")
    cognitive_load = "medium"

    if grade <= 2:
        complexity = "simple"
        cognitive_load = "low"
    elif grade >= 6 and complexity == "simple":
        complexity = "moderate"

    if difficulty == Difficulty.HARD:
        complexity = _HARDER[complexity]
        cognitive_load = {"low": "medium", "medium": "high"}.get(cognitive_load, cognitive_load)
    elif difficulty == Difficulty.EASY:
        complexity = _EASIER[complexity]
        if cognitive_load == "medium":
            cognitive_load = "low"

    return complexity, cognitive_load


def allowed_operations(grade: int, question_type: str, difficulty: Difficulty) -> list[str]:
    operations = list(BASE_OPERATIONS.get(question_type, ["basic"]))

    if grade <= 2:
        operations = [
            op
            for op in operations
            if "double-digit" not in op and "borrowing" not in op and "carrying" not in op
        ]

    if difficulty == Difficulty.EASY:
        operations = operations[:1]
    elif difficulty == Difficulty.MEDIUM:
        operations = operations[:2]

    return operations


def calibrate(grade: int, difficulty: Difficulty, question_type: str) -> dict[str, Any]:
    complexity, cognitive_load = analyze_complexity(grade, difficulty, question_type)
    return {
        "number_range": number_range(grade, difficulty, question_type),
        "complexity": complexity,
        "cognitive_load": cognitive_load,
        "allowed_operations": allowed_operations(grade, question_type, difficulty),
    }


__all__ = [
    "allowed_operations",
    "analyze_complexity",
    "calibrate",
    "number_range",
]
