# -*- coding: utf-8 -*-
"""
Question Graph State Definitions
=================================

TypedDict state schema for the single-question generation graph. One state
lives for exactly one ``ainvoke``; concurrent runs never share it.
"""

import operator
from typing import Annotated, Any, Optional, TypedDict

from src.agents.question.models import GeneratedQuestion, GenerationRequest, VectorContext


def merge_dicts(left: dict[str, Any], right: dict[str, Any]) -> dict[str, Any]:
    return {**(left or {}), **(right or {})}


class QuestionGraphState(TypedDict, total=False):
    """State for the question generation graph."""

    # --- Inputs ---
    request: GenerationRequest
    index: int

    # --- Bookkeeping (merged across nodes) ---
    current_stage: str
    stage_timings: Annotated[dict[str, int], merge_dicts]
    stage_errors: Annotated[dict[str, str], merge_dicts]
    warnings: Annotated[list[str], operator.add]

    # --- Stage 1: Curriculum context ---
    curriculum: dict[str, Any]
    vector_context: Optional[VectorContext]
    relevance_score: Optional[float]

    # --- Stage 2: Difficulty calibration ---
    difficulty_settings: dict[str, Any]
    complexity: str
    model_tier: str

    # --- Stage 3: Generation ---
    draft: dict[str, str]
    service_used: str
    model_used: Optional[str]

    # --- Stage 4: Quality validation ---
    validation: dict[str, Any]

    # --- Stage 5: Context enhancement ---
    enhanced_context: Optional[dict[str, Any]]

    # --- Fallback ---
    fallback_reason: Optional[str]

    # --- Output ---
    question: GeneratedQuestion


__all__ = ["QuestionGraphState", "merge_dicts"]
