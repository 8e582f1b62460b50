# -*- coding: utf-8 -*-
"""
Question Generation Graph
==========================

Builds and compiles the LangGraph StateGraph for one question:

    START → curriculum_context → difficulty_calibration → generation
          → quality_validation → context_enhancement → finalize → END

Calibration, generation and validation failures branch to ``fallback``,
which rejoins at ``finalize``.

Usage:
    from src.agents.question.graph import build_question_graph

    graph = build_question_graph()
    result = await graph.ainvoke(
        {"request": request, "index": 0},
        config={"configurable": {"language_model": model, "breaker": breaker, ...}},
    )
    question = result["question"]
"""

from __future__ import annotations

from typing import Any

from langgraph.graph import END, START, StateGraph

from .nodes import (
    STAGE_CALIBRATION,
    STAGE_CURRICULUM,
    STAGE_ENHANCEMENT,
    STAGE_FALLBACK,
    STAGE_FINALIZE,
    STAGE_GENERATION,
    STAGE_VALIDATION,
    after_calibration,
    after_generation,
    after_validation,
    context_enhancement,
    curriculum_context,
    difficulty_calibration,
    fallback,
    finalize,
    generation,
    quality_validation,
)
from .state import QuestionGraphState


def build_question_graph() -> Any:
    """
    Build and compile the question generation graph.

    The compiled graph holds no per-run state and can be shared by
    concurrent ``ainvoke`` calls.

    Returns:
        Compiled LangGraph graph ready for ainvoke().
    """
    workflow = StateGraph(QuestionGraphState)

    # --- Add Nodes ---
    workflow.add_node(STAGE_CURRICULUM, curriculum_context)
    workflow.add_node(STAGE_CALIBRATION, difficulty_calibration)
    workflow.add_node(STAGE_GENERATION, generation)
    workflow.add_node(STAGE_VALIDATION, quality_validation)
    workflow.add_node(STAGE_ENHANCEMENT, context_enhancement)
    workflow.add_node(STAGE_FALLBACK, fallback)
    workflow.add_node(STAGE_FINALIZE, finalize)

    # --- Edges ---
    workflow.add_edge(START, STAGE_CURRICULUM)
    workflow.add_edge(STAGE_CURRICULUM, STAGE_CALIBRATION)

    workflow.add_conditional_edges(
        STAGE_CALIBRATION,
        after_calibration,
        {STAGE_GENERATION: STAGE_GENERATION, STAGE_FALLBACK: STAGE_FALLBACK},
    )
    workflow.add_conditional_edges(
        STAGE_GENERATION,
        after_generation,
        {STAGE_VALIDATION: STAGE_VALIDATION, STAGE_FALLBACK: STAGE_FALLBACK},
    )
    workflow.add_conditional_edges(
        STAGE_VALIDATION,
        after_validation,
        {STAGE_ENHANCEMENT: STAGE_ENHANCEMENT, STAGE_FALLBACK: STAGE_FALLBACK},
    )

    workflow.add_edge(STAGE_ENHANCEMENT, STAGE_FINALIZE)
    workflow.add_edge(STAGE_FALLBACK, STAGE_FINALIZE)
    workflow.add_edge(STAGE_FINALIZE, END)

    return workflow.compile()


__all__ = ["build_question_graph"]
