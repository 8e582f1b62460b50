# -*- coding: utf-8 -*-
"""
Question Generation Graph
==========================

LangGraph-based orchestration of the five generation stages.

Usage:
    from src.agents.question.graph import build_question_graph, QuestionGraphState

    graph = build_question_graph()
    result = await graph.ainvoke(
        {"request": request, "index": 0},
        config={"configurable": {...}},
    )
"""

from .graph import build_question_graph
from .state import QuestionGraphState

__all__ = [
    "build_question_graph",
    "QuestionGraphState",
]
