# -*- coding: utf-8 -*-
"""
Model Routing
=============

Picks the model tier for a request:

- ``classify()`` maps (topic, question type, grade, difficulty) onto
  SIMPLE / COMPLEX
- ``ModelRouter.select()`` maps the complexity class onto a tier

The router never calls a model; the Generation stage uses the returned tier
to pick which backend model to call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from .models import Difficulty


class ComplexityClass(str, Enum):
    SIMPLE = "simple"
    COMPLEX = "complex"


class ModelTier(str, Enum):
    FAST = "fast"
    LARGE = "large"


DEFAULT_TIER_MODELS: dict[ModelTier, str] = {
    ModelTier.FAST: "llama3.1:latest",
    ModelTier.LARGE: "qwen3:14b",
}


@dataclass(frozen=True)
class RoutingPolicy:
    """Heuristic thresholds; tune through the ``routing`` config section."""

    hard_grade_threshold: int = 7
    complex_topic_keywords: tuple[str, ...] = (
        "algebra",
        "algebraic",
        "equation",
        "proof",
        "mastery",
        "multi-step",
        "multi_step",
        "simultaneous",
    )
    complex_question_types: tuple[str, ...] = (
        "multi_step_algebra",
        "geometry_proof",
        "mastery",
        "word_problem_mixed",
        "linear_equation",
    )

    @classmethod
    def from_config(cls, routing_cfg: Optional[Mapping[str, Any]]) -> "RoutingPolicy":
        if not routing_cfg:
            return cls()
        defaults = cls()
        return cls(
            hard_grade_threshold=int(
                routing_cfg.get("hard_grade_threshold", defaults.hard_grade_threshold)
            ),
            complex_topic_keywords=tuple(
                str(k).lower()
                for k in routing_cfg.get("complex_topic_keywords", defaults.complex_topic_keywords)
            ),
            complex_question_types=tuple(
                str(t).lower()
                for t in routing_cfg.get("complex_question_types", defaults.complex_question_types)
            ),
        )


def classify(
    topic: str,
    question_type: str,
    grade: int,
    difficulty: Difficulty | str,
    policy: Optional[RoutingPolicy] = None,
) -> ComplexityClass:
    """
    Classify a request as SIMPLE or COMPLEX.

    COMPLEX when the topic names multi-step algebra, proofs or mastery work,
    when the question type is one of the configured complex types, or when a
    senior grade is combined with hard difficulty.
    """
    policy = policy or RoutingPolicy()
    difficulty_value = difficulty.value if isinstance(difficulty, Difficulty) else str(difficulty)

    topic_lower = (topic or "").lower()
    if any(keyword in topic_lower for keyword in policy.complex_topic_keywords):
        return ComplexityClass.COMPLEX

    if (question_type or "").lower() in policy.complex_question_types:
        return ComplexityClass.COMPLEX

    if grade >= policy.hard_grade_threshold and difficulty_value.lower() == Difficulty.HARD.value:
        return ComplexityClass.COMPLEX

    return ComplexityClass.SIMPLE


@dataclass(frozen=True)
class ModelRouter:
    """Stateless complexity -> tier mapping."""

    tier_models: Mapping[ModelTier, str] = field(default_factory=lambda: dict(DEFAULT_TIER_MODELS))
    policy: RoutingPolicy = field(default_factory=RoutingPolicy)

    @classmethod
    def from_settings(
        cls, routing_cfg: Optional[Mapping[str, Any]], tiers_cfg: Optional[Mapping[str, Any]]
    ) -> "ModelRouter":
        tier_models = dict(DEFAULT_TIER_MODELS)
        for tier in ModelTier:
            model = ((tiers_cfg or {}).get(tier.value) or {}).get("model")
            if model:
                tier_models[tier] = str(model)
        return cls(tier_models=tier_models, policy=RoutingPolicy.from_config(routing_cfg))

    def select(self, complexity: ComplexityClass) -> ModelTier:
        if complexity == ComplexityClass.COMPLEX:
            return ModelTier.LARGE
        return ModelTier.FAST

    def route(
        self, topic: str, question_type: str, grade: int, difficulty: Difficulty | str
    ) -> tuple[ComplexityClass, ModelTier]:
        complexity = classify(topic, question_type, grade, difficulty, self.policy)
        return complexity, self.select(complexity)

    def model_for(self, tier: ModelTier) -> str:
        return self.tier_models.get(tier, DEFAULT_TIER_MODELS[tier])


__all__ = [
    "ComplexityClass",
    "DEFAULT_TIER_MODELS",
    "ModelRouter",
    "ModelTier",
    "RoutingPolicy",
    "classify",
]
