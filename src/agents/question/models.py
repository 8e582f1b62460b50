# -*- coding: utf-8 -*-
"""
Question Workflow Models
========================

Pydantic models for requests, generated questions and batch results.
Scores are kept in [0, 1] and rounded to 3 decimals on construction.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def round_score(value: float) -> float:
    return round(float(value), 3)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class LearningStyle(str, Enum):
    VISUAL = "visual"
    AUDITORY = "auditory"
    KINESTHETIC = "kinesthetic"
    READING_WRITING = "reading_writing"


class PerformanceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Persona(BaseModel):
    """Read-only snapshot of a student persona."""

    model_config = ConfigDict(frozen=True)

    learning_style: LearningStyle = LearningStyle.VISUAL
    interests: tuple[str, ...] = Field(default=(), max_length=5)
    motivators: tuple[str, ...] = Field(default=(), max_length=3)
    cultural_context: str = "New Zealand"
    preferred_difficulty: Difficulty = Difficulty.MEDIUM
    performance_level: PerformanceLevel = PerformanceLevel.INTERMEDIATE
    strengths: tuple[str, ...] = ()
    improvement_areas: tuple[str, ...] = ()

    @field_validator("interests", "motivators", "strengths", "improvement_areas", mode="before")
    @classmethod
    def _strip_items(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return value


class GenerationRequest(BaseModel):
    """One API call's worth of generation input. Never mutated."""

    model_config = ConfigDict(frozen=True)

    subject: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    subtopic: Optional[str] = None
    grade: int = Field(ge=1, le=12)
    difficulty: Difficulty = Difficulty.MEDIUM
    question_type: str = "addition"
    count: int = Field(default=1, ge=1)
    persona: Persona = Field(default_factory=Persona)

    def fingerprint(self) -> str:
        parts = [
            self.subject,
            self.topic,
            self.subtopic or "",
            str(self.grade),
            self.difficulty.value,
            self.question_type,
        ]
        return "|".join(p.strip().lower() for p in parts)


class VectorRetrievalResult(BaseModel):
    document_id: str
    relevance_score: float = Field(ge=0.0, le=1.0)
    source: str = "curriculum"
    text: str = ""


class RetrievalMetrics(BaseModel):
    total_retrieved: int = 0
    above_threshold: int = 0
    relevance_threshold: float = 0.0
    retrieval_time_ms: int = 0
    context_sources: list[str] = Field(default_factory=list)


class VectorContext(BaseModel):
    used: bool = False
    similar_questions_found: int = 0
    average_relevance_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_relevance_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    retrieval_metrics: Optional[RetrievalMetrics] = None

    @field_validator("average_relevance_score", "top_relevance_score")
    @classmethod
    def _round(cls, value: Optional[float]) -> Optional[float]:
        return None if value is None else round_score(value)


class QuestionMetadata(BaseModel):
    service_used: str
    quality_score: float = Field(ge=0.0, le=1.0)
    generation_time_ms: int = 0
    relevance_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    vector_context: Optional[VectorContext] = None
    model_tier: Optional[str] = None
    model_used: Optional[str] = None
    stage_timings: dict[str, int] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    validation_issues: list[str] = Field(default_factory=list)
    enhanced_context: Optional[dict[str, Any]] = None

    @field_validator("quality_score")
    @classmethod
    def _round_quality(cls, value: float) -> float:
        return round_score(value)

    @field_validator("relevance_score")
    @classmethod
    def _round_relevance(cls, value: Optional[float]) -> Optional[float]:
        return None if value is None else round_score(value)


class GeneratedQuestion(BaseModel):
    id: str
    subject: str
    topic: str
    difficulty: Difficulty
    question: str
    answer: str
    explanation: str = ""
    question_type: str
    metadata: QuestionMetadata


class Distribution(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class BatchMetadata(BaseModel):
    average_quality_score: float = 0.0
    average_relevance_score: Optional[float] = None
    average_generation_time_ms: int = 0
    questions_per_second: float = 0.0
    services_used: list[str] = Field(default_factory=list)
    service_distribution: dict[str, int] = Field(default_factory=dict)
    quality_distribution: Distribution = Field(default_factory=Distribution)
    relevance_distribution: Distribution = Field(default_factory=Distribution)
    vector_context: Optional[VectorContext] = None


class BatchFailure(BaseModel):
    index: int
    error_type: str
    message: str


class BatchResult(BaseModel):
    questions: list[GeneratedQuestion] = Field(default_factory=list)
    metadata: BatchMetadata = Field(default_factory=BatchMetadata)
    requested: int
    delivered: int
    failures: list[BatchFailure] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.delivered == self.requested


__all__ = [
    "BatchFailure",
    "BatchMetadata",
    "BatchResult",
    "Difficulty",
    "Distribution",
    "GeneratedQuestion",
    "GenerationRequest",
    "LearningStyle",
    "PerformanceLevel",
    "Persona",
    "QuestionMetadata",
    "RetrievalMetrics",
    "VectorContext",
    "VectorRetrievalResult",
    "round_score",
]
