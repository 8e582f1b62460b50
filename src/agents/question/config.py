# -*- coding: utf-8 -*-
"""
Question Workflow Configuration
===============================

Workflow settings and the curriculum catalog, read from
config/question_config.yaml merged over config/main.yaml.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from src.services.config import PROJECT_ROOT, load_config_with_main

from .exceptions import ConfigurationError
from .models import GenerationRequest

load_dotenv(PROJECT_ROOT / ".env", override=False)

CONFIG_FILE = "question_config.yaml"


def _as_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def _as_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass(frozen=True)
class QualityPenalties:
    short_text: float = 0.3
    missing_answer: float = 0.4
    missing_service: float = 0.1
    missing_relevance: float = 0.2


@dataclass(frozen=True)
class WorkflowSettings:
    grade_min: int = 3
    grade_max: int = 8
    max_batch_size: int = 20
    max_concurrency: int = 4
    batch_timeout_seconds: float | None = 300.0
    min_question_length: int = 10
    retrieval_top_k: int = 10
    relevance_threshold: float = 0.7
    failure_threshold: int = 3
    reset_timeout_seconds: float = 30.0
    penalties: QualityPenalties = field(default_factory=QualityPenalties)
    routing: dict[str, Any] = field(default_factory=dict)
    model_tiers: dict[str, dict[str, Any]] = field(default_factory=dict)
    log_dir: str | None = None


def get_workflow_settings(project_root: Path | None = None) -> WorkflowSettings:
    """
    Get question workflow settings.

    Priority:
    1) Environment variables (QUESTIONFLOW_*)
    2) config/question_config.yaml ("question_workflow" section)
    3) Built-in defaults
    """
    cfg: dict[str, Any] = {}
    try:
        cfg = load_config_with_main(CONFIG_FILE, project_root)
    except (OSError, ValueError):
        cfg = {}

    wf = cfg.get("question_workflow", {}) if isinstance(cfg, dict) else {}
    defaults = WorkflowSettings()

    grade_range = wf.get("grade_range") or [defaults.grade_min, defaults.grade_max]
    retrieval = wf.get("retrieval", {}) or {}
    breaker = wf.get("circuit_breaker", {}) or {}
    penalties_cfg = wf.get("quality_penalties", {}) or {}

    timeout_default = wf.get("batch_timeout_seconds", defaults.batch_timeout_seconds)
    timeout = _as_float(os.getenv("QUESTIONFLOW_BATCH_TIMEOUT_SECONDS"), float(timeout_default or 0))

    log_dir = cfg.get("paths", {}).get("user_log_dir") or cfg.get("logging", {}).get("log_dir")

    return WorkflowSettings(
        grade_min=int(grade_range[0]),
        grade_max=int(grade_range[1]),
        max_batch_size=_as_int(
            os.getenv("QUESTIONFLOW_MAX_BATCH_SIZE"), int(wf.get("max_batch_size", defaults.max_batch_size))
        ),
        max_concurrency=_as_int(
            os.getenv("QUESTIONFLOW_MAX_CONCURRENCY"),
            int(wf.get("max_concurrency", defaults.max_concurrency)),
        ),
        batch_timeout_seconds=timeout or None,
        min_question_length=int(wf.get("min_question_length", defaults.min_question_length)),
        retrieval_top_k=int(retrieval.get("top_k", defaults.retrieval_top_k)),
        relevance_threshold=_as_float(
            os.getenv("QUESTIONFLOW_RELEVANCE_THRESHOLD"),
            float(retrieval.get("relevance_threshold", defaults.relevance_threshold)),
        ),
        failure_threshold=_as_int(
            os.getenv("QUESTIONFLOW_FAILURE_THRESHOLD"),
            int(breaker.get("failure_threshold", defaults.failure_threshold)),
        ),
        reset_timeout_seconds=_as_float(
            os.getenv("QUESTIONFLOW_RESET_TIMEOUT_SECONDS"),
            float(breaker.get("reset_timeout_seconds", defaults.reset_timeout_seconds)),
        ),
        penalties=QualityPenalties(**{k: float(v) for k, v in penalties_cfg.items()}),
        routing=dict(wf.get("routing", {}) or {}),
        model_tiers=dict(wf.get("model_tiers", {}) or {}),
        log_dir=log_dir,
    )


class CurriculumCatalog:
    """Subjects, topics and grade windows that requests are checked against."""

    def __init__(self, entries: dict[str, dict[str, dict[str, Any]]], grade_min: int, grade_max: int):
        self._entries = {
            subject.strip().lower(): {topic.strip().lower(): entry or {} for topic, entry in topics.items()}
            for subject, topics in (entries or {}).items()
        }
        self.grade_min = grade_min
        self.grade_max = grade_max

    @classmethod
    def from_config(
        cls, project_root: Path | None = None, settings: WorkflowSettings | None = None
    ) -> "CurriculumCatalog":
        settings = settings or get_workflow_settings(project_root)
        try:
            cfg = load_config_with_main(CONFIG_FILE, project_root)
        except (OSError, ValueError):
            cfg = {}
        return cls(cfg.get("curriculum", {}) or {}, settings.grade_min, settings.grade_max)

    @property
    def subjects(self) -> list[str]:
        return sorted(self._entries)

    def topics(self, subject: str) -> list[str]:
        return sorted(self._entries.get(subject.strip().lower(), {}))

    def _topic_entry(self, subject: str, topic: str) -> dict[str, Any] | None:
        return self._entries.get(subject.strip().lower(), {}).get(topic.strip().lower())

    def objectives(self, subject: str, topic: str) -> list[str]:
        entry = self._topic_entry(subject, topic) or {}
        return list(entry.get("objectives", []) or [])

    def validate(self, request: GenerationRequest) -> None:
        """Raise ConfigurationError for an unknown subject/topic or out-of-range grade."""
        if not (self.grade_min <= request.grade <= self.grade_max):
            raise ConfigurationError(
                f"Grade {request.grade} outside supported range "
                f"{self.grade_min}-{self.grade_max}",
                stage="request",
            )

        subject = request.subject.strip().lower()
        if subject not in self._entries:
            raise ConfigurationError(f"Unknown subject: {request.subject}", stage="request")

        entry = self._topic_entry(request.subject, request.topic)
        if entry is None:
            raise ConfigurationError(
                f"Unknown topic '{request.topic}' for subject '{request.subject}'",
                stage="request",
            )

        grades = entry.get("grades")
        if grades and not (int(grades[0]) <= request.grade <= int(grades[1])):
            raise ConfigurationError(
                f"Topic '{request.topic}' is taught in grades {grades[0]}-{grades[1]}, "
                f"not grade {request.grade}",
                stage="request",
            )


__all__ = [
    "CurriculumCatalog",
    "QualityPenalties",
    "WorkflowSettings",
    "get_workflow_settings",
]
