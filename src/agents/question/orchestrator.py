# -*- coding: utf-8 -*-
"""
Workflow Orchestrator
=====================

Runs the five-stage graph for one question and returns a GeneratedQuestion.

Only ConfigurationError reaches the caller. Every other failure is absorbed
by the graph's fallback branch, so ``run()`` always yields a usable question
for a well-formed request.

Usage:
    orchestrator = WorkflowOrchestrator(language_model=model, vector_store=store)
    question = await orchestrator.run(request)
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from src.logging import get_logger
from src.services.resilience import CircuitBreaker, get_circuit_breaker

from .capabilities import LanguageModelCapability, VectorStoreCapability
from .config import CurriculumCatalog, WorkflowSettings, get_workflow_settings
from .exceptions import ConfigurationError
from .fallback import FALLBACK, build_fallback_question
from .graph import build_question_graph
from .models import GeneratedQuestion, GenerationRequest, QuestionMetadata
from .routing import ModelRouter
from .validator import QualityValidator

ProgressCallback = Callable[[dict[str, Any]], Awaitable[None]]


class WorkflowOrchestrator:
    """
    Single-question workflow runner.

    Collaborators not given explicitly are built from configuration; the
    circuit breaker defaults to the process-wide instance.
    """

    def __init__(
        self,
        language_model: Optional[LanguageModelCapability] = None,
        vector_store: Optional[VectorStoreCapability] = None,
        *,
        breaker: Optional[CircuitBreaker] = None,
        settings: Optional[WorkflowSettings] = None,
        catalog: Optional[CurriculumCatalog] = None,
        router: Optional[ModelRouter] = None,
        validator: Optional[QualityValidator] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.settings = settings or get_workflow_settings()
        self.catalog = catalog or CurriculumCatalog.from_config(settings=self.settings)
        self.router = router or ModelRouter.from_settings(
            self.settings.routing, self.settings.model_tiers
        )
        self.validator = validator or QualityValidator(
            self.settings.penalties, self.settings.min_question_length
        )
        self.breaker = breaker or get_circuit_breaker()
        self.vector_store = vector_store
        self.progress_callback = progress_callback

        if language_model is None:
            from src.services.llm.tiered_model import TieredLanguageModel

            language_model = TieredLanguageModel.from_config(self.settings.model_tiers)
        self.language_model = language_model

        self.logger = get_logger("Question.Orchestrator", log_dir=self.settings.log_dir)
        self._graph = build_question_graph()

    def _configurable(self) -> dict[str, Any]:
        return {
            "catalog": self.catalog,
            "vector_store": self.vector_store,
            "language_model": self.language_model,
            "router": self.router,
            "breaker": self.breaker,
            "validator": self.validator,
            "settings": self.settings,
            "progress_callback": self.progress_callback,
        }

    def validate_request(self, request: GenerationRequest) -> None:
        """Raise ConfigurationError for requests outside the curriculum."""
        self.catalog.validate(request)

    async def run(self, request: GenerationRequest, index: int = 0) -> GeneratedQuestion:
        """
        Generate one question.

        Args:
            request: Generation request
            index: Position within a batch; varies prompts and fallback seeds

        Returns:
            GeneratedQuestion

        Raises:
            ConfigurationError: request names an unknown subject/topic or an
                unsupported grade
        """
        self.validate_request(request)

        try:
            result = await self._graph.ainvoke(
                {"request": request, "index": index},
                config={"configurable": self._configurable()},
            )
        except ConfigurationError:
            raise
        except Exception as e:
            self.logger.error(f"Workflow for question #{index} aborted: {e}")
            return self._last_resort(request, index, e)

        question: GeneratedQuestion = result["question"]
        if question.metadata.service_used == FALLBACK or question.metadata.warnings:
            self.logger.info(
                f"Question #{index}: {question.metadata.service_used}, "
                f"{len(question.metadata.warnings)} warning(s)"
            )
        else:
            self.logger.success(f"Question #{index} generated by {question.metadata.model_used}")
        return question

    def _last_resort(
        self, request: GenerationRequest, index: int, error: Exception
    ) -> GeneratedQuestion:
        """Fallback question built outside the graph."""
        objectives = self.catalog.objectives(request.subject, request.topic)
        draft = build_fallback_question(request, index, objectives)
        validation = self.validator.validate({**draft, "service_used": FALLBACK})
        return GeneratedQuestion(
            id=f"q_fallback_{index}",
            subject=request.subject,
            topic=request.topic,
            difficulty=request.difficulty,
            question=draft["question"],
            answer=draft["answer"],
            explanation=draft["explanation"],
            question_type=request.question_type,
            metadata=QuestionMetadata(
                service_used=FALLBACK,
                quality_score=validation.quality_score,
                warnings=[f"Fallback used: workflow aborted ({type(error).__name__})"],
                validation_issues=list(validation.issues),
            ),
        )


__all__ = ["WorkflowOrchestrator"]
