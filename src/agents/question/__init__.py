"""
Question Generation System

Five-stage question generation workflow:
- CurriculumContext: learning objectives + vector retrieval (non-fatal)
- DifficultyCalibration: number ranges and model-tier routing
- Generation: routed language model, gated by the circuit breaker
- QualityValidation: penalty-based quality score
- ContextEnhancement: persona personalisation (non-fatal)

Orchestration via LangGraph (src/agents/question/graph). Batches go through
BatchCoordinator, which aggregates per-question metadata.
"""

from .batch import BatchCoordinator
from .capabilities import (
    InMemoryPersonaStore,
    LanguageModelCapability,
    PersonaStore,
    VectorStoreCapability,
)
from .config import CurriculumCatalog, WorkflowSettings, get_workflow_settings
from .exceptions import (
    ConfigurationError,
    ContentError,
    ContextUnavailable,
    TransientBackendError,
    ValidationFailure,
    WorkflowError,
)
from .metadata import MetadataAggregator, summarize_retrieval
from .models import BatchResult, GeneratedQuestion, GenerationRequest, Persona
from .orchestrator import WorkflowOrchestrator
from .routing import ComplexityClass, ModelRouter, ModelTier, classify
from .validator import QualityValidator

__all__ = [
    "BatchCoordinator",
    "BatchResult",
    "ComplexityClass",
    "ConfigurationError",
    "ContentError",
    "ContextUnavailable",
    "CurriculumCatalog",
    "GeneratedQuestion",
    "GenerationRequest",
    "InMemoryPersonaStore",
    "LanguageModelCapability",
    "MetadataAggregator",
    "ModelRouter",
    "ModelTier",
    "Persona",
    "PersonaStore",
    "QualityValidator",
    "TransientBackendError",
    "ValidationFailure",
    "VectorStoreCapability",
    "WorkflowError",
    "WorkflowOrchestrator",
    "WorkflowSettings",
    "classify",
    "get_workflow_settings",
]
