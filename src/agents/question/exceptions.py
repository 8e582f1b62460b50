# -*- coding: utf-8 -*-
"""
Question Workflow Errors
========================

Error taxonomy for the generation workflow:

- TransientBackendError: network/timeout on the language model; counted by
  the circuit breaker, absorbed by the fallback generator
- ContentError: the model answered with unusable text; absorbed by the
  fallback generator, not counted by the circuit breaker
- ValidationFailure: the quality validator found a fatal issue
- ContextUnavailable: vector store failed or returned nothing; non-fatal
- ConfigurationError: malformed request; the only error surfaced to callers
"""

from typing import Optional


class WorkflowError(Exception):
    """Base class for question workflow errors."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class TransientBackendError(WorkflowError):
    pass


class ContentError(WorkflowError):
    pass


class ValidationFailure(WorkflowError):
    def __init__(self, message: str, issues: Optional[list[str]] = None, stage: Optional[str] = None):
        super().__init__(message, stage=stage)
        self.issues = list(issues or [])


class ContextUnavailable(WorkflowError):
    pass


class ConfigurationError(WorkflowError):
    pass


__all__ = [
    "WorkflowError",
    "TransientBackendError",
    "ContentError",
    "ValidationFailure",
    "ContextUnavailable",
    "ConfigurationError",
]
