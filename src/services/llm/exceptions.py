# -*- coding: utf-8 -*-
"""
LLM Exceptions
==============

Provider-level error hierarchy. The question workflow translates these into
its own taxonomy (transient vs content) in ``tiered_model``.
"""

from typing import Optional


class LLMError(Exception):
    """Base class for LLM provider errors."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class LLMConfigError(LLMError):
    """Provider package missing or provider misconfigured."""


class LLMAPIError(LLMError):
    """The provider call failed (network, server error, bad response)."""


class LLMAuthenticationError(LLMAPIError):
    """Credentials were rejected."""


class LLMRateLimitError(LLMAPIError):
    """The provider throttled the request."""


class LLMTimeoutError(LLMAPIError):
    """The provider did not answer in time."""


__all__ = [
    "LLMError",
    "LLMConfigError",
    "LLMAPIError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMTimeoutError",
]
