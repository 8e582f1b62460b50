# -*- coding: utf-8 -*-
"""
LLM Services
============

Provider access for the question workflow.

Usage:
    from src.services.llm import LangChainProvider, get_llm_config

    cfg = get_llm_config()
    text = await LangChainProvider.complete(prompt, model="llama3.1:latest", binding=cfg.binding)

The tiered language-model capability lives in
``src.services.llm.tiered_model``.
"""

from .config import LLMConfig, get_llm_config
from .exceptions import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMConfigError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from .langchain_provider import LangChainProvider
from .utils import clean_thinking_tags, has_thinking_tags, is_local_llm_server

__all__ = [
    "LLMAPIError",
    "LLMAuthenticationError",
    "LLMConfig",
    "LLMConfigError",
    "LLMError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "LangChainProvider",
    "clean_thinking_tags",
    "get_llm_config",
    "has_thinking_tags",
    "is_local_llm_server",
]
