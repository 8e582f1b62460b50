# -*- coding: utf-8 -*-
"""
LangChain LLM Provider
======================

Provides LangChain-based LLM integration with:
- Multi-provider support (OpenAI-compatible, Anthropic, Ollama)
- Per-call timeout
- Provider errors mapped onto the LLMError hierarchy

Usage:
    from src.services.llm.langchain_provider import LangChainProvider

    response = await LangChainProvider.complete(
        prompt="Hello",
        system_prompt="You are helpful",
        model="llama3.1:latest",
        base_url="http://127.0.0.1:11434",
        binding="ollama",
    )
"""

import asyncio
import os
from typing import Any, Dict, List, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from src.logging import get_logger

from .exceptions import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMConfigError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from .utils import clean_thinking_tags, is_local_llm_server

logger = get_logger("LangChain")


class LangChainProvider:
    """
    LangChain-based LLM provider.

    Routes a call to the chat model class matching the binding and returns
    the plain response text.
    """

    @classmethod
    def _get_llm(
        cls,
        binding: str,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> Any:
        """
        Get a LangChain chat model instance for the specified provider.

        Args:
            binding: Provider binding (openai, anthropic, ollama, etc.)
            model: Model name
            api_key: API key
            base_url: Base URL for the API
            temperature: Temperature for generation
            max_tokens: Maximum tokens to generate
            **kwargs: Additional provider-specific arguments

        Returns:
            LangChain BaseChatModel instance
        """
        binding_lower = (binding or "openai").lower()

        common_kwargs: Dict[str, Any] = {"temperature": temperature}
        if max_tokens:
            common_kwargs["max_tokens"] = max_tokens

        if binding_lower in ["anthropic", "claude"]:
            return cls._get_anthropic_llm(model, api_key, base_url, **common_kwargs, **kwargs)
        elif binding_lower == "ollama" or (base_url and is_local_llm_server(base_url)):
            return cls._get_ollama_llm(model, base_url, **common_kwargs, **kwargs)
        else:
            return cls._get_openai_llm(model, api_key, base_url, **common_kwargs, **kwargs)

    @classmethod
    def _get_openai_llm(
        cls,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        """Get OpenAI-compatible LLM instance."""
        try:
            from langchain_openai import ChatOpenAI
        except ImportError:
            raise LLMConfigError(
                "langchain-openai not installed. Run: pip install langchain-openai"
            )

        api_key = api_key or os.getenv("OPENAI_API_KEY")

        llm_kwargs: Dict[str, Any] = {"model": model, **kwargs}
        if api_key:
            llm_kwargs["api_key"] = api_key
        if base_url:
            llm_kwargs["base_url"] = base_url

        return ChatOpenAI(**llm_kwargs)

    @classmethod
    def _get_anthropic_llm(
        cls,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        """Get Anthropic LLM instance."""
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise LLMConfigError(
                "langchain-anthropic not installed. Run: pip install langchain-anthropic"
            )

        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise LLMAuthenticationError("Anthropic API key not provided", provider="anthropic")

        llm_kwargs: Dict[str, Any] = {"model": model, "api_key": api_key, **kwargs}
        if base_url:
            llm_kwargs["base_url"] = base_url

        return ChatAnthropic(**llm_kwargs)

    @classmethod
    def _get_ollama_llm(
        cls,
        model: str,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        """Get Ollama LLM instance."""
        try:
            from langchain_ollama import ChatOllama
        except ImportError:
            raise LLMConfigError(
                "langchain-ollama not installed. Run: pip install langchain-ollama"
            )

        # ChatOllama calls the token limit num_predict
        max_tokens = kwargs.pop("max_tokens", None)
        llm_kwargs: Dict[str, Any] = {"model": model, **kwargs}
        if max_tokens:
            llm_kwargs["num_predict"] = max_tokens

        if base_url:
            # Ollama base URL should not have /v1 suffix
            base_url = base_url.rstrip("/")
            if base_url.endswith("/v1"):
                base_url = base_url[:-3]
            llm_kwargs["base_url"] = base_url

        return ChatOllama(**llm_kwargs)

    @classmethod
    def _build_messages(cls, prompt: str, system_prompt: str) -> List[Any]:
        """Build the LangChain message list from prompt and system prompt."""
        result = []
        if system_prompt:
            result.append(SystemMessage(content=system_prompt))
        result.append(HumanMessage(content=prompt))
        return result

    @classmethod
    async def complete(
        cls,
        prompt: str,
        system_prompt: str = "You are a helpful assistant.",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        binding: str = "openai",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> str:
        """
        Complete a prompt using LangChain.

        Args:
            prompt: User prompt
            system_prompt: System prompt
            model: Model name
            api_key: API key
            base_url: Base URL for the API
            binding: Provider binding (openai, anthropic, ollama)
            temperature: Temperature for generation
            max_tokens: Maximum tokens to generate
            timeout: Seconds to wait for the provider before giving up
            **kwargs: Additional arguments

        Returns:
            Generated response text

        Raises:
            LLMConfigError: Provider package missing
            LLMTimeoutError: No answer within ``timeout``
            LLMAPIError: Any other provider failure
        """
        llm_kwargs: Dict[str, Any] = dict(kwargs)
        if temperature is not None:
            llm_kwargs["temperature"] = temperature
        if max_tokens:
            llm_kwargs["max_tokens"] = max_tokens

        resolved_model = model or "gpt-4o"
        llm = cls._get_llm(
            binding=binding,
            model=resolved_model,
            api_key=api_key,
            base_url=base_url,
            **llm_kwargs,
        )
        msg_list = cls._build_messages(prompt=prompt, system_prompt=system_prompt)

        try:
            if timeout:
                response = await asyncio.wait_for(llm.ainvoke(msg_list), timeout=timeout)
            else:
                response = await llm.ainvoke(msg_list)
        except asyncio.TimeoutError:
            raise LLMTimeoutError(
                f"No response from {resolved_model} after {timeout}s", provider=binding
            )
        except Exception as e:
            error_msg = str(e)

            if "authentication" in error_msg.lower() or "api key" in error_msg.lower():
                raise LLMAuthenticationError(
                    f"Authentication failed: {error_msg}",
                    provider=binding,
                )
            elif "rate limit" in error_msg.lower() or "429" in error_msg:
                raise LLMRateLimitError(
                    f"Rate limit exceeded: {error_msg}",
                    provider=binding,
                )
            else:
                raise LLMAPIError(
                    f"LangChain API error: {error_msg}",
                    provider=binding,
                )

        content = response.content if hasattr(response, "content") else str(response)
        if not isinstance(content, str):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in content
            )

        return clean_thinking_tags(content, binding, resolved_model)


__all__ = [
    "LangChainProvider",
]
