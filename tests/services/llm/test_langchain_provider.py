from __future__ import annotations

import asyncio
from typing import Any

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from src.services.llm.exceptions import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from src.services.llm.langchain_provider import LangChainProvider


class FakeChatModel:
    def __init__(self, content: Any = "ok", error: Exception | None = None, delay: float = 0.0) -> None:
        self.content = content
        self.error = error
        self.delay = delay
        self.messages: list[Any] = []

    async def ainvoke(self, messages: list[Any]) -> AIMessage:
        self.messages = messages
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.content)


def _patch_llm(monkeypatch: pytest.MonkeyPatch, fake: FakeChatModel) -> dict[str, Any]:
    seen: dict[str, Any] = {}

    def _get_llm(cls, **kwargs: Any) -> FakeChatModel:
        seen.update(kwargs)
        return fake

    monkeypatch.setattr(LangChainProvider, "_get_llm", classmethod(_get_llm))
    return seen


def test_complete_returns_text_and_passes_parameters(monkeypatch: pytest.MonkeyPatch):
    fake = FakeChatModel(content="42")
    seen = _patch_llm(monkeypatch, fake)

    text = asyncio.run(
        LangChainProvider.complete(
            "What is 6 x 7?",
            system_prompt="Be brief",
            model="llama3.1:latest",
            binding="ollama",
            temperature=0.2,
            max_tokens=64,
        )
    )

    assert text == "42"
    assert seen["model"] == "llama3.1:latest"
    assert seen["temperature"] == 0.2
    assert seen["max_tokens"] == 64
    assert isinstance(fake.messages[0], SystemMessage)
    assert isinstance(fake.messages[1], HumanMessage)


def test_complete_strips_thinking_blocks(monkeypatch: pytest.MonkeyPatch):
    _patch_llm(monkeypatch, FakeChatModel(content="<think>hmm</think>\n{\"answer\": 1}"))
    text = asyncio.run(LangChainProvider.complete("q", model="qwen3:14b", binding="ollama"))
    assert text == '{"answer": 1}'


def test_complete_joins_content_parts(monkeypatch: pytest.MonkeyPatch):
    _patch_llm(monkeypatch, FakeChatModel(content=[{"type": "text", "text": "Hello "}, {"type": "text", "text": "there"}]))
    text = asyncio.run(LangChainProvider.complete("q", model="claude", binding="anthropic"))
    assert text == "Hello there"


@pytest.mark.parametrize(
    "error, expected",
    [
        (RuntimeError("Invalid API key provided"), LLMAuthenticationError),
        (RuntimeError("Error code: 429 - slow down"), LLMRateLimitError),
        (RuntimeError("connection reset by peer"), LLMAPIError),
    ],
)
def test_provider_errors_are_mapped(monkeypatch: pytest.MonkeyPatch, error, expected):
    _patch_llm(monkeypatch, FakeChatModel(error=error))
    with pytest.raises(expected) as exc_info:
        asyncio.run(LangChainProvider.complete("q", model="m", binding="openai"))
    assert exc_info.value.provider == "openai"


def test_timeout_is_mapped(monkeypatch: pytest.MonkeyPatch):
    _patch_llm(monkeypatch, FakeChatModel(delay=1.0))
    with pytest.raises(LLMTimeoutError):
        asyncio.run(LangChainProvider.complete("q", model="m", binding="ollama", timeout=0.05))


def test_build_messages_without_system_prompt():
    messages = LangChainProvider._build_messages("u", "")
    assert [type(m) for m in messages] == [HumanMessage]


def test_ollama_binding_uses_num_predict_and_strips_v1():
    llm = LangChainProvider._get_llm(
        binding="ollama",
        model="llama3.1:latest",
        base_url="http://127.0.0.1:11434/v1",
        max_tokens=128,
    )
    assert llm.num_predict == 128
    assert llm.base_url == "http://127.0.0.1:11434"


def test_anthropic_requires_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(LLMAuthenticationError):
        LangChainProvider._get_llm(binding="anthropic", model="claude-3-5-haiku-latest")
