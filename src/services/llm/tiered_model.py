# -*- coding: utf-8 -*-
"""
Tiered Language Model
=====================

Language-model capability backed by LangChain, with one model per tier:

- Per-tier parameter resolution (model, temperature, max_tokens)
- Call logging and shared LLMStats tracking
- Provider errors mapped onto the workflow error taxonomy:
  LLMError -> TransientBackendError, empty output -> ContentError

Usage:
    model = TieredLanguageModel.from_config()
    text = await model.generate(prompt, ModelTier.FAST)
"""

from __future__ import annotations

from dataclasses import dataclass
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional

from src.agents.question.exceptions import ContentError, TransientBackendError
from src.agents.question.prompts import SYSTEM_PROMPT
from src.agents.question.routing import DEFAULT_TIER_MODELS, ModelTier
from src.logging import LLMStats, get_logger

from .config import LLMConfig, get_llm_config
from .exceptions import LLMError
from .langchain_provider import LangChainProvider

CompleteFn = Callable[..., Awaitable[str]]


@dataclass(frozen=True)
class ResolvedTierConfig:
    """Resolved call parameters for one model tier."""

    tier: ModelTier
    model: str
    binding: str
    base_url: Optional[str]
    api_key: Optional[str]
    temperature: float
    max_tokens: int
    timeout_seconds: float


def resolve_tier_configs(
    llm_config: LLMConfig, tiers_cfg: Optional[Mapping[str, Any]] = None
) -> dict[ModelTier, ResolvedTierConfig]:
    """
    Resolve each tier's parameters.

    Priority: tier section of ``model_tiers`` > shared ``llm`` config >
    built-in tier defaults.
    """
    resolved: dict[ModelTier, ResolvedTierConfig] = {}
    for tier in ModelTier:
        section = dict((tiers_cfg or {}).get(tier.value) or {})
        resolved[tier] = ResolvedTierConfig(
            tier=tier,
            model=str(section.get("model") or DEFAULT_TIER_MODELS[tier]),
            binding=str(section.get("binding") or llm_config.binding),
            base_url=section.get("base_url") or llm_config.base_url,
            api_key=section.get("api_key") or llm_config.api_key,
            temperature=float(section.get("temperature", llm_config.temperature)),
            max_tokens=int(section.get("max_tokens", llm_config.max_tokens)),
            timeout_seconds=float(section.get("timeout_seconds", llm_config.timeout_seconds)),
        )
    return resolved


class TieredLanguageModel:
    """
    Calls the model configured for a tier.

    Stats are shared per module name at class level so every instance in the
    process reports into the same LLMStats.
    """

    _stats: dict[str, LLMStats] = {}

    def __init__(
        self,
        tiers: Mapping[ModelTier, ResolvedTierConfig],
        complete: Optional[CompleteFn] = None,
        system_prompt: str = SYSTEM_PROMPT,
        module_name: str = "question",
    ):
        self.tiers = dict(tiers)
        self._complete = complete or LangChainProvider.complete
        self.system_prompt = system_prompt
        self.module_name = module_name
        self.logger = get_logger(f"{module_name.capitalize()}.LLM")

    @classmethod
    def from_config(
        cls,
        tiers_cfg: Optional[Mapping[str, Any]] = None,
        project_root: Path | None = None,
        **kwargs: Any,
    ) -> "TieredLanguageModel":
        if tiers_cfg is None:
            from src.agents.question.config import get_workflow_settings

            tiers_cfg = get_workflow_settings(project_root).model_tiers
        return cls(resolve_tier_configs(get_llm_config(project_root), tiers_cfg), **kwargs)

    @classmethod
    def get_stats(cls, module_name: str) -> LLMStats:
        if module_name not in cls._stats:
            cls._stats[module_name] = LLMStats(module_name=module_name.capitalize())
        return cls._stats[module_name]

    @classmethod
    def reset_stats(cls, module_name: Optional[str] = None) -> None:
        if module_name:
            if module_name in cls._stats:
                cls._stats[module_name].reset()
        else:
            for stats in cls._stats.values():
                stats.reset()

    def model_for(self, tier: ModelTier) -> str:
        return self.tiers[tier].model

    async def generate(self, prompt: str, tier: ModelTier) -> str:
        """
        Generate text with the tier's model.

        Raises:
            TransientBackendError: provider, network or timeout failure
            ContentError: the model returned no text
        """
        cfg = self.tiers[tier]
        start = time.perf_counter()
        self.logger.debug(f"Calling {cfg.model} ({tier.value} tier, {cfg.binding})")

        try:
            response = await self._complete(
                prompt=prompt,
                system_prompt=self.system_prompt,
                model=cfg.model,
                api_key=cfg.api_key,
                base_url=cfg.base_url,
                binding=cfg.binding,
                temperature=cfg.temperature,
                max_tokens=cfg.max_tokens,
                timeout=cfg.timeout_seconds,
            )
        except LLMError as e:
            self.logger.warning(f"{cfg.model} call failed: {e}")
            raise TransientBackendError(str(e), stage="generation") from e
        except (ConnectionError, TimeoutError, OSError) as e:
            self.logger.warning(f"{cfg.model} unreachable: {e}")
            raise TransientBackendError(f"{type(e).__name__}: {e}", stage="generation") from e

        duration = time.perf_counter() - start
        self.get_stats(self.module_name).add_call(
            model=cfg.model,
            system_prompt=self.system_prompt,
            user_prompt=prompt,
            response=response or "",
        )

        if not response or not response.strip():
            raise ContentError(f"{cfg.model} returned an empty response", stage="generation")

        self.logger.debug(f"{cfg.model} answered {len(response)} chars in {duration:.2f}s")
        return response


__all__ = ["ResolvedTierConfig", "TieredLanguageModel", "resolve_tier_configs"]
