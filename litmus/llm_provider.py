"""
Language model boundary.

litmus only needs text in, text out. ``LLMProvider`` is the seam tests stub;
``AnthropicProvider`` is the production implementation.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .constants import DEFAULT_MODEL
from .exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    content: str
    model_name: str | None = None
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


class LLMProvider(ABC):
    def __init__(self, model: str):
        self._model_name = model

    @abstractmethod
    def generate(self, system_prompt: str, user_prompt: str, **kwargs: Any) -> LLMResponse:
        """
        Generate a single response.

        Args:
            system_prompt: System instructions
            user_prompt: The user message
            **kwargs: Provider options (max_tokens, ...)
        """

    @property
    def model_name(self) -> str:
        return self._model_name


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = 8192,
    ):
        super().__init__(model)
        api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ConfigError(
                "ANTHROPIC_API_KEY environment variable is required. "
                "Set it with: export ANTHROPIC_API_KEY=sk-..."
            )
        import anthropic

        self.client = anthropic.Anthropic(api_key=api_key)
        self.max_tokens = max_tokens

    def generate(self, system_prompt: str, user_prompt: str, **kwargs: Any) -> LLMResponse:
        model = kwargs.get("model") or self._model_name
        message = self.client.messages.create(
            model=model,
            max_tokens=kwargs.get("max_tokens", self.max_tokens),
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        text = next((block.text for block in message.content if block.type == "text"), "")
        usage = getattr(message, "usage", None)
        logger.debug(
            f"LLM call model={model} input_tokens={getattr(usage, 'input_tokens', None)} "
            f"output_tokens={getattr(usage, 'output_tokens', None)}"
        )
        return LLMResponse(
            content=text,
            model_name=model,
            prompt_tokens=getattr(usage, "input_tokens", None),
            completion_tokens=getattr(usage, "output_tokens", None),
        )
