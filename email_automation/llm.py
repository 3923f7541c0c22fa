"""Generative-model capability: prompt composition and a LiteLLM-backed client.

The pipeline treats the model as an opaque async text function. Anything that
implements ``TextGenerator`` can be plugged in; tests pass an ``AsyncMock``.
"""

from __future__ import annotations

from typing import Any, Protocol

from jinja2 import ChainableUndefined
from jinja2.sandbox import SandboxedEnvironment

from email_automation.shared.utils import setup_logging

logger = setup_logging("llm")

DEFAULT_MODEL = "openai/gpt-4o-mini"

_prompt_env = SandboxedEnvironment(undefined=ChainableUndefined, autoescape=False)


def compose_prompt(template: str, state: dict[str, Any] | None) -> str:
    """Bind ``{{ dotted.path }}`` placeholders in *template* from *state*.

    Missing values render as empty strings.
    """
    return _prompt_env.from_string(template).render(**(state or {}))


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str) -> str: ...


class LiteLLMTextGenerator:
    """Single-turn text generation through LiteLLM (provider picked from the model prefix)."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
    ):
        self.model = model
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def generate_text(self, prompt: str) -> str:
        import litellm

        kwargs: dict[str, Any] = {
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key

        response = await litellm.acompletion(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        content = response.choices[0].message.content or ""
        logger.debug(f"Model '{self.model}' returned {len(content)} chars")
        return content
