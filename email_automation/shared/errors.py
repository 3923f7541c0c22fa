"""Error kinds raised across the email automation pipeline.

Callers above the delivery layer only ever see ``ProviderError`` for a
failed send, never a transport- or provider-specific exception.
"""

from __future__ import annotations

from typing import Any


class EmailAutomationError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(EmailAutomationError):
    """Required settings are absent; the pipeline cannot be activated."""


class EvaluationError(EmailAutomationError):
    """The decision gate could not obtain a classification from the model."""


class SynthesisValidationError(EmailAutomationError):
    """Mandatory sections are missing from the model's formatted output."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            "Email generation failed: missing required section(s): "
            + ", ".join(self.missing)
        )


class TemplateValidationError(EmailAutomationError):
    """A template was registered without required fields or placeholders."""


class ProviderError(EmailAutomationError):
    """Delivery failed after the retry budget was spent."""

    def __init__(
        self,
        provider: str,
        original_error: BaseException | None,
        context: dict[str, Any] | None = None,
    ):
        self.provider = provider
        self.original_error = original_error
        self.context = context or {}
        super().__init__(f"Error in {provider} provider: {original_error}")

    @property
    def attempts(self) -> int:
        return int(self.context.get("attempts", 0))
