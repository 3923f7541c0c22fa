"""Decision gate: ask the model whether the conversation is email-worthy."""

from __future__ import annotations

from email_automation.automation.prompts import EMAIL_MARKER, SHOULD_EMAIL_TEMPLATE
from email_automation.llm import TextGenerator, compose_prompt
from email_automation.shared.errors import EvaluationError
from email_automation.shared.types import ConversationContext
from email_automation.shared.utils import setup_logging, truncate

logger = setup_logging("automation.gate")


def is_email_worthy(decision: str) -> bool:
    """True iff the model output contains the literal ``[EMAIL]`` marker."""
    return EMAIL_MARKER in decision


class DecisionGate:
    """One model call per evaluation, no retry at this layer."""

    def __init__(self, generator: TextGenerator, prompt_override: str | None = None):
        self.generator = generator
        self.prompt_override = prompt_override or None

    @property
    def template(self) -> str:
        return self.prompt_override or SHOULD_EMAIL_TEMPLATE

    async def decide(self, context: ConversationContext) -> bool:
        logger.info("Evaluating whether message should trigger an email")
        try:
            prompt = compose_prompt(self.template, context.state)
            decision = await self.generator.generate_text(prompt)
        except Exception as e:
            raise EvaluationError(f"Could not evaluate conversation: {e}") from e

        trigger = is_email_worthy(decision or "")
        logger.info(
            f"Email decision: {'send' if trigger else 'skip'}",
            extra={"extra_data": {
                "decision": truncate((decision or "").strip()),
                "custom_prompt": self.prompt_override is not None,
            }},
        )
        return trigger
