"""Email automation pipeline: gate -> synthesize -> deliver.

One ``evaluate_message`` call handles one inbound conversation message, with
every step strictly sequential. Invocations share nothing but the template
registry; concurrent invocations for the same conversation are not
deduplicated and may both send.

Failure policy at the invocation boundary:
  - the gate cannot classify (``EvaluationError``): logged, reported as False
  - mandatory sections missing (``SynthesisValidationError``): propagated
  - delivery exhausted its retries (``ProviderError``): propagated
"""

from __future__ import annotations

from typing import Any, Protocol

from email_automation.automation.gate import DecisionGate
from email_automation.automation.synthesizer import (
    ContentSynthesizer,
    build_user_info,
    provenance_headers,
)
from email_automation.delivery.service import EmailProvider, EmailService
from email_automation.llm import DEFAULT_MODEL, LiteLLMTextGenerator, TextGenerator
from email_automation.shared.errors import ConfigurationError, EvaluationError
from email_automation.shared.trace import current_trace_id, new_trace_id
from email_automation.shared.types import (
    ConversationContext,
    ConversationMessage,
    DeliveryOptions,
    DeliveryResult,
)
from email_automation.shared.utils import sanitize_for_prompt, setup_logging
from email_automation.templates.registry import TemplateRenderer

logger = setup_logging("automation.service")

REQUIRED_SETTINGS = ("RESEND_API_KEY", "DEFAULT_TO_EMAIL", "DEFAULT_FROM_EMAIL")


class Runtime(Protocol):
    """The slice of the host agent runtime the pipeline depends on."""

    def get_setting(self, name: str) -> str | None: ...

    async def compose_state(self, message: ConversationMessage) -> dict[str, Any] | None: ...


class EmailAutomationService:
    """Decides per message whether to email, and if so writes and sends it."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        provider: EmailProvider | None = None,
    ):
        self.runtime: Runtime | None = None
        self.email_service: EmailService | None = None
        self.gate: DecisionGate | None = None
        self.synthesizer: ContentSynthesizer | None = None
        self._renderer = renderer
        self._provider = provider

    @property
    def is_active(self) -> bool:
        return self.email_service is not None

    async def initialize(
        self, runtime: Runtime, generator: TextGenerator | None = None,
    ) -> bool:
        """Activate the pipeline. Returns False (and stays inert) if disabled or misconfigured.

        Never raises: a configuration problem is logged and the service remains
        inactive for the life of the process.
        """
        self.runtime = runtime
        enabled = (runtime.get_setting("EMAIL_AUTOMATION_ENABLED") or "").lower() == "true"
        logger.debug(f"Email automation enabled: {enabled}")
        if not enabled:
            return False

        logger.info("Initializing email automation service")
        values = {name: runtime.get_setting(name) for name in REQUIRED_SETTINGS}
        missing = [name for name, value in values.items() if not value]
        if missing:
            error = ConfigurationError(
                "Missing required email configuration: " + ", ".join(missing)
            )
            logger.error(f"Failed to initialize email service: {error}")
            return False

        if generator is None:
            generator = LiteLLMTextGenerator(
                model=runtime.get_setting("EMAIL_AUTOMATION_MODEL") or DEFAULT_MODEL,
            )
        self.gate = DecisionGate(
            generator, prompt_override=runtime.get_setting("EMAIL_EVALUATION_PROMPT"),
        )
        self.synthesizer = ContentSynthesizer(generator)
        self.email_service = EmailService(
            api_key=values["RESEND_API_KEY"],
            owner_email=values["DEFAULT_FROM_EMAIL"],
            renderer=self._renderer,
            provider=self._provider,
        )
        logger.info("Email service ready to process messages")
        return True

    async def close(self) -> None:
        if self.email_service is not None:
            await self.email_service.close()

    def _require_runtime(self) -> Runtime:
        if self.runtime is None:
            raise ConfigurationError("Email automation service has no runtime")
        return self.runtime

    async def build_context(self, message: ConversationMessage) -> ConversationContext:
        runtime = self._require_runtime()
        logger.debug(
            f"Building email context: user_id={message.user_id} message_id={message.id} "
            f"length={len(message.content.text)}",
        )
        state = await runtime.compose_state(message)
        if state is not None:
            state = {
                **state,
                "message": {
                    "content": {"text": sanitize_for_prompt(message.content.text)},
                    "user_id": message.user_id,
                    "id": message.id,
                },
            }
        metadata = (state or {}).get("metadata") or {}
        return ConversationContext(
            message=message,
            state=state,
            metadata=dict(metadata),
            conversation_id=message.id or "",
        )

    async def should_send_email(self, context: ConversationContext) -> bool:
        if self.gate is None:
            raise ConfigurationError("Missing required email configuration")
        return await self.gate.decide(context)

    async def handle_email_trigger(self, context: ConversationContext) -> DeliveryResult:
        """Synthesize and deliver. Propagates SynthesisValidationError and ProviderError."""
        if self.synthesizer is None or self.email_service is None:
            raise ConfigurationError("Missing required email configuration")
        runtime = self._require_runtime()

        user_info = build_user_info(context.message.user_id, context.metadata)
        document = await self.synthesizer.synthesize(context)
        options = DeliveryOptions(
            to=runtime.get_setting("DEFAULT_TO_EMAIL") or "",
            from_=runtime.get_setting("DEFAULT_FROM_EMAIL") or "",
            headers=provenance_headers(context, user_info),
        )
        logger.info(
            f"Composing email to={options.to} conversation_id={context.conversation_id}",
        )
        return await self.email_service.send_email(document, options)

    async def evaluate_message(self, message: ConversationMessage) -> bool:
        """Run the pipeline for one message. Returns True iff an email was sent."""
        if not self.is_active:
            logger.error("Email service not initialized")
            raise ConfigurationError("Missing required email configuration")

        token = current_trace_id.set(new_trace_id())
        try:
            context = await self.build_context(message)
            logger.info(
                "Evaluating conversation for email automation",
                extra={"extra_data": {
                    "user_id": message.user_id,
                    "room_id": message.room_id,
                    "trace_id": current_trace_id.get(),
                }},
            )
            try:
                should_email = await self.should_send_email(context)
            except EvaluationError as e:
                logger.error(f"Error evaluating message for email: {e}")
                return False

            if not should_email:
                logger.info("Current context does not warrant an email")
                return False

            result = await self.handle_email_trigger(context)
            logger.info(f"Email processed and sent: id={result.id}")
            return True
        finally:
            current_trace_id.reset(token)
