"""Delivery orchestrator: render a document and hand it to the provider once.

Retry lives entirely inside the provider adapter; this layer renders, derives
the plain-text fallback, stamps provenance headers and tags, and returns the
provider's result unchanged.
"""

from __future__ import annotations

from typing import Protocol

from email_automation.delivery.resend import ResendProvider
from email_automation.shared.trace import trace_headers
from email_automation.shared.types import (
    DeliveryOptions,
    DeliveryRequest,
    DeliveryResult,
    EmailDocument,
    EmailTag,
)
from email_automation.shared.utils import setup_logging
from email_automation.templates.registry import TemplateRenderer

logger = setup_logging("delivery.service")

FALLBACK_FROM_EMAIL = "onboarding@resend.dev"


class EmailProvider(Protocol):
    async def send_email(self, request: DeliveryRequest) -> DeliveryResult: ...


def generate_plain_text(document: EmailDocument) -> str:
    """Project a document onto plain text.

    Subject first, then one chunk per block separated by blank lines: bullet
    lists as ``• item`` lines, headings upper-cased, everything else as-is.
    """
    parts = [document.subject, ""]
    for block in document.blocks:
        if block.type == "bulletList" and isinstance(block.content, list):
            parts.append("\n".join(f"• {item}" for item in block.content))
        elif block.type == "heading":
            text = block.content if isinstance(block.content, str) else " ".join(block.content)
            parts.append(text.upper())
        elif isinstance(block.content, list):
            parts.append("\n".join(block.content))
        else:
            parts.append(block.content)
        parts.append("")
    return "\n".join(parts)


class EmailService:
    """Renders ``EmailDocument`` objects and sends them through one provider."""

    def __init__(
        self,
        api_key: str,
        owner_email: str | None = None,
        renderer: TemplateRenderer | None = None,
        provider: EmailProvider | None = None,
    ):
        logger.debug("Initializing EmailService")
        self.owner_email = owner_email
        self.renderer = renderer or TemplateRenderer()
        self.provider = provider or ResendProvider(api_key)

    def build_request(
        self, document: EmailDocument, options: DeliveryOptions,
    ) -> DeliveryRequest:
        template = self.renderer.select_template(document)
        html = self.renderer.render(document)
        plain_text = generate_plain_text(document)
        priority = document.metadata.priority

        headers = {
            **trace_headers(),
            **options.headers,
            "X-Template-ID": template.id,
            "X-Email-Priority": priority,
        }
        tags = [
            *options.tags,
            EmailTag(name="template", value=template.id),
            EmailTag(name="priority", value=priority),
        ]
        logger.debug(
            f"Template rendered: template={template.id} html_length={len(html)}",
        )
        return DeliveryRequest(
            to=options.to,
            from_=options.from_ or self.owner_email or FALLBACK_FROM_EMAIL,
            subject=document.subject,
            html=html,
            text=plain_text,
            headers=headers,
            tags=tags,
            bcc=options.bcc,
            cc=options.cc,
            reply_to=options.reply_to,
            attachments=options.attachments,
        )

    async def send_email(
        self, document: EmailDocument, options: DeliveryOptions,
    ) -> DeliveryResult:
        logger.info(
            f"Starting email send: subject={document.subject!r} "
            f"blocks={len(document.blocks)}",
        )
        try:
            request = self.build_request(document, options)
            result = await self.provider.send_email(request)
        except Exception as e:
            logger.error(
                f"Failed to send email: {e}",
                extra={"extra_data": {
                    "to": options.to,
                    "subject": document.subject,
                    "blocks_count": len(document.blocks),
                }},
            )
            raise
        logger.info(f"Email delivered: id={result.id} provider={result.provider}")
        return result

    deliver = send_email

    async def close(self) -> None:
        close = getattr(self.provider, "close", None)
        if close is not None:
            await close()
