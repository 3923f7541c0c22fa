"""Content synthesizer: turn a conversation into a typed ``EmailDocument``.

The model is asked for a fixed heading layout; the result goes through the
deterministic parser and the mandatory-section check before any document is
built. Every synthesized document is high priority.
"""

from __future__ import annotations

import re
from typing import Any

from email_automation.automation.parser import (
    ParsedSections,
    parse_formatted_email,
    validate_sections,
)
from email_automation.automation.prompts import EMAIL_FORMAT_TEMPLATE
from email_automation.llm import TextGenerator, compose_prompt
from email_automation.shared.types import (
    BlockMetadata,
    ContentBlock,
    ConversationContext,
    EmailDocument,
    EmailMetadata,
    UserInfo,
)
from email_automation.shared.utils import sanitize_for_prompt, setup_logging

logger = setup_logging("automation.synthesizer")

_DISCORD_ID = re.compile(r"^\d{17,19}$")


def detect_platform(user_id: str) -> str:
    if _DISCORD_ID.match(user_id):
        return "discord"
    if "@" in user_id:
        return "email"
    return "unknown"


def format_user_identifier(user_id: str) -> str:
    if _DISCORD_ID.match(user_id):
        return f"Discord User {user_id}"
    if "@" in user_id:
        return user_id
    return f"User {user_id}"


def build_user_info(user_id: str, metadata: dict[str, Any] | None = None) -> UserInfo:
    return UserInfo(
        id=user_id,
        display_name=format_user_identifier(user_id),
        platform=detect_platform(user_id),
        metadata=metadata or {},
    )


def provenance_headers(context: ConversationContext, user_info: UserInfo) -> dict[str, str]:
    """Headers that let a recipient trace an email back to its conversation."""
    return {
        "X-Conversation-ID": context.conversation_id,
        "X-User-ID": user_info.id,
        "X-Platform": user_info.platform,
        "X-Display-Name": user_info.display_name,
    }


def build_document(sections: ParsedSections) -> EmailDocument:
    """Assemble blocks from validated sections; optional sections only when non-empty."""
    blocks = [
        ContentBlock(
            type="paragraph",
            content=sections.background or "",
            metadata=BlockMetadata(style="margin-bottom: 1.5em;"),
        ),
        ContentBlock(type="heading", content="Key Points"),
        ContentBlock(type="bulletList", content=sections.key_points or []),
    ]
    if sections.technical_details:
        blocks.append(ContentBlock(type="heading", content="Technical Details"))
        blocks.append(ContentBlock(type="bulletList", content=sections.technical_details))
    if sections.next_steps:
        blocks.append(ContentBlock(type="heading", content="Next Steps"))
        blocks.append(ContentBlock(type="bulletList", content=sections.next_steps))

    return EmailDocument(
        subject=sections.subject,
        blocks=blocks,
        metadata=EmailMetadata(
            tone="professional",
            intent="connection_request",
            priority="high",
        ),
    )


class ContentSynthesizer:
    def __init__(self, generator: TextGenerator):
        self.generator = generator

    def enhanced_state(self, context: ConversationContext, user_info: UserInfo) -> dict[str, Any]:
        text = sanitize_for_prompt(context.message.content.text)
        return {
            **(context.state or {}),
            "user_info": user_info.model_dump(),
            "platform": user_info.platform,
            "original_message": text,
            "message_content": text,
        }

    async def synthesize(self, context: ConversationContext) -> EmailDocument:
        """Generate, parse and validate. Raises SynthesisValidationError on missing sections."""
        user_info = build_user_info(context.message.user_id, context.metadata)
        prompt = compose_prompt(EMAIL_FORMAT_TEMPLATE, self.enhanced_state(context, user_info))
        formatted = await self.generator.generate_text(prompt)

        sections = parse_formatted_email(formatted or "")
        validate_sections(sections)
        document = build_document(sections)
        logger.info(
            f"Email content prepared: subject={document.subject!r} "
            f"blocks={len(document.blocks)}",
        )
        return document
