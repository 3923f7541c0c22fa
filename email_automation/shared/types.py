"""Pydantic models shared by every stage of the email pipeline.

Conversation inputs come from the host runtime, documents are produced by
the synthesizer and consumed once by the renderer, and delivery requests and
results are the contract with the email provider.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Priority = Literal["low", "medium", "high"]
Platform = Literal["discord", "email", "unknown"]
BlockType = Literal["paragraph", "bulletList", "heading", "signature", "callout"]

BLOCK_TYPES: tuple[str, ...] = ("paragraph", "bulletList", "heading", "signature", "callout")


# === Conversation ===


class MessageContent(BaseModel):
    text: str = ""


class ConversationMessage(BaseModel):
    """A single inbound message as supplied by the host runtime."""

    user_id: str
    id: str = ""
    content: MessageContent = Field(default_factory=MessageContent)
    room_id: Optional[str] = None


class ConversationContext(BaseModel):
    """Everything one pipeline invocation knows about the conversation."""

    model_config = ConfigDict(frozen=True)

    message: ConversationMessage
    state: Optional[dict[str, Any]] = None
    metadata: dict[str, Any] = {}
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    conversation_id: str = ""


class UserInfo(BaseModel):
    id: str
    display_name: str
    platform: Platform
    metadata: dict[str, Any] = {}


# === Email documents ===


class BlockMetadata(BaseModel):
    class_name: str = ""
    style: str = ""


class ContentBlock(BaseModel):
    """One typed unit of an email document.

    A ``bulletList`` always carries a list of items; scalar content is
    wrapped into a one-item list on construction.
    """

    type: BlockType
    content: str | list[str]
    metadata: Optional[BlockMetadata] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_bullets(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("type") == "bulletList":
            content = data.get("content")
            if isinstance(content, str):
                data = {**data, "content": [content]}
            elif content is None:
                data = {**data, "content": []}
        return data


class EmailMetadata(BaseModel):
    tone: str = "professional"
    intent: str = ""
    priority: Priority = "medium"
    show_priority: bool = False


class EmailDocument(BaseModel):
    subject: str
    blocks: list[ContentBlock] = []
    metadata: EmailMetadata = Field(default_factory=EmailMetadata)
    signature: Optional[str] = None


# === Delivery ===


class EmailTag(BaseModel):
    name: str
    value: str


class EmailAttachment(BaseModel):
    """An attachment in the provider's wire shape (base64 content or a remote path)."""

    filename: str
    content: Optional[str] = None
    path: Optional[str] = None
    content_type: Optional[str] = None


class DeliveryOptions(BaseModel):
    """Caller-supplied routing for one send."""

    model_config = ConfigDict(populate_by_name=True)

    to: str | list[str]
    from_: str = Field("", alias="from")
    headers: dict[str, str] = {}
    tags: list[EmailTag] = []
    bcc: Optional[str | list[str]] = None
    cc: Optional[str | list[str]] = None
    reply_to: Optional[str | list[str]] = None
    attachments: Optional[list[EmailAttachment]] = None


class DeliveryRequest(BaseModel):
    """A fully rendered message, ready for the provider."""

    model_config = ConfigDict(populate_by_name=True)

    to: str | list[str]
    from_: str = Field(alias="from")
    subject: str
    html: str
    text: str
    headers: dict[str, str] = {}
    tags: list[EmailTag] = []
    bcc: Optional[str | list[str]] = None
    cc: Optional[str | list[str]] = None
    reply_to: Optional[str | list[str]] = None
    attachments: Optional[list[EmailAttachment]] = None


class DeliveryResult(BaseModel):
    """Returned only for a successful send; failures raise ProviderError."""

    id: str
    provider: str
    status: Literal["success"] = "success"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


# === Templates ===


class TemplateStyle(BaseModel):
    container: str = ""
    notification: str = ""


class Template(BaseModel):
    """A named email body with Jinja placeholders.

    Required fields are checked by ``TemplateRegistry.register`` so that a bad
    template fails with ``TemplateValidationError`` rather than at render time.
    """

    id: str = ""
    name: str = ""
    html: str = ""
    variables: set[str] = set()
    default_style: TemplateStyle = Field(default_factory=TemplateStyle)
