"""Unit tests for shared Pydantic types."""

import pytest
from pydantic import ValidationError

from email_automation.shared.types import (
    ContentBlock,
    ConversationContext,
    ConversationMessage,
    DeliveryOptions,
    DeliveryRequest,
    EmailDocument,
    MessageContent,
)


def test_bullet_list_scalar_wrapped():
    block = ContentBlock(type="bulletList", content="single")
    assert block.content == ["single"]


def test_bullet_list_none_becomes_empty():
    assert ContentBlock(type="bulletList", content=None).content == []


def test_paragraph_content_untouched():
    assert ContentBlock(type="paragraph", content="text").content == "text"


def test_unknown_block_type_rejected():
    with pytest.raises(ValidationError):
        ContentBlock(type="table", content="x")


def test_context_is_frozen():
    ctx = ConversationContext(message=ConversationMessage(user_id="u1"))
    with pytest.raises(ValidationError):
        ctx.conversation_id = "other"


def test_context_defaults():
    ctx = ConversationContext(message=ConversationMessage(user_id="u1"))
    assert ctx.state is None
    assert ctx.metadata == {}
    assert ctx.conversation_id == ""
    assert ctx.timestamp.tzinfo is not None


def test_message_defaults():
    msg = ConversationMessage(user_id="u1")
    assert msg.id == ""
    assert msg.content == MessageContent(text="")
    assert msg.room_id is None


def test_document_defaults():
    doc = EmailDocument(subject="S")
    assert doc.blocks == []
    assert doc.metadata.priority == "medium"
    assert doc.metadata.show_priority is False


def test_delivery_options_from_alias():
    assert DeliveryOptions(to="a@x.com", **{"from": "b@x.com"}).from_ == "b@x.com"
    assert DeliveryOptions(to="a@x.com", from_="c@x.com").from_ == "c@x.com"


def test_delivery_request_dumps_wire_names():
    request = DeliveryRequest(
        to=["a@x.com", "b@x.com"], from_="bot@x.com", subject="S", html="<p>S</p>", text="S",
    )
    data = request.model_dump(by_alias=True, exclude_none=True)
    assert data["from"] == "bot@x.com"
    assert "from_" not in data
    assert "cc" not in data
