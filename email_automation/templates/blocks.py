"""Per-kind HTML formatting for content blocks.

``format_block`` is total: every declared block kind has a formatter, and
anything arriving from outside the closed set (a raw dict from an extension
point, a bare string) is coerced to escaped text.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from markupsafe import Markup, escape
from pydantic import ValidationError

from email_automation.shared.types import ContentBlock
from email_automation.templates.styles import PRIORITY_COLORS


def _attrs(block: ContentBlock, base_class: str) -> Markup:
    meta = block.metadata
    class_name = f"{base_class} {meta.class_name}".strip() if meta else base_class
    style = meta.style if meta else ""
    return Markup('class="{}" style="{}"').format(class_name, style)


def _text(content: str | list[str]) -> Markup:
    if isinstance(content, list):
        return escape(" ".join(content))
    return escape(content)


def _paragraph(block: ContentBlock) -> Markup:
    return Markup("<p {}>{}</p>").format(_attrs(block, "email-paragraph"), _text(block.content))


def _bullet_list(block: ContentBlock) -> Markup:
    items = block.content if isinstance(block.content, list) else [block.content]
    if not items:
        return Markup("")
    rendered = Markup("").join(
        Markup('<li class="email-list-item">{}</li>').format(item) for item in items
    )
    return Markup("<ul {}>{}</ul>").format(_attrs(block, "email-list"), rendered)


def _heading(block: ContentBlock) -> Markup:
    return Markup("<h2 {}>{}</h2>").format(_attrs(block, "email-heading"), _text(block.content))


def _signature(block: ContentBlock) -> Markup:
    return Markup('<div class="email-signature">{}</div>').format(_text(block.content))


def _callout(block: ContentBlock) -> Markup:
    return Markup("<div {}>{}</div>").format(_attrs(block, "email-callout"), _text(block.content))


_FORMATTERS: dict[str, Callable[[ContentBlock], Markup]] = {
    "paragraph": _paragraph,
    "bulletList": _bullet_list,
    "heading": _heading,
    "signature": _signature,
    "callout": _callout,
}


def _coerce(block: Any) -> ContentBlock | None:
    if isinstance(block, ContentBlock):
        return block
    if isinstance(block, dict) and block.get("type") in _FORMATTERS:
        try:
            return ContentBlock.model_validate(block)
        except ValidationError:
            return None
    return None


def _fallback(block: Any) -> Markup:
    content = block.get("content", "") if isinstance(block, dict) else block
    if content is None:
        return Markup("")
    if isinstance(content, list):
        return escape(" ".join(str(c) for c in content))
    return escape(str(content))


def format_block(block: Any) -> Markup:
    """Render one block to safe HTML."""
    typed = _coerce(block)
    if typed is None:
        return _fallback(block)
    return _FORMATTERS[typed.type](typed)


def priority_badge(priority: str) -> Markup:
    color = PRIORITY_COLORS.get(priority, PRIORITY_COLORS["medium"])
    return Markup('<div class="priority-badge" style="background-color: {}">{}</div>').format(
        color, priority.upper(),
    )
