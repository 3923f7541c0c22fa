"""Tests for the template registry, renderer, and block formatting."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from email_automation.shared.errors import TemplateValidationError
from email_automation.shared.types import (
    BLOCK_TYPES,
    BlockMetadata,
    ContentBlock,
    EmailDocument,
    EmailMetadata,
    Template,
)
from email_automation.templates.blocks import _FORMATTERS, format_block, priority_badge
from email_automation.templates.registry import (
    DEFAULT_TEMPLATE_ID,
    NOTIFICATION_TEMPLATE_ID,
    TemplateRegistry,
    TemplateRenderer,
)


def _document(priority: str = "high", **overrides) -> EmailDocument:
    defaults = {
        "subject": "Partnership inquiry",
        "blocks": [
            ContentBlock(type="paragraph", content="Jane is the CTO of Acme."),
            ContentBlock(type="heading", content="Key Points"),
            ContentBlock(type="bulletList", content=["SDK integration", "Q3 pilot"]),
        ],
        "metadata": EmailMetadata(tone="professional", intent="test", priority=priority),
    }
    defaults.update(overrides)
    return EmailDocument(**defaults)


# ── format_block ──────────────────────────────────────────────


class TestFormatBlock:
    def test_paragraph(self):
        html = format_block(ContentBlock(type="paragraph", content="Hello"))
        assert html == '<p class="email-paragraph" style="">Hello</p>'

    def test_paragraph_metadata(self):
        block = ContentBlock(
            type="paragraph",
            content="Hi",
            metadata=BlockMetadata(class_name="lead", style="margin: 0;"),
        )
        html = format_block(block)
        assert 'class="email-paragraph lead"' in html
        assert 'style="margin: 0;"' in html

    def test_bullet_list(self):
        html = format_block(ContentBlock(type="bulletList", content=["a", "b"]))
        assert html.startswith('<ul class="email-list"')
        assert html.count('<li class="email-list-item">') == 2

    def test_bullet_list_scalar_is_normalized(self):
        block = ContentBlock(type="bulletList", content="only item")
        assert block.content == ["only item"]
        assert '<li class="email-list-item">only item</li>' in format_block(block)

    def test_empty_bullet_list_renders_nothing(self):
        assert format_block(ContentBlock(type="bulletList", content=[])) == ""

    def test_heading(self):
        html = format_block(ContentBlock(type="heading", content="Next Steps"))
        assert html == '<h2 class="email-heading" style="">Next Steps</h2>'

    def test_signature(self):
        html = format_block(ContentBlock(type="signature", content="-- Bot"))
        assert html == '<div class="email-signature">-- Bot</div>'

    def test_callout(self):
        html = format_block(ContentBlock(type="callout", content="Heads up"))
        assert 'class="email-callout"' in html
        assert "Heads up" in html

    def test_content_is_escaped(self):
        html = format_block(ContentBlock(type="paragraph", content="<script>x</script>"))
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_declared_kind_from_raw_dict(self):
        html = format_block({"type": "bulletList", "content": "one"})
        assert '<li class="email-list-item">one</li>' in html

    def test_unknown_kind_falls_back_to_text(self):
        assert format_block({"type": "table", "content": "raw <b>"}) == "raw &lt;b&gt;"

    def test_non_block_value_falls_back_to_text(self):
        assert format_block("plain") == "plain"
        assert format_block({"type": "table", "content": None}) == ""

    def test_every_block_kind_has_a_formatter(self):
        assert set(_FORMATTERS) == set(BLOCK_TYPES)

    def test_priority_badge(self):
        html = priority_badge("high")
        assert "#dc3545" in html
        assert "HIGH" in html


# ── TemplateRegistry ──────────────────────────────────────────


class TestTemplateRegistry:
    def test_defaults_registered(self):
        registry = TemplateRegistry()
        assert DEFAULT_TEMPLATE_ID in registry
        assert NOTIFICATION_TEMPLATE_ID in registry
        assert len(registry) == 2

    def test_empty_registry(self):
        assert len(TemplateRegistry(register_defaults=False)) == 0

    def test_unknown_id_falls_back_to_default(self):
        registry = TemplateRegistry()
        assert registry.get("nope").id == DEFAULT_TEMPLATE_ID

    def test_register_overwrites_by_id(self):
        registry = TemplateRegistry()
        registry.register(Template(
            id="default", name="Custom", html="<div>{{ content }}</div>",
            variables={"content"},
        ))
        assert registry.get("default").name == "Custom"
        assert len(registry) == 2

    def test_register_new_template(self):
        registry = TemplateRegistry()
        registry.register(Template(
            id="digest", name="Digest",
            html="{% for b in blocks %}{{ b | format_block }}{% endfor %}",
            variables={"blocks"},
        ))
        assert "digest" in registry.ids()

    @pytest.mark.parametrize("template", [
        Template(id="", html="{{ blocks }}", variables={"blocks"}),
        Template(id="x", html="", variables={"blocks"}),
        Template(id="x", html="{{ blocks }}", variables=set()),
    ])
    def test_register_missing_fields(self, template):
        registry = TemplateRegistry()
        with pytest.raises(TemplateValidationError, match="missing required fields"):
            registry.register(template)

    def test_register_without_content_placeholder(self):
        registry = TemplateRegistry()
        with pytest.raises(TemplateValidationError, match="content placeholder"):
            registry.register(Template(
                id="bad", html="<h1>{{ subject }}</h1>", variables={"subject"},
            ))
        assert "bad" not in registry

    def test_empty_registry_without_default_raises(self):
        registry = TemplateRegistry(register_defaults=False)
        with pytest.raises(TemplateValidationError, match="no default template"):
            registry.get("default")

    def test_template_compiled_once_at_registration(self):
        registry = TemplateRegistry()
        with patch.object(registry._env, "from_string", wraps=registry._env.from_string) as spy:
            renderer = TemplateRenderer(registry)
            renderer.render(_document("low"))
            renderer.render(_document("high"))
        spy.assert_not_called()

    def test_register_syntax_error(self):
        registry = TemplateRegistry()
        with pytest.raises(TemplateValidationError):
            registry.register(Template(
                id="broken", html="{% for b in blocks %}", variables={"blocks"},
            ))


# ── TemplateRenderer ──────────────────────────────────────────


class TestTemplateRenderer:
    def test_high_priority_uses_notification(self):
        renderer = TemplateRenderer()
        doc = _document("high")
        assert renderer.select_template(doc).id == NOTIFICATION_TEMPLATE_ID
        html = renderer.render(doc)
        assert "email-container notification" in html
        assert '<h1 class="email-subject">Partnership inquiry</h1>' in html

    @pytest.mark.parametrize("priority", ["low", "medium"])
    def test_other_priorities_use_default(self, priority):
        renderer = TemplateRenderer()
        doc = _document(priority)
        assert renderer.select_template(doc).id == DEFAULT_TEMPLATE_ID
        html = renderer.render(doc)
        assert "<h1>Partnership inquiry</h1>" in html
        assert "notification" not in html

    def test_blocks_rendered_in_order(self):
        html = TemplateRenderer().render(_document())
        paragraph = html.index("Jane is the CTO of Acme.")
        heading = html.index("Key Points")
        bullets = html.index("SDK integration")
        assert paragraph < heading < bullets

    def test_style_is_inlined_unescaped(self):
        html = TemplateRenderer().render(_document("high"))
        assert "'Segoe UI'" in html
        assert ".priority-badge" in html

    def test_priority_badge_only_when_requested(self):
        renderer = TemplateRenderer()
        assert 'class="priority-badge"' not in renderer.render(_document("high"))
        doc = _document(
            "high",
            metadata=EmailMetadata(priority="high", show_priority=True),
        )
        assert 'class="priority-badge"' in renderer.render(doc)

    def test_signature(self):
        html = TemplateRenderer().render(_document("low", signature="Cheers, Bot"))
        assert '<div class="email-signature">Cheers, Bot</div>' in html

    def test_subject_escaped(self):
        html = TemplateRenderer().render(_document("low", subject="A & B <c>"))
        assert "A &amp; B &lt;c&gt;" in html

    def test_render_is_idempotent(self):
        renderer = TemplateRenderer()
        doc = _document()
        assert renderer.render(doc) == renderer.render(doc)

    def test_renderer_uses_given_registry(self):
        registry = TemplateRegistry()
        registry.register(Template(
            id="notification", name="Plain", html="<main>{{ content }}</main>",
            variables={"content"},
        ))
        html = TemplateRenderer(registry).render(_document("high"))
        assert html.startswith("<main><p ")
        assert html.endswith("</ul></main>")

    def test_renderer_keeps_empty_registry_handle(self):
        registry = TemplateRegistry(register_defaults=False)
        renderer = TemplateRenderer(registry)
        assert renderer.registry is registry

        registry.register(Template(
            id="default", name="Custom", html="CUSTOM {{ content }}", variables={"content"},
        ))
        html = renderer.render(_document("low"))
        assert html.startswith("CUSTOM <p ")
