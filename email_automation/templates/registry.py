"""Template registry and renderer for outbound email bodies.

The registry is an explicit object built once at startup and handed to the
renderer; nothing here is module-global. Rendering is a pure function of the
document and the registry contents at call time.
"""

from __future__ import annotations

from jinja2 import Environment, TemplateSyntaxError, meta
from jinja2 import Template as CompiledTemplate
from markupsafe import Markup

from email_automation.shared.errors import TemplateValidationError
from email_automation.shared.types import EmailDocument, Template, TemplateStyle
from email_automation.shared.utils import setup_logging
from email_automation.templates.blocks import format_block, priority_badge
from email_automation.templates.styles import BASE_STYLES, NOTIFICATION_STYLES

logger = setup_logging("templates.registry")

DEFAULT_TEMPLATE_ID = "default"
NOTIFICATION_TEMPLATE_ID = "notification"

# A body must reference at least one of these to be able to show the document.
CONTENT_PLACEHOLDERS = frozenset({"content", "blocks"})

DEFAULT_HTML = """<!DOCTYPE html>
<html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{{ subject }}</title>
        <style>{{ default_style }}</style>
    </head>
    <body>
        <div class="email-container">
            <div class="content">
                <h1>{{ subject }}</h1>
                {% for block in blocks %}
                {{ block | format_block }}
                {% endfor %}
                {% if signature %}
                <div class="email-signature">{{ signature }}</div>
                {% endif %}
            </div>
        </div>
    </body>
</html>"""

NOTIFICATION_HTML = """<!DOCTYPE html>
<html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{{ subject }}</title>
        <style>{{ default_style }}</style>
    </head>
    <body>
        <div class="email-container notification">
            <div class="content">
                <div class="notification-header">
                    <h1 class="email-subject">{{ subject }}</h1>
                    {% if metadata.show_priority and metadata.priority %}
                    {{ metadata.priority | priority_badge }}
                    {% endif %}
                </div>
                {% for block in blocks %}
                {{ block | format_block }}
                {% endfor %}
                {% if signature %}
                <div class="email-signature">{{ signature }}</div>
                {% endif %}
            </div>
            <div class="footer">Sent by email automation</div>
        </div>
    </body>
</html>"""


def _make_environment() -> Environment:
    env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
    env.filters["format_block"] = format_block
    env.filters["priority_badge"] = priority_badge
    return env


class TemplateRegistry:
    """Named email templates keyed by id.

    Re-registering an id overwrites the previous entry. Registration is an
    administrative operation and must happen before any render that needs it.
    """

    def __init__(self, register_defaults: bool = True) -> None:
        self._templates: dict[str, Template] = {}
        self._compiled: dict[str, CompiledTemplate] = {}
        self._env = _make_environment()
        if register_defaults:
            self._register_defaults()

    def _register_defaults(self) -> None:
        self.register(Template(
            id=DEFAULT_TEMPLATE_ID,
            name="Default Template",
            html=DEFAULT_HTML,
            variables={"subject", "blocks", "signature"},
            default_style=TemplateStyle(container=BASE_STYLES),
        ))
        self.register(Template(
            id=NOTIFICATION_TEMPLATE_ID,
            name="Notification Template",
            html=NOTIFICATION_HTML,
            variables={"subject", "blocks", "signature", "priority"},
            default_style=TemplateStyle(
                container=BASE_STYLES, notification=NOTIFICATION_STYLES,
            ),
        ))

    def validate(self, template: Template) -> None:
        if not template.id or not template.html or not template.variables:
            raise TemplateValidationError(
                "Invalid template: missing required fields (id, html, variables)"
            )
        try:
            referenced = meta.find_undeclared_variables(self._env.parse(template.html))
        except TemplateSyntaxError as e:
            raise TemplateValidationError(
                f"Invalid template {template.id!r}: {e.message}"
            ) from e
        if not referenced & CONTENT_PLACEHOLDERS:
            raise TemplateValidationError(
                f"Invalid template {template.id!r}: missing required content placeholder"
            )

    def register(self, template: Template) -> None:
        self.validate(template)
        if template.id in self._templates:
            logger.info(f"Overwriting template '{template.id}'")
        self._compiled[template.id] = self._env.from_string(template.html)
        self._templates[template.id] = template

    def get(self, template_id: str) -> Template:
        """Return the template for *template_id*, or the default one if unknown.

        Raises ``TemplateValidationError`` when neither is registered.
        """
        template = self._templates.get(template_id) or self._templates.get(DEFAULT_TEMPLATE_ID)
        if template is None:
            raise TemplateValidationError(
                f"Unknown template {template_id!r} and no default template registered"
            )
        return template

    def compiled(self, template_id: str) -> CompiledTemplate:
        """Compiled body for a registered id, built once at registration."""
        return self._compiled[self.get(template_id).id]

    def ids(self) -> list[str]:
        return list(self._templates)

    def __contains__(self, template_id: str) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)


class TemplateRenderer:
    """Turns an ``EmailDocument`` into final HTML using a registry."""

    def __init__(self, registry: TemplateRegistry | None = None) -> None:
        self.registry = registry if registry is not None else TemplateRegistry()

    def select_template(self, document: EmailDocument) -> Template:
        if document.metadata.priority == "high":
            return self.registry.get(NOTIFICATION_TEMPLATE_ID)
        return self.registry.get(DEFAULT_TEMPLATE_ID)

    @staticmethod
    def compute_style(template: Template) -> Markup:
        parts = [template.default_style.container, template.default_style.notification]
        return Markup("\n".join(p for p in parts if p))

    def render(self, document: EmailDocument) -> str:
        template = self.select_template(document)
        compiled = self.registry.compiled(template.id)
        try:
            return compiled.render(
                subject=document.subject,
                blocks=document.blocks,
                content=Markup("\n").join(format_block(b) for b in document.blocks),
                metadata=document.metadata,
                signature=document.signature,
                default_style=self.compute_style(template),
            )
        except Exception:
            logger.exception(f"Template rendering failed for '{template.id}'")
            raise
