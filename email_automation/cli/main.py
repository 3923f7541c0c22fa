"""CLI entry point for email automation.

  evaluate <text>          Run the full pipeline for one message (--history for context)
  render <file>            Render a formatted model output to HTML (no network)
  validate                 Check the Resend API key
"""

from __future__ import annotations

import asyncio
import sys
import uuid
from pathlib import Path

import click

from email_automation.automation.parser import parse_formatted_email, validate_sections
from email_automation.automation.service import EmailAutomationService
from email_automation.automation.synthesizer import build_document
from email_automation.config import CONFIG_FILE, ENV_FILE, EnvRuntime, Settings
from email_automation.delivery.resend import ResendProvider
from email_automation.delivery.service import generate_plain_text
from email_automation.shared.errors import EmailAutomationError
from email_automation.shared.types import ConversationMessage, MessageContent
from email_automation.templates.registry import TemplateRenderer


@click.group()
@click.option(
    "--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
    default=None, help=f"YAML config file (default: {CONFIG_FILE})",
)
@click.pass_context
def cli(ctx, config_path):
    """Email automation -- turn conversations into summary emails."""
    from dotenv import load_dotenv

    load_dotenv(ENV_FILE)
    ctx.obj = Settings(config_path=config_path)


# ── evaluate ─────────────────────────────────────────────────

@cli.command()
@click.argument("text", required=False)
@click.option("--user-id", default="cli-user", help="Sender identifier")
@click.option("--room-id", default=None, help="Conversation/room identifier")
@click.option("--history", multiple=True, help="Earlier message in the same room (repeatable, oldest first)")
@click.pass_obj
def evaluate(settings: Settings, text, user_id, room_id, history):
    """Evaluate one message and send an email if it warrants one."""
    if text is None:
        text = sys.stdin.read()
    message = ConversationMessage(
        user_id=user_id,
        id=f"msg_{uuid.uuid4().hex[:12]}",
        content=MessageContent(text=text.strip()),
        room_id=room_id,
    )

    async def _run() -> bool:
        runtime = EnvRuntime(settings)
        for earlier in history:
            runtime.remember(ConversationMessage(
                user_id=user_id, content=MessageContent(text=earlier), room_id=room_id,
            ))
        service = EmailAutomationService()
        if not await service.initialize(runtime):
            raise click.ClickException(
                "Email automation is disabled or not configured. "
                "Set EMAIL_AUTOMATION_ENABLED=true, RESEND_API_KEY, "
                "DEFAULT_TO_EMAIL and DEFAULT_FROM_EMAIL."
            )
        try:
            return await service.evaluate_message(message)
        finally:
            await service.close()

    try:
        sent = asyncio.run(_run())
    except EmailAutomationError as e:
        raise click.ClickException(str(e)) from e
    click.echo("Email sent." if sent else "No email sent.")


# ── render ───────────────────────────────────────────────────

@cli.command()
@click.argument("source", type=click.File("r"))
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write HTML here instead of stdout")
@click.option("--text", "as_text", is_flag=True, help="Print the plain-text body instead")
def render(source, out, as_text):
    """Parse formatted model output (Subject/Background/Key Points...) and render it."""
    sections = parse_formatted_email(source.read())
    try:
        validate_sections(sections)
    except EmailAutomationError as e:
        raise click.ClickException(str(e)) from e
    document = build_document(sections)
    body = generate_plain_text(document) if as_text else TemplateRenderer().render(document)
    if out:
        out.write_text(body)
        click.echo(f"Wrote {out}")
    else:
        click.echo(body)


# ── validate ─────────────────────────────────────────────────

@cli.command()
@click.pass_obj
def validate(settings: Settings):
    """Check that RESEND_API_KEY is accepted by Resend."""
    api_key = settings.get_setting("RESEND_API_KEY")
    if not api_key:
        raise click.ClickException("RESEND_API_KEY is not set.")

    async def _check() -> bool:
        provider = ResendProvider(api_key)
        try:
            return await provider.validate_config()
        finally:
            await provider.close()

    if asyncio.run(_check()):
        click.echo("Resend configuration OK.")
    else:
        raise click.ClickException("Resend rejected the API key.")
