"""Tests for CLI commands: render, evaluate, validate."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from email_automation.cli import cli

FORMATTED = """Subject: Acme wants a pilot

Background:
Jane is the CTO of Acme.

Key Points:
• SDK integration
• Pilot in Q3
"""


@pytest.fixture
def runner(tmp_path):
    with patch("email_automation.cli.main.ENV_FILE", tmp_path / ".env"):
        yield CliRunner()


@pytest.fixture
def no_config(tmp_path):
    return ["--config", str(tmp_path / "absent.yaml")]


class TestRender:
    def test_render_html(self, runner, tmp_path):
        source = tmp_path / "out.txt"
        source.write_text(FORMATTED)
        result = runner.invoke(cli, ["render", str(source)])
        assert result.exit_code == 0
        assert "email-container notification" in result.output
        assert "SDK integration" in result.output

    def test_render_text(self, runner, tmp_path):
        source = tmp_path / "out.txt"
        source.write_text(FORMATTED)
        result = runner.invoke(cli, ["render", str(source), "--text"])
        assert result.exit_code == 0
        assert result.output.startswith("Acme wants a pilot\n")
        assert "KEY POINTS" in result.output
        assert "• Pilot in Q3" in result.output

    def test_render_to_file(self, runner, tmp_path):
        source = tmp_path / "out.txt"
        source.write_text(FORMATTED)
        target = tmp_path / "email.html"
        result = runner.invoke(cli, ["render", str(source), "--out", str(target)])
        assert result.exit_code == 0
        assert "Wrote" in result.output
        assert "<h1 class=\"email-subject\">Acme wants a pilot</h1>" in target.read_text()

    def test_render_missing_sections(self, runner, tmp_path):
        source = tmp_path / "out.txt"
        source.write_text("Subject: Nothing else\n")
        result = runner.invoke(cli, ["render", str(source)])
        assert result.exit_code == 1
        assert "background, key_points" in result.output


class TestEvaluate:
    def test_disabled(self, runner, no_config):
        result = runner.invoke(
            cli, [*no_config, "evaluate", "hello"],
            env={"EMAIL_AUTOMATION_ENABLED": "false"},
        )
        assert result.exit_code == 1
        assert "disabled or not configured" in result.output

    def test_sent(self, runner, no_config):
        service = MagicMock()
        service.initialize = AsyncMock(return_value=True)
        service.evaluate_message = AsyncMock(return_value=True)
        service.close = AsyncMock()
        with patch("email_automation.cli.main.EmailAutomationService", return_value=service):
            result = runner.invoke(cli, [*no_config, "evaluate", "  We want a pilot  ", "--room-id", "r1"])

        assert result.exit_code == 0
        assert "Email sent." in result.output
        message = service.evaluate_message.await_args.args[0]
        assert message.content.text == "We want a pilot"
        assert message.room_id == "r1"
        assert message.id.startswith("msg_")
        service.close.assert_awaited_once()

    def test_history_feeds_recent_messages(self, runner, no_config):
        service = MagicMock()
        service.initialize = AsyncMock(return_value=True)
        service.evaluate_message = AsyncMock(return_value=False)
        service.close = AsyncMock()
        with patch("email_automation.cli.main.EmailAutomationService", return_value=service):
            result = runner.invoke(cli, [
                *no_config, "evaluate", "Can we talk pilots?", "--room-id", "r1",
                "--history", "Hi, I run Acme", "--history", "We ship robots",
            ])

        assert result.exit_code == 0
        runtime = service.initialize.await_args.args[0]
        message = service.evaluate_message.await_args.args[0]
        state = asyncio.run(runtime.compose_state(message))
        assert state["recent_messages"] == "Hi, I run Acme\nWe ship robots"
        assert state["metadata"]["room_id"] == "r1"

    def test_reads_stdin(self, runner, no_config):
        service = MagicMock()
        service.initialize = AsyncMock(return_value=True)
        service.evaluate_message = AsyncMock(return_value=False)
        service.close = AsyncMock()
        with patch("email_automation.cli.main.EmailAutomationService", return_value=service):
            result = runner.invoke(cli, [*no_config, "evaluate"], input="from stdin\n")

        assert result.exit_code == 0
        assert "No email sent." in result.output
        assert service.evaluate_message.await_args.args[0].content.text == "from stdin"

    def test_pipeline_error_reported(self, runner, no_config):
        from email_automation.shared.errors import SynthesisValidationError

        service = MagicMock()
        service.initialize = AsyncMock(return_value=True)
        service.evaluate_message = AsyncMock(side_effect=SynthesisValidationError(["background"]))
        service.close = AsyncMock()
        with patch("email_automation.cli.main.EmailAutomationService", return_value=service):
            result = runner.invoke(cli, [*no_config, "evaluate", "hi"])

        assert result.exit_code == 1
        assert "missing required section(s): background" in result.output
        service.close.assert_awaited_once()


class TestValidate:
    def test_missing_key(self, runner, no_config):
        result = runner.invoke(cli, [*no_config, "validate"], env={"RESEND_API_KEY": None})
        assert result.exit_code == 1
        assert "RESEND_API_KEY is not set" in result.output

    @pytest.mark.parametrize("valid,exit_code", [(True, 0), (False, 1)])
    def test_validate(self, runner, no_config, valid, exit_code):
        provider = MagicMock()
        provider.validate_config = AsyncMock(return_value=valid)
        provider.close = AsyncMock()
        with patch("email_automation.cli.main.ResendProvider", return_value=provider):
            result = runner.invoke(cli, [*no_config, "validate"], env={"RESEND_API_KEY": "re_x"})
        assert result.exit_code == exit_code
        provider.close.assert_awaited_once()
