"""Settings lookup and a minimal standalone runtime.

Inside a host agent runtime the pipeline reads settings through the host's
``get_setting``. When run on its own (CLI, scripts) ``Settings`` provides the
same contract over explicit overrides, the process environment (``.env``
loaded via python-dotenv) and ``config/email.yaml``, in that order.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from email_automation.shared.types import ConversationMessage
from email_automation.shared.utils import setup_logging

logger = setup_logging("config")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = PROJECT_ROOT / ".env"
CONFIG_FILE = PROJECT_ROOT / "config" / "email.yaml"

SETTING_NAMES = (
    "EMAIL_AUTOMATION_ENABLED",
    "RESEND_API_KEY",
    "DEFAULT_TO_EMAIL",
    "DEFAULT_FROM_EMAIL",
    "EMAIL_EVALUATION_PROMPT",
    "EMAIL_AUTOMATION_MODEL",
)

_HISTORY_LIMIT = 20


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: top level is not a mapping")
        return {}
    return data


class Settings:
    """``get_setting`` over overrides, environment, then the YAML file."""

    def __init__(
        self,
        overrides: Mapping[str, str] | None = None,
        config_path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self._overrides = dict(overrides or {})
        self._environ = environ if environ is not None else os.environ
        self._file = _load_yaml(Path(config_path) if config_path else CONFIG_FILE)
        section = self._file.get("email_automation") or {}
        self._file_settings = {str(k).upper(): v for k, v in section.items()}

    @property
    def agent(self) -> dict[str, Any]:
        return dict(self._file.get("agent") or {})

    def get_setting(self, name: str) -> str | None:
        if name in self._overrides:
            return self._overrides[name]
        value = self._environ.get(name)
        if value is not None:
            return value
        value = self._file_settings.get(name.upper())
        if value is None:
            return None
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


class EnvRuntime:
    """Stand-in for a host runtime: settings plus an in-memory message history."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self._history: dict[str, list[str]] = {}

    def get_setting(self, name: str) -> str | None:
        return self.settings.get_setting(name)

    def remember(self, message: ConversationMessage) -> None:
        room = message.room_id or message.user_id
        history = self._history.setdefault(room, [])
        history.append(message.content.text)
        del history[:-_HISTORY_LIMIT]

    async def compose_state(self, message: ConversationMessage) -> dict[str, Any]:
        room = message.room_id or message.user_id
        agent = self.settings.agent
        return {
            "agent_name": agent.get("name", ""),
            "bio": agent.get("bio", ""),
            "topics": ", ".join(agent.get("topics", []) or []),
            "recent_messages": "\n".join(self._history.get(room, [])),
            "metadata": {"source": "cli", "room_id": room},
        }
