"""Deterministic parser for the synthesizer's formatted model output.

Each section has its own extraction rule returning ``None`` when the section
is absent. Rules are independent: a missing section never blocks the others.
Mandatory sections are checked once, after every extraction, by
``validate_sections``. Nothing omitted by the model is guessed or backfilled.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from email_automation.shared.errors import SynthesisValidationError
from email_automation.shared.utils import setup_logging

logger = setup_logging("automation.parser")

DEFAULT_SUBJECT = "New Connection Request"

_BLANK_LINE = r"\n[ \t]*\n"

_SUBJECT_RE = re.compile(r"^[ \t]*Subject:[ \t]*(.+?)[ \t]*$", re.MULTILINE)
_BACKGROUND_RE = re.compile(
    rf"Background:[ \t]*\n(.*?)(?={_BLANK_LINE}|Key Points:|\Z)", re.DOTALL,
)
_KEY_POINTS_RE = re.compile(
    rf"Key Points:[ \t]*\n(.*?)(?={_BLANK_LINE}|Technical Details:|Next Steps:|\Z)",
    re.DOTALL,
)
_TECHNICAL_RE = re.compile(
    rf"Technical Details:[ \t]*\n(.*?)(?={_BLANK_LINE}|Next Steps:|\Z)", re.DOTALL,
)
_NEXT_STEPS_RE = re.compile(rf"Next Steps:[ \t]*\n(.*?)(?={_BLANK_LINE}|\Z)", re.DOTALL)

_BULLET_MARKER = re.compile(r"^[•\-]\s*")
_STEP_MARKER = re.compile(r"^(\d+\.|-|•)\s*")


@dataclass
class ParsedSections:
    subject: str
    background: str | None = None
    key_points: list[str] | None = None
    technical_details: list[str] | None = None
    next_steps: list[str] | None = None


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _split_items(body: str, marker: re.Pattern[str]) -> list[str]:
    items = []
    for line in body.split("\n"):
        line = line.strip()
        if not line:
            continue
        items.append(marker.sub("", line, count=1))
    return items


def extract_subject(text: str) -> str | None:
    match = _SUBJECT_RE.search(_normalize(text))
    if match is None:
        return None
    return match.group(1).strip() or None


def extract_background(text: str) -> str | None:
    match = _BACKGROUND_RE.search(_normalize(text))
    if match is None:
        return None
    return match.group(1).strip() or None


def extract_key_points(text: str) -> list[str] | None:
    match = _KEY_POINTS_RE.search(_normalize(text))
    if match is None:
        return None
    return _split_items(match.group(1), _BULLET_MARKER)


def extract_technical_details(text: str) -> list[str] | None:
    match = _TECHNICAL_RE.search(_normalize(text))
    if match is None:
        return None
    return _split_items(match.group(1), _BULLET_MARKER)


def extract_next_steps(text: str) -> list[str] | None:
    match = _NEXT_STEPS_RE.search(_normalize(text))
    if match is None:
        return None
    return _split_items(match.group(1), _STEP_MARKER)


def parse_formatted_email(text: str) -> ParsedSections:
    """Run every extraction rule over *text*. Never raises for missing sections."""
    sections = ParsedSections(
        subject=extract_subject(text) or DEFAULT_SUBJECT,
        background=extract_background(text),
        key_points=extract_key_points(text),
        technical_details=extract_technical_details(text),
        next_steps=extract_next_steps(text),
    )
    logger.debug(
        f"Parsed sections: background={bool(sections.background)} "
        f"key_points={len(sections.key_points or [])} "
        f"technical_details={len(sections.technical_details or [])} "
        f"next_steps={len(sections.next_steps or [])}",
    )
    return sections


def validate_sections(sections: ParsedSections) -> None:
    """Raise ``SynthesisValidationError`` naming every missing mandatory section."""
    missing = []
    if not sections.background:
        missing.append("background")
    if not sections.key_points:
        missing.append("key_points")
    if missing:
        logger.warning(f"Missing required sections: {', '.join(missing)}")
        raise SynthesisValidationError(missing)
