"""CLI package for email automation.

Re-exports the click group for the pyproject.toml entry point.
"""

from email_automation.cli.main import cli  # noqa: F401
