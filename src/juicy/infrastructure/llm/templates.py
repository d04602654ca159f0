"""Jinja2 template utilities for LLM components."""

from datetime import datetime

from jinja2 import Environment, PackageLoader, select_autoescape


def format_timestamp(timestamp: datetime) -> str:
    """Format datetime to readable string.

    Args:
        timestamp: datetime object.

    Returns:
        Formatted string in YYYY-MM-DD HH:MM format (UTC).
    """
    return timestamp.strftime("%Y-%m-%d %H:%M UTC")


def create_jinja_env() -> Environment:
    """Create Jinja2 environment for LLM templates.

    Templates are loaded from the juicy.infrastructure.llm.templates
    package, including the knowledge module templates under knowledge/.

    Returns:
        Configured Jinja2 environment.
    """
    env = Environment(
        loader=PackageLoader("juicy.infrastructure.llm", "templates"),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
    )
    env.filters["format_timestamp"] = format_timestamp
    return env
