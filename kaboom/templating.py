"""Jinja2 environment for kaboom templates."""

from __future__ import annotations

from datetime import datetime
from importlib import resources

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .feeds import format_datetime
from .links import encode_link
from .models import Link

_ENV: Environment | None = None


def _link(value: Link) -> str:
    return encode_link(value)


def _rfc3339(value: datetime | None) -> str:
    if value is None:
        return ""
    return format_datetime(value)


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["link"] = _link
        _ENV.filters["rfc3339"] = _rfc3339
    return _ENV
