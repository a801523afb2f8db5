"""Thin wrapper around Jinja2 for rendering notification mails."""

from typing import Any, Dict

from jinja2 import BaseLoader, Environment, StrictUndefined

_ENV = Environment(
    loader=BaseLoader(),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)


def render_template(template: str, context: Dict[str, Any]) -> str:
    tmpl = _ENV.from_string(template)
    return tmpl.render(**context)
