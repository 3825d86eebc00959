"""Jinja2 environment for generated project files and docs pages."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Return an environment searching ``templates_dir`` before the bundled templates."""
    directories = []
    if templates_dir:
        directories.append(str(templates_dir))
    directories.append(str(DEFAULT_TEMPLATES_DIR))
    ordered = list(dict.fromkeys(directories))
    return Environment(
        loader=FileSystemLoader(ordered),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def render(env: Environment, template_name: str, **context: Any) -> str:
    return env.get_template(template_name).render(**context)


__all__ = ["DEFAULT_TEMPLATES_DIR", "create_environment", "render"]
