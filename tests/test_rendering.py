"""Tests for fhevm_examples.rendering."""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from fhevm_examples.rendering import DEFAULT_TEMPLATES_DIR, create_environment, render


def test_bundled_directory_is_searched_once() -> None:
    env = create_environment(DEFAULT_TEMPLATES_DIR)

    assert env.loader.searchpath == [str(DEFAULT_TEMPLATES_DIR)]


def test_override_directory_wins_over_bundled_templates(tmp_path: Path) -> None:
    (tmp_path / "gitignore.j2").write_text("custom\n", encoding="utf-8")

    env = create_environment(tmp_path)

    assert env.loader.searchpath == [str(tmp_path), str(DEFAULT_TEMPLATES_DIR)]
    assert render(env, "gitignore.j2") == "custom\n"
    assert 'deploy("FHEAdd"' in render(env, "deploy.ts.j2", contract_name="FHEAdd")


def test_missing_context_is_an_error() -> None:
    with pytest.raises(UndefinedError):
        render(create_environment(), "deploy.ts.j2")
