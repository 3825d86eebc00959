from __future__ import annotations

import logging
from pathlib import Path

import pytest

from fhevm_examples.config import FactoryConfig
from tests._fixtures.catalog_builder import (
    CatalogBuilder,
    write_hardhat_project,
    write_hardhat_template,
)


@pytest.fixture
def catalog_builder(tmp_path: Path) -> CatalogBuilder:
    """Provide a reusable catalog builder rooted at the pytest tmp_path."""
    return CatalogBuilder(tmp_path)


@pytest.fixture
def hardhat_project(tmp_path: Path) -> Path:
    return write_hardhat_project(tmp_path / "project")


@pytest.fixture
def config(tmp_path: Path) -> FactoryConfig:
    return FactoryConfig(root=tmp_path)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """CLI tests configure the package logger; undo that so caplog keeps working."""
    yield
    logger = logging.getLogger("fhevm_examples")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    return write_hardhat_template(tmp_path / "template")
