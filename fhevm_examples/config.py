"""Configuration loading for the example factory (.fhevm-examples.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".fhevm-examples.yml"

DEFAULT_REPO_URL = "https://github.com/NecipAkgz/fhevm-example-factory"
DEFAULT_BRANCH = "main"
DEFAULT_TEMPLATE_PATH = "fhevm-hardhat-template"

DEFAULT_CATEGORY_ORDER = (
    "Basic",
    "Basic - Encryption",
    "Basic - Decryption",
    "Basic - FHE Operations",
    "Concepts",
    "Gaming",
    "Openzeppelin",
    "Advanced",
)

DEFAULT_DEPENDENCIES = {
    "encrypted-types": "^0.0.4",
    "@fhevm/solidity": "^0.9.1",
}

DEFAULT_DEV_DEPENDENCIES = {
    "@fhevm/hardhat-plugin": "^0.3.0-1",
    "@zama-fhe/relayer-sdk": "^0.3.0-5",
}

DEFAULT_PLUGIN_IMPORT = 'import "@fhevm/hardhat-plugin";'
DEFAULT_PLUGIN_MARKER = "@fhevm/hardhat-plugin"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class FactoryConfig:
    """Process-wide settings shared by the generator, scaffolder and CLI."""

    root: Path
    repo_url: str = DEFAULT_REPO_URL
    branch: str = DEFAULT_BRANCH
    template_path: str = DEFAULT_TEMPLATE_PATH
    contracts_dir: str = "contracts"
    tests_dir: str = "test"
    docs_dir: str = "docs"
    excluded_dirs: List[str] = field(default_factory=lambda: ["mocks"])
    category_order: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORY_ORDER))
    dependencies: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DEPENDENCIES))
    dev_dependencies: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DEV_DEPENDENCIES)
    )
    plugin_import: str = DEFAULT_PLUGIN_IMPORT
    plugin_marker: str = DEFAULT_PLUGIN_MARKER
    rename_suffix: str = "_fhevm"
    manifest_path: Optional[Path] = None


def load_config(config_path: Path) -> FactoryConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return FactoryConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = FactoryConfig(root=root)

    repo_data = _as_dict(data.get("repository"))
    if repo_data:
        config.repo_url = _as_str(repo_data.get("url")) or config.repo_url
        config.branch = _as_str(repo_data.get("branch")) or config.branch
        config.template_path = _as_str(repo_data.get("template_path")) or config.template_path

    layout_data = _as_dict(data.get("layout"))
    if layout_data:
        config.contracts_dir = _as_str(layout_data.get("contracts_dir")) or config.contracts_dir
        config.tests_dir = _as_str(layout_data.get("tests_dir")) or config.tests_dir
        config.docs_dir = _as_str(layout_data.get("docs_dir")) or config.docs_dir
        if "excluded_dirs" in layout_data:
            config.excluded_dirs = _as_str_list(layout_data.get("excluded_dirs"))

    if "category_order" in data:
        config.category_order = _as_str_list(data.get("category_order"))

    deps_data = _as_dict(data.get("dependencies"))
    if deps_data:
        if "runtime" in deps_data:
            config.dependencies = _as_str_map(deps_data.get("runtime"), "dependencies.runtime")
        if "dev" in deps_data:
            config.dev_dependencies = _as_str_map(deps_data.get("dev"), "dependencies.dev")

    plugin_data = _as_dict(data.get("plugin"))
    if plugin_data:
        config.plugin_import = _as_str(plugin_data.get("import")) or config.plugin_import
        config.plugin_marker = _as_str(plugin_data.get("marker")) or config.plugin_marker

    config.rename_suffix = _as_str(data.get("rename_suffix")) or config.rename_suffix

    manifest_str = _as_str(data.get("manifest"))
    if manifest_str:
        config.manifest_path = root / manifest_str

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


def _as_str_map(value: Any, key: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping of package names to versions")
    return {str(name): str(version) for name, version in value.items()}
