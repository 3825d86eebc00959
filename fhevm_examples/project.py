"""Detection and additive mutation of a target Hardhat project."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .logging import get_logger

PACKAGE_JSON = "package.json"
BUILD_CONFIG_NAMES = ("hardhat.config.ts", "hardhat.config.js")
BUILD_TOOL = "hardhat"

# An import statement ends on the line holding its module specifier.
_IMPORT_START = re.compile(r"^\s*import[\s{*\"']")
_IMPORT_END = re.compile(r"""(?:\bfrom\s*["'][^"']*["']|^\s*import\s*["'][^"']*["'])\s*;?\s*(?://.*)?$""")

logger = get_logger("project")


class ProjectError(RuntimeError):
    """Raised when the target project is missing a required file."""


def detect_project_validity(target_dir: Path) -> bool:
    """True when ``target_dir`` holds a package.json depending on hardhat and a hardhat config."""
    package_json = target_dir / PACKAGE_JSON
    if not package_json.is_file():
        return False
    try:
        payload = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    if not isinstance(payload, dict):
        return False

    has_build_tool = any(
        isinstance(payload.get(section), dict) and payload[section].get(BUILD_TOOL)
        for section in ("dependencies", "devDependencies")
    )
    return bool(has_build_tool and find_build_config(target_dir) is not None)


def find_build_config(target_dir: Path) -> Optional[Path]:
    for name in BUILD_CONFIG_NAMES:
        candidate = target_dir / name
        if candidate.is_file():
            return candidate
    return None


def read_package_json(target_dir: Path) -> Dict[str, Any]:
    path = target_dir / PACKAGE_JSON
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ProjectError(f"{PACKAGE_JSON} not found in {target_dir}") from exc
    except json.JSONDecodeError as exc:
        raise ProjectError(f"{PACKAGE_JSON} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ProjectError(f"{PACKAGE_JSON} must contain a JSON object")
    return payload


def write_package_json(target_dir: Path, payload: Mapping[str, Any]) -> None:
    path = target_dir / PACKAGE_JSON
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def _merge_section(payload: Dict[str, Any], section: str, required: Mapping[str, str]) -> List[str]:
    current = payload.get(section)
    if not isinstance(current, dict):
        current = {}
    added: List[str] = []
    for name, version in required.items():
        if name in current:
            continue
        current[name] = version
        added.append(name)
    if added or section in payload:
        payload[section] = current
    return added


def merge_dependencies(
    target_dir: Path,
    required: Mapping[str, str],
    required_dev: Mapping[str, str],
) -> bool:
    """Add missing pinned dependencies; keys already declared keep their version."""
    payload = read_package_json(target_dir)
    added = _merge_section(payload, "dependencies", required)
    added_dev = _merge_section(payload, "devDependencies", required_dev)
    if not added and not added_dev:
        logger.debug("%s already declares all required dependencies", PACKAGE_JSON)
        return False
    write_package_json(target_dir, payload)
    logger.debug("Added dependencies %s and dev dependencies %s", added, added_dev)
    return True


def merge_npm_dependencies(target_dir: Path, npm_dependencies: Mapping[str, str]) -> List[str]:
    """Merge example-specific packages into ``dependencies``; returns the names added."""
    if not npm_dependencies:
        return []
    payload = read_package_json(target_dir)
    added = _merge_section(payload, "dependencies", npm_dependencies)
    if added:
        write_package_json(target_dir, payload)
    return added


def _last_import_end(lines: List[str]) -> int:
    """Index of the line closing the last top-level import statement, or -1."""
    last = -1
    in_import = False
    for index, line in enumerate(lines):
        if not in_import and _IMPORT_START.match(line):
            in_import = True
        if in_import and (_IMPORT_END.search(line) or line.rstrip().endswith(";")):
            in_import = False
            last = index
    return last


def patch_build_config(target_dir: Path, import_line: str, marker: str) -> bool:
    """Insert ``import_line`` after the last import; returns False if ``marker`` is present."""
    config_path = find_build_config(target_dir)
    if config_path is None:
        raise ProjectError(" or ".join(BUILD_CONFIG_NAMES) + " not found")

    content = config_path.read_text(encoding="utf-8")
    if marker in content:
        return False

    lines = content.split("\n")
    lines.insert(_last_import_end(lines) + 1, import_line)

    config_path.write_text("\n".join(lines), encoding="utf-8")
    logger.debug("Inserted plugin import into %s", config_path.name)
    return True


def update_package_metadata(
    target_dir: Path,
    name: str,
    *,
    description: str | None = None,
    npm_dependencies: Mapping[str, str] | None = None,
) -> None:
    """Rename a freshly generated project and pin its example-specific packages."""
    payload = read_package_json(target_dir)
    payload["name"] = name
    if description:
        payload["description"] = description
    if npm_dependencies:
        dependencies = payload.get("dependencies")
        if not isinstance(dependencies, dict):
            dependencies = {}
        dependencies.update(npm_dependencies)
        payload["dependencies"] = dependencies

    # Drop the template's minimatch pin.
    overrides = payload.get("overrides")
    if isinstance(overrides, dict):
        overrides.pop("minimatch", None)

    write_package_json(target_dir, payload)


__all__ = [
    "BUILD_CONFIG_NAMES",
    "ProjectError",
    "detect_project_validity",
    "find_build_config",
    "merge_dependencies",
    "merge_npm_dependencies",
    "patch_build_config",
    "read_package_json",
    "update_package_metadata",
    "write_package_json",
]
