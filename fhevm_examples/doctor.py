"""Environment and catalog health checks for maintainers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .commands import CommandError, CommandRunner
from .manifest import Manifest

MIN_NODE_MAJOR = 20

SUCCESS = "success"
WARN = "warn"
FAIL = "fail"

_NODE_VERSION = re.compile(r"v?(\d+)\.(\d+)\.(\d+)")


@dataclass
class CheckResult:
    name: str
    status: str
    message: str = ""
    details: List[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status == FAIL


def check_node_version(runner: CommandRunner, cwd: Path) -> CheckResult:
    name = "Node.js Version"
    try:
        output = runner.run(["node", "--version"], cwd=cwd).strip()
    except CommandError:
        return CheckResult(
            name,
            FAIL,
            "Not found",
            [f"Install Node.js {MIN_NODE_MAJOR} or later."],
        )

    match = _NODE_VERSION.search(output)
    if not match:
        return CheckResult(name, WARN, f"Could not parse version from {output!r}")
    if int(match.group(1)) >= MIN_NODE_MAJOR:
        return CheckResult(name, SUCCESS, f"{output} (>= {MIN_NODE_MAJOR}.0.0)")
    return CheckResult(
        name,
        FAIL,
        f"{output} (Required: >= {MIN_NODE_MAJOR}.0.0)",
        [f"Please upgrade Node.js to version {MIN_NODE_MAJOR} or later."],
    )


def check_git(runner: CommandRunner, cwd: Path) -> CheckResult:
    name = "Git Installation"
    try:
        runner.run(["git", "--version"], cwd=cwd)
    except CommandError:
        return CheckResult(
            name,
            FAIL,
            "Not found",
            ["Git is required to clone templates and manage the repository."],
        )
    return CheckResult(name, SUCCESS, "Installed")


def check_manifest_paths(manifest: Manifest, root: Path) -> CheckResult:
    """Every contract and test path listed in the manifest must exist under ``root``."""
    issues: List[str] = []
    for name, example in manifest.examples.items():
        if not (root / example.contract_path).is_file():
            issues.append(f"{name}: contract not found at {example.contract_path}")
        if not (root / example.test_path).is_file():
            issues.append(f"{name}: test file not found at {example.test_path}")

    if issues:
        return CheckResult("Config Integrity", FAIL, f"{len(issues)} issues found", issues)
    return CheckResult("Config Integrity", SUCCESS, "All paths valid")


def run_checks(
    root: Path, manifest: Manifest, *, runner: CommandRunner | None = None
) -> List[CheckResult]:
    runner = runner or CommandRunner()
    return [
        check_node_version(runner, root),
        check_git(runner, root),
        check_manifest_paths(manifest, root),
    ]


__all__ = [
    "CheckResult",
    "FAIL",
    "SUCCESS",
    "WARN",
    "check_git",
    "check_manifest_paths",
    "check_node_version",
    "run_checks",
]
