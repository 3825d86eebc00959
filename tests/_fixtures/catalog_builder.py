"""Helper utilities for constructing temporary example catalogs in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, Mapping

from fhevm_examples.config import FactoryConfig
from fhevm_examples.models import ExampleEntry
from fhevm_examples.scanner import ExampleScanner

CONTRACT_TEMPLATE = """\
// SPDX-License-Identifier: BSD-3-Clause-Clear
pragma solidity ^0.8.24;

import {{FHE, euint32}} from "@fhevm/solidity/lib/FHE.sol";

/**
 * @title {name}
 * @notice {notice}
 * @dev Example only.
 */
contract {name} {{
    euint32 private _value;

    function bump(euint32 amount) external {{
        _value = FHE.add(_value, amount);
        FHE.allowThis(_value);
    }}
}}
"""


class CatalogBuilder:
    """Writes contracts/ and test/ trees into a throwaway examples repository."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "catalog"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def add_example(
        self,
        relative: str,
        notice: str | None = "Does something confidential.",
        *,
        with_test: bool = True,
    ) -> None:
        """Add `contracts/<relative>` (and its paired test) for a contract path like `basic/FHEAdd.sol`."""
        name = Path(relative).stem
        if notice is None:
            source = f"pragma solidity ^0.8.24;\n\ncontract {name} {{}}\n"
        else:
            source = CONTRACT_TEMPLATE.format(name=name, notice=notice)
        contract = self.root / "contracts" / relative
        contract.parent.mkdir(parents=True, exist_ok=True)
        contract.write_text(source, encoding="utf-8")
        if with_test:
            test = self.root / "test" / relative.replace(".sol", ".ts")
            test.parent.mkdir(parents=True, exist_ok=True)
            test.write_text(f'describe("{name}", () => {{}});\n', encoding="utf-8")

    def scan(self, config: FactoryConfig | None = None) -> list[ExampleEntry]:
        config = config or FactoryConfig(root=self.root)
        return ExampleScanner(config).scan(self.root)

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


def write_hardhat_project(
    target: Path,
    *,
    package: Mapping[str, Any] | None = None,
    config_source: str | None = None,
) -> Path:
    """Create a minimal Hardhat project that passes project detection."""
    target.mkdir(parents=True, exist_ok=True)
    payload = dict(package) if package is not None else {
        "name": "existing-project",
        "devDependencies": {"hardhat": "^2.22.0"},
    }
    (target / "package.json").write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    if config_source is None:
        config_source = (
            'import { HardhatUserConfig } from "hardhat/config";\n'
            'import "@nomicfoundation/hardhat-toolbox";\n'
            "\n"
            "const config: HardhatUserConfig = {};\n"
            "export default config;\n"
        )
    (target / "hardhat.config.ts").write_text(config_source, encoding="utf-8")
    return target


def write_hardhat_template(root: Path) -> Path:
    """Lay out a stand-in for the upstream Hardhat template checkout."""
    files = {
        "package.json": json.dumps(
            {
                "name": "fhevm-hardhat-template",
                "devDependencies": {"hardhat": "^2.22.0"},
                "overrides": {"minimatch": "^3.1.2"},
            },
            indent=2,
        ),
        "hardhat.config.ts": (
            'import "@fhevm/hardhat-plugin";\n'
            'import "./tasks/accounts";\n'
            'import "./tasks/FHECounter";\n'
            "export default {};\n"
        ),
        "contracts/FHECounter.sol": "contract FHECounter {}\n",
        "contracts/.gitkeep": "",
        "test/FHECounter.ts": "// template test\n",
        "test/.gitkeep": "",
        "tasks/FHECounter.ts": "// task\n",
        "deploy/deploy.ts": "// template deploy\n",
        "node_modules/hardhat/index.js": "",
        "artifacts/build-info/x.json": "{}",
        ".github/workflows/ci.yml": "on: push\n",
        ".git/HEAD": "ref: refs/heads/main\n",
        "README.md": "# Template\n",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


__all__ = ["CatalogBuilder", "write_hardhat_project", "write_hardhat_template"]
