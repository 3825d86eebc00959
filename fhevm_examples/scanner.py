"""Contract tree scanning and @notice extraction."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Sequence

from .config import FactoryConfig
from .logging import get_logger
from .models import ExampleEntry
from .naming import (
    category_from_path,
    contract_name_to_example_name,
    contract_name_to_title,
    docs_output_for,
)

_CONTRACT_SUFFIX = ".sol"
_TEST_SUFFIX = ".ts"

# The notice runs until the next tag or the end of the doc block.
_NOTICE_PATTERN = re.compile(r"/\*\*[\s\S]*?@notice\s+([\s\S]*?)(?:@dev|@param|\*/)")
_LINE_PREFIX = re.compile(r"^\s*\*\s?")


def extract_notice(source: str) -> str | None:
    """Return the cleaned ``@notice`` text of the first doc block, if any."""
    match = _NOTICE_PATTERN.search(source)
    if not match or not match.group(1):
        return None

    lines = [_LINE_PREFIX.sub("", line).strip() for line in match.group(1).split("\n")]
    cleaned = " ".join(line for line in lines if line)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned or None


def _iter_contracts(root: Path, excluded_dirs: Sequence[str]) -> Iterator[Path]:
    excluded = set(excluded_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in excluded)
        for filename in sorted(filenames):
            if filename.endswith(_CONTRACT_SUFFIX):
                yield Path(dirpath) / filename


class ExampleScanner:
    """Walks the contracts tree and produces one entry per documented, tested contract."""

    def __init__(self, config: FactoryConfig) -> None:
        self.config = config
        self.logger = get_logger("scanner")

    def scan(
        self,
        root: str | Path,
        previous: Mapping[str, ExampleEntry] | None = None,
    ) -> List[ExampleEntry]:
        """Return catalog entries for every contract under ``root``'s contracts dir.

        ``previous`` carries the hand-curated ``dependencies`` and
        ``npm_dependencies`` forward from an older manifest.
        """
        root_path = Path(root).expanduser().resolve()
        contracts_root = root_path / self.config.contracts_dir
        tests_root = root_path / self.config.tests_dir
        if not contracts_root.is_dir():
            raise FileNotFoundError(f"Contracts directory not found: {contracts_root}")

        previous = previous or {}
        entries: List[ExampleEntry] = []
        seen: Dict[str, str] = {}

        for path in _iter_contracts(contracts_root, self.config.excluded_dirs):
            rel_path = path.relative_to(contracts_root).as_posix()
            description = extract_notice(path.read_text(encoding="utf-8"))
            if not description:
                self.logger.warning("No @notice found in %s", rel_path)
                continue

            test_rel = rel_path[: -len(_CONTRACT_SUFFIX)] + _TEST_SUFFIX
            if not (tests_root / test_rel).is_file():
                self.logger.warning("No test file found for %s", rel_path)
                continue

            contract_name = path.stem
            name = contract_name_to_example_name(contract_name)
            if name in seen:
                self.logger.warning(
                    "Skipping %s: example name %s already used by %s",
                    rel_path,
                    name,
                    seen[name],
                )
                continue
            seen[name] = rel_path

            contract_path = f"{self.config.contracts_dir}/{rel_path}"
            entry = ExampleEntry(
                name=name,
                contract_path=contract_path,
                test_path=f"{self.config.tests_dir}/{test_rel}",
                description=description,
                category=category_from_path(rel_path),
                title=contract_name_to_title(contract_name),
                docs_output=docs_output_for(
                    contract_path, self.config.contracts_dir, self.config.docs_dir
                ),
            )
            earlier = previous.get(name)
            if earlier is not None:
                entry.dependencies = list(earlier.dependencies)
                entry.npm_dependencies = dict(earlier.npm_dependencies)
            entries.append(entry)

        self.logger.debug("Scanner discovered %d examples", len(entries))
        return entries


__all__ = ["ExampleScanner", "extract_notice"]
