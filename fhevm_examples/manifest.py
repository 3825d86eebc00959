"""Manifest generation, serialization and loading."""

from __future__ import annotations

import json
import os
import stat
import tempfile
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .config import FactoryConfig
from .logging import get_logger
from .models import CategoryEntry, ContractRef, ExampleEntry
from .naming import category_key
from .scanner import ExampleScanner

BUNDLED_MANIFEST = Path(__file__).with_name("data") / "manifest.json"

logger = get_logger("manifest")


class ManifestError(RuntimeError):
    """Raised when a manifest cannot be generated or read."""


@dataclass
class GenerationResult:
    """Outcome of a manifest generation run."""

    path: Path
    example_count: int
    category_counts: Dict[str, int]


class Manifest:
    """In-memory view of the example and category mappings."""

    def __init__(
        self,
        examples: Mapping[str, ExampleEntry],
        categories: Mapping[str, CategoryEntry],
    ) -> None:
        self.examples: Dict[str, ExampleEntry] = dict(examples)
        self.categories: Dict[str, CategoryEntry] = dict(categories)

    def example(self, name: str) -> Optional[ExampleEntry]:
        return self.examples.get(name)

    def category(self, key: str) -> Optional[CategoryEntry]:
        return self.categories.get(key)

    def examples_in(self, category: str) -> List[ExampleEntry]:
        return [entry for entry in self.examples.values() if entry.category == category]

    def category_counts(self) -> Dict[str, int]:
        return dict(Counter(entry.category for entry in self.examples.values()))

    def ordered_categories(self, order: Sequence[str]) -> List[str]:
        """Category strings in display order: configured order first, then alphabetical."""
        present = self.category_counts()
        preferred = [name for name in order if name in present]
        remaining = sorted(name for name in present if name not in order)
        return preferred + remaining

    def category_examples(self, key: str) -> List[ExampleEntry]:
        """Catalog entries whose contract is listed in category ``key``."""
        category = self.categories.get(key)
        if category is None:
            return []
        by_contract = {entry.contract_path: entry for entry in self.examples.values()}
        return [by_contract[ref.contract] for ref in category.contracts if ref.contract in by_contract]


def build_categories(
    entries: Iterable[ExampleEntry], category_order: Sequence[str]
) -> Dict[str, CategoryEntry]:
    """Group entries by category; configured categories first, the rest alphabetical."""
    grouped: Dict[str, List[ExampleEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.category, []).append(entry)

    def sort_key(name: str) -> tuple[int, int, str]:
        if name in category_order:
            return (0, category_order.index(name), "")
        return (1, 0, name)

    categories: Dict[str, CategoryEntry] = {}
    for name in sorted(grouped, key=sort_key):
        key = category_key(name)
        refs = [ContractRef(contract=e.contract_path, test=e.test_path) for e in grouped[name]]
        if key in categories:
            categories[key].contracts.extend(refs)
            continue
        categories[key] = CategoryEntry(key=key, name=name, contracts=refs)
    return categories


def render_manifest(
    entries: Sequence[ExampleEntry], categories: Mapping[str, CategoryEntry]
) -> str:
    payload = {
        "examples": {entry.name: entry.to_dict() for entry in entries},
        "categories": {key: category.to_dict() for key, category in categories.items()},
    }
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def _target_mode(path: Path) -> int:
    """Permission bits the written manifest should end up with."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_manifest(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` via a temp file so readers never see a partial write."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.chmod(tmp_name, _target_mode(path))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def parse_manifest(text: str, *, source: str = "manifest") -> Manifest:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ManifestError(f"{source} must contain a JSON object")

    examples_data = payload.get("examples") or {}
    categories_data = payload.get("categories") or {}
    if not isinstance(examples_data, dict) or not isinstance(categories_data, dict):
        raise ManifestError(f"{source} must map 'examples' and 'categories' to objects")

    try:
        examples = {
            name: ExampleEntry.from_dict(name, data) for name, data in examples_data.items()
        }
        categories = {
            key: CategoryEntry.from_dict(key, data) for key, data in categories_data.items()
        }
    except (KeyError, TypeError, AttributeError) as exc:
        raise ManifestError(f"{source} has a malformed entry: {exc}") from exc
    return Manifest(examples, categories)


def load_manifest(path: Path | None = None) -> Manifest:
    """Load a manifest file; defaults to the copy bundled with the package."""
    manifest_path = path or BUNDLED_MANIFEST
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ManifestError(f"Manifest not found: {manifest_path}") from exc
    return parse_manifest(text, source=manifest_path.name)


def _previous_entries(path: Path) -> Dict[str, ExampleEntry]:
    if not path.exists():
        return {}
    try:
        return load_manifest(path).examples
    except ManifestError:
        logger.warning("Could not read existing manifest %s, starting fresh", path)
        return {}


def generate_manifest(
    root: str | Path,
    output: Path,
    config: FactoryConfig,
    *,
    scanner: ExampleScanner | None = None,
) -> GenerationResult | None:
    """Regenerate ``output`` from the contract tree under ``root``.

    Returns ``None`` without touching anything when the contracts directory is
    absent, so packaged installs keep their bundled manifest.
    """
    root_path = Path(root).expanduser().resolve()
    contracts_root = root_path / config.contracts_dir
    if not contracts_root.is_dir():
        logger.info("No %s/ directory under %s; standalone mode, skipping", config.contracts_dir, root_path)
        return None

    logger.info("Scanning examples in %s", contracts_root)
    scanner = scanner or ExampleScanner(config)
    entries = scanner.scan(root_path, previous=_previous_entries(output))
    if not entries:
        raise ManifestError("No valid contracts discovered. Check for @notice tags.")

    categories = build_categories(entries, config.category_order)
    write_manifest(output, render_manifest(entries, categories))

    counts = dict(Counter(entry.category for entry in entries))
    logger.info("Wrote %d examples in %d categories to %s", len(entries), len(counts), output)
    return GenerationResult(path=output, example_count=len(entries), category_counts=counts)


__all__ = [
    "BUNDLED_MANIFEST",
    "GenerationResult",
    "Manifest",
    "ManifestError",
    "build_categories",
    "generate_manifest",
    "load_manifest",
    "parse_manifest",
    "render_manifest",
    "write_manifest",
]
