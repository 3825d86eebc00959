"""Name, title and category derivation for example contracts."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

UNCATEGORIZED = "Uncategorized"

# Word boundaries inside a contract type name, applied in order.
_LOWER_UPPER = re.compile(r"([a-z])([A-Z])")
_DIGIT_UPPER = re.compile(r"([0-9])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z]+)([A-Z][a-z])")

_FHE_WORD = re.compile(r"\bfhe\b", re.IGNORECASE)
_WORD_START = re.compile(r"\b\w")


def _split_words(name: str, separator: str) -> str:
    replacement = rf"\1{separator}\2"
    result = _LOWER_UPPER.sub(replacement, name)
    result = _DIGIT_UPPER.sub(replacement, result)
    return _ACRONYM_WORD.sub(replacement, result)


def to_kebab_case(name: str) -> str:
    """Return ``name`` split on camel, digit and acronym boundaries, lowercased.

    ``FHEAdd`` -> ``fhe-add``, ``ERC7984ERC20Wrapper`` -> ``erc7984-erc20-wrapper``.
    A digit followed by a lowercase letter is not a boundary, so ``ERC7984`` stays
    one word.
    """
    return _split_words(name, "-").lower()


def contract_name_to_example_name(contract_name: str) -> str:
    return to_kebab_case(contract_name)


def contract_name_to_title(contract_name: str) -> str:
    """``FHECounter`` -> ``FHE Counter``; case is preserved."""
    return _split_words(contract_name, " ")


def format_category_name(folder_name: str) -> str:
    """``fhe-operations`` -> ``FHE Operations``."""
    result = _FHE_WORD.sub("FHE", folder_name)
    result = result.replace("-", " ")
    return _WORD_START.sub(lambda match: match.group(0).upper(), result)


def category_from_path(relative_path: str) -> str:
    """Derive the display category from a path relative to the contracts root."""
    parts = PurePosixPath(relative_path).parts[:-1]
    if not parts:
        return UNCATEGORIZED
    return " - ".join(format_category_name(part) for part in parts)


def category_key(category: str) -> str:
    """Compact lookup key for a category: ``Basic - Encryption`` -> ``basicencryption``."""
    return re.sub(r"\s+", "", category.lower()).replace("-", "")


def contract_name_from_path(contract_path: str) -> str | None:
    match = re.search(r"([^/]+)\.sol$", contract_path)
    return match.group(1) if match else None


def docs_output_for(contract_path: str, contracts_dir: str = "contracts", docs_dir: str = "docs") -> str:
    """``contracts/basic/FHECounter.sol`` -> ``docs/basic/fhe-counter.md``."""
    relative = re.sub(rf"^{re.escape(contracts_dir)}/", "", contract_path)
    relative = re.sub(r"\.sol$", "", relative)
    return f"{docs_dir}/{to_kebab_case(relative)}.md"


def docs_file_name(example_name: str) -> str:
    return example_name if example_name.startswith("fhe-") else f"fhe-{example_name}"


__all__ = [
    "UNCATEGORIZED",
    "category_from_path",
    "category_key",
    "contract_name_from_path",
    "contract_name_to_example_name",
    "contract_name_to_title",
    "docs_file_name",
    "docs_output_for",
    "format_category_name",
    "to_kebab_case",
]
