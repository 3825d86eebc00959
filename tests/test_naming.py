"""Tests for fhevm_examples.naming."""

from __future__ import annotations

import pytest

from fhevm_examples.naming import (
    UNCATEGORIZED,
    category_from_path,
    category_key,
    contract_name_from_path,
    contract_name_to_title,
    docs_file_name,
    docs_output_for,
    format_category_name,
    to_kebab_case,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("FHEAdd", "fhe-add"),
        ("HeadsOrTails", "heads-or-tails"),
        ("ERC7984", "erc7984"),
        ("ERC7984ERC20Wrapper", "erc7984-erc20-wrapper"),
        ("SwapERC7984ToERC20", "swap-erc7984-to-erc20"),
        ("FHECounter", "fhe-counter"),
        ("BlindAuction", "blind-auction"),
    ],
)
def test_to_kebab_case_splits_on_boundaries(name: str, expected: str) -> None:
    assert to_kebab_case(name) == expected


def test_contract_name_to_title_preserves_case() -> None:
    assert contract_name_to_title("FHECounter") == "FHE Counter"
    assert contract_name_to_title("EncryptSingleValue") == "Encrypt Single Value"


def test_format_category_name_uppercases_fhe() -> None:
    assert format_category_name("fhe-operations") == "FHE Operations"
    assert format_category_name("basic") == "Basic"


def test_category_from_path_joins_segments() -> None:
    assert category_from_path("concepts/antipatterns/Foo.sol") == "Concepts - Antipatterns"
    assert category_from_path("basic/fhe-operations/FHEAdd.sol") == "Basic - FHE Operations"


def test_category_from_path_root_file_is_uncategorized() -> None:
    assert category_from_path("Foo.sol") == UNCATEGORIZED


def test_category_key_strips_spaces_and_dashes() -> None:
    assert category_key("Basic - Encryption") == "basicencryption"
    assert category_key("FHE Operations") == "fheoperations"


def test_contract_name_from_path() -> None:
    assert contract_name_from_path("contracts/basic/FHEAdd.sol") == "FHEAdd"
    assert contract_name_from_path("contracts/README.md") is None


def test_docs_paths() -> None:
    assert docs_output_for("contracts/basic/FHECounter.sol") == "docs/basic/fhe-counter.md"
    assert docs_output_for("contracts/openzeppelin/ERC7984.sol") == "docs/openzeppelin/erc7984.md"
    assert docs_file_name("counter") == "fhe-counter"
    assert docs_file_name("fhe-add") == "fhe-add"
