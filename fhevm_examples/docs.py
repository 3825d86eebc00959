"""GitBook documentation pages for catalog examples."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List

from .logging import get_logger
from .manifest import Manifest, ManifestError
from .models import ExampleEntry
from .naming import contract_name_from_path
from .rendering import create_environment, render

FHE_FUNCTION_DESCRIPTIONS: Dict[str, str] = {
    # Type conversion and initialization
    "asEbool": "Encrypts a plaintext boolean into ebool",
    "asEuint8": "Encrypts a plaintext uint8 value into euint8",
    "asEuint16": "Encrypts a plaintext uint16 value into euint16",
    "asEuint32": "Encrypts a plaintext uint32 value into euint32",
    "asEuint64": "Encrypts a plaintext uint64 value into euint64",
    "asEuint128": "Encrypts a plaintext uint128 value into euint128",
    "asEuint256": "Encrypts a plaintext uint256 value into euint256",
    "asEaddress": "Encrypts a plaintext address into eaddress",
    "fromExternal": "Validates and converts external encrypted input using inputProof",
    "isInitialized": "Checks if an encrypted value has been set (handle != 0)",
    # Arithmetic
    "add": "Homomorphic addition: result = a + b (overflow wraps)",
    "sub": "Homomorphic subtraction: result = a - b (underflow wraps)",
    "mul": "Homomorphic multiplication: result = a * b",
    "div": "Homomorphic division: result = a / b (plaintext divisor only)",
    "rem": "Homomorphic remainder: result = a % b (plaintext divisor only)",
    "neg": "Homomorphic negation (two's complement)",
    "min": "Returns smaller of two encrypted values",
    "max": "Returns larger of two encrypted values",
    # Comparison, all return ebool
    "eq": "Encrypted equality: returns ebool(a == b)",
    "ne": "Encrypted inequality: returns ebool(a != b)",
    "gt": "Encrypted greater-than: returns ebool(a > b)",
    "lt": "Encrypted less-than: returns ebool(a < b)",
    "ge": "Encrypted greater-or-equal: returns ebool(a >= b)",
    "le": "Encrypted less-or-equal: returns ebool(a <= b)",
    # Bitwise
    "and": "Homomorphic bitwise AND",
    "or": "Homomorphic bitwise OR",
    "xor": "Homomorphic bitwise XOR",
    "not": "Homomorphic bitwise NOT",
    "shl": "Homomorphic shift left",
    "shr": "Homomorphic shift right",
    "rotl": "Homomorphic rotate left",
    "rotr": "Homomorphic rotate right",
    "select": "Encrypted if-then-else: select(cond, a, b) returns a if true, b if false",
    # Randomness
    "randEbool": "Generates random encrypted boolean",
    "randEuint8": "Generates random encrypted 8-bit integer",
    "randEuint16": "Generates random encrypted 16-bit integer",
    "randEuint32": "Generates random encrypted 32-bit integer",
    "randEuint64": "Generates random encrypted 64-bit integer",
    "randEuint128": "Generates random encrypted 128-bit integer",
    "randEuint256": "Generates random encrypted 256-bit integer",
    # Access control
    "allow": "Grants PERMANENT permission for address to decrypt/use value",
    "allowThis": "Grants contract permission to operate on ciphertext",
    "allowTransient": "Grants TEMPORARY permission (expires at tx end)",
    "isAllowed": "Checks if address has permission to use ciphertext",
    "isSenderAllowed": "Checks if msg.sender has permission",
    # Decryption
    "makePubliclyDecryptable": "Marks ciphertext for public decryption via relayer",
    "isPubliclyDecryptable": "Checks if ciphertext is publicly decryptable",
    "checkSignatures": "Verifies KMS decryption proof (reverts if invalid)",
    "toBytes32": "Converts encrypted handle to bytes32 for proof arrays",
    "cleanTransientStorage": "Clears transient permissions (for AA bundled UserOps)",
}

_FUNCTION_PATTERN = re.compile(r"FHE\.([a-zA-Z0-9]+)\s*[(<]")
_TYPE_PATTERN = re.compile(
    r"\b(ebool|euint(?:8|16|32|64|128|256)|eaddress"
    r"|externalEbool|externalEuint(?:8|16|32|64|128|256)|externalEaddress)\b"
)


@dataclass(frozen=True)
class ApiFunction:
    name: str
    description: str


def extract_fhe_functions(source: str) -> List[str]:
    """Sorted, de-duplicated ``FHE.<fn>`` calls that have a known description."""
    found = {
        match.group(1)
        for match in _FUNCTION_PATTERN.finditer(source)
        if match.group(1) in FHE_FUNCTION_DESCRIPTIONS
    }
    return sorted(found)


def extract_fhe_types(source: str) -> List[str]:
    return sorted({match.group(1) for match in _TYPE_PATTERN.finditer(source)})


class DocsGenerator:
    """Renders one markdown page per catalog example from the local sources."""

    def __init__(
        self,
        root: Path,
        manifest: Manifest,
        *,
        templates_dir: Path | None = None,
    ) -> None:
        self.root = root
        self.manifest = manifest
        self.env = create_environment(templates_dir)
        self.logger = get_logger("docs")

    def render_page(self, example: ExampleEntry, contract_source: str, test_source: str) -> str:
        functions = [
            ApiFunction(name, FHE_FUNCTION_DESCRIPTIONS[name])
            for name in extract_fhe_functions(contract_source)
        ]
        contract_name = contract_name_from_path(example.contract_path) or "Contract"
        return render(
            self.env,
            "example.md.j2",
            description=example.description,
            api_functions=functions,
            api_types=extract_fhe_types(contract_source),
            contract_file=f"{contract_name}.sol",
            contract_source=contract_source,
            test_file=PurePosixPath(example.test_path).name,
            test_source=test_source,
        )

    def generate(self, name: str = "all") -> List[Path]:
        """Write pages for ``name`` (or every example) and return the paths written."""
        if name == "all":
            examples = list(self.manifest.examples.values())
        else:
            example = self.manifest.example(name)
            if example is None:
                raise ManifestError(
                    f'Unknown example "{name}". Available: {", ".join(self.manifest.examples)}'
                )
            examples = [example]

        written: List[Path] = []
        for example in examples:
            contract_path = self.root / example.contract_path
            test_path = self.root / example.test_path
            if not contract_path.is_file() or not test_path.is_file():
                self.logger.warning("Skipping %s: contract or test file missing", example.name)
                continue

            page = self.render_page(
                example,
                contract_path.read_text(encoding="utf-8"),
                test_path.read_text(encoding="utf-8"),
            )
            output_path = self.root / example.docs_output
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(page, encoding="utf-8")
            self.logger.debug("Wrote %s", output_path)
            written.append(output_path)

        self.logger.info("Generated %d documentation file(s)", len(written))
        return written


__all__ = [
    "DocsGenerator",
    "FHE_FUNCTION_DESCRIPTIONS",
    "extract_fhe_functions",
    "extract_fhe_types",
]
