"""Core data models shared across the example factory components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .naming import docs_file_name


@dataclass
class ExampleEntry:
    """One catalogued contract example and its paired test."""

    name: str
    contract_path: str
    test_path: str
    description: str
    category: str
    title: str
    docs_output: str
    dependencies: List[str] = field(default_factory=list)
    npm_dependencies: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contract": self.contract_path,
            "test": self.test_path,
            "description": self.description,
            "category": self.category,
            "title": self.title,
            "docsOutput": self.docs_output,
        }
        if self.dependencies:
            payload["dependencies"] = list(self.dependencies)
        if self.npm_dependencies:
            payload["npmDependencies"] = dict(self.npm_dependencies)
        return payload

    @classmethod
    def from_dict(cls, name: str, payload: Dict[str, Any]) -> "ExampleEntry":
        return cls(
            name=name,
            contract_path=str(payload["contract"]),
            test_path=str(payload["test"]),
            description=str(payload.get("description", "")),
            category=str(payload.get("category", "")),
            title=str(payload.get("title", name)),
            docs_output=str(payload.get("docsOutput") or f"docs/{docs_file_name(name)}.md"),
            dependencies=[str(item) for item in payload.get("dependencies") or []],
            npm_dependencies={
                str(key): str(value)
                for key, value in (payload.get("npmDependencies") or {}).items()
            },
        )


@dataclass
class ContractRef:
    """Contract/test pair listed under a category."""

    contract: str
    test: Optional[str]


@dataclass
class CategoryEntry:
    """Examples grouped under one category string."""

    key: str
    name: str
    contracts: List[ContractRef] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "contracts": [
                {"sol": ref.contract, "test": ref.test} if ref.test else {"sol": ref.contract}
                for ref in self.contracts
            ],
        }

    @classmethod
    def from_dict(cls, key: str, payload: Dict[str, Any]) -> "CategoryEntry":
        refs = [
            ContractRef(contract=str(item["sol"]), test=item.get("test"))
            for item in payload.get("contracts") or []
        ]
        return cls(key=key, name=str(payload.get("name", key)), contracts=refs)
