"""Materialize catalog examples into new or existing Hardhat projects."""

from __future__ import annotations

import enum
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Sequence

from .commands import CommandError, CommandRunner
from .config import FactoryConfig
from .fetch import RemoteSource
from .logging import get_logger
from .manifest import Manifest
from .models import ExampleEntry
from .naming import contract_name_from_path
from .project import merge_npm_dependencies, update_package_metadata
from .prompts import Option, Prompter
from .rendering import create_environment, render

TEMPLATE_COPY_EXCLUDES = frozenset(
    {"node_modules", "artifacts", "cache", "coverage", "types", "dist", ".git"}
)
_TEMPLATE_LEFTOVERS = (".git", ".github", ".vscode", "tasks")
_TEMPLATE_LEFTOVER_FILES = ("LICENSE", ".DS_Store", "contracts/FHECounter.sol", "contracts/.gitkeep")
_TASK_IMPORT = re.compile(r"""import ["']\./tasks/[^"']+["'];?\n?""")


class ScaffoldError(RuntimeError):
    """Raised when an example cannot be materialized from its manifest entry."""


class ConflictAction(str, enum.Enum):
    SKIP = "skip"
    OVERWRITE = "overwrite"
    RENAME = "rename"


@dataclass
class FileResult:
    """What happened to one destination path."""

    remote_path: str
    destination: Path
    action: str


@dataclass
class ScaffoldReport:
    files: List[FileResult] = field(default_factory=list)
    npm_added: List[str] = field(default_factory=list)

    def written(self) -> List[Path]:
        return [item.destination for item in self.files if item.action in ("added", "overwritten")]


def renamed_path(path: Path, suffix: str = "_fhevm") -> Path:
    """``contracts/FHEAdd.sol`` -> ``contracts/FHEAdd_fhevm.sol``."""
    return path.with_name(f"{path.stem}{suffix}{path.suffix}")


def _ignore_build_dirs(directory: str, names: Sequence[str]) -> set[str]:
    base = Path(directory)
    return {name for name in names if name in TEMPLATE_COPY_EXCLUDES and (base / name).is_dir()}


class Scaffolder:
    """Copies example files from the remote source into a target directory."""

    def __init__(
        self,
        config: FactoryConfig,
        source: RemoteSource,
        prompter: Prompter,
        *,
        runner: CommandRunner | None = None,
    ) -> None:
        self.config = config
        self.source = source
        self.prompter = prompter
        self.runner = runner or CommandRunner()
        self.logger = get_logger("scaffold")
        self._env = create_environment()

    # ------------------------------------------------------------------
    # Existing projects

    def resolve_file_conflict(self, path: Path) -> ConflictAction:
        """Ask the operator what to do about an existing destination file."""
        renamed = renamed_path(path, self.config.rename_suffix)
        answer = self.prompter.select(
            f"{path.name} already exists. What do you want to do?",
            [
                Option(ConflictAction.SKIP.value, f"Skip {path.name}"),
                Option(ConflictAction.OVERWRITE.value, "Overwrite existing file"),
                Option(ConflictAction.RENAME.value, f"Rename to {renamed.name}"),
            ],
        )
        return ConflictAction(answer)

    def place_file(self, remote_path: str, destination: Path) -> FileResult:
        """Download ``remote_path`` to ``destination``, resolving conflicts first."""
        if not destination.exists():
            self.source.download(remote_path, destination)
            self.logger.info("Added: %s", destination.name)
            return FileResult(remote_path, destination, "added")

        action = self.resolve_file_conflict(destination)
        if action is ConflictAction.SKIP:
            self.logger.info("Skipped: %s", destination.name)
            return FileResult(remote_path, destination, "skipped")
        if action is ConflictAction.RENAME:
            return self.place_file(remote_path, renamed_path(destination, self.config.rename_suffix))

        self.source.download(remote_path, destination)
        self.logger.info("Overwritten: %s", destination.name)
        return FileResult(remote_path, destination, "overwritten")

    def add_example_files(self, example: ExampleEntry, target_dir: Path) -> ScaffoldReport:
        """Fetch an example's contract, test and extra files into an existing project."""
        contract_name = self._contract_name(example)
        report = ScaffoldReport()

        contracts_dir = target_dir / self.config.contracts_dir
        tests_dir = target_dir / self.config.tests_dir
        report.files.append(
            self.place_file(example.contract_path, contracts_dir / f"{contract_name}.sol")
        )
        report.files.append(
            self.place_file(example.test_path, tests_dir / PurePosixPath(example.test_path).name)
        )

        for dependency in example.dependencies:
            report.files.append(
                self.place_file(dependency, contracts_dir / self._under_contracts(dependency))
            )

        if example.npm_dependencies:
            report.npm_added = merge_npm_dependencies(target_dir, example.npm_dependencies)
            for name in example.npm_dependencies:
                if name in report.npm_added:
                    self.logger.info("Added: %s@%s", name, example.npm_dependencies[name])
                else:
                    self.logger.info("Skipped (exists): %s", name)
        return report

    # ------------------------------------------------------------------
    # New projects

    def create_single_example(
        self, example: ExampleEntry, output_dir: Path, template_dir: Path
    ) -> ScaffoldReport:
        contract_name = self._contract_name(example)
        self.copy_template(template_dir, output_dir)
        self.cleanup_template(output_dir)

        report = ScaffoldReport()
        report.files.extend(self._download_pair(example.contract_path, example.test_path, output_dir))
        report.files.extend(self._download_dependencies(example.dependencies, output_dir))

        deploy_path = output_dir / "deploy" / "deploy.ts"
        deploy_path.parent.mkdir(parents=True, exist_ok=True)
        deploy_path.write_text(
            render(self._env, "deploy.ts.j2", contract_name=contract_name), encoding="utf-8"
        )

        update_package_metadata(
            output_dir,
            f"fhevm-example-{example.name}",
            description=example.description,
            npm_dependencies=example.npm_dependencies,
        )
        report.npm_added = sorted(example.npm_dependencies)
        self._init_git(output_dir)
        return report

    def create_category_project(
        self, category_key: str, manifest: Manifest, output_dir: Path, template_dir: Path
    ) -> ScaffoldReport:
        category = manifest.category(category_key)
        if category is None:
            raise ScaffoldError(f"Unknown category: {category_key}")

        self.copy_template(template_dir, output_dir)
        self.cleanup_template(output_dir)

        report = ScaffoldReport()
        for ref in category.contracts:
            report.files.extend(self._download_pair(ref.contract, ref.test, output_dir))

        dependencies: List[str] = []
        npm_dependencies: dict[str, str] = {}
        for example in manifest.category_examples(category_key):
            for dependency in example.dependencies:
                if dependency not in dependencies:
                    dependencies.append(dependency)
            npm_dependencies.update(example.npm_dependencies)
        report.files.extend(self._download_dependencies(dependencies, output_dir))

        update_package_metadata(
            output_dir, f"fhevm-examples-{category_key}", npm_dependencies=npm_dependencies
        )
        report.npm_added = sorted(npm_dependencies)
        self._init_git(output_dir)
        return report

    def create_local_test_project(
        self,
        examples: Sequence[ExampleEntry],
        source_root: Path,
        output_dir: Path,
        template_dir: Path,
    ) -> ScaffoldReport:
        """Assemble one throwaway project holding several examples from a local checkout."""
        if not template_dir.is_dir():
            raise ScaffoldError(f"Template directory not found: {template_dir}")

        self.copy_template(template_dir, output_dir)
        self.cleanup_template(output_dir)

        report = ScaffoldReport()
        dependencies: List[str] = []
        npm_dependencies: dict[str, str] = {}
        contracts_dir = output_dir / self.config.contracts_dir
        tests_dir = output_dir / self.config.tests_dir
        for example in examples:
            contract_name = self._contract_name(example)
            report.files.append(
                self._copy_local(source_root, example.contract_path, contracts_dir / f"{contract_name}.sol")
            )
            report.files.append(
                self._copy_local(
                    source_root, example.test_path, tests_dir / PurePosixPath(example.test_path).name
                )
            )
            for dependency in example.dependencies:
                if dependency not in dependencies:
                    dependencies.append(dependency)
            npm_dependencies.update(example.npm_dependencies)

        for dependency in dependencies:
            report.files.append(
                self._copy_local(source_root, dependency, contracts_dir / self._under_contracts(dependency))
            )

        update_package_metadata(
            output_dir,
            "fhevm-test-project",
            description=f"Testing {len(examples)} examples",
            npm_dependencies=npm_dependencies,
        )
        report.npm_added = sorted(npm_dependencies)
        return report

    def copy_template(self, template_dir: Path, output_dir: Path) -> None:
        shutil.copytree(template_dir, output_dir, ignore=_ignore_build_dirs)

    def cleanup_template(self, output_dir: Path) -> None:
        """Strip the template's own sample contract, tests and tasks from a fresh copy."""
        for name in _TEMPLATE_LEFTOVERS:
            shutil.rmtree(output_dir / name, ignore_errors=True)
        for name in _TEMPLATE_LEFTOVER_FILES:
            (output_dir / name).unlink(missing_ok=True)

        tests_dir = output_dir / self.config.tests_dir
        tests_dir.mkdir(parents=True, exist_ok=True)
        for path in tests_dir.iterdir():
            if path.is_file() and (path.suffix == ".ts" or path.name == ".gitkeep"):
                path.unlink()

        config_path = output_dir / "hardhat.config.ts"
        if config_path.exists():
            content = config_path.read_text(encoding="utf-8")
            config_path.write_text(_TASK_IMPORT.sub("", content), encoding="utf-8")

        gitignore = output_dir / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text(render(self._env, "gitignore.j2"), encoding="utf-8")
        (tests_dir / "types.ts").write_text(render(self._env, "types.ts.j2"), encoding="utf-8")

    # ------------------------------------------------------------------
    # Helpers

    def _contract_name(self, example: ExampleEntry) -> str:
        contract_name = contract_name_from_path(example.contract_path)
        if not contract_name:
            raise ScaffoldError(
                f"Could not extract contract name from {example.contract_path!r} ({example.name})"
            )
        return contract_name

    def _under_contracts(self, remote_path: str) -> str:
        prefix = f"{self.config.contracts_dir}/"
        return remote_path[len(prefix):] if remote_path.startswith(prefix) else remote_path

    def _download_pair(self, contract: str, test: str | None, output_dir: Path) -> List[FileResult]:
        results: List[FileResult] = []
        contract_name = contract_name_from_path(contract)
        if contract_name:
            destination = output_dir / self.config.contracts_dir / f"{contract_name}.sol"
            self.source.download(contract, destination)
            results.append(FileResult(contract, destination, "added"))
        if test:
            destination = output_dir / self.config.tests_dir / PurePosixPath(test).name
            self.source.download(test, destination)
            results.append(FileResult(test, destination, "added"))
        return results

    def _download_dependencies(self, dependencies: Iterable[str], output_dir: Path) -> List[FileResult]:
        results: List[FileResult] = []
        for dependency in dependencies:
            destination = output_dir / self.config.contracts_dir / self._under_contracts(dependency)
            self.source.download(dependency, destination)
            results.append(FileResult(dependency, destination, "added"))
        return results

    def _copy_local(self, source_root: Path, relative: str, destination: Path) -> FileResult:
        source = source_root / relative
        if not source.is_file():
            self.logger.warning("Missing local file: %s", relative)
            return FileResult(relative, destination, "missing")
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
        return FileResult(relative, destination, "added")

    def _init_git(self, output_dir: Path) -> None:
        try:
            self.runner.run(["git", "init"], cwd=output_dir)
        except CommandError as exc:
            self.logger.debug("git init skipped: %s", exc)


__all__ = [
    "ConflictAction",
    "FileResult",
    "ScaffoldError",
    "ScaffoldReport",
    "Scaffolder",
    "TEMPLATE_COPY_EXCLUDES",
    "renamed_path",
]
