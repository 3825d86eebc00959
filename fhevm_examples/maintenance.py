"""Run the tests of several catalog examples together in one local project."""

from __future__ import annotations

import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .commands import (
    DEFAULT_STEPS,
    CommandError,
    CommandRunner,
    extract_error_message,
    extract_test_results,
)
from .config import FactoryConfig
from .fetch import RemoteSource
from .logging import get_logger
from .manifest import Manifest
from .orchestrator import SelectionError
from .prompts import Option, Prompter
from .scaffold import Scaffolder

TEST_PROJECT_DIR = ".test-temp"
ERROR_PREVIEW = 80

SETUP_STEPS = tuple(step for step in DEFAULT_STEPS if not step.summarize)


@dataclass
class FileRunResult:
    file: str
    passed: bool
    duration: float
    detail: str = ""


@dataclass
class RunSummary:
    """Outcome of one test-all run."""

    total_examples: int
    compile_success: bool = False
    setup_error: str = ""
    results: List[FileRunResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for result in self.results if result.passed)

    @property
    def failed_tests(self) -> List[str]:
        return [result.file for result in self.results if not result.passed]

    @property
    def ok(self) -> bool:
        return self.compile_success and not self.failed_tests


ResultCallback = Callable[[int, int, FileRunResult], None]


def parse_example_names(values: Iterable[str]) -> List[str]:
    """``["fhe-add,fhe-sub", "fhe-add"]`` -> ``["fhe-add", "fhe-sub"]``."""
    names: List[str] = []
    for value in values:
        for name in value.split(","):
            name = name.strip()
            if name and name not in names:
                names.append(name)
    return names


class ExampleTester:
    """Builds a project from the local checkout and runs each example's test file."""

    def __init__(
        self,
        root: Path,
        manifest: Manifest,
        config: FactoryConfig,
        prompter: Prompter,
        *,
        runner: CommandRunner | None = None,
        scaffolder: Scaffolder | None = None,
    ) -> None:
        self.root = root
        self.manifest = manifest
        self.config = config
        self.prompter = prompter
        self.runner = runner or CommandRunner()
        self.scaffolder = scaffolder or Scaffolder(
            config,
            RemoteSource(config.repo_url, config.branch, runner=self.runner),
            prompter,
            runner=self.runner,
        )
        self.logger = get_logger("maintenance")

    def select_examples(self, names: Sequence[str]) -> List[str]:
        if names:
            unknown = [name for name in names if name not in self.manifest.examples]
            if unknown:
                raise SelectionError(
                    f"Unknown examples: {', '.join(unknown)}. "
                    f"Available: {', '.join(self.manifest.examples)}"
                )
            return list(names)

        options = [
            Option(name, name, entry.category) for name, entry in self.manifest.examples.items()
        ]
        return self.prompter.multiselect("Select examples to test:", options)

    def run(
        self, names: Sequence[str] = (), *, on_result: Optional[ResultCallback] = None
    ) -> RunSummary:
        selected = self.select_examples(names)
        self.logger.info("Testing %d examples...", len(selected))

        project_dir = self.root / TEST_PROJECT_DIR
        shutil.rmtree(project_dir, ignore_errors=True)
        try:
            self.scaffolder.create_local_test_project(
                [self.manifest.examples[name] for name in selected],
                self.root,
                project_dir,
                self.root / self.config.template_path,
            )
            return self._run_tests(project_dir, len(selected), on_result)
        finally:
            shutil.rmtree(project_dir, ignore_errors=True)

    def _run_tests(
        self, project_dir: Path, example_count: int, on_result: Optional[ResultCallback]
    ) -> RunSummary:
        summary = RunSummary(total_examples=example_count)
        for step in SETUP_STEPS:
            self.logger.info("%s...", step.name)
            try:
                self.runner.run(step.args, cwd=project_dir)
            except CommandError as exc:
                summary.setup_error = f"{step.name} failed: {extract_error_message(exc.output or str(exc))}"
                self.logger.error(summary.setup_error)
                return summary
        summary.compile_success = True

        tests_dir = project_dir / self.config.tests_dir
        test_files = sorted(
            path.name
            for path in tests_dir.iterdir()
            if path.is_file() and path.suffix == ".ts" and path.name != "types.ts"
        )
        if not test_files:
            self.logger.warning("No test files found")
            return summary

        for index, name in enumerate(test_files, start=1):
            started = time.monotonic()
            try:
                output = self.runner.run(
                    ["npx", "hardhat", "test", f"{self.config.tests_dir}/{name}"], cwd=project_dir
                )
            except CommandError as exc:
                first_line = extract_error_message(exc.output or str(exc)).split("\n")[0]
                result = FileRunResult(
                    name, False, time.monotonic() - started, first_line[:ERROR_PREVIEW]
                )
            else:
                result = FileRunResult(
                    name, True, time.monotonic() - started, extract_test_results(output) or ""
                )
            summary.results.append(result)
            if on_result is not None:
                on_result(index, len(test_files), result)
        return summary


__all__ = [
    "ExampleTester",
    "FileRunResult",
    "RunSummary",
    "TEST_PROJECT_DIR",
    "parse_example_names",
]
