"""Add-mode and create-mode workflows."""

from __future__ import annotations

import enum
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from .commands import (
    CommandError,
    CommandRunner,
    InstallReport,
    InstallStepError,
    StepOutcome,
    run_install_and_test,
)
from .config import FactoryConfig
from .fetch import FetchError, RemoteSource
from .logging import get_logger
from .manifest import Manifest
from .models import CategoryEntry, ExampleEntry
from .project import (
    ProjectError,
    detect_project_validity,
    merge_dependencies,
    patch_build_config,
)
from .prompts import Option, Prompter
from .scaffold import Scaffolder, ScaffoldError, ScaffoldReport

HINT_LIMIT = 80

StepCallback = Callable[[StepOutcome], None]


class AddStep(str, enum.Enum):
    DETECT_PROJECT = "Detect project"
    SELECT_EXAMPLE = "Select example"
    UPDATE_DEPENDENCIES = "Update package.json"
    UPDATE_BUILD_CONFIG = "Update hardhat config"
    ADD_FILES = "Add example files"
    INSTALL_AND_TEST = "Install and test"


class CreateStep(str, enum.Enum):
    SELECT = "Select"
    VALIDATE_OUTPUT = "Validate output directory"
    DOWNLOAD_TEMPLATE = "Download template"
    BUILD_PROJECT = "Create project"
    INSTALL_AND_TEST = "Install and test"


class StepFailed(RuntimeError):
    """A workflow step failed; changes applied by earlier steps are kept."""

    def __init__(self, step: str, reason: str) -> None:
        super().__init__(f"{step} failed: {reason}")
        self.step = step
        self.reason = reason


class SelectionError(RuntimeError):
    """Raised for an unknown example or category name."""


@dataclass
class AddOutcome:
    target_dir: Path
    example: ExampleEntry
    dependencies_changed: bool
    config_patched: bool
    files: ScaffoldReport
    install: Optional[InstallReport] = None


@dataclass
class CreateOutcome:
    output_dir: Path
    files: ScaffoldReport
    example: Optional[ExampleEntry] = None
    category: Optional[CategoryEntry] = None
    install: Optional[InstallReport] = None


def truncate_hint(text: str, limit: int = HINT_LIMIT) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class CatalogSelector:
    """Interactive selection of categories and examples from a manifest."""

    def __init__(self, manifest: Manifest, config: FactoryConfig, prompter: Prompter) -> None:
        self.manifest = manifest
        self.config = config
        self.prompter = prompter

    def select_mode(self) -> str:
        return self.prompter.select(
            "What would you like to create?",
            [
                Option("single", "Single example", "One example contract with tests"),
                Option("category", "Category project", "Multiple examples by category"),
            ],
        )

    def select_category(self) -> str:
        counts = self.manifest.category_counts()
        options = [
            Option(name, name, _plural(counts[name], "example"))
            for name in self.manifest.ordered_categories(self.config.category_order)
        ]
        return self.prompter.select("Select a category:", options)

    def select_example(self, category: Optional[str] = None) -> str:
        """Pick an example; within ``category`` when given, otherwise from the whole catalog."""
        if category is None:
            options = [
                Option(name, entry.title, entry.category)
                for name, entry in self.manifest.examples.items()
            ]
            return self.prompter.select("Which FHEVM example would you like to add?", options)

        options = [
            Option(entry.name, entry.name, truncate_hint(entry.description))
            for entry in self.manifest.examples_in(category)
        ]
        return self.prompter.select(f"Select an example from {category}:", options)

    def select_category_project(self) -> str:
        options = [
            Option(key, category.name, _plural(len(category.contracts), "contract"))
            for key, category in self.manifest.categories.items()
        ]
        return self.prompter.select("Select a category:", options)


class _Workflow:
    def __init__(
        self,
        config: FactoryConfig,
        manifest: Manifest,
        prompter: Prompter,
        *,
        source: RemoteSource | None = None,
        runner: CommandRunner | None = None,
        scaffolder: Scaffolder | None = None,
    ) -> None:
        self.config = config
        self.manifest = manifest
        self.prompter = prompter
        self.runner = runner or CommandRunner()
        self.source = source or RemoteSource(
            config.repo_url,
            config.branch,
            template_path=config.template_path,
            runner=self.runner,
        )
        self.scaffolder = scaffolder or Scaffolder(
            config, self.source, prompter, runner=self.runner
        )
        self.selector = CatalogSelector(manifest, config, prompter)
        self.logger = get_logger("orchestrator")

    @contextmanager
    def _step(self, step: enum.Enum) -> Iterator[None]:
        self.logger.debug("Step: %s", step.name)
        try:
            yield
        except InstallStepError as exc:
            raise StepFailed(exc.step, exc.reason) from exc
        except (ProjectError, FetchError, CommandError, ScaffoldError, OSError) as exc:
            raise StepFailed(str(step.value), str(exc)) from exc

    def _resolve_example(self, name: str) -> ExampleEntry:
        example = self.manifest.example(name)
        if example is None:
            raise SelectionError(
                f'Unknown example "{name}". Available: {", ".join(self.manifest.examples)}'
            )
        return example

    def _resolve_category(self, key: str) -> CategoryEntry:
        category = self.manifest.category(key)
        if category is None:
            raise SelectionError(
                f'Unknown category "{key}". Available: {", ".join(self.manifest.categories)}'
            )
        return category

    def _install(self, target_dir: Path, on_step: StepCallback | None) -> InstallReport:
        return run_install_and_test(target_dir, runner=self.runner, on_step=on_step)


class AddWorkflow(_Workflow):
    """Adds one catalog example to an existing Hardhat project."""

    def run(
        self,
        target_dir: Path,
        *,
        example_name: str | None = None,
        install: bool = False,
        on_step: StepCallback | None = None,
    ) -> AddOutcome:
        target_dir = target_dir.expanduser().resolve()
        self.logger.info("Adding an example to %s", target_dir)

        with self._step(AddStep.DETECT_PROJECT):
            if not detect_project_validity(target_dir):
                raise ProjectError(
                    "This directory does not contain a valid Hardhat project. Make sure "
                    "package.json and hardhat.config.ts/js exist and hardhat is a dependency."
                )
        self.logger.info("Valid Hardhat project detected")

        with self._step(AddStep.SELECT_EXAMPLE):
            if example_name is None:
                example_name = self.selector.select_example()
            example = self._resolve_example(example_name)

        with self._step(AddStep.UPDATE_DEPENDENCIES):
            dependencies_changed = merge_dependencies(
                target_dir, self.config.dependencies, self.config.dev_dependencies
            )
        self.logger.info(
            "package.json %s", "updated" if dependencies_changed else "already up to date"
        )

        with self._step(AddStep.UPDATE_BUILD_CONFIG):
            config_patched = patch_build_config(
                target_dir, self.config.plugin_import, self.config.plugin_marker
            )
        self.logger.info(
            "hardhat config %s", "updated" if config_patched else "already configured"
        )

        with self._step(AddStep.ADD_FILES):
            files = self.scaffolder.add_example_files(example, target_dir)

        outcome = AddOutcome(
            target_dir=target_dir,
            example=example,
            dependencies_changed=dependencies_changed,
            config_patched=config_patched,
            files=files,
        )
        if install:
            with self._step(AddStep.INSTALL_AND_TEST):
                outcome.install = self._install(target_dir, on_step)
        return outcome


class CreateWorkflow(_Workflow):
    """Creates a new project from the template for one example or a whole category."""

    def run_single(
        self,
        example_name: str,
        output_dir: Path,
        *,
        install: bool = False,
        on_step: StepCallback | None = None,
    ) -> CreateOutcome:
        with self._step(CreateStep.SELECT):
            example = self._resolve_example(example_name)
        output_dir = self._validate_output(output_dir)
        files = self._build(
            output_dir,
            lambda template_dir: self.scaffolder.create_single_example(
                example, output_dir, template_dir
            ),
        )
        outcome = CreateOutcome(output_dir=output_dir, files=files, example=example)
        if install:
            self._install_into(outcome, on_step)
        return outcome

    def run_category(
        self,
        category_key: str,
        output_dir: Path,
        *,
        install: bool = False,
        on_step: StepCallback | None = None,
    ) -> CreateOutcome:
        with self._step(CreateStep.SELECT):
            category = self._resolve_category(category_key)
        output_dir = self._validate_output(output_dir)
        files = self._build(
            output_dir,
            lambda template_dir: self.scaffolder.create_category_project(
                category_key, self.manifest, output_dir, template_dir
            ),
        )
        outcome = CreateOutcome(output_dir=output_dir, files=files, category=category)
        if install:
            self._install_into(outcome, on_step)
        return outcome

    def run_interactive(self, cwd: Path, *, on_step: StepCallback | None = None) -> CreateOutcome:
        """Prompt for mode, selection, project name and output directory, then build."""
        mode = self.selector.select_mode()
        if mode == "single":
            name = self.selector.select_example(self.selector.select_category())
        else:
            name = self.selector.select_category_project()

        project_name = self.prompter.text("Project name:", f"my-{name}-project")
        output = self.prompter.text("Output directory:", f"./{project_name}")
        output_dir = (cwd / output).resolve()

        if mode == "single":
            outcome = self.run_single(name, output_dir)
        else:
            outcome = self.run_category(name, output_dir)

        if self.prompter.confirm("Install dependencies and run tests?", default=False):
            self._install_into(outcome, on_step)
        return outcome

    def _validate_output(self, output_dir: Path) -> Path:
        resolved = output_dir.expanduser().resolve()
        with self._step(CreateStep.VALIDATE_OUTPUT):
            if resolved.exists():
                raise FileExistsError(f"Directory already exists: {resolved}")
        return resolved

    def _build(self, output_dir: Path, build: Callable[[Path], ScaffoldReport]) -> ScaffoldReport:
        workdir = Path(tempfile.mkdtemp(prefix="fhevm-"))
        try:
            with self._step(CreateStep.DOWNLOAD_TEMPLATE):
                self.logger.info("Downloading template...")
                template_dir = self.source.clone_template(workdir)
            with self._step(CreateStep.BUILD_PROJECT):
                self.logger.info("Creating project in %s", output_dir)
                return build(template_dir)
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    def _install_into(self, outcome: CreateOutcome, on_step: StepCallback | None) -> None:
        with self._step(CreateStep.INSTALL_AND_TEST):
            outcome.install = self._install(outcome.output_dir, on_step)


def next_steps(relative_path: str | None = None) -> List[str]:
    """Shell commands a user runs to build and test a generated project."""
    commands = ["npm install", "npm run compile", "npm run test"]
    if relative_path:
        commands.insert(0, f"cd {relative_path}")
    return commands


__all__ = [
    "AddOutcome",
    "AddStep",
    "AddWorkflow",
    "CatalogSelector",
    "CreateOutcome",
    "CreateStep",
    "CreateWorkflow",
    "SelectionError",
    "StepFailed",
    "next_steps",
    "truncate_hint",
]
