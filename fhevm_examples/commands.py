"""Child process execution and npm install/compile/test orchestration."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .logging import get_logger

_PASSING = re.compile(r"(\d+)\s+passing")
_FAILING = re.compile(r"(\d+)\s+failing")
_ERROR_MARKERS = (
    "Error:",
    "error:",
    "TypeError",
    "SyntaxError",
    "AssertionError",
    "expected",
    "revert",
    "HardhatError",
    "ENOENT",
)


class CommandError(RuntimeError):
    """Raised when a child process exits non-zero or cannot be started."""

    def __init__(self, message: str, *, returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


@dataclass(frozen=True)
class Step:
    """One external command in the install/compile/test sequence."""

    name: str
    args: Sequence[str]
    summarize: bool = False


DEFAULT_STEPS: tuple[Step, ...] = (
    Step("Installing dependencies", ("npm", "install")),
    Step("Compiling contracts", ("npm", "run", "compile")),
    Step("Running tests", ("npm", "run", "test"), summarize=True),
)


@dataclass
class StepOutcome:
    name: str
    summary: str


@dataclass
class InstallReport:
    """Summary lines for each completed step."""

    steps: List[StepOutcome] = field(default_factory=list)


class InstallStepError(RuntimeError):
    """Raised when one of the install/compile/test steps fails."""

    def __init__(self, step: str, reason: str) -> None:
        super().__init__(f"{step} failed")
        self.step = step
        self.reason = reason


class CommandRunner:
    """Runs external commands in a working directory and returns stdout."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner

    def run(self, args: Iterable[str], *, cwd: Path) -> str:
        return self._runner(list(args), cwd=cwd)

    @staticmethod
    def _default_runner(args: List[str], *, cwd: Path) -> str:
        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd),
                check=False,
                text=True,
                capture_output=True,
            )
        except FileNotFoundError as exc:
            raise CommandError(f"Unable to locate executable '{args[0]}'.") from exc

        if completed.returncode != 0:
            message = (
                completed.stderr.strip()
                or completed.stdout.strip()
                or f"Command failed with code {completed.returncode}"
            )
            raise CommandError(
                message,
                returncode=completed.returncode,
                output=completed.stdout + completed.stderr,
            )
        return completed.stdout


def extract_test_results(output: str) -> Optional[str]:
    """Summarize a mocha-style ``N passing`` / ``M failing`` footer."""
    passing = _PASSING.search(output)
    if not passing:
        return None
    failing = _FAILING.search(output)
    failing_count = failing.group(1) if failing else "0"
    if failing_count == "0":
        return f"{passing.group(1)} tests passing"
    return f"{passing.group(1)} passing, {failing_count} failing"


def extract_error_message(output: str) -> str:
    """Pick the most relevant error lines out of noisy tool output."""
    lines = output.split("\n")
    error_lines = [line.strip() for line in lines if any(marker in line for marker in _ERROR_MARKERS)]
    if error_lines:
        return "\n".join(error_lines[:5])
    non_empty = [line for line in lines if line.strip()]
    return "\n".join(non_empty[-5:])


def run_install_and_test(
    target_dir: Path,
    *,
    runner: CommandRunner | None = None,
    steps: Sequence[Step] = DEFAULT_STEPS,
    on_step: Callable[[StepOutcome], None] | None = None,
) -> InstallReport:
    """Run each step in order; the first failure stops the sequence."""
    logger = get_logger("commands")
    runner = runner or CommandRunner()
    report = InstallReport()

    for step in steps:
        logger.info("%s...", step.name)
        try:
            output = runner.run(step.args, cwd=target_dir)
        except CommandError as exc:
            logger.debug("%s output:\n%s", step.name, exc.output or exc)
            raise InstallStepError(step.name, extract_error_message(str(exc))) from exc

        summary = f"{step.name} completed"
        if step.summarize:
            results = extract_test_results(output)
            if results:
                summary = f"{step.name} - {results}"
            else:
                logger.warning("Could not find a pass/fail count in the test output")
        outcome = StepOutcome(name=step.name, summary=summary)
        report.steps.append(outcome)
        if on_step is not None:
            on_step(outcome)

    return report


__all__ = [
    "CommandError",
    "CommandRunner",
    "DEFAULT_STEPS",
    "InstallReport",
    "InstallStepError",
    "Step",
    "StepOutcome",
    "extract_error_message",
    "extract_test_results",
    "run_install_and_test",
]
