"""CLI entrypoints for create-fhevm-example and the maintainer commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .commands import StepOutcome
from .config import ConfigError, FactoryConfig, load_config
from .docs import DocsGenerator
from .doctor import FAIL, SUCCESS, run_checks
from .logging import configure_logging
from .maintenance import ExampleTester, FileRunResult, RunSummary, parse_example_names
from .manifest import BUNDLED_MANIFEST, Manifest, ManifestError, generate_manifest, load_manifest
from .orchestrator import (
    AddOutcome,
    AddWorkflow,
    CreateOutcome,
    CreateWorkflow,
    SelectionError,
    StepFailed,
    next_steps,
)
from .prompts import ConsolePrompter, OperationCancelled
from .scaffold import ScaffoldError

console = Console()


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_log_file_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Append a DEBUG transcript of the run to this file.",
    )


def _add_install_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--install",
        action="store_true",
        help="Run npm install, compile and test once the files are in place.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-fhevm-example",
        description="Create FHEVM example projects or add an example to an existing Hardhat project.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    parser.add_argument("--example", help="Create a single example project.")
    parser.add_argument("--category", help="Create a project with every example of a category.")
    parser.add_argument("--output", help="Output directory (default: ./my-<name>-project).")
    _add_install_option(parser)
    parser.add_argument(
        "--manifest",
        type=Path,
        help="Read examples from this manifest instead of the bundled one.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .fhevm-examples.yml or the directory holding it.",
    )
    subparsers = parser.add_subparsers(dest="command")

    add_parser = subparsers.add_parser(
        "add",
        help="Add an FHEVM example to an existing Hardhat project.",
    )
    _add_verbose_option(add_parser, suppress_default=True)
    add_parser.add_argument(
        "--dir",
        default=".",
        help="Hardhat project directory (defaults to current directory).",
    )
    add_parser.add_argument("--example", dest="add_example", help="Example to add.")
    _add_install_option(add_parser)

    list_parser = subparsers.add_parser("list", help="List available examples.")
    _add_verbose_option(list_parser, suppress_default=True)

    return parser


def _build_maintainer_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fhevm-examples",
        description="Maintain the FHEVM example catalog: manifest, docs and health checks.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parser = subparsers.add_parser(
        "generate-config",
        help="Scan contracts/ and regenerate the example manifest.",
    )
    _add_verbose_option(config_parser, suppress_default=True)
    config_parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Path to the examples repository root (defaults to current directory).",
    )
    config_parser.add_argument("--output", type=Path, help="Manifest path to write.")

    docs_parser = subparsers.add_parser(
        "generate-docs",
        help="Render GitBook pages for one example or all of them.",
    )
    _add_verbose_option(docs_parser, suppress_default=True)
    docs_parser.add_argument("name", nargs="?", default="all", help="Example name (default: all).")
    docs_parser.add_argument("--root", default=".", help="Examples repository root.")

    doctor_parser = subparsers.add_parser(
        "doctor",
        help="Check the toolchain and that every manifest path exists.",
    )
    _add_verbose_option(doctor_parser, suppress_default=True)
    doctor_parser.add_argument("root", nargs="?", default=".", help="Examples repository root.")

    test_parser = subparsers.add_parser(
        "test-all",
        help="Build one project from local examples and run each example's tests.",
    )
    _add_verbose_option(test_parser, suppress_default=True)
    test_parser.add_argument(
        "names",
        nargs="*",
        help="Examples to test, space or comma separated (prompts when omitted).",
    )
    test_parser.add_argument("--root", default=".", help="Examples repository root.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for create-fhevm-example."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command is not None:
        for flag in ("example", "category", "output"):
            if getattr(args, flag):
                parser.exit(1, f"Error: Cannot use --{flag} with the {args.command} command\n")
    if args.example and args.category:
        parser.exit(1, "Error: Cannot use both --example and --category\n")

    try:
        config = load_config(args.config)
        manifest = load_manifest(args.manifest or config.manifest_path)
    except (ConfigError, ManifestError) as exc:
        parser.exit(1, f"Error: {exc}\n")

    if args.command == "list":
        _print_catalog(manifest, config)
        return

    prompter = ConsolePrompter(console)
    try:
        if args.command == "add":
            workflow = AddWorkflow(config, manifest, prompter)
            outcome = workflow.run(
                Path(args.dir),
                example_name=args.add_example,
                install=bool(args.install),
                on_step=_print_step,
            )
            _print_add_summary(outcome)
            return

        workflow = CreateWorkflow(config, manifest, prompter)
        if args.example:
            result = workflow.run_single(
                args.example,
                Path(args.output or f"./my-{args.example}-project"),
                install=bool(args.install),
                on_step=_print_step,
            )
        elif args.category:
            result = workflow.run_category(
                args.category,
                Path(args.output or f"./my-{args.category}-examples"),
                install=bool(args.install),
                on_step=_print_step,
            )
        else:
            result = workflow.run_interactive(Path.cwd(), on_step=_print_step)
    except OperationCancelled as exc:
        parser.exit(0, f"{exc}\n")
    except (StepFailed, SelectionError) as exc:
        parser.exit(1, f"Error: {exc}\nRun with --verbose for more details.\n")
    _print_create_summary(result)


def maintainer_main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for fhevm-examples maintainer commands."""
    parser = _build_maintainer_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "generate-config":
        root = Path(args.root).expanduser().resolve()
        try:
            config = load_config(root)
            output = args.output or config.manifest_path or BUNDLED_MANIFEST
            result = generate_manifest(root, output, config)
        except (ConfigError, ManifestError) as exc:
            parser.exit(1, f"Error: {exc}\n")
        if result is None:
            console.print("No contracts directory found; keeping the existing manifest.")
            return
        console.print(f"[green]Wrote {result.example_count} examples to {_relativize(result.path)}[/green]")
        for category, count in sorted(result.category_counts.items()):
            console.print(f"  {category}: {count}")
    elif args.command == "generate-docs":
        root = Path(args.root).expanduser().resolve()
        try:
            config = load_config(root)
            manifest = load_manifest(config.manifest_path)
            written = DocsGenerator(root, manifest).generate(args.name)
        except (ConfigError, ManifestError) as exc:
            parser.exit(1, f"Error: {exc}\n")
        console.print(f"[green]Generated {len(written)} documentation file(s)[/green]")
        for path in written:
            console.print(f"  {_relativize(path)}")
    elif args.command == "doctor":
        root = Path(args.root).expanduser().resolve()
        try:
            config = load_config(root)
            manifest = load_manifest(config.manifest_path)
        except (ConfigError, ManifestError) as exc:
            parser.exit(1, f"Error: {exc}\n")
        results = run_checks(root, manifest)
        for check in results:
            marker = {SUCCESS: "[green]✓[/green]", FAIL: "[red]✗[/red]"}.get(
                check.status, "[yellow]![/yellow]"
            )
            console.print(f"{marker} [bold]{check.name}[/bold]: {check.message}")
            for line in check.details:
                console.print(f"   {line}", markup=False)
        if any(check.failed for check in results):
            parser.exit(1, "Some checks failed. Please review the issues above.\n")
        console.print("[green]All checks passed.[/green]")
    elif args.command == "test-all":
        root = Path(args.root).expanduser().resolve()
        try:
            config = load_config(root)
            manifest = load_manifest(config.manifest_path)
            tester = ExampleTester(root, manifest, config, ConsolePrompter(console))
            summary = tester.run(parse_example_names(args.names), on_result=_print_test_result)
        except OperationCancelled as exc:
            parser.exit(0, f"{exc}\n")
        except (ConfigError, ManifestError, SelectionError, ScaffoldError) as exc:
            parser.exit(1, f"Error: {exc}\n")
        _print_test_summary(summary)
        if not summary.ok:
            parser.exit(1, "Some issues need attention.\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_step(outcome: StepOutcome) -> None:
    console.print(f"[green]✓[/green] {outcome.summary}")


def _print_test_result(index: int, total: int, result: FileRunResult) -> None:
    marker = "[green]✓[/green]" if result.passed else "[red]✗[/red]"
    detail = f" {escape(result.detail)}" if result.detail else ""
    console.print(
        f"[{index}/{total}] {marker} {escape(result.file)} ({result.duration:.1f}s){detail}",
        highlight=False,
    )


def _print_test_summary(summary: RunSummary) -> None:
    table = Table(title="Test summary", show_header=False)
    table.add_column()
    table.add_column()
    table.add_row("Examples", str(summary.total_examples))
    table.add_row("Compile", "ok" if summary.compile_success else "failed")
    if summary.compile_success:
        table.add_row("Test files", f"{summary.passed}/{len(summary.results)} passed")
    console.print(table)
    if summary.setup_error:
        console.print(summary.setup_error, markup=False)
    for name in summary.failed_tests:
        console.print(f"  failed: {name}", markup=False)
    if summary.ok:
        console.print("[green]All tests passed.[/green]")


def _print_catalog(manifest: Manifest, config: FactoryConfig) -> None:
    table = Table(title="FHEVM examples")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Title")
    for category in manifest.ordered_categories(config.category_order):
        for entry in manifest.examples_in(category):
            table.add_row(entry.name, entry.category, entry.title)
    console.print(table)
    console.print(f"Categories: {', '.join(manifest.categories)}")


def _print_add_summary(outcome: AddOutcome) -> None:
    for item in outcome.files.files:
        console.print(f"  {item.action}: {_relativize(item.destination)}")
    console.print(f"[green]Added {outcome.example.title} to {_relativize(outcome.target_dir)}[/green]")
    if outcome.install is None:
        _print_next_steps(None)


def _print_create_summary(outcome: CreateOutcome) -> None:
    relative = _relativize(outcome.output_dir)
    console.print(f"[green]Created: {relative}[/green]")
    if outcome.example is not None:
        console.print(f"Example: {outcome.example.title}")
    if outcome.category is not None:
        console.print(f"Category: {outcome.category.name}")
        console.print(f"Contracts: {len(outcome.category.contracts)}")
    if outcome.install is None:
        _print_next_steps(relative)


def _print_next_steps(relative_path: str | None) -> None:
    console.print("[bold]Next steps[/bold]")
    for command in next_steps(relative_path):
        console.print(f"  $ {command}", markup=False)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
