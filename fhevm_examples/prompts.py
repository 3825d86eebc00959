"""Interactive operator prompts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Protocol, Sequence, TypeVar

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

T = TypeVar("T")


class OperationCancelled(RuntimeError):
    """Raised when the operator aborts a prompt."""

    def __init__(self, message: str = "Operation cancelled.") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class Option:
    """One selectable choice."""

    value: str
    label: str
    hint: str = ""


class Prompter(Protocol):
    def select(self, message: str, options: Sequence[Option]) -> str: ...

    def multiselect(self, message: str, options: Sequence[Option]) -> List[str]: ...

    def text(self, message: str, default: str) -> str: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...


def parse_choices(answer: str, count: int) -> List[int]:
    """Zero-based indexes from ``"1, 3 4"`` or ``"all"``; empty when any token is invalid."""
    answer = answer.strip().lower()
    if answer == "all":
        return list(range(count))
    picked: List[int] = []
    for token in answer.replace(",", " ").split():
        if not token.isdigit() or not 1 <= int(token) <= count:
            return []
        if int(token) - 1 not in picked:
            picked.append(int(token) - 1)
    return picked


class ConsolePrompter:
    """Numbered-menu prompts rendered with rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def select(self, message: str, options: Sequence[Option]) -> str:
        self._show_menu(message, options)
        choices = [str(index) for index in range(1, len(options) + 1)]
        answer = self._ask(lambda: Prompt.ask("Choice", choices=choices, console=self.console))
        return options[int(answer) - 1].value

    def multiselect(self, message: str, options: Sequence[Option]) -> List[str]:
        self._show_menu(message, options)
        while True:
            answer = self._ask(
                lambda: Prompt.ask("Choices (e.g. 1,3 or all)", console=self.console)
            )
            picked = parse_choices(answer, len(options))
            if picked:
                return [options[index].value for index in picked]
            self.console.print("[red]Enter one or more numbers from the list.[/red]")

    def text(self, message: str, default: str) -> str:
        answer = self._ask(lambda: Prompt.ask(message, default=default, console=self.console))
        return answer.strip() or default

    def confirm(self, message: str, default: bool = False) -> bool:
        return self._ask(lambda: Confirm.ask(message, default=default, console=self.console))

    def _show_menu(self, message: str, options: Sequence[Option]) -> None:
        if not options:
            raise ValueError(f"No options to choose from for: {message}")

        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column(justify="right", style="cyan")
        table.add_column()
        table.add_column(style="dim")
        for index, option in enumerate(options, start=1):
            table.add_row(str(index), option.label, option.hint)

        self.console.print(f"[bold]{message}[/bold]")
        self.console.print(table)

    @staticmethod
    def _ask(ask: Callable[[], T]) -> T:
        try:
            return ask()
        except (KeyboardInterrupt, EOFError) as exc:
            raise OperationCancelled() from exc


__all__ = ["ConsolePrompter", "OperationCancelled", "Option", "Prompter", "parse_choices"]
