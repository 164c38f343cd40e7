from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from close_reading.core.diff import diff as compute_code_diff
from close_reading.models import DiffLineType, DiffResult, DiffStats

console = Console()

_ROW_STYLES = {
    DiffLineType.UNCHANGED: "",
    DiffLineType.ADDED: "green",
    DiffLineType.REMOVED: "red",
    DiffLineType.MODIFIED: "yellow",
}
_MARKER_STYLES = {" ": "", "+": "green", "-": "red"}


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Cannot read {escape(str(path))}: {escape(exc.strerror or str(exc))}[/red]")
        raise typer.Exit(1) from exc


def _cell(number: int | None) -> str:
    return "" if number is None else str(number)


def _render_side_by_side(result: DiffResult, label_a: str, label_b: str) -> None:
    table = Table(show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column(label_a)
    table.add_column("#", justify="right", style="dim")
    table.add_column(label_b)
    for number_a, text_a, number_b, text_b, line_type in result.side_by_side():
        table.add_row(_cell(number_a), escape(text_a), _cell(number_b), escape(text_b), style=_ROW_STYLES[line_type])
    console.print(table)


def _render_unified(result: DiffResult, label_a: str, label_b: str) -> None:
    console.print(f"--- {escape(label_a)}")
    console.print(f"+++ {escape(label_b)}")
    for marker, number, text in result.unified():
        style = _MARKER_STYLES[marker]
        line = f"{marker}{_cell(number):>5} {escape(text)}"
        console.print(f"[{style}]{line}[/{style}]" if style else line, highlight=False)


def _stats_line(stats: DiffStats) -> str:
    if not stats.changed:
        return "[green]No differences[/green]"
    return (
        f"[green]+{stats.added} added[/green], [red]-{stats.removed} removed[/red], "
        f"[yellow]~{stats.modified} modified[/yellow], {stats.unchanged} unchanged"
    )


def diff(
    file_a: Annotated[Path, typer.Argument(help="Original version of the code.")],
    file_b: Annotated[Path, typer.Argument(help="Changed version of the code.")],
    unified: Annotated[bool, typer.Option("--unified", "-u", help="Print a unified view instead of a table.")] = False,
    label_a: Annotated[str | None, typer.Option(help="Column label for the original version.")] = None,
    label_b: Annotated[str | None, typer.Option(help="Column label for the changed version.")] = None,
) -> None:
    """Compare two versions of a code file line by line."""
    result = compute_code_diff(_read(file_a), _read(file_b))
    label_a = label_a or file_a.name
    label_b = label_b or file_b.name
    if unified:
        _render_unified(result, label_a, label_b)
    else:
        _render_side_by_side(result, label_a, label_b)
    console.print(_stats_line(result.stats))
