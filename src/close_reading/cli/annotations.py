from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from close_reading.config import load_display_settings, load_editor_config
from close_reading.core.anchoring import Document, compute_annotation_decorations
from close_reading.core.annotation_types import annotation_label, parse_annotation_type
from close_reading.core.errors import CloseReadingError
from close_reading.core.highlighting import compute_line_decorations
from close_reading.core.languages import resolve_language
from close_reading.core.markdown_export import (
    ParsedAnnotatedMarkdown,
    export_annotated_markdown,
    parse_annotated_markdown,
)
from close_reading.core.overlay import AnnotationOverlay
from close_reading.core.serializer import serialize as serialize_markers
from close_reading.core.widgets import AnnotationWidget
from close_reading.models import AnnotationType, LineAnnotation, Theme
from close_reading.store import InMemoryAnnotationStore

annotations_app = typer.Typer(help="Create, edit and inspect annotated markdown files.")
console = Console()


@contextmanager
def _command_errors() -> Iterator[None]:
    try:
        yield
    except CloseReadingError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    except OSError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc


def _load(path: Path) -> ParsedAnnotatedMarkdown:
    return parse_annotated_markdown(path.read_text(encoding="utf-8"))


def _save(path: Path, document: ParsedAnnotatedMarkdown, annotations: list[LineAnnotation]) -> None:
    path.write_text(
        export_annotated_markdown(document.code, annotations, document.filename, document.language),
        encoding="utf-8",
    )


def _parse_type(value: str) -> AnnotationType:
    return parse_annotation_type(value, strict=True)


def _lines(annotation: LineAnnotation) -> str:
    if annotation.is_block:
        return f"{annotation.line_number}-{annotation.end_line_number}"
    return str(annotation.line_number)


@annotations_app.command("init")
def init(
    code_file: Annotated[Path, typer.Argument(help="Code file to start annotating.")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Annotated markdown file to write.")] = None,
    language: Annotated[
        str | None, typer.Option(help="Language name (detected from the extension if omitted).")
    ] = None,
) -> None:
    """Create an annotated markdown file with no annotations."""
    with _command_errors():
        code = code_file.read_text(encoding="utf-8")
        resolved = resolve_language(language, code_file)
        target = output or code_file.with_name(f"{code_file.name}.md")
        target.write_text(export_annotated_markdown(code, [], code_file.name, resolved), encoding="utf-8")
    console.print(f"[green]Created[/green] {escape(str(target))} (language: {resolved})")


@annotations_app.command("add")
def add(
    document_path: Annotated[Path, typer.Argument(help="Annotated markdown file.")],
    line: Annotated[int, typer.Option(help="Line to annotate (first line of a block).")],
    content: Annotated[str, typer.Option(help="Annotation text.")],
    annotation_type: Annotated[
        str, typer.Option("--type", help="observation, question, metaphor, pattern, context or critique.")
    ] = "observation",
    end_line: Annotated[int | None, typer.Option(help="Last line of a block annotation.")] = None,
    by: Annotated[str | None, typer.Option(help="Author initials (defaults to CLOSE_READING_INITIALS).")] = None,
) -> None:
    """Annotate a line or a block of lines."""
    with _command_errors():
        document = _load(document_path)
        store = InMemoryAnnotationStore(document.annotations)
        overlay = AnnotationOverlay(document.code, store, author_initials=by or load_editor_config().author_initials)
        for bound in (line, line if end_line is None else end_line):
            if not overlay.document.contains_line(bound):
                console.print(f"[red]Line {bound} is outside the {overlay.document.line_count}-line code.[/red]")
                raise typer.Exit(1)
        overlay.on_line_click(line, end_line)
        created = overlay.on_submit(_parse_type(annotation_type), content)
        if created is None:
            console.print("[red]Annotation content must not be blank.[/red]")
            raise typer.Exit(1)
        _save(document_path, document, store.list())
    console.print(f"[green]Added[/green] {created.id} on line {_lines(created)}")


@annotations_app.command("edit")
def edit(
    document_path: Annotated[Path, typer.Argument(help="Annotated markdown file.")],
    annotation_id: Annotated[str, typer.Argument(help="Id of the annotation to edit.")],
    annotation_type: Annotated[str | None, typer.Option("--type", help="New annotation type.")] = None,
    content: Annotated[str | None, typer.Option(help="New annotation text.")] = None,
) -> None:
    """Change the type or text of an annotation."""
    with _command_errors():
        document = _load(document_path)
        store = InMemoryAnnotationStore(document.annotations)
        overlay = AnnotationOverlay(document.code, store)
        state = overlay.on_edit(annotation_id)
        assert state is not None
        new_type = _parse_type(annotation_type) if annotation_type else state.initial_type
        updated = overlay.on_submit(new_type, content if content is not None else state.initial_content)
        if updated is None:
            console.print("[red]Annotation content must not be blank.[/red]")
            raise typer.Exit(1)
        _save(document_path, document, store.list())
    console.print(f"[green]Updated[/green] {updated.id}")


@annotations_app.command("remove")
def remove(
    document_path: Annotated[Path, typer.Argument(help="Annotated markdown file.")],
    annotation_id: Annotated[str, typer.Argument(help="Id of the annotation to remove.")],
) -> None:
    """Delete an annotation."""
    with _command_errors():
        document = _load(document_path)
        store = InMemoryAnnotationStore(document.annotations)
        removed = store.delete(annotation_id)
        _save(document_path, document, store.list())
    console.print(f"[green]Removed[/green] {removed.id} from line {_lines(removed)}")


@annotations_app.command("list")
def list_annotations(
    document_path: Annotated[Path, typer.Argument(help="Annotated markdown file.")],
) -> None:
    """List annotations and per-type counts."""
    with _command_errors():
        document = _load(document_path)
    store = InMemoryAnnotationStore(document.annotations)

    table = Table(show_lines=False)
    for header in ("id", "lines", "type", "by", "content"):
        table.add_column(header)
    for annotation in store:
        table.add_row(
            annotation.id,
            _lines(annotation),
            annotation_label(annotation.type),
            escape(annotation.added_by or ""),
            escape(annotation.content),
        )
    console.print(table)
    counts = ", ".join(f"{annotation_label(t)}: {n}" for t, n in store.counts_by_type().items() if n)
    console.print(f"({len(store)} annotations{f'; {counts}' if counts else ''})")


@annotations_app.command("serialize")
def serialize(
    document_path: Annotated[Path, typer.Argument(help="Annotated markdown file.")],
) -> None:
    """Print the code with // An: marker lines."""
    with _command_errors():
        document = _load(document_path)
    typer.echo(serialize_markers(document.code, document.annotations))


@annotations_app.command("render")
def render(
    document_path: Annotated[Path, typer.Argument(help="Annotated markdown file.")],
    line_count: Annotated[int | None, typer.Option(help="Pretend the document has this many lines.")] = None,
    theme: Annotated[Theme | None, typer.Option(help="Color theme (defaults to CLOSE_READING_THEME).")] = None,
    highlight_lines: Annotated[
        bool, typer.Option("--highlight-lines", help="Dim unannotated lines and tint annotated ones.")
    ] = False,
) -> None:
    """Show the decorations an editor would draw for this file."""
    with _command_errors():
        document = _load(document_path)
    settings = load_display_settings()
    if highlight_lines:
        settings = settings.model_copy(update={"highlight_annotated_lines": True})
    theme = theme or load_editor_config().theme
    code = Document.from_text(document.code) if line_count is None else Document.with_line_count(line_count)

    table = Table(show_lines=False)
    for header in ("line", "position", "kind", "label", "detail"):
        table.add_column(header)
    for decoration in compute_annotation_decorations(document.annotations, code, theme=theme, settings=settings):
        widget = decoration.widget
        assert isinstance(widget, AnnotationWidget)
        table.add_row(
            str(decoration.line_number),
            str(decoration.position),
            "annotation",
            escape(widget.label),
            escape(widget.content_text),
            style=widget.color,
        )
    for line in compute_line_decorations(document.annotations, code.line_count, theme, settings):
        detail = f"opacity {line.opacity:g}" if line.background is None else line.background
        table.add_row(str(line.line_number), "", line.kind.value, "", detail)
    console.print(table)
