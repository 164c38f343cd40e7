"""Anchor annotations to the current document geometry.

Every call is a fresh pure pass over its inputs: group annotations by
display line, skip the ones that fall outside the document, swap in the
inline editor where an edit session is active, and return widget
decorations sorted by document position.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from close_reading.core.widgets import (
    AnnotationWidget,
    EditSession,
    GutterMarker,
    InlineEditCallbacks,
    InlineEditorWidget,
)
from close_reading.models import (
    AnnotationDisplaySettings,
    AnnotationType,
    EditorMode,
    InlineEditState,
    LineAnnotation,
    Theme,
)

logger = logging.getLogger(__name__)

Widget = AnnotationWidget | InlineEditorWidget


@dataclass(frozen=True)
class Document:
    """Line geometry of an immutable code buffer (1-based lines)."""

    lines: tuple[str, ...]

    @classmethod
    def from_text(cls, text: str) -> Document:
        return cls(tuple(text.split("\n")))

    @classmethod
    def with_line_count(cls, line_count: int) -> Document:
        return cls(("",) * max(line_count, 1))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def contains_line(self, line_number: int) -> bool:
        return 1 <= line_number <= self.line_count

    def line(self, line_number: int) -> str:
        if not self.contains_line(line_number):
            raise IndexError(f"Line {line_number} outside document of {self.line_count} lines")
        return self.lines[line_number - 1]

    def line_start(self, line_number: int) -> int:
        self.line(line_number)
        return sum(len(line) + 1 for line in self.lines[: line_number - 1])

    def line_end(self, line_number: int) -> int:
        return self.line_start(line_number) + len(self.line(line_number))

    def snapshot(self, start_line: int, end_line: int | None = None) -> str:
        """Text of ``start_line`` (through ``end_line`` for blocks) clipped to the document."""
        end_line = end_line or start_line
        first = max(start_line, 1)
        last = min(end_line, self.line_count)
        return "\n".join(self.lines[first - 1 : last])


@dataclass(frozen=True)
class WidgetDecoration:
    line_number: int
    position: int
    widget: Widget
    block: bool = True
    side: int = 1


def group_by_display_line(annotations: Iterable[LineAnnotation]) -> dict[int, list[LineAnnotation]]:
    grouped: dict[int, list[LineAnnotation]] = {}
    for annotation in annotations:
        grouped.setdefault(annotation.display_line, []).append(annotation)
    return grouped


def edit_session_for(
    edit_state: InlineEditState,
    theme: Theme,
    user_initials: str | None = None,
    generation: int = 0,
) -> EditSession:
    return EditSession(
        line_number=edit_state.line_number,
        start_line_number=edit_state.start_line_number,
        annotation_id=edit_state.annotation_id,
        theme=theme,
        is_new=edit_state.annotation_id is None,
        user_initials=user_initials,
        generation=generation,
    )


def compute_annotation_decorations(
    annotations: Iterable[LineAnnotation],
    document: Document,
    *,
    theme: Theme = Theme.LIGHT,
    settings: AnnotationDisplaySettings | None = None,
    edit_state: InlineEditState | None = None,
    edit_callbacks: InlineEditCallbacks | None = None,
    highlighted_type: AnnotationType | None = None,
    remote_new_ids: frozenset[str] | set[str] = frozenset(),
    on_edit: Callable[[str], None] | None = None,
    on_delete: Callable[[str], None] | None = None,
    user_initials: str | None = None,
    edit_generation: int = 0,
) -> list[WidgetDecoration]:
    settings = settings or AnnotationDisplaySettings()
    if not settings.visible:
        return []

    decorations: list[WidgetDecoration] = []
    for line_number, line_annotations in group_by_display_line(annotations).items():
        if not document.contains_line(line_number):
            logger.debug(
                "Skipping %d annotation(s) on line %d outside %d-line document",
                len(line_annotations),
                line_number,
                document.line_count,
            )
            continue
        position = document.line_end(line_number)
        for annotation in line_annotations:
            widget: Widget
            if edit_state is not None and edit_state.annotation_id == annotation.id:
                widget = InlineEditorWidget(
                    edit_session_for(edit_state, theme, user_initials, edit_generation),
                    initial_type=edit_state.initial_type,
                    initial_content=edit_state.initial_content,
                    callbacks=edit_callbacks,
                )
            else:
                widget = AnnotationWidget(
                    annotation=annotation,
                    theme=theme,
                    is_highlighted=highlighted_type is annotation.type,
                    settings=settings,
                    is_remote_new=annotation.id in remote_new_ids,
                    on_edit=on_edit,
                    on_delete=on_delete,
                )
            decorations.append(WidgetDecoration(line_number=line_number, position=position, widget=widget))

    if edit_state is not None and edit_state.annotation_id is None and edit_state.line_number is not None:
        line_number = edit_state.line_number
        if document.contains_line(line_number):
            editor = InlineEditorWidget(
                edit_session_for(edit_state, theme, user_initials, edit_generation),
                initial_type=edit_state.initial_type,
                initial_content=edit_state.initial_content,
                callbacks=edit_callbacks,
            )
            decorations.append(
                WidgetDecoration(line_number=line_number, position=document.line_end(line_number), widget=editor)
            )

    # Stable sort keeps grouping order for widgets stacked on the same line.
    decorations.sort(key=lambda d: d.position)
    return decorations


def compute_gutter_markers(line_count: int, mode: EditorMode = EditorMode.ANNOTATE) -> list[GutterMarker]:
    clickable = mode is EditorMode.ANNOTATE
    return [GutterMarker(line_number=n, clickable=clickable) for n in range(1, line_count + 1)]


def line_range_for_click(clicked_line: int, selection: Sequence[int] | None = None) -> tuple[int, int | None]:
    """Resolve a gutter click into ``(start_line, end_line)``.

    A selection spanning several lines turns the click into a block range;
    otherwise ``end_line`` is ``None``.
    """
    if selection:
        start, end = min(selection), max(selection)
        if end > start:
            return start, end
    return clicked_line, None
