from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from close_reading.core.anchoring import (
    Document,
    Widget,
    WidgetDecoration,
    compute_annotation_decorations,
    compute_gutter_markers,
    line_range_for_click,
)
from close_reading.core.errors import ReadOnlyDocumentError
from close_reading.core.highlighting import LineDecoration, compute_line_decorations
from close_reading.core.inline_edit import InlineEditMachine, new_annotation_id, utcnow
from close_reading.core.ports.store import AnnotationStore
from close_reading.core.widgets import GutterMarker, InlineEditorWidget
from close_reading.models import (
    AnnotationDisplaySettings,
    AnnotationType,
    EditorMode,
    InlineEditState,
    LineAnnotation,
    Theme,
)
from close_reading.store import InMemoryAnnotationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecorationSet:
    widgets: tuple[WidgetDecoration, ...] = ()
    lines: tuple[LineDecoration, ...] = ()
    gutter: tuple[GutterMarker, ...] = ()

    @property
    def editors(self) -> list[InlineEditorWidget]:
        return [d.widget for d in self.widgets if isinstance(d.widget, InlineEditorWidget)]


class AnnotationOverlay:
    """Annotation overlay for one code buffer.

    Owns the store and the inline-edit machine, receives the host's display
    inputs and user intents, and renders decoration sets. Widgets equal to
    ones rendered last time are handed back as the same instances, so an
    open editor keeps its typed text across unrelated re-renders.
    """

    def __init__(
        self,
        code: str = "",
        store: AnnotationStore | None = None,
        *,
        mode: EditorMode = EditorMode.ANNOTATE,
        theme: Theme = Theme.LIGHT,
        settings: AnnotationDisplaySettings | None = None,
        author_initials: str | None = None,
        id_factory: Callable[[], str] = new_annotation_id,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._document = Document.from_text(code)
        self.store: AnnotationStore = store if store is not None else InMemoryAnnotationStore()
        self._mode = mode
        self.theme = theme
        self.settings = settings or AnnotationDisplaySettings()
        self.highlighted_type: AnnotationType | None = None
        self.remote_new_ids: frozenset[str] = frozenset()
        self.machine = InlineEditMachine(
            self.store,
            source_lines=lambda: self._document.lines,
            author_initials=author_initials,
            id_factory=id_factory,
            clock=clock,
        )
        self._rendered: dict[Widget, Widget] = {}

    @property
    def code(self) -> str:
        return self._document.text

    @property
    def document(self) -> Document:
        return self._document

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def edit_state(self) -> InlineEditState | None:
        return self.machine.state

    @property
    def active_editor(self) -> InlineEditorWidget | None:
        """The rendered editor of the open session, if it has been rendered yet."""
        if not self.machine.is_active:
            return None
        for widget in self._rendered.values():
            if isinstance(widget, InlineEditorWidget) and widget.session.generation == self.machine.generation:
                return widget
        return None

    def set_mode(self, mode: EditorMode) -> None:
        if mode is EditorMode.EDIT and self.machine.cancel():
            logger.debug("Switching to edit mode cancelled the open annotation editor")
        self._mode = mode

    def set_code(self, code: str) -> None:
        if self._mode is not EditorMode.EDIT:
            raise ReadOnlyDocumentError("Code can only be changed in edit mode")
        self._document = Document.from_text(code)

    def set_theme(self, theme: Theme) -> None:
        self.theme = theme

    def set_settings(self, settings: AnnotationDisplaySettings) -> None:
        self.settings = settings

    def set_highlighted_type(self, annotation_type: AnnotationType | None) -> None:
        self.highlighted_type = annotation_type

    def set_remote_new_ids(self, ids: Sequence[str] | frozenset[str] | set[str] | None) -> None:
        self.remote_new_ids = frozenset(ids or ())

    def on_line_click(self, start_line: int, end_line: int | None = None) -> InlineEditState | None:
        if self._mode is not EditorMode.ANNOTATE:
            return None
        if not self.settings.visible:
            self.settings = self.settings.model_copy(update={"visible": True})
        return self.machine.start_create(start_line, end_line)

    def click_gutter(self, line_number: int, selection: Sequence[int] | None = None) -> InlineEditState | None:
        start, end = line_range_for_click(line_number, selection)
        return self.on_line_click(start, end)

    def on_edit(self, annotation_id: str) -> InlineEditState | None:
        if self._mode is not EditorMode.ANNOTATE:
            return None
        return self.machine.start_edit(annotation_id)

    def on_delete(self, annotation_id: str) -> LineAnnotation:
        state = self.machine.state
        if state is not None and state.annotation_id == annotation_id:
            self.machine.cancel()
        return self.store.delete(annotation_id)

    def on_submit(self, annotation_type: AnnotationType, content: str) -> LineAnnotation | None:
        return self.machine.submit(annotation_type, content)

    def on_cancel(self) -> bool:
        return self.machine.cancel()

    def key_down(self, key: str) -> bool:
        editor = self.active_editor
        if editor is None:
            return False
        return editor.handle_key(key)

    def pointer_down(self, inside_editor: bool) -> bool:
        editor = self.active_editor
        if editor is None:
            return False
        return editor.handle_pointer_down(inside_editor)

    def render(self) -> DecorationSet:
        document = self._document
        gutter = tuple(compute_gutter_markers(document.line_count, self._mode))
        if self._mode is EditorMode.EDIT:
            self._rendered = {}
            return DecorationSet(gutter=gutter)

        annotations = self.store.list()
        decorations = compute_annotation_decorations(
            annotations,
            document,
            theme=self.theme,
            settings=self.settings,
            edit_state=self.machine.state,
            edit_callbacks=self.machine.callbacks,
            highlighted_type=self.highlighted_type,
            remote_new_ids=self.remote_new_ids,
            on_edit=self.on_edit,
            on_delete=self.on_delete,
            user_initials=self.machine.author_initials,
            edit_generation=self.machine.generation,
        )

        rendered: dict[Widget, Widget] = {}
        widgets: list[WidgetDecoration] = []
        for decoration in decorations:
            widget = self._rendered.get(decoration.widget, decoration.widget)
            rendered[widget] = widget
            if widget is not decoration.widget:
                decoration = WidgetDecoration(
                    line_number=decoration.line_number,
                    position=decoration.position,
                    widget=widget,
                    block=decoration.block,
                    side=decoration.side,
                )
            widgets.append(decoration)
        self._rendered = rendered

        lines = compute_line_decorations(annotations, document.line_count, self.theme, self.settings)
        return DecorationSet(widgets=tuple(widgets), lines=tuple(lines), gutter=gutter)
