"""Unit tests for the host-facing annotation overlay."""

from collections.abc import Callable

import pytest

from close_reading.core.errors import AnnotationNotFoundError, ReadOnlyDocumentError
from close_reading.core.inline_edit import EditPhase
from close_reading.core.overlay import AnnotationOverlay
from close_reading.core.widgets import AnnotationWidget, InlineEditorWidget
from close_reading.models import (
    AnnotationDisplaySettings,
    AnnotationType,
    Brightness,
    EditorMode,
    LineAnnotation,
    Theme,
)
from close_reading.store import InMemoryAnnotationStore

MakeAnnotation = Callable[..., LineAnnotation]


class TestLineClicks:
    def test_gutter_click_opens_an_editor(self, overlay: AnnotationOverlay) -> None:
        overlay.click_gutter(4)
        rendered = overlay.render()
        (editor,) = rendered.editors
        assert editor.session.line_number == 4
        assert editor.signed_as == "DB"
        assert overlay.active_editor is editor

    def test_gutter_click_with_selection_creates_a_block(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore
    ) -> None:
        overlay.click_gutter(8, selection=[5, 8])
        overlay.render()
        editor = overlay.active_editor
        assert editor is not None
        assert editor.placeholder == "Annotate lines 5-8..."
        editor.set_type(AnnotationType.PATTERN)
        editor.set_content("Loop unrolled manually")
        assert overlay.key_down("Enter")
        (created,) = store.list()
        assert (created.line_number, created.end_line_number, created.type) == (5, 8, AnnotationType.PATTERN)

    def test_line_click_makes_hidden_annotations_visible(self, overlay: AnnotationOverlay) -> None:
        overlay.set_settings(AnnotationDisplaySettings(visible=False))
        overlay.on_line_click(2)
        assert overlay.settings.visible

    def test_line_clicks_are_ignored_in_edit_mode(self, overlay: AnnotationOverlay) -> None:
        overlay.set_mode(EditorMode.EDIT)
        assert overlay.on_line_click(2) is None
        assert overlay.machine.phase is EditPhase.IDLE


class TestEditorIdentity:
    def test_typed_text_survives_unrelated_rerenders(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore, make_annotation: MakeAnnotation
    ) -> None:
        store.add(make_annotation("sibling", 4))
        overlay.on_line_click(4)
        first = overlay.render().editors[0]
        first.set_content("half a thou")

        overlay.set_settings(AnnotationDisplaySettings(brightness=Brightness.FULL))
        overlay.on_delete("sibling")
        second = overlay.render().editors[0]

        assert second is first
        assert second.buffer.content == "half a thou"

    def test_new_session_gets_a_fresh_editor(self, overlay: AnnotationOverlay) -> None:
        overlay.on_line_click(4)
        first = overlay.render().editors[0]
        first.set_content("draft")
        overlay.on_line_click(6)
        second = overlay.render().editors[0]
        assert second is not first
        assert second.buffer.content == ""

    def test_reopening_the_same_line_after_cancel_gets_a_fresh_editor(self, overlay: AnnotationOverlay) -> None:
        overlay.on_line_click(4)
        first = overlay.render().editors[0]
        first.set_content("abandoned draft")
        assert overlay.key_down("Escape")

        overlay.on_line_click(4)
        second = overlay.render().editors[0]

        assert second is not first
        assert second.buffer.content == ""

    def test_cancelled_draft_is_never_submitted_into_a_later_session(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore
    ) -> None:
        overlay.on_line_click(4)
        overlay.render().editors[0].set_content("draft for line 4")
        overlay.key_down("Escape")

        overlay.on_line_click(7)
        assert overlay.active_editor is None
        assert not overlay.key_down("Enter")
        assert len(store) == 0

        editor = overlay.render().editors[0]
        assert overlay.active_editor is editor
        assert editor.buffer.content == ""

    def test_submitted_editor_is_not_reused(self, overlay: AnnotationOverlay) -> None:
        overlay.on_line_click(4)
        first = overlay.render().editors[0]
        first.set_content("kept")
        assert overlay.key_down("Enter")
        assert overlay.active_editor is None

        overlay.on_line_click(4)
        assert overlay.render().editors[0] is not first

    def test_theme_change_is_a_new_session(self, overlay: AnnotationOverlay) -> None:
        overlay.on_line_click(4)
        first = overlay.render().editors[0]
        overlay.set_theme(Theme.DARK)
        assert overlay.render().editors[0] is not first

    def test_equal_annotation_widgets_are_reused(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore, make_annotation: MakeAnnotation
    ) -> None:
        store.add(make_annotation("a", 2))
        first = overlay.render().widgets[0].widget
        second = overlay.render().widgets[0].widget
        assert second is first
        overlay.set_highlighted_type(AnnotationType.OBSERVATION)
        assert overlay.render().widgets[0].widget is not first


class TestCallbacks:
    def test_escape_cancels_without_mutating(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore
    ) -> None:
        overlay.on_line_click(4)
        overlay.render().editors[0].set_content("partial")
        assert overlay.key_down("Escape")
        assert len(store) == 0
        assert overlay.edit_state is None
        assert overlay.render().editors == []

    def test_click_away_cancels(self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore) -> None:
        overlay.on_line_click(4)
        overlay.render()
        assert not overlay.pointer_down(inside_editor=True)
        assert overlay.pointer_down(inside_editor=False)
        assert overlay.edit_state is None
        assert len(store) == 0

    def test_widget_edit_callback_opens_the_editor(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore, make_annotation: MakeAnnotation
    ) -> None:
        store.add(make_annotation("a", 2, AnnotationType.QUESTION, "Why?"))
        widget = overlay.render().widgets[0].widget
        assert isinstance(widget, AnnotationWidget)
        widget.edit()
        editor = overlay.render().widgets[0].widget
        assert isinstance(editor, InlineEditorWidget)
        assert editor.buffer.content == "Why?"
        editor.set_content("Why not?")
        editor.submit()
        assert store.get("a").content == "Why not?"
        assert isinstance(overlay.render().widgets[0].widget, AnnotationWidget)

    def test_deleting_the_edited_annotation_closes_the_editor(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore, make_annotation: MakeAnnotation
    ) -> None:
        store.add(make_annotation("a", 2))
        overlay.on_edit("a")
        overlay.on_delete("a")
        assert overlay.edit_state is None
        assert "a" not in store

    def test_delete_unknown_raises(self, overlay: AnnotationOverlay) -> None:
        with pytest.raises(AnnotationNotFoundError):
            overlay.on_delete("missing")

    def test_keys_without_editor_are_ignored(self, overlay: AnnotationOverlay) -> None:
        assert not overlay.key_down("Escape")
        assert not overlay.pointer_down(inside_editor=False)


class TestModes:
    def test_edit_mode_renders_no_annotations(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore, make_annotation: MakeAnnotation
    ) -> None:
        store.add(make_annotation("a", 2))
        overlay.set_mode(EditorMode.EDIT)
        rendered = overlay.render()
        assert rendered.widgets == ()
        assert rendered.lines == ()
        assert len(rendered.gutter) == 10
        assert not any(marker.clickable for marker in rendered.gutter)

    def test_switching_to_edit_mode_cancels_the_session(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore
    ) -> None:
        overlay.on_line_click(3)
        overlay.set_mode(EditorMode.EDIT)
        assert overlay.edit_state is None
        assert len(store) == 0

    def test_code_is_read_only_while_annotating(self, overlay: AnnotationOverlay) -> None:
        with pytest.raises(ReadOnlyDocumentError):
            overlay.set_code("x = 1")

    def test_code_changes_in_edit_mode(self, overlay: AnnotationOverlay) -> None:
        overlay.set_mode(EditorMode.EDIT)
        overlay.set_code("a\nb")
        overlay.set_mode(EditorMode.ANNOTATE)
        assert overlay.code == "a\nb"
        assert overlay.document.line_count == 2

    def test_shortened_code_hides_stale_annotations_without_deleting(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore, make_annotation: MakeAnnotation
    ) -> None:
        store.add(make_annotation("a", 9))
        overlay.set_mode(EditorMode.EDIT)
        overlay.set_code("a\nb")
        overlay.set_mode(EditorMode.ANNOTATE)
        assert overlay.render().widgets == ()
        assert "a" in store


class TestLayers:
    def test_line_highlighting_is_composed(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore, make_annotation: MakeAnnotation
    ) -> None:
        store.add(make_annotation("p", 5, AnnotationType.PATTERN, end_line_number=8))
        overlay.set_settings(AnnotationDisplaySettings(highlight_annotated_lines=True))
        rendered = overlay.render()
        assert len(rendered.lines) == 10
        assert [d.line_number for d in rendered.lines if d.annotation_type is AnnotationType.PATTERN] == [5, 6, 7, 8]

    def test_remote_ids_are_flagged(
        self, overlay: AnnotationOverlay, store: InMemoryAnnotationStore, make_annotation: MakeAnnotation
    ) -> None:
        store.add(make_annotation("remote", 2))
        overlay.set_remote_new_ids({"remote"})
        widget = overlay.render().widgets[0].widget
        assert isinstance(widget, AnnotationWidget)
        assert widget.is_remote_new
        overlay.set_remote_new_ids(None)
        assert overlay.remote_new_ids == frozenset()
