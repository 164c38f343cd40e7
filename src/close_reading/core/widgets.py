"""Renderable widget values for the annotation overlay.

Widgets compare equal when the host may keep the instance it already
rendered. An ``InlineEditorWidget`` compares only its ``EditSession``; the
type and content being typed live in an ``EditBuffer`` that is never part of
equality, so re-rendering the same session keeps in-progress keystrokes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from close_reading.core.annotation_types import annotation_color, annotation_prefix
from close_reading.core.highlighting import annotation_opacity
from close_reading.models import AnnotationDisplaySettings, AnnotationType, LineAnnotation, Theme

logger = logging.getLogger(__name__)

BADGE_ARROW = "↑"

# Hex alpha suffixes appended to the type color for the pill background.
_PILL_ALPHA = {Theme.LIGHT: "12", Theme.DARK: "18"}
_PILL_ALPHA_HIGHLIGHTED = {Theme.LIGHT: "25", Theme.DARK: "35"}


@dataclass(frozen=True)
class InlineEditCallbacks:
    on_submit: Callable[[AnnotationType, str], None]
    on_cancel: Callable[[], None]


@dataclass(frozen=True)
class EditSession:
    line_number: int | None
    start_line_number: int | None
    annotation_id: str | None
    theme: Theme
    is_new: bool
    user_initials: str | None = None
    generation: int = 0


@dataclass(eq=False)
class EditBuffer:
    type: AnnotationType
    content: str

    @property
    def can_submit(self) -> bool:
        return bool(self.content.strip())


class InlineEditorWidget:
    """Inline editor for a new or an existing annotation."""

    def __init__(
        self,
        session: EditSession,
        initial_type: AnnotationType = AnnotationType.OBSERVATION,
        initial_content: str = "",
        callbacks: InlineEditCallbacks | None = None,
    ) -> None:
        self.session = session
        self.buffer = EditBuffer(type=initial_type, content=initial_content)
        self.callbacks = callbacks

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InlineEditorWidget):
            return NotImplemented
        return self.session == other.session

    def __hash__(self) -> int:
        return hash(self.session)

    def __repr__(self) -> str:
        return f"InlineEditorWidget(session={self.session!r})"

    @property
    def color(self) -> str:
        return annotation_color(self.buffer.type, self.session.theme)

    @property
    def placeholder(self) -> str:
        session = self.session
        if session.is_new and session.start_line_number and session.line_number:
            return f"Annotate lines {session.start_line_number}-{session.line_number}..."
        return "Enter annotation..." if session.is_new else "Edit annotation..."

    @property
    def submit_label(self) -> str:
        return "Add" if self.session.is_new else "Save"

    @property
    def submit_enabled(self) -> bool:
        return self.buffer.can_submit

    @property
    def signed_as(self) -> str:
        return self.session.user_initials or "unsigned"

    def set_type(self, annotation_type: AnnotationType) -> None:
        self.buffer.type = annotation_type

    def set_content(self, content: str) -> None:
        self.buffer.content = content

    def submit(self) -> bool:
        if not self.buffer.can_submit:
            return False
        if self.callbacks is not None:
            self.callbacks.on_submit(self.buffer.type, self.buffer.content.strip())
        return True

    def cancel(self) -> None:
        if self.callbacks is not None:
            self.callbacks.on_cancel()

    def handle_key(self, key: str) -> bool:
        """Enter submits non-blank content, Escape cancels."""
        if key == "Enter":
            return self.submit()
        if key == "Escape":
            self.cancel()
            return True
        return False

    def handle_pointer_down(self, inside: bool) -> bool:
        """Cancel on a pointer-down outside the editor; returns True if cancelled."""
        if inside:
            return False
        self.cancel()
        return True


@dataclass(frozen=True, eq=False)
class AnnotationWidget:
    annotation: LineAnnotation
    theme: Theme = Theme.LIGHT
    is_highlighted: bool = False
    settings: AnnotationDisplaySettings = field(default_factory=AnnotationDisplaySettings)
    is_remote_new: bool = False
    on_edit: Callable[[str], None] | None = None
    on_delete: Callable[[str], None] | None = None

    def _identity(self) -> tuple[object, ...]:
        ann = self.annotation
        return (
            ann.id,
            ann.content,
            ann.type,
            ann.added_by,
            self.theme,
            self.is_highlighted,
            self.settings.brightness,
            self.settings.show_badge,
            self.settings.show_pill_background,
            self.is_remote_new,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnnotationWidget):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    @property
    def color(self) -> str:
        return annotation_color(self.annotation.type, self.theme)

    @property
    def badge(self) -> str:
        return annotation_prefix(self.annotation.type)

    @property
    def range_label(self) -> str | None:
        if not self.annotation.is_block:
            return None
        return f"L{self.annotation.line_number}-{self.annotation.end_line_number}"

    @property
    def label(self) -> str:
        if self.range_label:
            return f"{BADGE_ARROW}{self.range_label} {self.badge}"
        return f"{BADGE_ARROW} {self.badge}"

    @property
    def content_text(self) -> str:
        if self.settings.show_badge:
            return self.annotation.content
        range_part = f"{self.range_label} " if self.range_label else ""
        return f"[{range_part}{self.badge}] {self.annotation.content}"

    @property
    def added_by(self) -> str | None:
        return self.annotation.added_by

    @property
    def opacity(self) -> float:
        highlighted_type = self.annotation.type if self.is_highlighted else None
        return annotation_opacity(self.annotation.type, highlighted_type, self.settings.brightness)

    @property
    def bar_background(self) -> str | None:
        if not self.settings.show_pill_background:
            return None
        alpha = _PILL_ALPHA_HIGHLIGHTED if self.is_highlighted else _PILL_ALPHA
        return f"{self.color}{alpha[self.theme]}"

    def edit(self) -> None:
        if self.on_edit is not None:
            self.on_edit(self.annotation.id)

    def delete(self) -> None:
        if self.on_delete is not None:
            self.on_delete(self.annotation.id)


@dataclass(frozen=True)
class GutterMarker:
    line_number: int
    clickable: bool = True

    @property
    def text(self) -> str:
        return str(self.line_number)
