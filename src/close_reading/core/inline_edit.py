from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from enum import Enum

from close_reading.core.errors import InvalidLineRangeError
from close_reading.core.ports.store import AnnotationStore
from close_reading.core.widgets import InlineEditCallbacks
from close_reading.models import AnnotationType, InlineEditState, LineAnnotation

logger = logging.getLogger(__name__)


class EditPhase(str, Enum):
    IDLE = "idle"
    CREATING = "creating"
    EDITING = "editing"


def new_annotation_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InlineEditMachine:
    """Create/edit lifecycle for one annotation at a time.

    The machine holds only the identity of the active session. Live type and
    content belong to the rendered editor widget and reach the machine only
    through ``submit``.
    """

    def __init__(
        self,
        store: AnnotationStore,
        *,
        source_lines: Callable[[], Sequence[str]] | None = None,
        author_initials: str | None = None,
        id_factory: Callable[[], str] = new_annotation_id,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._source_lines = source_lines
        self.author_initials = author_initials
        self._id_factory = id_factory
        self._clock = clock
        self._state: InlineEditState | None = None
        self._start_line: int | None = None
        self._end_line: int | None = None
        self._generation = 0

    @property
    def phase(self) -> EditPhase:
        if self._state is None:
            return EditPhase.IDLE
        return EditPhase.EDITING if self._state.annotation_id is not None else EditPhase.CREATING

    @property
    def state(self) -> InlineEditState | None:
        return self._state

    @property
    def generation(self) -> int:
        """Counter that changes whenever a session starts or ends."""
        return self._generation

    @property
    def is_active(self) -> bool:
        return self._state is not None

    @property
    def callbacks(self) -> InlineEditCallbacks:
        return InlineEditCallbacks(on_submit=self._on_submit, on_cancel=self._on_cancel)

    def start_create(self, start_line: int, end_line: int | None = None) -> InlineEditState:
        first = start_line if end_line is None else min(start_line, end_line)
        last = start_line if end_line is None else max(start_line, end_line)
        if first < 1:
            raise InvalidLineRangeError(f"Line numbers are 1-based, got {first}")
        self._replace_active("create")
        self._start_line, self._end_line = first, last
        self._state = InlineEditState(
            line_number=last,
            start_line_number=first if last > first else None,
        )
        logger.debug("Creating annotation on lines %d-%d", first, last)
        return self._state

    def start_edit(self, annotation_id: str) -> InlineEditState:
        annotation = self._store.get(annotation_id)
        self._replace_active("edit")
        self._start_line = self._end_line = None
        self._state = InlineEditState(
            annotation_id=annotation.id,
            initial_type=annotation.type,
            initial_content=annotation.content,
        )
        logger.debug("Editing annotation %s", annotation_id)
        return self._state

    def submit(self, annotation_type: AnnotationType, content: str) -> LineAnnotation | None:
        """Commit the active session.

        Blank content is refused and the session stays open. Returns the
        created or updated record, or ``None`` when nothing was committed.
        """
        if self._state is None:
            return None
        text = content.strip()
        if not text:
            return None

        if self._state.annotation_id is not None:
            result = self._store.update(self._state.annotation_id, annotation_type, text)
        else:
            result = self._store.add(self._build_annotation(annotation_type, text))
        self._reset()
        return result

    def cancel(self) -> bool:
        """Drop the active session without touching the store."""
        if self._state is None:
            return False
        logger.debug("Cancelled %s session", self.phase.value)
        self._reset()
        return True

    def _build_annotation(self, annotation_type: AnnotationType, content: str) -> LineAnnotation:
        start, end = self._start_line, self._end_line
        assert start is not None and end is not None
        lines = list(self._source_lines()) if self._source_lines is not None else []
        line_content = "\n".join(lines[start - 1 : end])
        return LineAnnotation(
            id=self._id_factory(),
            line_number=start,
            end_line_number=end if end > start else None,
            type=annotation_type,
            content=content,
            line_content=line_content,
            created_at=self._clock(),
            added_by=self.author_initials or None,
        )

    def _replace_active(self, reason: str) -> None:
        if self._state is not None:
            logger.debug("Discarding %s session to start %s", self.phase.value, reason)
        self._generation += 1

    def _reset(self) -> None:
        self._state = None
        self._generation += 1
        self._start_line = self._end_line = None

    def _on_submit(self, annotation_type: AnnotationType, content: str) -> None:
        self.submit(annotation_type, content)

    def _on_cancel(self) -> None:
        self.cancel()
