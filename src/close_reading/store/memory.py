from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from close_reading.core.annotation_types import ANNOTATION_TYPES
from close_reading.core.errors import AnnotationNotFoundError, DuplicateAnnotationError
from close_reading.models import AnnotationType, LineAnnotation

logger = logging.getLogger(__name__)

MAX_HISTORY_SIZE = 50


@dataclass(frozen=True)
class AnnotationSnapshot:
    annotations: tuple[LineAnnotation, ...]


class InMemoryAnnotationStore:
    """Annotation records for a single code artifact.

    Records keep insertion order. Every mutation snapshots the previous state
    so it can be undone; a new mutation clears the redo stack.
    """

    def __init__(self, annotations: Iterable[LineAnnotation] = (), max_history: int = MAX_HISTORY_SIZE) -> None:
        self._annotations: dict[str, LineAnnotation] = {}
        self._line_index: dict[int, list[str]] = {}
        self._undo_stack: list[AnnotationSnapshot] = []
        self._redo_stack: list[AnnotationSnapshot] = []
        self._max_history = max_history
        for annotation in annotations:
            self._insert(annotation)

    def add(self, annotation: LineAnnotation) -> LineAnnotation:
        if annotation.id in self._annotations:
            raise DuplicateAnnotationError(f"Annotation already exists: {annotation.id}")
        self._take_snapshot()
        self._insert(annotation)
        logger.debug("Added annotation %s at line %d", annotation.id, annotation.display_line)
        return annotation

    def get(self, annotation_id: str) -> LineAnnotation:
        annotation = self._annotations.get(annotation_id)
        if annotation is None:
            raise AnnotationNotFoundError(annotation_id)
        return annotation

    def update(self, annotation_id: str, type: AnnotationType, content: str) -> LineAnnotation:
        current = self.get(annotation_id)
        self._take_snapshot()
        updated = current.model_copy(update={"type": type, "content": content})
        self._annotations[annotation_id] = updated
        logger.debug("Updated annotation %s", annotation_id)
        return updated

    def delete(self, annotation_id: str) -> LineAnnotation:
        current = self.get(annotation_id)
        self._take_snapshot()
        del self._annotations[annotation_id]
        self._unindex(current)
        logger.debug("Deleted annotation %s", annotation_id)
        return current

    def replace_all(self, annotations: Iterable[LineAnnotation]) -> None:
        incoming = list(annotations)
        ids = [a.id for a in incoming]
        if len(ids) != len(set(ids)):
            raise DuplicateAnnotationError("Duplicate annotation ids in replacement set")
        self._take_snapshot()
        self._reload(incoming)

    def list(self) -> list[LineAnnotation]:
        return list(self._annotations.values())

    def by_display_line(self, line_number: int) -> list[LineAnnotation]:
        return [self._annotations[i] for i in self._line_index.get(line_number, ())]

    def counts_by_type(self) -> dict[AnnotationType, int]:
        counts = dict.fromkeys(ANNOTATION_TYPES, 0)
        for annotation in self._annotations.values():
            counts[annotation.type] += 1
        return counts

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def undo(self) -> bool:
        if not self._undo_stack:
            return False
        self._redo_stack.append(self._snapshot())
        self._restore(self._undo_stack.pop())
        return True

    def redo(self) -> bool:
        if not self._redo_stack:
            return False
        self._undo_stack.append(self._snapshot())
        self._restore(self._redo_stack.pop())
        return True

    def __contains__(self, annotation_id: object) -> bool:
        return annotation_id in self._annotations

    def __len__(self) -> int:
        return len(self._annotations)

    def __iter__(self) -> Iterator[LineAnnotation]:
        return iter(list(self._annotations.values()))

    def _insert(self, annotation: LineAnnotation) -> None:
        if annotation.id in self._annotations:
            raise DuplicateAnnotationError(f"Annotation already exists: {annotation.id}")
        self._annotations[annotation.id] = annotation
        self._line_index.setdefault(annotation.display_line, []).append(annotation.id)

    def _unindex(self, annotation: LineAnnotation) -> None:
        ids = self._line_index[annotation.display_line]
        ids.remove(annotation.id)
        if not ids:
            del self._line_index[annotation.display_line]

    def _reload(self, annotations: Iterable[LineAnnotation]) -> None:
        self._annotations = {}
        self._line_index = {}
        for annotation in annotations:
            self._insert(annotation)

    def _snapshot(self) -> AnnotationSnapshot:
        return AnnotationSnapshot(tuple(self._annotations.values()))

    def _take_snapshot(self) -> None:
        self._undo_stack.append(self._snapshot())
        if len(self._undo_stack) > self._max_history:
            del self._undo_stack[: -self._max_history]
        self._redo_stack.clear()

    def _restore(self, snapshot: AnnotationSnapshot) -> None:
        self._reload(snapshot.annotations)
