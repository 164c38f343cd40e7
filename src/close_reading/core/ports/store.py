from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from close_reading.models import AnnotationType, LineAnnotation


class AnnotationStore(Protocol):
    def add(self, annotation: LineAnnotation) -> LineAnnotation: ...

    def get(self, annotation_id: str) -> LineAnnotation: ...

    def update(self, annotation_id: str, type: AnnotationType, content: str) -> LineAnnotation: ...

    def delete(self, annotation_id: str) -> LineAnnotation: ...

    def list(self) -> list[LineAnnotation]: ...

    def by_display_line(self, line_number: int) -> list[LineAnnotation]: ...

    def __contains__(self, annotation_id: object) -> bool: ...

    def __len__(self) -> int: ...

    def __iter__(self) -> Iterator[LineAnnotation]: ...
