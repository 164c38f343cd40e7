"""Transient emphasis for annotations that arrive from a collaboration layer.

Remote annotations are ordinary store inserts. This module only works out
which ids are new and how long they stay flagged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from close_reading.models import AnnotationType, LineAnnotation

logger = logging.getLogger(__name__)

REMOTE_FLASH_SECONDS = 1.5
TYPE_HIGHLIGHT_SECONDS = 2.0


def new_remote_annotation_ids(local: Iterable[LineAnnotation], incoming: Iterable[LineAnnotation]) -> frozenset[str]:
    known = {annotation.id for annotation in local}
    return frozenset(annotation.id for annotation in incoming if annotation.id not in known)


def highlighted_annotation_ids(
    annotations: Iterable[LineAnnotation], highlighted_type: AnnotationType | None
) -> frozenset[str]:
    if highlighted_type is None:
        return frozenset()
    return frozenset(a.id for a in annotations if a.type is highlighted_type)


class _ExpiringValue:
    def __init__(self, duration: float, clock: Callable[[], float]) -> None:
        self.duration = duration
        self._clock = clock
        self._expires_at: float | None = None

    def arm(self) -> None:
        self._expires_at = self._clock() + self.duration

    def clear(self) -> None:
        self._expires_at = None

    @property
    def active(self) -> bool:
        if self._expires_at is None:
            return False
        if self._clock() >= self._expires_at:
            self._expires_at = None
            return False
        return True


class RemoteArrivalTracker:
    """Keeps the ids of the latest remote arrival flagged for a short window."""

    def __init__(self, duration: float = REMOTE_FLASH_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self._timer = _ExpiringValue(duration, clock)
        self._ids: frozenset[str] = frozenset()

    def arrive(self, local: Iterable[LineAnnotation], incoming: Iterable[LineAnnotation]) -> frozenset[str]:
        ids = new_remote_annotation_ids(local, incoming)
        if ids:
            logger.debug("Flashing %d remote annotation(s)", len(ids))
            self._ids = ids
            self._timer.arm()
        return ids

    @property
    def active_ids(self) -> frozenset[str]:
        if not self._timer.active:
            self._ids = frozenset()
        return self._ids

    def is_new(self, annotation_id: str) -> bool:
        return annotation_id in self.active_ids

    def clear(self) -> None:
        self._ids = frozenset()
        self._timer.clear()


class TypeHighlight:
    """A focused annotation type that clears itself after a short window."""

    def __init__(self, duration: float = TYPE_HIGHLIGHT_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self._timer = _ExpiringValue(duration, clock)
        self._type: AnnotationType | None = None

    def focus(self, annotation_type: AnnotationType | None) -> None:
        self._type = annotation_type
        if annotation_type is None:
            self._timer.clear()
        else:
            self._timer.arm()

    @property
    def current(self) -> AnnotationType | None:
        if not self._timer.active:
            self._type = None
        return self._type
