"""Shared fixtures and helpers for tests."""

from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from itertools import count
from pathlib import Path

import pytest

from close_reading.core.overlay import AnnotationOverlay
from close_reading.models import AnnotationType, LineAnnotation
from close_reading.store import InMemoryAnnotationStore

_REPO_ROOT = Path(__file__).parent.parent

FIXED_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        if rel.parts and rel.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


def _make_annotation(
    annotation_id: str,
    line_number: int,
    annotation_type: AnnotationType = AnnotationType.OBSERVATION,
    content: str = "note",
    end_line_number: int | None = None,
    added_by: str | None = None,
) -> LineAnnotation:
    return LineAnnotation(
        id=annotation_id,
        line_number=line_number,
        end_line_number=end_line_number,
        type=annotation_type,
        content=content,
        created_at=FIXED_TIME,
        added_by=added_by,
    )


@pytest.fixture
def make_annotation() -> Callable[..., LineAnnotation]:
    """Return a factory for annotations with a fixed creation time."""
    return _make_annotation


@pytest.fixture
def ten_line_code() -> str:
    """Return ten lines of FORTRAN-flavoured code."""
    return "\n".join(
        [
            "      PROGRAM HELLO",
            "      INTEGER I",
            "      DO 10 I = 1, 3",
            "        PRINT *, 'HELLO'",
            "   10 CONTINUE",
            "      I = 0",
            "      I = I + 1",
            "      I = I + 1",
            "      I = I + 1",
            "      END",
        ]
    )


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Return a factory producing ann-1, ann-2, ..."""
    counter = count(1)
    return lambda: f"ann-{next(counter)}"


@pytest.fixture
def store() -> InMemoryAnnotationStore:
    return InMemoryAnnotationStore()


@pytest.fixture
def overlay(ten_line_code: str, store: InMemoryAnnotationStore, id_factory: Callable[[], str]) -> AnnotationOverlay:
    return AnnotationOverlay(
        ten_line_code,
        store,
        author_initials="DB",
        id_factory=id_factory,
        clock=lambda: FIXED_TIME,
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Remove every CLOSE_READING_* variable for the duration of a test."""
    for name in (
        "CLOSE_READING_THEME",
        "CLOSE_READING_BRIGHTNESS",
        "CLOSE_READING_LINE_HIGHLIGHT",
        "CLOSE_READING_HIGHLIGHT_LINES",
        "CLOSE_READING_SHOW_BADGE",
        "CLOSE_READING_SHOW_PILL",
        "CLOSE_READING_INITIALS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
