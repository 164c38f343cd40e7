"""Line-level decoration passes.

Each pass is an independent function of the annotation set and the display
settings; the overlay composes them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from close_reading.core.annotation_types import (
    DIMMED_LINE_OPACITY,
    LINE_HIGHLIGHT_ALPHA,
    annotation_color,
    brightness_opacity,
    hex_to_rgba,
)
from close_reading.models import (
    AnnotationDisplaySettings,
    AnnotationType,
    Brightness,
    LineAnnotation,
    Theme,
)


class LineDecorationKind(str, Enum):
    DIMMED = "dimmed"
    TINTED = "tinted"


@dataclass(frozen=True)
class LineDecoration:
    line_number: int
    kind: LineDecorationKind
    opacity: float = 1.0
    background: str | None = None
    bar_color: str | None = None
    annotation_type: AnnotationType | None = None


def annotation_opacity(
    annotation_type: AnnotationType,
    highlighted_type: AnnotationType | None,
    brightness: Brightness,
) -> float:
    """Full opacity for the focused type, the brightness level for everything else."""
    if highlighted_type is not None and annotation_type is highlighted_type:
        return 1.0
    return brightness_opacity(brightness)


def annotated_line_types(annotations: Iterable[LineAnnotation], line_count: int) -> dict[int, AnnotationType]:
    """Map every covered line to an annotation type.

    Block annotations cover their whole range. An annotation whose display
    line lies outside the document covers nothing, even where part of its
    block is still in range. When two annotations cover the same line the
    later one in iteration order wins.
    """
    covered: dict[int, AnnotationType] = {}
    for annotation in annotations:
        if not 1 <= annotation.display_line <= line_count:
            continue
        for line_number in annotation.covered_lines:
            covered[line_number] = annotation.type
    return covered


def compute_dimmed_lines(annotations: Iterable[LineAnnotation], line_count: int) -> list[LineDecoration]:
    covered = annotated_line_types(annotations, line_count)
    return [
        LineDecoration(line_number=n, kind=LineDecorationKind.DIMMED, opacity=DIMMED_LINE_OPACITY)
        for n in range(1, line_count + 1)
        if n not in covered
    ]


def compute_line_tints(
    annotations: Iterable[LineAnnotation],
    line_count: int,
    theme: Theme,
    settings: AnnotationDisplaySettings,
) -> list[LineDecoration]:
    alpha = LINE_HIGHLIGHT_ALPHA[settings.line_highlight_intensity]
    tints: list[LineDecoration] = []
    for line_number, annotation_type in sorted(annotated_line_types(annotations, line_count).items()):
        color = annotation_color(annotation_type, theme)
        tints.append(
            LineDecoration(
                line_number=line_number,
                kind=LineDecorationKind.TINTED,
                background=hex_to_rgba(color, alpha) if alpha > 0 else None,
                bar_color=color,
                annotation_type=annotation_type,
            )
        )
    return tints


def compute_line_decorations(
    annotations: Iterable[LineAnnotation],
    line_count: int,
    theme: Theme = Theme.LIGHT,
    settings: AnnotationDisplaySettings | None = None,
) -> list[LineDecoration]:
    """Dim unannotated lines and tint annotated ones, ordered by line."""
    settings = settings or AnnotationDisplaySettings()
    if not settings.visible or not settings.highlight_annotated_lines:
        return []
    annotations = list(annotations)
    decorations = compute_dimmed_lines(annotations, line_count) + compute_line_tints(
        annotations, line_count, theme, settings
    )
    return sorted(decorations, key=lambda d: d.line_number)
