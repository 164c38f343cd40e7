from collections.abc import Callable

from close_reading.core.highlighting import (
    LineDecorationKind,
    annotated_line_types,
    annotation_opacity,
    compute_line_decorations,
)
from close_reading.models import (
    AnnotationDisplaySettings,
    AnnotationType,
    Brightness,
    LineAnnotation,
    LineHighlightIntensity,
    Theme,
)

MakeAnnotation = Callable[..., LineAnnotation]

HIGHLIGHT_ON = AnnotationDisplaySettings(highlight_annotated_lines=True)


class TestAnnotationOpacity:
    def test_focused_type_is_opaque(self) -> None:
        assert annotation_opacity(AnnotationType.QUESTION, AnnotationType.QUESTION, Brightness.LOW) == 1.0

    def test_other_types_follow_brightness(self) -> None:
        assert annotation_opacity(AnnotationType.CONTEXT, AnnotationType.QUESTION, Brightness.LOW) == 0.2
        assert annotation_opacity(AnnotationType.CONTEXT, None, Brightness.HIGH) == 0.7


class TestLineDecorations:
    def test_off_unless_enabled(self, make_annotation: MakeAnnotation) -> None:
        assert compute_line_decorations([make_annotation("a", 1)], 5) == []

    def test_block_tints_every_covered_line(self, make_annotation: MakeAnnotation) -> None:
        block = make_annotation("p", 5, AnnotationType.PATTERN, "Loop unrolled manually", end_line_number=8)
        decorations = compute_line_decorations([block], 10, Theme.LIGHT, HIGHLIGHT_ON)
        tinted = [d for d in decorations if d.kind is LineDecorationKind.TINTED]
        assert [d.line_number for d in tinted] == [5, 6, 7, 8]
        assert all(d.bar_color == "#16a34a" for d in tinted)
        assert all(d.background == "rgba(22, 163, 74, 0.12)" for d in tinted)

    def test_unannotated_lines_are_dimmed(self, make_annotation: MakeAnnotation) -> None:
        decorations = compute_line_decorations([make_annotation("a", 2)], 4, Theme.LIGHT, HIGHLIGHT_ON)
        dimmed = [d.line_number for d in decorations if d.kind is LineDecorationKind.DIMMED]
        assert dimmed == [1, 3, 4]
        assert [d.line_number for d in decorations] == [1, 2, 3, 4]

    def test_later_annotation_wins_on_overlap(self, make_annotation: MakeAnnotation) -> None:
        covered = annotated_line_types(
            [
                make_annotation("a", 1, AnnotationType.QUESTION, end_line_number=3),
                make_annotation("b", 2, AnnotationType.CRITIQUE),
            ],
            10,
        )
        assert covered == {1: AnnotationType.QUESTION, 2: AnnotationType.CRITIQUE, 3: AnnotationType.QUESTION}

    def test_intensity_off_keeps_only_the_bar(self, make_annotation: MakeAnnotation) -> None:
        settings = AnnotationDisplaySettings(
            highlight_annotated_lines=True, line_highlight_intensity=LineHighlightIntensity.OFF
        )
        (tint,) = [
            d
            for d in compute_line_decorations([make_annotation("a", 1)], 1, Theme.DARK, settings)
            if d.kind is LineDecorationKind.TINTED
        ]
        assert tint.background is None
        assert tint.bar_color == "#60a5fa"

    def test_lines_outside_document_are_ignored(self, make_annotation: MakeAnnotation) -> None:
        decorations = compute_line_decorations([make_annotation("a", 9)], 3, Theme.LIGHT, HIGHLIGHT_ON)
        assert all(d.kind is LineDecorationKind.DIMMED for d in decorations)

    def test_block_ending_past_the_document_tints_nothing(self, make_annotation: MakeAnnotation) -> None:
        decorations = compute_line_decorations(
            [make_annotation("stale", 8, end_line_number=12)], 10, Theme.LIGHT, HIGHLIGHT_ON
        )
        assert not any(d.kind is LineDecorationKind.TINTED for d in decorations)
        assert [d.line_number for d in decorations] == list(range(1, 11))
