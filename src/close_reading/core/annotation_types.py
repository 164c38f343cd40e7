import logging
from dataclasses import dataclass

from close_reading.core.errors import UnknownAnnotationTypeError
from close_reading.models import AnnotationType, Brightness, LineHighlightIntensity, Theme

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotationTypeStyle:
    prefix: str
    label: str
    light: str
    dark: str

    def color(self, theme: Theme) -> str:
        return self.dark if theme is Theme.DARK else self.light


ANNOTATION_TYPES: tuple[AnnotationType, ...] = tuple(AnnotationType)

ANNOTATION_STYLES: dict[AnnotationType, AnnotationTypeStyle] = {
    AnnotationType.OBSERVATION: AnnotationTypeStyle("Obs", "Observation", "#2563eb", "#60a5fa"),
    AnnotationType.QUESTION: AnnotationTypeStyle("Q", "Question", "#d97706", "#fbbf24"),
    AnnotationType.METAPHOR: AnnotationTypeStyle("Met", "Metaphor", "#9333ea", "#c084fc"),
    AnnotationType.PATTERN: AnnotationTypeStyle("Pat", "Pattern", "#16a34a", "#4ade80"),
    AnnotationType.CONTEXT: AnnotationTypeStyle("Ctx", "Context", "#64748b", "#94a3b8"),
    AnnotationType.CRITIQUE: AnnotationTypeStyle("Crit", "Critique", "#8b2942", "#c55a75"),
}

PREFIX_TO_TYPE: dict[str, AnnotationType] = {style.prefix: t for t, style in ANNOTATION_STYLES.items()}

BRIGHTNESS_OPACITY: dict[Brightness, float] = {
    Brightness.LOW: 0.2,
    Brightness.MEDIUM: 0.45,
    Brightness.HIGH: 0.7,
    Brightness.FULL: 1.0,
}

# Background alpha for tinted annotated lines; OFF keeps only the edge bar.
LINE_HIGHLIGHT_ALPHA: dict[LineHighlightIntensity, float] = {
    LineHighlightIntensity.OFF: 0.0,
    LineHighlightIntensity.LOW: 0.06,
    LineHighlightIntensity.MEDIUM: 0.12,
    LineHighlightIntensity.HIGH: 0.2,
    LineHighlightIntensity.FULL: 0.3,
}

DIMMED_LINE_OPACITY = 0.12


def annotation_prefix(annotation_type: AnnotationType) -> str:
    return ANNOTATION_STYLES[annotation_type].prefix


def annotation_label(annotation_type: AnnotationType) -> str:
    return ANNOTATION_STYLES[annotation_type].label


def annotation_color(annotation_type: AnnotationType, theme: Theme) -> str:
    return ANNOTATION_STYLES[annotation_type].color(theme)


def brightness_opacity(brightness: Brightness) -> float:
    return BRIGHTNESS_OPACITY[brightness]


def hex_to_rgba(color: str, alpha: float) -> str:
    """Convert ``#rrggbb`` to a CSS ``rgba()`` string."""
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected a #rrggbb color, got {color!r}")
    r, g, b = (int(value[i : i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha:g})"


def parse_annotation_type(
    value: str,
    *,
    strict: bool = False,
    default: AnnotationType = AnnotationType.OBSERVATION,
) -> AnnotationType:
    """Resolve a type name or short prefix from ingested data.

    Accepts the full name (``"question"``), the prefix (``"Q"``) or the label
    (``"Question"``). Unknown values raise ``UnknownAnnotationTypeError`` when
    ``strict`` is set, otherwise they fall back to ``default``.
    """
    candidate = value.strip()
    if candidate in PREFIX_TO_TYPE:
        return PREFIX_TO_TYPE[candidate]
    lowered = candidate.lower()
    for annotation_type, style in ANNOTATION_STYLES.items():
        if lowered in (annotation_type.value, style.label.lower()):
            return annotation_type
    if strict:
        raise UnknownAnnotationTypeError(
            f"Unknown annotation type '{value}'. Supported: {[t.value for t in ANNOTATION_TYPES]}"
        )
    logger.warning("Unknown annotation type %r, using %s", value, default.value)
    return default
