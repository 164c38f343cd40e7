from collections.abc import Iterator
from datetime import datetime, timezone
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class AnnotationType(str, Enum):
    OBSERVATION = "observation"
    QUESTION = "question"
    METAPHOR = "metaphor"
    PATTERN = "pattern"
    CONTEXT = "context"
    CRITIQUE = "critique"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Brightness(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    FULL = "full"


class LineHighlightIntensity(str, Enum):
    OFF = "off"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    FULL = "full"


class EditorMode(str, Enum):
    """Annotations render only in ANNOTATE; the code text changes only in EDIT."""

    ANNOTATE = "annotate"
    EDIT = "edit"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class LineAnnotation(_CamelModel):
    id: str
    line_number: int = Field(ge=1)
    end_line_number: int | None = None
    type: AnnotationType
    content: str
    line_content: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    added_by: str | None = None

    @model_validator(mode="after")
    def _check_range(self) -> Self:
        if self.end_line_number is not None and self.end_line_number < self.line_number:
            raise ValueError(
                f"end_line_number ({self.end_line_number}) must be >= line_number ({self.line_number})"
            )
        return self

    @property
    def is_block(self) -> bool:
        return self.end_line_number is not None and self.end_line_number > self.line_number

    @property
    def display_line(self) -> int:
        """Line under which the annotation renders: the last line of a block."""
        return self.end_line_number if self.end_line_number is not None else self.line_number

    @property
    def covered_lines(self) -> range:
        return range(self.line_number, self.display_line + 1)


class InlineEditState(_CamelModel):
    line_number: int | None = None
    start_line_number: int | None = None
    annotation_id: str | None = None
    initial_type: AnnotationType = AnnotationType.OBSERVATION
    initial_content: str = ""

    @property
    def is_new(self) -> bool:
        return self.annotation_id is None and self.line_number is not None


class AnnotationDisplaySettings(_CamelModel):
    visible: bool = True
    brightness: Brightness = Brightness.MEDIUM
    show_badge: bool = True
    show_pill_background: bool = True
    line_highlight_intensity: LineHighlightIntensity = LineHighlightIntensity.MEDIUM
    highlight_annotated_lines: bool = False


class DiffLineType(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class DiffLine(_CamelModel):
    type: DiffLineType
    line_number_a: int | None = None
    line_number_b: int | None = None
    content_a: str = ""
    content_b: str = ""


class DiffStats(_CamelModel):
    added: int = 0
    removed: int = 0
    modified: int = 0
    unchanged: int = 0

    @property
    def changed(self) -> int:
        return self.added + self.removed + self.modified


class DiffResult(_CamelModel):
    lines: list[DiffLine]
    stats: DiffStats

    def unified(self) -> Iterator[tuple[str, int | None, str]]:
        """Yield ``(marker, line_number, text)`` rows; a modified pair yields ``-`` then ``+``."""
        for line in self.lines:
            if line.type is DiffLineType.UNCHANGED:
                yield " ", line.line_number_b, line.content_b
            elif line.type is DiffLineType.ADDED:
                yield "+", line.line_number_b, line.content_b
            elif line.type is DiffLineType.REMOVED:
                yield "-", line.line_number_a, line.content_a
            else:
                yield "-", line.line_number_a, line.content_a
                yield "+", line.line_number_b, line.content_b

    def side_by_side(self) -> Iterator[tuple[int | None, str, int | None, str, DiffLineType]]:
        for line in self.lines:
            yield line.line_number_a, line.content_a, line.line_number_b, line.content_b, line.type
