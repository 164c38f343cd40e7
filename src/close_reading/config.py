import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from close_reading.models import AnnotationDisplaySettings, Brightness, LineHighlightIntensity, Theme

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EditorConfig:
    theme: Theme = Theme.LIGHT
    author_initials: str | None = None


def _env_enum(name: str, enum_type: type[E], default: E) -> E:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return enum_type(raw.strip().lower())
    except ValueError:
        logger.warning("Invalid %s=%r, using %s", name, raw, default.value)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    logger.warning("Invalid %s=%r, using %s", name, raw, default)
    return default


def load_display_settings() -> AnnotationDisplaySettings:
    return AnnotationDisplaySettings(
        brightness=_env_enum("CLOSE_READING_BRIGHTNESS", Brightness, Brightness.MEDIUM),
        line_highlight_intensity=_env_enum(
            "CLOSE_READING_LINE_HIGHLIGHT", LineHighlightIntensity, LineHighlightIntensity.MEDIUM
        ),
        highlight_annotated_lines=_env_bool("CLOSE_READING_HIGHLIGHT_LINES", False),
        show_badge=_env_bool("CLOSE_READING_SHOW_BADGE", True),
        show_pill_background=_env_bool("CLOSE_READING_SHOW_PILL", True),
    )


def load_editor_config() -> EditorConfig:
    initials = os.getenv("CLOSE_READING_INITIALS", "").strip()
    return EditorConfig(
        theme=_env_enum("CLOSE_READING_THEME", Theme, Theme.LIGHT),
        author_initials=initials or None,
    )
