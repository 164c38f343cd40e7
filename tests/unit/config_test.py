import logging

import pytest

from close_reading.config import load_display_settings, load_editor_config
from close_reading.models import Brightness, LineHighlightIntensity, Theme


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = load_display_settings()
    config = load_editor_config()
    assert settings.brightness is Brightness.MEDIUM
    assert settings.line_highlight_intensity is LineHighlightIntensity.MEDIUM
    assert settings.show_badge and settings.show_pill_background
    assert not settings.highlight_annotated_lines
    assert config.theme is Theme.LIGHT
    assert config.author_initials is None


def test_reads_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("CLOSE_READING_THEME", "Dark")
    clean_env.setenv("CLOSE_READING_BRIGHTNESS", "full")
    clean_env.setenv("CLOSE_READING_LINE_HIGHLIGHT", "off")
    clean_env.setenv("CLOSE_READING_HIGHLIGHT_LINES", "yes")
    clean_env.setenv("CLOSE_READING_SHOW_BADGE", "0")
    clean_env.setenv("CLOSE_READING_INITIALS", " DB ")
    settings = load_display_settings()
    config = load_editor_config()
    assert settings.brightness is Brightness.FULL
    assert settings.line_highlight_intensity is LineHighlightIntensity.OFF
    assert settings.highlight_annotated_lines
    assert not settings.show_badge
    assert config.theme is Theme.DARK
    assert config.author_initials == "DB"


def test_invalid_values_fall_back_with_warning(clean_env: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    clean_env.setenv("CLOSE_READING_BRIGHTNESS", "blinding")
    clean_env.setenv("CLOSE_READING_SHOW_PILL", "maybe")
    with caplog.at_level(logging.WARNING):
        settings = load_display_settings()
    assert settings.brightness is Brightness.MEDIUM
    assert settings.show_pill_background
    assert "CLOSE_READING_BRIGHTNESS" in caplog.text
    assert "CLOSE_READING_SHOW_PILL" in caplog.text
