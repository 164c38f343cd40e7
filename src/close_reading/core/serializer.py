"""Embed annotations into code as ``// An:`` marker lines.

The marker text is an export form for people and language models. Nothing
in this package parses it back; annotated markdown is the exchange format.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from close_reading.core.anchoring import group_by_display_line
from close_reading.core.annotation_types import annotation_prefix
from close_reading.models import LineAnnotation

logger = logging.getLogger(__name__)

MARKER_PREFIX = "// An:"
CONTEXT_NOTE = "*Note: Lines marked with `// An:` are analyst annotations for close reading.*"

_LEADING_WHITESPACE = re.compile(r"^[ \t]*")


def format_marker(annotation: LineAnnotation, indent: str = "") -> str:
    """Single marker line, e.g. ``// An:Q: Why this name?`` or ``// An:Pat[L5-8]: ...``."""
    content = " ".join(annotation.content.split("\n")).strip()
    code = annotation_prefix(annotation.type)
    if annotation.is_block:
        code = f"{code}[L{annotation.line_number}-{annotation.end_line_number}]"
    return f"{indent}{MARKER_PREFIX}{code}: {content}"


def serialize(code: str, annotations: Iterable[LineAnnotation]) -> str:
    lines = code.split("\n")
    grouped = group_by_display_line(annotations)

    stale = [n for n in grouped if not 1 <= n <= len(lines)]
    if stale:
        logger.debug("Serializer skipped annotations on lines outside the code: %s", sorted(stale))

    result: list[str] = []
    for line_number, line in enumerate(lines, start=1):
        result.append(line)
        indent = _LEADING_WHITESPACE.match(line).group(0)
        for annotation in grouped.get(line_number, ()):
            result.append(format_marker(annotation, indent))
    return "\n".join(result)


def build_code_context(
    name: str,
    code: str,
    annotations: Iterable[LineAnnotation],
    language: str | None = None,
    *,
    author: str | None = None,
    date: str | None = None,
    platform: str | None = None,
) -> str:
    """Markdown section describing one annotated code file for a language model."""
    annotations = list(annotations)
    parts = [f"### {name}{f' ({language})' if language else ''}"]
    if author:
        parts.append(f"Author: {author}")
    if date:
        parts.append(f"Date: {date}")
    if platform:
        parts.append(f"Platform: {platform}")
    parts.append(f"\n```{language or ''}")
    parts.append(serialize(code, annotations))
    parts.append("```\n")
    if annotations:
        parts.append(f"\n{CONTEXT_NOTE}")
    return "\n".join(parts)
