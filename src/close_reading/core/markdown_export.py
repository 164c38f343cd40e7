"""Annotated markdown: YAML frontmatter with the annotations, then the code.

This is the exchange format for annotated code files. Unlike the ``// An:``
marker text it is meant to be read back in.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import frontmatter
import yaml
from pydantic import ValidationError

from close_reading.core.anchoring import Document
from close_reading.core.annotation_types import parse_annotation_type
from close_reading.core.errors import AnnotatedMarkdownError
from close_reading.core.inline_edit import new_annotation_id
from close_reading.models import LineAnnotation

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"
ANNOTATED_FLAG = "ccs-annotated"

_CODE_BLOCK = re.compile(r"^(?P<fence>`{3,})[^\n`]*\n(?P<code>.*?)\n(?P=fence)[ \t]*$", re.MULTILINE | re.DOTALL)


@dataclass(frozen=True)
class ParsedAnnotatedMarkdown:
    filename: str
    language: str
    exported_at: str
    version: str
    code: str
    annotations: tuple[LineAnnotation, ...]


def _fence_for(code: str) -> str:
    longest = max((len(run) for run in re.findall(r"`{3,}", code)), default=0)
    return "`" * max(3, longest + 1)


def _annotation_entry(annotation: LineAnnotation) -> dict[str, Any]:
    entry: dict[str, Any] = {"line": annotation.line_number}
    if annotation.is_block:
        entry["endLine"] = annotation.end_line_number
    entry["type"] = annotation.type.value
    entry["content"] = annotation.content
    if annotation.added_by:
        entry["addedBy"] = annotation.added_by
    entry["id"] = annotation.id
    entry["createdAt"] = annotation.created_at.isoformat()
    return entry


def export_annotated_markdown(
    code: str,
    annotations: Iterable[LineAnnotation],
    filename: str,
    language: str | None = None,
    exported_at: datetime | None = None,
) -> str:
    exported_at = exported_at or datetime.now(timezone.utc)
    language = language or "plain"
    metadata: dict[str, Any] = {
        ANNOTATED_FLAG: True,
        "version": FORMAT_VERSION,
        "filename": filename,
        "language": language,
        "exported-at": exported_at.isoformat(),
    }
    entries = [_annotation_entry(a) for a in annotations]
    if entries:
        metadata["annotations"] = entries

    yaml_front = yaml.dump(metadata, default_flow_style=False, allow_unicode=True, sort_keys=False)
    fence = _fence_for(code)
    return f"---\n{yaml_front}---\n\n{fence}{language.lower()}\n{code}\n{fence}\n"


def _build_annotation(
    entry: Any,
    index: int,
    document: Document,
    *,
    strict: bool,
    seen_ids: set[str],
    fallback_created_at: str,
) -> LineAnnotation | None:
    if not isinstance(entry, dict):
        return _reject(f"Annotation #{index} is not a mapping", strict)

    missing = [key for key in ("line", "type", "content") if entry.get(key) is None]
    if missing:
        return _reject(f"Annotation #{index} is missing {', '.join(missing)}", strict)

    annotation_id = str(entry.get("id") or new_annotation_id())
    if annotation_id in seen_ids:
        if strict:
            raise AnnotatedMarkdownError(f"Duplicate annotation id {annotation_id!r}")
        logger.warning("Duplicate annotation id %r, assigning a new one", annotation_id)
        annotation_id = new_annotation_id()

    line = entry["line"]
    end_line = entry.get("endLine")
    try:
        annotation = LineAnnotation(
            id=annotation_id,
            line_number=line,
            end_line_number=end_line if end_line not in (None, line) else None,
            type=parse_annotation_type(str(entry["type"]), strict=strict),
            content=str(entry["content"]),
            line_content=document.snapshot(int(line), int(end_line) if end_line else None),
            created_at=entry.get("createdAt") or fallback_created_at,
            added_by=entry.get("addedBy") or None,
        )
    except (ValidationError, TypeError, ValueError) as exc:
        if strict:
            raise AnnotatedMarkdownError(f"Annotation #{index} is invalid: {exc}") from exc
        logger.warning("Skipping invalid annotation #%d: %s", index, exc)
        return None

    seen_ids.add(annotation.id)
    return annotation


def _reject(message: str, strict: bool) -> None:
    if strict:
        raise AnnotatedMarkdownError(message)
    logger.warning("%s, skipping", message)
    return None


def _stringify(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def parse_annotated_markdown(text: str, *, strict: bool = False) -> ParsedAnnotatedMarkdown:
    """Read back a document written by ``export_annotated_markdown``.

    Raises ``AnnotatedMarkdownError`` when the text carries no readable
    annotated-markdown frontmatter. Malformed annotation entries are skipped
    with a warning, or raise when ``strict`` is set.
    """
    if not text.lstrip().startswith("---"):
        raise AnnotatedMarkdownError("Document has no YAML frontmatter")
    try:
        parsed = frontmatter.loads(text)
    except (yaml.YAMLError, TypeError, ValueError) as exc:
        raise AnnotatedMarkdownError(f"Failed to parse frontmatter: {exc}") from exc

    metadata = parsed.metadata or {}
    if metadata.get(ANNOTATED_FLAG) is not True:
        raise AnnotatedMarkdownError(f"Frontmatter is missing '{ANNOTATED_FLAG}: true'")

    body = parsed.content if isinstance(parsed.content, str) else str(parsed.content)
    match = _CODE_BLOCK.search(body)
    if match is None:
        logger.warning("No fenced code block found, using the whole body as code")
        code = body
    else:
        code = match.group("code")

    exported_at = _stringify(metadata.get("exported-at"))
    entries = metadata.get("annotations") or []
    if not isinstance(entries, list):
        if strict:
            raise AnnotatedMarkdownError("'annotations' must be a list")
        logger.warning("Ignoring 'annotations' of type %s", type(entries).__name__)
        entries = []

    document = Document.from_text(code)
    seen_ids: set[str] = set()
    annotations = []
    for index, entry in enumerate(entries, start=1):
        annotation = _build_annotation(
            entry,
            index,
            document,
            strict=strict,
            seen_ids=seen_ids,
            fallback_created_at=exported_at or datetime.now(timezone.utc).isoformat(),
        )
        if annotation is not None:
            annotations.append(annotation)

    return ParsedAnnotatedMarkdown(
        filename=_stringify(metadata.get("filename")),
        language=_stringify(metadata.get("language"), "plain"),
        exported_at=exported_at,
        version=_stringify(metadata.get("version"), FORMAT_VERSION),
        code=code,
        annotations=tuple(annotations),
    )
