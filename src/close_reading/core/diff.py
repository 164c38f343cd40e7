"""Line diff between two versions of a code artifact.

Greedy single pass with bounded lookahead rather than a minimal edit
script. When ``A[i]`` and ``B[j]`` differ the engine first looks for
``A[i]`` within ``lookahead_b`` lines of B (the gap becomes additions), then
for ``B[j]`` within ``lookahead_a`` lines of A (the gap becomes removals),
and otherwise pairs the two lines as a modification. Output depends on the
window sizes.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Sequence

from close_reading.models import DiffLine, DiffLineType, DiffResult, DiffStats

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_B = 3
DEFAULT_LOOKAHEAD_A = 4


def split_lines(code: str) -> list[str]:
    """Split on ``\\n``; empty text has no lines."""
    if code == "":
        return []
    return code.split("\n")


def _index_lines(lines: Sequence[str]) -> dict[str, list[int]]:
    positions: dict[str, list[int]] = {}
    for index, line in enumerate(lines):
        positions.setdefault(line, []).append(index)
    return positions


def compute_diff(
    lines_a: Sequence[str],
    lines_b: Sequence[str],
    *,
    lookahead_b: int = DEFAULT_LOOKAHEAD_B,
    lookahead_a: int = DEFAULT_LOOKAHEAD_A,
) -> list[DiffLine]:
    positions_b = _index_lines(lines_b)
    rows: list[DiffLine] = []
    i = j = 0

    def added(index: int) -> DiffLine:
        return DiffLine(type=DiffLineType.ADDED, line_number_b=index + 1, content_b=lines_b[index])

    def removed(index: int) -> DiffLine:
        return DiffLine(type=DiffLineType.REMOVED, line_number_a=index + 1, content_a=lines_a[index])

    while i < len(lines_a) or j < len(lines_b):
        if i >= len(lines_a):
            rows.append(added(j))
            j += 1
            continue
        if j >= len(lines_b):
            rows.append(removed(i))
            i += 1
            continue

        line_a, line_b = lines_a[i], lines_b[j]
        if line_a == line_b:
            rows.append(
                DiffLine(
                    type=DiffLineType.UNCHANGED,
                    line_number_a=i + 1,
                    line_number_b=j + 1,
                    content_a=line_a,
                    content_b=line_b,
                )
            )
            i += 1
            j += 1
            continue

        occurrences = positions_b.get(line_a, [])
        k = bisect.bisect_left(occurrences, j)
        if k < len(occurrences) and occurrences[k] - j <= lookahead_b:
            # i stays put; the next pass pairs it with its match as unchanged.
            while j < occurrences[k]:
                rows.append(added(j))
                j += 1
            continue

        window = lines_a[i : i + lookahead_a]
        offset = window.index(line_b) if line_b in window else -1
        if offset > 0:
            for _ in range(offset):
                rows.append(removed(i))
                i += 1
            continue

        rows.append(
            DiffLine(
                type=DiffLineType.MODIFIED,
                line_number_a=i + 1,
                line_number_b=j + 1,
                content_a=line_a,
                content_b=line_b,
            )
        )
        i += 1
        j += 1

    return rows


def summarize(rows: Sequence[DiffLine]) -> DiffStats:
    counts = dict.fromkeys(DiffLineType, 0)
    for row in rows:
        counts[row.type] += 1
    return DiffStats(
        added=counts[DiffLineType.ADDED],
        removed=counts[DiffLineType.REMOVED],
        modified=counts[DiffLineType.MODIFIED],
        unchanged=counts[DiffLineType.UNCHANGED],
    )


def diff(
    code_a: str,
    code_b: str,
    *,
    lookahead_b: int = DEFAULT_LOOKAHEAD_B,
    lookahead_a: int = DEFAULT_LOOKAHEAD_A,
) -> DiffResult:
    rows = compute_diff(split_lines(code_a), split_lines(code_b), lookahead_b=lookahead_b, lookahead_a=lookahead_a)
    stats = summarize(rows)
    logger.debug(
        "Diff: %d added, %d removed, %d modified, %d unchanged",
        stats.added,
        stats.removed,
        stats.modified,
        stats.unchanged,
    )
    return DiffResult(lines=rows, stats=stats)
