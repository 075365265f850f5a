"""Line-level diff between an existing target and candidate content.

Uses ``difflib.SequenceMatcher`` to compute an edit script and counts its
non-equal opcodes: each one is a contiguous group of inserted, deleted or
replaced lines (a *delta*).  Two lines changed next to each other are one
delta; two changes separated by an unchanged line are two.

The file-reading helpers pattern-match on ``ReadStatus`` rather than
catching exceptions: a missing target is the normal first-run case and is
reported as a guaranteed difference.
"""

from __future__ import annotations

import difflib
from collections.abc import Sequence
from pathlib import Path

from jetbrains_sync.errors import TargetReadError
from jetbrains_sync.file_handler import (
    LineMode,
    ReadStatus,
    read_lines,
    split_lines,
)
from jetbrains_sync.sync.models import DiffResult


def count_deltas(
    existing_lines: Sequence[str], candidate_lines: Sequence[str]
) -> int:
    """Return the number of contiguous edit groups between two line lists."""
    matcher = difflib.SequenceMatcher(
        a=existing_lines, b=candidate_lines, autojunk=False
    )
    return sum(
        1 for tag, *_ in matcher.get_opcodes() if tag != "equal"
    )


def diff_lines(
    existing_lines: Sequence[str], candidate_lines: Sequence[str]
) -> DiffResult:
    """Compare existing lines with candidate lines.

    Args:
        existing_lines: Current content of the target.
        candidate_lines: Content that would replace it.

    Returns:
        A ``DiffResult`` whose ``total_lines`` counts the candidate lines.
    """
    deltas = count_deltas(existing_lines, candidate_lines)
    if deltas:
        message = f"{deltas} difference(s) found, overwrite allowed"
    else:
        message = "content identical, no overwrite needed"
    return DiffResult(
        has_difference=deltas > 0,
        total_lines=len(candidate_lines),
        delta_count=deltas,
        message=message,
    )


def compare_content(
    path: Path, candidate: str, mode: LineMode = LineMode.TEXT
) -> DiffResult:
    """Compare the file at *path* with candidate text.

    A missing file is a forced difference, whatever the candidate holds.

    Raises:
        TargetReadError: If the file exists but cannot be read.
    """
    candidate_lines = split_lines(candidate)
    current = read_lines(path, mode)

    match current.status:
        case ReadStatus.NOT_FOUND:
            return DiffResult(
                has_difference=True,
                total_lines=len(candidate_lines),
                delta_count=1,
                message="target does not exist, overwrite allowed",
            )
        case ReadStatus.IO_ERROR:
            raise TargetReadError(path, current.error or "unreadable")
        case _:
            return diff_lines(current.lines, candidate_lines)


def compare_files(
    source: Path, target: Path, mode: LineMode = LineMode.BYTES
) -> bool:
    """Return True when *target* is missing or differs from *source*.

    Defaults to byte-transparent decoding so binary-ish license files
    compare by their exact bytes, line by line.

    Raises:
        TargetReadError: If either existing file cannot be read.
    """
    source_read = read_lines(source, mode)
    if not source_read.ok:
        raise TargetReadError(source, source_read.error or "not found")

    target_read = read_lines(target, mode)
    match target_read.status:
        case ReadStatus.NOT_FOUND:
            return True
        case ReadStatus.IO_ERROR:
            raise TargetReadError(target, target_read.error or "unreadable")
        case _:
            return count_deltas(target_read.lines, source_read.lines) > 0


def generate_diff(
    old_content: str,
    new_content: str,
    label_old: str = "current",
    label_new: str = "candidate",
) -> str:
    """Generate a unified diff between two strings.

    Args:
        old_content: The original content.
        new_content: The modified content.
        label_old: Label for the old file in the diff header.
        label_new: Label for the new file in the diff header.

    Returns:
        A unified diff string.  Empty string if the contents are identical.
    """
    old_lines = old_content.splitlines(True)
    new_lines = new_content.splitlines(True)

    diff_lines_iter = difflib.unified_diff(
        old_lines,
        new_lines,
        fromfile=label_old,
        tofile=label_new,
    )

    return "".join(diff_lines_iter)
