"""Recover preset variable lines from a target before it is overwritten.

JetBrains Toolbox appends a few ``-D`` options to each IDE's vmoptions
file.  They must survive a rewrite, so the previous content is scanned for
them and they are re-appended by the composer.  Each prefix appears at most
once per file and always near the end, hence the reverse scan that stops as
soon as every prefix has been seen.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from pathlib import Path

from jetbrains_sync.file_handler import LineMode, ReadStatus, read_lines

logger = logging.getLogger(__name__)

TOOLBOX_PREFIXES: frozenset[str] = frozenset(
    {
        "-Dide.managed.by.toolbox",
        "-Dtoolbox.notification.token",
        "-Dtoolbox.notification.portFile",
    }
)


def option_key(line: str) -> str | None:
    """Return the text before the first ``=``, or None if there is none."""
    key, sep, _ = line.partition("=")
    return key if sep else None


def extract_presets(
    lines: Sequence[str],
    prefixes: Collection[str] = TOOLBOX_PREFIXES,
) -> str:
    """Collect lines whose option key is one of *prefixes*.

    Args:
        lines: Current target lines, in document order.
        prefixes: Recognised option keys.

    Returns:
        Matching whole lines in document order, each terminated by ``\\n``;
        ``""`` when none match.
    """
    found: list[str] = []
    remaining = len(prefixes)
    for line in reversed(lines):
        if remaining == 0:
            break
        if option_key(line) in prefixes:
            found.append(line)
            remaining -= 1
    return "".join(f"{line}\n" for line in reversed(found))


def extract_presets_from_file(
    path: Path,
    prefixes: Collection[str] = TOOLBOX_PREFIXES,
    mode: LineMode = LineMode.TEXT,
) -> str:
    """Read *path* and extract its preset lines.

    A missing or unreadable file simply has no presets to carry forward.
    """
    current = read_lines(path, mode)
    match current.status:
        case ReadStatus.NOT_FOUND:
            logger.debug("No existing file at %s, no presets", path)
            return ""
        case ReadStatus.IO_ERROR:
            logger.debug(
                "Cannot read %s for presets: %s", path, current.error
            )
            return ""
        case _:
            return extract_presets(current.lines, prefixes)
