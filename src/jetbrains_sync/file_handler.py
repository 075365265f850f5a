"""File handler module: encoding-aware line reading and exact writes.

Provides the file I/O infrastructure shared by the vmoptions pipeline and
the license mirror.  Reading never raises for the two expected failure
shapes (missing file, unreadable file); callers receive a ``ReadResult``
and decide what absence means for them.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from charset_normalizer import from_bytes

from jetbrains_sync.errors import EnumerationError

# =============================================================================
# Read results
# =============================================================================


class ReadStatus(str, Enum):
    """Outcome of reading a file as lines."""

    OK = "ok"
    NOT_FOUND = "not_found"
    IO_ERROR = "io_error"


class LineMode(str, Enum):
    """How raw bytes are decoded before a line comparison.

    ``BYTES`` maps every byte to one character (ISO-8859-1), so two files
    compare equal exactly when their bytes do.  ``TEXT`` detects the text
    encoding, which is what an editor would show.
    """

    BYTES = "bytes"
    TEXT = "text"


@dataclass(frozen=True)
class ReadResult:
    """Lines read from *path*, or the reason none could be read."""

    path: Path
    status: ReadStatus
    lines: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ReadStatus.OK


# =============================================================================
# Decoding
# =============================================================================

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> list[str]:
    """Split *text* on ``\\r\\n``, ``\\r`` or ``\\n`` and drop terminators.

    Unlike ``str.splitlines`` no other control characters break a line.
    A trailing terminator does not produce an extra empty line.
    """
    if not text:
        return []
    lines = _LINE_BREAK.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def decode_text(raw: bytes) -> tuple[str, str]:
    """Decode *raw* with automatic encoding detection.

    Uses charset-normalizer to detect encoding.  Defaults to UTF-8 for
    empty input or when detection fails.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        # Detection failed, fall back to utf-8
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # Normalize ascii to utf-8 (ascii is a strict subset of utf-8)
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def decode(raw: bytes, mode: LineMode) -> str:
    """Decode *raw* according to *mode*."""
    if mode is LineMode.BYTES:
        return raw.decode("iso-8859-1")
    content, _ = decode_text(raw)
    return content


# =============================================================================
# File Read/Write
# =============================================================================


def read_lines(path: Path, mode: LineMode = LineMode.TEXT) -> ReadResult:
    """Read *path* as a list of lines without raising for I/O failures.

    Args:
        path: File to read.
        mode: Decoding mode, see ``LineMode``.

    Returns:
        ``ReadResult`` with status ``OK`` and the lines, ``NOT_FOUND`` when
        the file does not exist, or ``IO_ERROR`` with the error message.
    """
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return ReadResult(path=path, status=ReadStatus.NOT_FOUND)
    except OSError as exc:
        return ReadResult(
            path=path, status=ReadStatus.IO_ERROR, error=str(exc)
        )
    return ReadResult(
        path=path,
        status=ReadStatus.OK,
        lines=split_lines(decode(raw, mode)),
    )


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, replacing whatever it held.

    The parent directory must already exist; a missing parent raises
    ``FileNotFoundError``.  No newline translation takes place, so the
    bytes on disk are exactly ``content.encode(encoding)``.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)


def list_subdirs(directory: Path) -> list[Path]:
    """Return the subdirectories of *directory*, sorted by name.

    Raises:
        EnumerationError: If *directory* cannot be listed.
    """
    try:
        return sorted(p for p in directory.iterdir() if p.is_dir())
    except OSError as exc:
        raise EnumerationError(directory, str(exc)) from exc
