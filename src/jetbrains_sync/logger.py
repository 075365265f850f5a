import json
import logging
import os
import re
import sys
from pathlib import Path

LABEL_WIDTH = 20
LABEL_SEPARATOR = "-" * LABEL_WIDTH
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Boundary between a letter and the version digits that follow it
_VERSION_BOUNDARY = re.compile(r"(?<=[a-zA-Z])(?=\d)")


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured debug output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def format_label(value: str | Path) -> str:
    """Render a product or directory name for the fixed-width log column.

    Paths contribute their final component.  The text is upper-cased and a
    space is inserted before a version number, so ``IntelliJIdea2024.3``
    becomes ``INTELLIJIDEA 2024.3``, right-aligned in 20 columns.
    """
    text = value.name if isinstance(value, Path) else value
    text = _VERSION_BOUNDARY.sub(" ", text.upper())
    return f"{text:>{LABEL_WIDTH}}"


def format_default() -> str:
    """Return the separator label used for run-level messages."""
    return format_label(LABEL_SEPARATOR)


def _formatter(
    debug_format: str, with_name: bool = False
) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=DATE_FORMAT)
    name = " %(name)s" if with_name else ""
    return logging.Formatter(
        f"[%(asctime)s] [%(levelname)s]{name} %(message)s",
        datefmt=DATE_FORMAT,
    )


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure logging for a command-line run.

    Args:
        debug: If True, overrides LOG_LEVEL to DEBUG.
        log_file: Optional log file path, written in addition to stderr.
        debug_format: "text" (default) or "json" for structured output.
        level: Level name from the config file, used when LOG_LEVEL is unset.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Default: INFO.
    """
    env_level = (os.getenv("LOG_LEVEL") or level or "INFO").upper()

    # debug parameter overrides environment
    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, env_level, logging.INFO)

    # stdout is reserved for reports, so progress goes to stderr
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_formatter(debug_format))
    handlers: list[logging.Handler] = [stderr_handler]

    if log_file:
        file_handler = logging.FileHandler(
            log_file, mode="a", encoding="utf-8"
        )
        file_handler.setFormatter(_formatter(debug_format, with_name=True))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
    )

    # charset detection is chatty at INFO
    if log_level != logging.DEBUG:
        logging.getLogger("charset_normalizer").setLevel(logging.WARNING)
