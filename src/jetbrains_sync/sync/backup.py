"""Timestamped backups of targets, with a bounded history per product.

Before a target is overwritten its current bytes are copied to
``<backup_root>/<product_name>/<file_name>_<YYYYmmddHHMMSS>``.  After each
successful copy the product directory is pruned down to ``keep_count``
entries, oldest first.

Pruning orders entries by the timestamp embedded in their names, not by
directory listing order.  Failing to create a directory or to copy raises
``BackupError`` and the target is left alone; failing to prune is only
logged.
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from jetbrains_sync.errors import BackupError
from jetbrains_sync.logger import format_label

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
DEFAULT_KEEP_COUNT = 5

_SUFFIX = re.compile(r"_(\d{14})$")


def backup_sort_key(path: Path) -> tuple[str, str]:
    """Order backups by their timestamp suffix, then by name.

    Entries without a recognisable suffix sort first, so they are the first
    to be pruned.
    """
    match = _SUFFIX.search(path.name)
    return (match.group(1) if match else "", path.name)


class BackupRotator:
    """Copy targets into a per-product archive and prune old copies.

    Args:
        backup_root: Root of the archive, e.g. ``<project>/backup``.
        keep_count: Number of backups retained per product directory.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        backup_root: Path,
        keep_count: int = DEFAULT_KEEP_COUNT,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if keep_count < 1:
            raise ValueError("keep_count must be at least 1")
        self.backup_root = backup_root
        self.keep_count = keep_count
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def rotate(self, target_path: Path, product_name: str) -> Path | None:
        """Back up *target_path* and prune its archive.

        Returns:
            Path of the new backup, or ``None`` if the target did not exist.

        Raises:
            BackupError: If the archive directory or the copy failed.
        """
        backup_path = self.backup(target_path, product_name)
        if backup_path is not None:
            self.prune(product_name)
        return backup_path

    def backup(self, target_path: Path, product_name: str) -> Path | None:
        """Copy *target_path* into the product archive, unmodified.

        A backup made within the same second as an earlier one replaces it.

        Returns:
            Path of the new backup, or ``None`` if the target did not exist.

        Raises:
            BackupError: If the archive directory or the copy failed.
        """
        if not target_path.exists():
            return None

        product_dir = self.product_dir(product_name)
        try:
            product_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(
                "[%s] Cannot create backup directory %s: %s",
                format_label(product_name),
                product_dir,
                exc,
            )
            raise BackupError(target_path, str(exc)) from exc

        stamp = self._clock().strftime(TIMESTAMP_FORMAT)
        backup_path = product_dir / f"{target_path.name}_{stamp}"
        try:
            shutil.copyfile(target_path, backup_path)
        except OSError as exc:
            logger.error(
                "[%s] Backup of %s failed: %s",
                format_label(product_name),
                target_path.name,
                exc,
            )
            raise BackupError(target_path, str(exc)) from exc

        logger.info(
            "[%s] Backed up: %s",
            format_label(product_name),
            self._display(backup_path),
        )
        return backup_path

    def prune(self, product_name: str) -> list[Path]:
        """Delete the oldest backups of *product_name* beyond ``keep_count``.

        Never raises: a failure stops pruning for this product and is
        logged, the backups already deleted stay deleted.

        Returns:
            The backups that were deleted.
        """
        deleted: list[Path] = []
        try:
            entries = self.list_backups(product_name)
            excess = len(entries) - self.keep_count
            for stale in entries[: max(excess, 0)]:
                stale.unlink()
                deleted.append(stale)
                logger.info(
                    "[%s] Pruned: %s",
                    format_label(product_name),
                    self._display(stale),
                )
        except OSError as exc:
            logger.error(
                "[%s] Pruning old backups failed, delete them manually: %s",
                format_label(product_name),
                exc,
            )
        return deleted

    def product_dir(self, product_name: str) -> Path:
        """Return the archive directory for *product_name*."""
        return self.backup_root / product_name

    def list_backups(self, product_name: str) -> list[Path]:
        """Return existing backups for *product_name*, oldest first."""
        product_dir = self.product_dir(product_name)
        if not product_dir.is_dir():
            return []
        return sorted(product_dir.iterdir(), key=backup_sort_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _display(self, path: Path) -> str:
        """Path relative to the archive's parent, with forward slashes."""
        try:
            return path.relative_to(self.backup_root.parent).as_posix()
        except ValueError:
            return path.as_posix()
