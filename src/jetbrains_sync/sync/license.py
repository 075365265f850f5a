"""Bidirectional mirror of license files.

Two passes, backup first:

- **backup**: ``*.key`` and ``*.license`` files of every known product
  directory are copied to ``<archive>/<ProductName>/`` when they are new or
  differ from the archived copy.
- **restore**: every file of ``<archive>/<ProductName>/`` is copied into each
  user directory whose name starts with that product name where no file
  of that name exists yet.  An identical file is unchanged, a different one
  is left alone and reported.  This is how a freshly installed IDE
  version picks up the license of the previous one.

Comparisons are byte-transparent.  Per-file failures are recorded and the
pass continues; failing to list either top-level directory aborts the run.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path

from jetbrains_sync.errors import EnumerationError
from jetbrains_sync.file_handler import list_subdirs
from jetbrains_sync.logger import format_default, format_label
from jetbrains_sync.sync.differ import compare_files
from jetbrains_sync.sync.models import (
    LicenseAction,
    LicenseDirection,
    LicenseReport,
    LicenseResult,
    product_name_of,
)

logger = logging.getLogger(__name__)

LICENSE_SUFFIXES = frozenset({".key", ".license"})
CONFLICT = "exists with different content"


def is_license_file(path: Path) -> bool:
    return path.suffix.lower() in LICENSE_SUFFIXES and path.is_file()


class LicenseSync:
    """Mirror license files between the user directory and an archive.

    Args:
        user_dir: JetBrains user configuration directory.
        archive_dir: Project-local license archive.
        catalog: Known products; other directories are not backed up.
    """

    def __init__(
        self,
        user_dir: Path,
        archive_dir: Path,
        catalog: Mapping[str, str],
    ) -> None:
        self.user_dir = user_dir
        self.archive_dir = archive_dir
        self.catalog = catalog

    def run(self, dry_run: bool = False) -> LicenseReport:
        """Run the backup pass, then the restore pass.

        Raises:
            EnumerationError: If the user directory or the archive cannot
                be listed.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        user_dirs = list_subdirs(self.user_dir)

        results = self.backup(user_dirs, dry_run)
        results += self.restore(user_dirs, dry_run)

        report = LicenseReport(
            dry_run=dry_run,
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "[%s] Licenses: %d copied, %d failed",
            format_default(),
            len(report.select(action=LicenseAction.COPIED)),
            len(report.failed),
        )
        return report

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def backup(
        self, user_dirs: list[Path], dry_run: bool = False
    ) -> list[LicenseResult]:
        results: list[LicenseResult] = []
        for user_product_dir in user_dirs:
            product_name = product_name_of(user_product_dir.name)
            if product_name not in self.catalog:
                continue
            try:
                sources = sorted(
                    p for p in user_product_dir.iterdir() if is_license_file(p)
                )
            except OSError as exc:
                logger.error(
                    "[%s] Cannot list licenses: %s",
                    format_label(user_product_dir),
                    exc,
                )
                continue
            for source in sources:
                destination = self.archive_dir / product_name / source.name
                results.append(
                    self._mirror(
                        LicenseDirection.BACKUP, source, destination, dry_run
                    )
                )
        return results

    def restore(
        self, user_dirs: list[Path], dry_run: bool = False
    ) -> list[LicenseResult]:
        results: list[LicenseResult] = []
        for archived_dir in self._archived_products():
            try:
                sources = sorted(
                    p for p in archived_dir.iterdir() if p.is_file()
                )
            except OSError as exc:
                logger.error(
                    "[%s] Cannot list archived licenses: %s",
                    format_label(archived_dir),
                    exc,
                )
                continue
            for user_product_dir in user_dirs:
                if not user_product_dir.name.startswith(archived_dir.name):
                    continue
                for source in sources:
                    destination = user_product_dir / source.name
                    results.append(
                        self._mirror(
                            LicenseDirection.RESTORE,
                            source,
                            destination,
                            dry_run,
                        )
                    )
        return results

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _archived_products(self) -> list[Path]:
        """Product directories of the archive; none if it does not exist."""
        if not self.archive_dir.exists():
            logger.debug("No license archive at %s", self.archive_dir)
            return []
        try:
            return sorted(p for p in self.archive_dir.iterdir() if p.is_dir())
        except OSError as exc:
            logger.error(
                "Cannot list license archive %s: %s", self.archive_dir, exc
            )
            raise EnumerationError(self.archive_dir, str(exc)) from exc

    def _mirror(
        self,
        direction: LicenseDirection,
        source: Path,
        destination: Path,
        dry_run: bool,
    ) -> LicenseResult:
        """Copy *source* to *destination* unless they are already identical.

        Restoring never replaces an existing user file: a destination that
        exists with other content is skipped with a warning.
        """
        label = format_label(destination.parent)
        try:
            if not compare_files(source, destination):
                logger.debug("[%s] Unchanged: %s", label, destination.name)
                return LicenseResult(
                    direction=direction,
                    source=source,
                    destination=destination,
                    action=LicenseAction.SKIPPED,
                )
            if direction is LicenseDirection.RESTORE and destination.exists():
                logger.warning(
                    "[%s] Not restoring %s, it exists with different content",
                    label,
                    destination.name,
                )
                return LicenseResult(
                    direction=direction,
                    source=source,
                    destination=destination,
                    action=LicenseAction.SKIPPED,
                    error=CONFLICT,
                )
            if not dry_run:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, destination)
        except Exception as exc:
            logger.error(
                "[%s] %s of %s failed: %s",
                label,
                direction.value.capitalize(),
                source.name,
                exc,
            )
            return LicenseResult(
                direction=direction,
                source=source,
                destination=destination,
                action=LicenseAction.FAILED,
                error=str(exc),
            )

        logger.info(
            "[%s] %s %s",
            label,
            "Backed up" if direction is LicenseDirection.BACKUP else "Restored",
            destination.name,
        )
        return LicenseResult(
            direction=direction,
            source=source,
            destination=destination,
            action=LicenseAction.COPIED,
        )
