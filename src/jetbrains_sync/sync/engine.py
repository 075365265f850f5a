"""Orchestrate one vmoptions synchronisation run.

``VmOptionsSync`` walks every target and drives it through:

1. Fragment lookup (a missing fragment leaves the target unconfigured).
2. Preset extraction from the current target content.
3. Composition of the candidate document.
4. Line diff against the current content.
5. Backup rotation followed by an exact overwrite, only when they differ.
   A dry run stops here and reports the target as ``WOULD_WRITE``.

Error handling is per-target: a single failure becomes a FAILED result and
the loop moves on.  Only failing to enumerate the targets aborts the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from datetime import datetime, timezone

from jetbrains_sync.errors import TargetReadError, TargetWriteError
from jetbrains_sync.file_handler import ReadStatus, read_lines, write_file
from jetbrains_sync.logger import format_default, format_label
from jetbrains_sync.fragments import FragmentProvider
from jetbrains_sync.sync.backup import BackupRotator
from jetbrains_sync.sync.composer import compose_content
from jetbrains_sync.sync.differ import compare_content, generate_diff
from jetbrains_sync.sync.models import (
    SyncReport,
    SyncTarget,
    TargetResult,
    TargetState,
)
from jetbrains_sync.sync.presets import TOOLBOX_PREFIXES, extract_presets_from_file

logger = logging.getLogger(__name__)


class VmOptionsSync:
    """Synchronise generated vmoptions content into every target.

    Args:
        targets_provider: Returns the targets of this run; may raise
            ``EnumerationError``.
        fragments: Source of the specific, general and comment fragments.
        rotator: Backup archive used before each overwrite.
        prefixes: Option keys preserved from the previous content.
        show_diff: Keep a unified diff on every changed result.
    """

    def __init__(
        self,
        targets_provider: Callable[[], list[SyncTarget]],
        fragments: FragmentProvider,
        rotator: BackupRotator,
        prefixes: Collection[str] = TOOLBOX_PREFIXES,
        show_diff: bool = False,
    ) -> None:
        self.targets_provider = targets_provider
        self.fragments = fragments
        self.rotator = rotator
        self.prefixes = prefixes
        self.show_diff = show_diff

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self, dry_run: bool = False) -> SyncReport:
        """Execute a full synchronisation cycle.

        Args:
            dry_run: If ``True``, compute diffs but neither back up nor write.

        Returns:
            A ``SyncReport`` summarising what was (or would be) done.

        Raises:
            EnumerationError: If the targets cannot be listed.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        targets = self.targets_provider()

        remaining = len(targets)
        logger.info(
            "[%s] %d target(s) found%s",
            format_default(),
            remaining,
            " (dry run)" if dry_run else "",
        )

        results: list[TargetResult] = []
        for target in targets:
            remaining -= 1
            try:
                result = self._sync_target(target, dry_run)
            except Exception as exc:
                logger.error(
                    "[%s] Sync failed: %s",
                    format_label(target.product_dir_name),
                    exc,
                )
                result = TargetResult(
                    target=target,
                    state=TargetState.FAILED,
                    error=str(exc),
                )
            results.append(result)
            logger.debug(
                "[%s] %s, %d remaining",
                format_label(target.product_dir_name),
                result.state.value,
                remaining,
            )

        report = SyncReport(
            dry_run=dry_run,
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "[%s] %d configured, %d unconfigured, %d failed",
            format_default(),
            len(report.configured),
            len(report.unconfigured),
            len(report.failed),
        )
        return report

    # ------------------------------------------------------------------
    # Per-target pipeline
    # ------------------------------------------------------------------

    def _sync_target(self, target: SyncTarget, dry_run: bool) -> TargetResult:
        """Drive one target from PENDING to a terminal state."""
        label = format_label(target.product_dir_name)
        specific = self.fragments.specific(target.fragment_name)
        general = self.fragments.general()
        comment = self.fragments.comment()
        missing = [
            name
            for name, fragment in (
                (f"specific/{target.fragment_name}", specific),
                ("general", general),
                ("comment", comment),
            )
            if fragment is None
        ]
        if missing:
            logger.info("[%s] Unconfigured, no %s fragment", label, missing[0])
            return TargetResult(
                target=target,
                state=TargetState.UNCONFIGURED,
                error=f"missing fragment: {', '.join(missing)}",
            )

        presets = extract_presets_from_file(target.path, self.prefixes)
        logger.debug(
            "[%s] %s: %d preset line(s)",
            label,
            TargetState.PRESET_EXTRACTED.value,
            presets.count("\n"),
        )

        candidate = compose_content(specific, general, comment, presets)
        diff = compare_content(target.path, candidate)
        logger.debug(
            "[%s] %s: %s", label, TargetState.COMPOSED.value, diff.message
        )
        if not diff.has_difference:
            logger.info("[%s] Up to date", label)
            return TargetResult(
                target=target, state=TargetState.SKIPPED, diff=diff
            )

        unified = self._preview(target, candidate) if self.show_diff else None

        if dry_run:
            logger.info("[%s] Would write %s", label, target.path.name)
            return TargetResult(
                target=target,
                state=TargetState.WOULD_WRITE,
                diff=diff,
                unified_diff=unified,
            )

        backup_path = self.rotator.rotate(target.path, target.product_name)
        try:
            write_file(target.path, candidate)
        except OSError as exc:
            raise TargetWriteError(target.path, str(exc)) from exc

        logger.info(
            "[%s] Written: %s (%d difference(s))",
            label,
            target.path.name,
            diff.delta_count,
        )
        return TargetResult(
            target=target,
            state=TargetState.WRITTEN,
            diff=diff,
            backup_path=backup_path,
            unified_diff=unified,
        )

    def _preview(self, target: SyncTarget, candidate: str) -> str:
        """Unified diff from the current content (empty if absent).

        Raises:
            TargetReadError: If the target exists but cannot be read.
        """
        current_read = read_lines(target.path)
        match current_read.status:
            case ReadStatus.NOT_FOUND:
                current = ""
            case ReadStatus.IO_ERROR:
                raise TargetReadError(
                    target.path, current_read.error or "unreadable"
                )
            case _:
                current = "".join(f"{line}\n" for line in current_read.lines)
        return generate_diff(
            current,
            candidate,
            label_old=f"{target.product_dir_name}/{target.path.name}",
            label_new="generated",
        )
