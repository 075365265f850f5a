"""Pydantic models for the vmoptions pipeline and the license mirror.

Defines the data contracts shared by all sync modules:

- ``DiffResult``: Outcome of comparing a target with candidate content.
- ``SyncTarget``: One vmoptions file and the names derived from its location.
- ``TargetState``: Lifecycle of one target during a run.
- ``TargetResult`` / ``SyncReport``: Per-target outcome and aggregate.
- ``LicenseAction`` / ``LicenseResult`` / ``LicenseReport``: License mirror
  counterparts.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, model_validator

# Version suffix of a product directory, e.g. "2024.3" in "PyCharm2024.3"
_VERSION_CHARS = re.compile(r"[\d.]+")
# Architecture and platform tail of a vmoptions file, e.g. "64.exe.vmoptions"
_FRAGMENT_TAIL = re.compile(r"\d{2}.*")


def product_name_of(dir_name: str) -> str:
    """Strip version digits and dots from a product directory name."""
    return _VERSION_CHARS.sub("", dir_name)


def fragment_name_of(file_name: str) -> str:
    """Derive the fragment key from a vmoptions file name.

    ``idea64.exe.vmoptions`` -> ``idea``.
    """
    return _FRAGMENT_TAIL.sub("", file_name)


class DiffResult(BaseModel):
    """Outcome of one line-level comparison.

    Attributes:
        has_difference: True when at least one delta exists.
        total_lines: Line count of the candidate (new) content.
        delta_count: Number of contiguous edit groups.
        message: Human-readable summary.
    """

    has_difference: bool
    total_lines: int
    delta_count: int
    message: str

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _difference_matches_deltas(self) -> DiffResult:
        if self.has_difference != (self.delta_count > 0):
            raise ValueError(
                "has_difference must be True exactly when delta_count > 0"
            )
        return self


class SyncTarget(BaseModel):
    """One destination vmoptions file.

    Attributes:
        path: Absolute path of the vmoptions file (may not exist yet).
        product_dir_name: Versioned product directory, e.g. ``GoLand2024.3``.
        product_name: Product directory without version, e.g. ``GoLand``.
        fragment_name: Key of the product-specific fragment, e.g. ``goland``.
    """

    path: Path
    product_dir_name: str
    product_name: str
    fragment_name: str

    model_config = {"frozen": True}

    @classmethod
    def from_path(cls, path: Path) -> SyncTarget:
        """Build a target from ``<user_dir>/<ProductDir>/<file>``."""
        product_dir_name = path.parent.name
        return cls(
            path=path,
            product_dir_name=product_dir_name,
            product_name=product_name_of(product_dir_name),
            fragment_name=fragment_name_of(path.name),
        )


class TargetState(str, Enum):
    """Lifecycle states of one target."""

    PENDING = "pending"
    PRESET_EXTRACTED = "preset_extracted"
    COMPOSED = "composed"
    SKIPPED = "skipped"
    WOULD_WRITE = "would_write"
    WRITTEN = "written"
    FAILED = "failed"
    UNCONFIGURED = "unconfigured"


class TargetResult(BaseModel):
    """Final outcome for one target.

    Attributes:
        target: The target that was processed.
        state: Terminal state reached.
        diff: Comparison result, when composition succeeded.
        backup_path: Archived copy made before the write, if any.
        error: Error message if the target failed or was unconfigured.
        unified_diff: Current -> candidate diff, kept when previews are on.
    """

    target: SyncTarget
    state: TargetState
    diff: DiffResult | None = None
    backup_path: Path | None = None
    error: str | None = None
    unified_diff: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for one vmoptions run.

    Attributes:
        dry_run: Whether this was a dry-run (no changes applied).
        results: Per-target results, in processing order.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    dry_run: bool = False
    results: list[TargetResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _in_state(self, state: TargetState) -> list[TargetResult]:
        return [r for r in self.results if r.state == state]

    @property
    def written(self) -> list[TargetResult]:
        """Targets whose content was replaced."""
        return self._in_state(TargetState.WRITTEN)

    @property
    def would_write(self) -> list[TargetResult]:
        """Targets a dry run found different and left untouched."""
        return self._in_state(TargetState.WOULD_WRITE)

    @property
    def skipped(self) -> list[TargetResult]:
        """Targets already up to date."""
        return self._in_state(TargetState.SKIPPED)

    @property
    def failed(self) -> list[TargetResult]:
        return self._in_state(TargetState.FAILED)

    @property
    def unconfigured(self) -> list[TargetResult]:
        """Targets without a product-specific fragment."""
        return self._in_state(TargetState.UNCONFIGURED)

    @property
    def configured(self) -> list[TargetResult]:
        """Targets that were composed, whatever the write outcome."""
        return [
            r
            for r in self.results
            if r.state
            in (TargetState.WRITTEN, TargetState.WOULD_WRITE, TargetState.SKIPPED)
        ]

    def summary(self) -> str:
        """Format a human-readable summary of the run.

        Returns:
            Multi-line summary string with counts by outcome.
        """
        if self.dry_run:
            changed = f"    Would write: {len(self.would_write)}"
        else:
            changed = f"    Written:     {len(self.written)}"
        lines = [
            "vmoptions sync" + (" (dry run)" if self.dry_run else ""),
            f"  Configured:    {len(self.configured)}",
            changed,
            f"    Unchanged:   {len(self.skipped)}",
            f"  Unconfigured:  {len(self.unconfigured)}",
            f"  Failed:        {len(self.failed)}",
            f"  Total:         {len(self.results)}",
        ]
        return "\n".join(lines)


class LicenseDirection(str, Enum):
    """Which way a license file travelled."""

    BACKUP = "backup"
    RESTORE = "restore"


class LicenseAction(str, Enum):
    """Outcome for one license file."""

    COPIED = "copied"
    SKIPPED = "skipped"
    FAILED = "failed"


class LicenseResult(BaseModel):
    """Result of mirroring one license file.

    Attributes:
        direction: ``backup`` (user -> archive) or ``restore``.
        source: File that was read.
        destination: File that was (or would be) written.
        action: What happened.
        error: Why the copy failed, or why an existing destination was
            left alone.
    """

    direction: LicenseDirection
    source: Path
    destination: Path
    action: LicenseAction
    error: str | None = None

    model_config = {"frozen": True}


class LicenseReport(BaseModel):
    """Aggregate report for one license mirror run."""

    dry_run: bool = False
    results: list[LicenseResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def select(
        self,
        direction: LicenseDirection | None = None,
        action: LicenseAction | None = None,
    ) -> list[LicenseResult]:
        """Results filtered by direction and/or action."""
        return [
            r
            for r in self.results
            if (direction is None or r.direction == direction)
            and (action is None or r.action == action)
        ]

    @property
    def failed(self) -> list[LicenseResult]:
        return self.select(action=LicenseAction.FAILED)

    def summary(self) -> str:
        lines = ["license sync" + (" (dry run)" if self.dry_run else "")]
        for direction in LicenseDirection:
            lines.append(
                f"  {direction.value.capitalize():<8}"
                f" copied {len(self.select(direction, LicenseAction.COPIED))}"
                f" | skipped {len(self.select(direction, LicenseAction.SKIPPED))}"
                f" | failed {len(self.select(direction, LicenseAction.FAILED))}"
            )
        return "\n".join(lines)
