"""Exception taxonomy for jetbrains-sync.

Only ``EnumerationError`` is allowed to abort a whole run.  Everything else
is raised inside a single target's pipeline and converted into a FAILED
result by the orchestrator.
"""

from pathlib import Path


class SyncError(Exception):
    """Base class for all sync failures."""


class EnumerationError(SyncError):
    """A required top-level directory could not be listed."""

    def __init__(self, directory: Path, reason: str) -> None:
        self.directory = directory
        self.reason = reason
        super().__init__(f"Cannot list directory {directory}: {reason}")


class BackupError(SyncError):
    """The current target could not be archived before an overwrite."""

    def __init__(self, target: Path, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Backup of {target} failed: {reason}")


class TargetReadError(SyncError):
    """An existing target could not be read for comparison."""

    def __init__(self, target: Path, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot read {target}: {reason}")


class TargetWriteError(SyncError):
    """The candidate content could not be written to the target."""

    def __init__(self, target: Path, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot write {target}: {reason}")
