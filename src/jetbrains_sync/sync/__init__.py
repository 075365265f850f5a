"""vmoptions synchronisation and license mirror.

Public API for writing generated JetBrains ``*.vmoptions`` content into
every installed IDE and for mirroring license files to a project archive.

Modules:

- ``engine``    -- ``VmOptionsSync``: orchestrates one vmoptions run.
- ``differ``    -- Line-level diff with a delta count.
- ``composer``  -- Assembles the candidate document from its fragments.
- ``presets``   -- Recovers Toolbox-managed options from the old content.
- ``backup``    -- ``BackupRotator``: timestamped copies, bounded history.
- ``license``   -- ``LicenseSync``: bidirectional license mirror.
- ``models``    -- ``DiffResult``, ``SyncTarget``, ``TargetState``,
  ``TargetResult``, ``SyncReport`` and the license counterparts.
- ``reporter``  -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from jetbrains_sync.products import ProductCatalog, discover_targets
    from jetbrains_sync.fragments import FragmentProvider
    from jetbrains_sync.sync import BackupRotator, VmOptionsSync, format_sync_report

    user_dir = Path.home() / ".config" / "JetBrains"
    catalog = ProductCatalog.default()
    engine = VmOptionsSync(
        targets_provider=lambda: discover_targets(user_dir, catalog),
        fragments=FragmentProvider(),
        rotator=BackupRotator(Path("backup")),
    )

    # Dry-run first to preview changes
    preview = engine.run(dry_run=True)
    print(format_sync_report(preview))

    report = engine.run()
    print(format_sync_report(report))
"""

from .backup import BackupRotator
from .engine import VmOptionsSync
from .license import LicenseSync
from .models import (
    DiffResult,
    LicenseReport,
    LicenseResult,
    SyncReport,
    SyncTarget,
    TargetResult,
    TargetState,
)
from .reporter import (
    format_dry_run_preview,
    format_license_report,
    format_sync_report,
    report_to_json,
)

__all__ = [
    "BackupRotator",
    "DiffResult",
    "LicenseReport",
    "LicenseResult",
    "LicenseSync",
    "SyncReport",
    "SyncTarget",
    "TargetResult",
    "TargetState",
    "VmOptionsSync",
    "format_dry_run_preview",
    "format_license_report",
    "format_sync_report",
    "report_to_json",
]
