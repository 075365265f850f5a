"""Sync report formatting functions.

Provides human-readable and machine-readable output for both pipelines:

- ``format_sync_report`` -- full post-run vmoptions summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by outcome.
- ``format_license_report`` -- license mirror summary.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict

from .models import (
    LicenseAction,
    LicenseDirection,
    LicenseReport,
    SyncReport,
    TargetResult,
    TargetState,
)

# ------------------------------------------------------------------
# Human-readable reports
# ------------------------------------------------------------------


def _describe(result: TargetResult) -> str:
    target = result.target
    return f"{target.product_dir_name}/{target.path.name}"


def format_sync_report(report: SyncReport) -> str:
    """Format a complete vmoptions report as human-readable text.

    Sections are only included when they contain at least one result.
    Unchanged targets are summarised by count only.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = "vmoptions sync report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    if report.dry_run:
        changed = f"{len(report.would_write)} would write"
    else:
        changed = f"{len(report.written)} written"
    lines.append(
        f"Processed {len(report.results)} targets: "
        f"{len(report.configured)} configured "
        f"({changed}, {len(report.skipped)} unchanged), "
        f"{len(report.unconfigured)} unconfigured, "
        f"{len(report.failed)} failed"
    )
    lines.append("")

    for title, results in (
        ("Written:", report.written),
        ("Would write:", report.would_write),
    ):
        if not results:
            continue
        lines.append(title)
        for r in results:
            entry = f"  {_describe(r)}"
            if r.diff is not None:
                entry += f" ({r.diff.delta_count} difference(s))"
            if r.backup_path is not None:
                entry += f", backup {r.backup_path.name}"
            lines.append(entry)
        lines.append("")

    if report.unconfigured:
        lines.append("Unconfigured:")
        for r in report.unconfigured:
            lines.append(f"  {_describe(r)}: {r.error}")
        lines.append("")

    if report.failed:
        lines.append("Failed:")
        for r in report.failed:
            lines.append(f"  {_describe(r)}: {r.error}")
        lines.append("")

    if report.skipped:
        lines.append(f"Unchanged: {len(report.skipped)} targets")
        lines.append("")

    return "\n".join(lines).rstrip()


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by outcome.

    Targets that would be written come first, each followed by its unified
    diff when one was recorded.

    Args:
        report: A dry-run sync report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append("")

    groups: dict[TargetState, list[TargetResult]] = defaultdict(list)
    for r in report.results:
        groups[r.state].append(r)

    display_order = [
        (TargetState.WOULD_WRITE, "WRITE"),
        (TargetState.UNCONFIGURED, "UNCONFIGURED"),
        (TargetState.FAILED, "FAILED"),
    ]
    for state, label in display_order:
        if state not in groups:
            continue
        lines.append(f"[{label}]")
        for r in groups[state]:
            entry = f"  {_describe(r)}"
            if r.error:
                entry += f": {r.error}"
            lines.append(entry)
            if r.unified_diff:
                lines.append(r.unified_diff.rstrip())
        lines.append("")

    skip_count = len(groups.get(TargetState.SKIPPED, []))
    if skip_count > 0:
        lines.append(f"Unchanged: {skip_count} targets")
        lines.append("")

    if TargetState.WOULD_WRITE not in groups:
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


def format_license_report(report: LicenseReport) -> str:
    """Format a license mirror report as human-readable text."""
    lines: list[str] = []

    header = "license sync report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append("")

    for direction in LicenseDirection:
        copied = report.select(direction, LicenseAction.COPIED)
        skipped = report.select(direction, LicenseAction.SKIPPED)
        failed = report.select(direction, LicenseAction.FAILED)
        lines.append(
            f"{direction.value.capitalize()}: {len(copied)} copied, "
            f"{len(skipped)} unchanged, {len(failed)} failed"
        )
        for r in copied:
            lines.append(f"  {r.source} -> {r.destination}")
        for r in skipped:
            if r.error:
                lines.append(f"  {r.destination}: {r.error}")
        for r in failed:
            lines.append(f"  {r.source}: {r.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport | LicenseReport) -> dict:
    """Convert a report to a structured dict for JSON serialisation.

    Args:
        report: A vmoptions or license report.

    Returns:
        Dict with run info, counts, and per-result details.
    """
    if isinstance(report, LicenseReport):
        return _license_report_to_json(report)

    results_list = []
    for r in report.results:
        entry: dict = {
            "path": str(r.target.path),
            "product": r.target.product_name,
            "state": r.state.value,
        }
        if r.diff is not None:
            entry["delta_count"] = r.diff.delta_count
            entry["total_lines"] = r.diff.total_lines
        if r.backup_path is not None:
            entry["backup_path"] = str(r.backup_path)
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "kind": "vmoptions",
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "configured": len(report.configured),
            "written": len(report.written),
            "would_write": len(report.would_write),
            "skipped": len(report.skipped),
            "unconfigured": len(report.unconfigured),
            "failed": len(report.failed),
        },
        "results": results_list,
    }


def _license_report_to_json(report: LicenseReport) -> dict:
    results_list = []
    for r in report.results:
        entry: dict = {
            "direction": r.direction.value,
            "source": str(r.source),
            "destination": str(r.destination),
            "action": r.action.value,
        }
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "kind": "license",
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            direction.value: {
                action.value: len(report.select(direction, action))
                for action in LicenseAction
            }
            for direction in LicenseDirection
        },
        "results": results_list,
    }
