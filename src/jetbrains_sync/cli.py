"""Command-line entry point for jetbrains-sync.

Loads configuration (CLI > env > .env > YAML > defaults), sets up logging,
and runs the vmoptions pipeline, the license mirror, or both.  Reports go to
stdout, progress and diagnostics to stderr.

Exit codes:
    0  every target succeeded (or was unchanged / unconfigured)
    1  the run aborted or at least one target failed
    2  the configuration is invalid
"""

import argparse
import json
import logging
import sys

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config
from .config_loader import load_hierarchical_config
from .config_schema import UnifiedConfig, build_config, to_fallbacks
from .errors import EnumerationError
from .fragments import FragmentProvider
from .logger import format_default, setup_logging
from .products import ProductCatalog, discover_targets
from .sync import (
    BackupRotator,
    LicenseSync,
    VmOptionsSync,
    format_dry_run_preview,
    format_license_report,
    format_sync_report,
    report_to_json,
)

logger = logging.getLogger(__name__)

COMMANDS = ("vmoptions", "license", "all")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jetbrains-sync",
        description="Synchronise generated JetBrains vmoptions and mirror license files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rewrite every vmoptions file that differs, then mirror licenses
  jetbrains-sync

  # Preview vmoptions changes with diffs, touching nothing
  jetbrains-sync vmoptions --dry-run --show-diff

  # Use another JetBrains directory and keep ten backups per product
  jetbrains-sync --user-dir ~/JetBrains --keep 10

  # Machine-readable output
  jetbrains-sync license --json

Configuration is read from .jetbrains_sync/config.yml, ~/.config/jetbrains_sync/config.yml
or the file named by JETBRAINS_SYNC_CONFIG.
        """,
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=COMMANDS,
        default="all",
        help="What to synchronise (default: all)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without backing up or writing",
    )
    parser.add_argument(
        "--show-diff",
        action="store_true",
        help="Include a unified diff for every vmoptions file that would change",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print reports as JSON"
    )
    parser.add_argument(
        "--user-dir",
        help="JetBrains user configuration directory "
        "(takes precedence over JETBRAINS_USER_DIR and config files)",
    )
    parser.add_argument(
        "--project-root",
        help="Directory holding the backup and license archives (default: CWD)",
    )
    parser.add_argument(
        "--backup-dir", help="Backup directory name under the project root"
    )
    parser.add_argument(
        "--keep",
        type=int,
        dest="keep_count",
        metavar="N",
        help="Backups retained per product (1-100, default: 5)",
    )
    parser.add_argument(
        "--resources-dir",
        help="Fragment directory with specific/, general and comment fragments",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"jetbrains-sync version {__version__}",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> tuple[Config, UnifiedConfig]:
    """Merge YAML files, env vars and CLI args into a validated Config.

    Raises:
        ValueError: For invalid values, pydantic validation errors included.
        OSError: If a config file cannot be read.
        yaml.YAMLError: If a config file is not valid YAML.
    """
    unified = build_config(load_hierarchical_config())
    config = load_config(
        user_dir=args.user_dir,
        project_root=args.project_root,
        backup_dir=args.backup_dir,
        keep_count=args.keep_count,
        resources_dir=args.resources_dir,
        debug=args.debug,
        yaml_fallbacks=to_fallbacks(unified),
    )
    return config, unified


def _emit(text: str) -> None:
    print(text, file=sys.stdout)


def run_vmoptions(config: Config, args: argparse.Namespace) -> bool:
    """Run the vmoptions pipeline; return True when no target failed."""
    catalog = ProductCatalog.default(config.products)
    engine = VmOptionsSync(
        targets_provider=lambda: discover_targets(config.user_dir, catalog),
        fragments=FragmentProvider(config.resources_dir),
        rotator=BackupRotator(config.backup_root, config.keep_count),
        show_diff=args.show_diff,
    )
    report = engine.run(dry_run=args.dry_run)

    if args.json:
        _emit(json.dumps(report_to_json(report), indent=2))
    elif args.dry_run:
        _emit(format_dry_run_preview(report))
    else:
        _emit(format_sync_report(report))
    return not report.failed


def run_license(config: Config, args: argparse.Namespace) -> bool:
    """Run the license mirror; return True when no file failed."""
    catalog = ProductCatalog.default(config.products)
    mirror = LicenseSync(config.user_dir, config.license_root, catalog)
    report = mirror.run(dry_run=args.dry_run)

    if args.json:
        _emit(json.dumps(report_to_json(report), indent=2))
    else:
        _emit(format_license_report(report))
    return not report.failed


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the requested command and return the exit code."""
    args = build_parser().parse_args(argv)

    load_dotenv()

    try:
        config, unified = resolve_config(args)
    except (ValueError, OSError, yaml.YAMLError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    setup_logging(
        debug=config.debug,
        log_file=args.log_file or unified.logging.file,
        debug_format=args.log_format,
        level=unified.logging.level,
    )
    logger.debug("Configuration: %s", config)

    ok = True
    try:
        if args.command in ("vmoptions", "all"):
            ok = run_vmoptions(config, args) and ok
        if args.command in ("license", "all"):
            ok = run_license(config, args) and ok
    except EnumerationError as e:
        logger.error("[%s] Run aborted: %s", format_default(), e)
        return EXIT_FAILED

    return EXIT_OK if ok else EXIT_FAILED


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
