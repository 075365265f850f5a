"""Runtime configuration for jetbrains-sync.

Reads directory locations and retention settings from CLI args,
environment variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    JETBRAINS_USER_DIR: JetBrains user configuration directory
        (default: platform specific, see ``default_user_dir()``)
    JETBRAINS_SYNC_PROJECT_ROOT: Directory holding the archives (default: CWD)
    JETBRAINS_SYNC_BACKUP_DIR: Backup directory name (default: backup)
    JETBRAINS_SYNC_KEEP_COUNT: Backups kept per product (default: 5)
    JETBRAINS_SYNC_LICENSE_DIR: License archive directory name (default: license)
    JETBRAINS_SYNC_RESOURCES_DIR: Fragment directory (default: packaged fragments)
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_DIR = "backup"
DEFAULT_LICENSE_DIR = "license"
DEFAULT_KEEP_COUNT = 5


@dataclass(frozen=True)
class Config:
    user_dir: Path
    project_root: Path
    backup_dir: str = DEFAULT_BACKUP_DIR
    keep_count: int = DEFAULT_KEEP_COUNT
    license_dir: str = DEFAULT_LICENSE_DIR
    resources_dir: Path | None = None
    products: dict[str, str] | None = None
    debug: bool = False

    @property
    def backup_root(self) -> Path:
        return self.project_root / self.backup_dir

    @property
    def license_root(self) -> Path:
        return self.project_root / self.license_dir


def default_user_dir() -> Path:
    """Return the JetBrains user configuration directory for this platform."""
    home = Path.home()
    if sys.platform.startswith("win"):
        return home / "AppData" / "Roaming" / "JetBrains"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "JetBrains"
    return home / ".config" / "JetBrains"


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If a directory name is unusable or the retention count
            is out of range.
    """
    for field_name in ("backup_dir", "license_dir"):
        value = getattr(config, field_name)
        if not value or Path(value).is_absolute() or ".." in Path(value).parts:
            raise ValueError(
                f"Invalid {field_name} '{value}': must be a relative "
                "directory name inside the project root"
            )

    if not (1 <= config.keep_count <= 100):
        raise ValueError(
            f"Invalid keep count '{config.keep_count}': must be a number between 1 and 100"
        )

    if config.project_root.exists() and not config.project_root.is_dir():
        raise ValueError(
            f"Project root '{config.project_root}' is not a directory"
        )

    if config.user_dir == config.project_root:
        logger.warning(
            "Project root equals the JetBrains user directory (%s); "
            "backups will be written next to the IDE settings",
            config.user_dir,
        )


def load_config(
    user_dir: str | None = None,
    project_root: str | None = None,
    backup_dir: str | None = None,
    keep_count: int | None = None,
    license_dir: str | None = None,
    resources_dir: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        user_dir: Override the JetBrains user directory.
        project_root: Override the directory holding the archives.
        backup_dir: Override the backup directory name.
        keep_count: Override the number of backups kept per product.
        license_dir: Override the license archive directory name.
        resources_dir: Override the fragment directory.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flattened YAML values from
            ``config_schema.to_fallbacks()``.

    Returns:
        Validated, immutable Config instance.

    Raises:
        ValueError: If any value is invalid after checking all sources.
    """
    fb = yaml_fallbacks or {}

    def pick(cli_value, env_key: str, fb_key: str):
        """Return the first set value of CLI, env var and YAML fallback."""
        if cli_value is not None:
            return cli_value
        env_value = os.getenv(env_key)
        if env_value:
            return env_value
        return fb.get(fb_key)

    # --- Paths ---

    raw_user_dir = pick(user_dir, "JETBRAINS_USER_DIR", "user_dir")
    final_user_dir = (
        Path(raw_user_dir).expanduser()
        if raw_user_dir
        else default_user_dir()
    )

    raw_root = pick(project_root, "JETBRAINS_SYNC_PROJECT_ROOT", "project_root")
    final_root = Path(raw_root).expanduser() if raw_root else Path.cwd()

    raw_resources = pick(
        resources_dir, "JETBRAINS_SYNC_RESOURCES_DIR", "resources_dir"
    )
    final_resources = Path(raw_resources).expanduser() if raw_resources else None

    # --- Names ---

    final_backup_dir = str(
        pick(backup_dir, "JETBRAINS_SYNC_BACKUP_DIR", "backup_dir")
        or DEFAULT_BACKUP_DIR
    ).strip()
    final_license_dir = str(
        pick(license_dir, "JETBRAINS_SYNC_LICENSE_DIR", "license_dir")
        or DEFAULT_LICENSE_DIR
    ).strip()

    # --- Numeric fields ---

    raw_keep = pick(keep_count, "JETBRAINS_SYNC_KEEP_COUNT", "keep_count")
    if raw_keep is None:
        final_keep = DEFAULT_KEEP_COUNT
    else:
        try:
            final_keep = int(raw_keep)
        except (TypeError, ValueError):
            raise ValueError(
                f"Invalid keep count '{raw_keep}': must be a number between 1 and 100"
            ) from None

    products = fb.get("products")

    config = Config(
        user_dir=final_user_dir,
        project_root=final_root,
        backup_dir=final_backup_dir,
        keep_count=final_keep,
        license_dir=final_license_dir,
        resources_dir=final_resources,
        products=dict(products) if products else None,
        debug=debug,
    )

    validate_config(config)

    return config
