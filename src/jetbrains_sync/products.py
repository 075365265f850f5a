"""Product catalog and vmoptions target discovery.

JetBrains keeps one settings directory per installed product and version
(``IntelliJIdea2024.3``, ``PyCharm2025.1`` ...).  The catalog maps the
version-less product name to the vmoptions file name that IDE reads; it is
loaded once at start-up and never mutated.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

import yaml

from jetbrains_sync.file_handler import list_subdirs
from jetbrains_sync.logger import format_label
from jetbrains_sync.sync.models import SyncTarget, product_name_of

logger = logging.getLogger(__name__)

PACKAGED_CATALOG = Path(__file__).parent / "resources" / "products.yml"


class ProductCatalog(Mapping[str, str]):
    """Immutable product name -> vmoptions file name mapping."""

    def __init__(self, files: Mapping[str, str]) -> None:
        self._files = MappingProxyType(dict(files))

    def __getitem__(self, product_name: str) -> str:
        return self._files[product_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"ProductCatalog({dict(self._files)!r})"

    @classmethod
    def load(cls, path: Path = PACKAGED_CATALOG) -> ProductCatalog:
        """Load a catalog from a YAML mapping file.

        Raises:
            ValueError: If the file does not hold a mapping of strings.
        """
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str)
            for k, v in data.items()
        ):
            raise ValueError(
                f"Product catalog {path} must map product names to file names"
            )
        return cls(data)

    @classmethod
    def default(cls, overrides: Mapping[str, str] | None = None) -> ProductCatalog:
        """Packaged catalog, with optional per-product overrides applied."""
        catalog = cls.load()
        if not overrides:
            return catalog
        return cls({**catalog._files, **overrides})


def discover_targets(user_dir: Path, catalog: Mapping[str, str]) -> list[SyncTarget]:
    """Map every known product directory to its vmoptions target.

    Directories of products missing from the catalog are ignored.  The
    vmoptions file itself need not exist.

    Raises:
        EnumerationError: If *user_dir* cannot be listed.
    """
    targets: list[SyncTarget] = []
    for product_dir in list_subdirs(user_dir):
        file_name = catalog.get(product_name_of(product_dir.name))
        if file_name is None:
            logger.debug(
                "[%s] Not a known product, ignored", format_label(product_dir)
            )
            continue
        targets.append(SyncTarget.from_path(product_dir / file_name))
    return targets
