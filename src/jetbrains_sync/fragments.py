"""Fragment provider for composed vmoptions content.

Fragments live in one directory::

    general.vmoptions          options shared by every product
    comment.vmoptions          comment placed above preserved preset lines
    specific/<name>.vmoptions  options for one product, e.g. specific/idea.vmoptions

A product without a specific fragment is left unconfigured.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

PACKAGED_FRAGMENTS = Path(__file__).parent / "resources" / "vmoptions"

GENERAL_FRAGMENT = "general.vmoptions"
COMMENT_FRAGMENT = "comment.vmoptions"
SPECIFIC_DIR = "specific"


class FragmentProvider:
    """Read raw fragment bytes from a fragment directory.

    Args:
        root: Fragment directory; defaults to the packaged fragments.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = root or PACKAGED_FRAGMENTS

    def specific(self, name: str) -> bytes | None:
        """Product-specific fragment, or None if the product has none."""
        return self._read(Path(SPECIFIC_DIR) / f"{name}.vmoptions")

    def general(self) -> bytes | None:
        return self._read(Path(GENERAL_FRAGMENT))

    def comment(self) -> bytes | None:
        return self._read(Path(COMMENT_FRAGMENT))

    def _read(self, relative: Path) -> bytes | None:
        """Return the fragment bytes, or None when the file is absent.

        Other read failures propagate so the caller can fail the target.
        """
        path = self.root / relative
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
