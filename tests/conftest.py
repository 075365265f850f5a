"""Shared pytest fixtures for jetbrains-sync tests."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from jetbrains_sync.fragments import FragmentProvider
from jetbrains_sync.products import ProductCatalog
from jetbrains_sync.sync.backup import BackupRotator

SPECIFIC_IDEA = b"-Xms1024m\n-Xmx2048m"
GENERAL = b"-XX:+UseG1GC\n-Dfile.encoding=UTF-8"
COMMENT = b"# toolbox"


class FixedClock:
    """Clock returning a fixed time that can be advanced by whole seconds."""

    def __init__(self, start: datetime = datetime(2026, 3, 1, 12, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, seconds: int = 1) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def catalog():
    """Small catalog with two products."""
    return ProductCatalog(
        {
            "IntelliJIdea": "idea64.exe.vmoptions",
            "PyCharm": "pycharm64.exe.vmoptions",
        }
    )


@pytest.fixture
def fragments_dir(tmp_path) -> Path:
    """Fragment directory with an idea fragment but no pycharm fragment."""
    root = tmp_path / "fragments"
    (root / "specific").mkdir(parents=True)
    (root / "specific" / "idea.vmoptions").write_bytes(SPECIFIC_IDEA)
    (root / "general.vmoptions").write_bytes(GENERAL)
    (root / "comment.vmoptions").write_bytes(COMMENT)
    return root


@pytest.fixture
def fragments(fragments_dir):
    return FragmentProvider(fragments_dir)


@pytest.fixture
def user_dir(tmp_path) -> Path:
    """JetBrains user directory with two products and one unknown dir."""
    root = tmp_path / "JetBrains"
    for name in ("IntelliJIdea2024.3", "PyCharm2025.1", "consentOptions"):
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def project_root(tmp_path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def rotator(project_root, clock):
    return BackupRotator(project_root / "backup", keep_count=5, clock=clock)
