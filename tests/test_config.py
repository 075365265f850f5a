"""Tests for jetbrains_sync.config -- precedence and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models).
"""

import logging
from pathlib import Path

import pytest

from jetbrains_sync.config import (
    Config,
    default_user_dir,
    load_config,
    validate_config,
)

ENV_VARS = (
    "JETBRAINS_USER_DIR",
    "JETBRAINS_SYNC_PROJECT_ROOT",
    "JETBRAINS_SYNC_BACKUP_DIR",
    "JETBRAINS_SYNC_KEEP_COUNT",
    "JETBRAINS_SYNC_LICENSE_DIR",
    "JETBRAINS_SYNC_RESOURCES_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    def test_valid(self, tmp_path):
        validate_config(Config(user_dir=tmp_path / "jb", project_root=tmp_path))

    @pytest.mark.parametrize("name", ["", "/abs/backup", "../outside"])
    def test_invalid_backup_dir(self, tmp_path, name):
        config = Config(
            user_dir=tmp_path / "jb", project_root=tmp_path, backup_dir=name
        )
        with pytest.raises(ValueError, match="backup_dir"):
            validate_config(config)

    def test_invalid_license_dir(self, tmp_path):
        config = Config(
            user_dir=tmp_path / "jb", project_root=tmp_path, license_dir="../x"
        )
        with pytest.raises(ValueError, match="license_dir"):
            validate_config(config)

    @pytest.mark.parametrize("count", [0, 101])
    def test_keep_count_out_of_range(self, tmp_path, count):
        config = Config(
            user_dir=tmp_path / "jb", project_root=tmp_path, keep_count=count
        )
        with pytest.raises(ValueError, match="keep count"):
            validate_config(config)

    def test_project_root_is_file(self, tmp_path):
        root = tmp_path / "file"
        root.write_text("x")
        with pytest.raises(ValueError, match="not a directory"):
            validate_config(Config(user_dir=tmp_path, project_root=root))

    def test_same_directories_warn(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            validate_config(Config(user_dir=tmp_path, project_root=tmp_path))
        assert "Project root equals" in caplog.text


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.project_root == tmp_path
        assert config.user_dir == default_user_dir()
        assert config.backup_dir == "backup"
        assert config.keep_count == 5
        assert config.license_dir == "license"
        assert config.resources_dir is None
        assert config.backup_root == tmp_path / "backup"
        assert config.license_root == tmp_path / "license"

    def test_cli_beats_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JETBRAINS_USER_DIR", str(tmp_path / "env"))
        config = load_config(user_dir=str(tmp_path / "cli"), project_root=str(tmp_path))
        assert config.user_dir == tmp_path / "cli"

    def test_env_beats_yaml(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JETBRAINS_SYNC_KEEP_COUNT", "8")
        config = load_config(
            project_root=str(tmp_path), yaml_fallbacks={"keep_count": 3}
        )
        assert config.keep_count == 8

    def test_yaml_beats_default(self, tmp_path):
        config = load_config(
            project_root=str(tmp_path),
            yaml_fallbacks={
                "backup_dir": "archive",
                "license_dir": "keys",
                "products": {"GoLand": "goland.vmoptions"},
            },
        )
        assert config.backup_dir == "archive"
        assert config.license_dir == "keys"
        assert config.products == {"GoLand": "goland.vmoptions"}

    def test_empty_env_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JETBRAINS_SYNC_BACKUP_DIR", "")
        config = load_config(
            project_root=str(tmp_path), yaml_fallbacks={"backup_dir": "yaml"}
        )
        assert config.backup_dir == "yaml"

    def test_user_dir_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = load_config(user_dir="~/JetBrains", project_root=str(tmp_path))
        assert config.user_dir == tmp_path / "JetBrains"

    def test_resources_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JETBRAINS_SYNC_RESOURCES_DIR", str(tmp_path / "frag"))
        config = load_config(project_root=str(tmp_path))
        assert config.resources_dir == tmp_path / "frag"

    def test_non_numeric_keep_count(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JETBRAINS_SYNC_KEEP_COUNT", "many")
        with pytest.raises(ValueError, match="keep count"):
            load_config(project_root=str(tmp_path))

    def test_config_is_frozen(self, tmp_path):
        config = load_config(project_root=str(tmp_path))
        with pytest.raises(AttributeError):
            config.keep_count = 9


class TestDefaultUserDir:
    @pytest.mark.parametrize(
        "platform, parts",
        [
            ("win32", ("AppData", "Roaming", "JetBrains")),
            ("darwin", ("Library", "Application Support", "JetBrains")),
            ("linux", (".config", "JetBrains")),
        ],
    )
    def test_per_platform(self, monkeypatch, platform, parts):
        monkeypatch.setattr("jetbrains_sync.config.sys.platform", platform)
        assert default_user_dir() == Path.home().joinpath(*parts)
