"""Tests for jetbrains_sync.config_loader -- hierarchical YAML config."""

import textwrap

import pytest
import yaml

from jetbrains_sync.config_loader import (
    CONFIG_ENV_VAR,
    discover_config_files,
    interpolate_env_vars,
    interpolate_tree,
    load_hierarchical_config,
    load_yaml_file,
)


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """CWD and HOME inside tmp_path, no explicit config file."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


def _project_config(root, text, name="config.yml"):
    path = root / ".jetbrains_sync" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))
    return path


def _global_config(root, text):
    path = root / "home" / ".config" / "jetbrains_sync" / "config.yml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))
    return path


# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("JB_HOME", "/opt/jb")
        assert interpolate_env_vars("${JB_HOME}/config") == "/opt/jb/config"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-backup}") == "backup"

    def test_empty_var_uses_default(self, monkeypatch):
        monkeypatch.setenv("EMPTY_VAR", "")
        assert interpolate_env_vars("${EMPTY_VAR:-5}") == "5"

    def test_unterminated_reference_kept(self):
        assert interpolate_env_vars("${NOT_CLOSED") == "${NOT_CLOSED"

    def test_tree(self, monkeypatch):
        monkeypatch.setenv("KEEP", "7")
        data = {"vmoptions": {"keep_count": "${KEEP}", "x": [1, "${KEEP}"]}}
        assert interpolate_tree(data) == {
            "vmoptions": {"keep_count": "7", "x": [1, "7"]}
        }


# -------------------------------------------------------------------------
# !include
# -------------------------------------------------------------------------


class TestIncludeDirective:
    def test_include_relative_file(self, tmp_path):
        (tmp_path / "products.yml").write_text("GoLand: goland64.exe.vmoptions\n")
        main = tmp_path / "config.yml"
        main.write_text("vmoptions:\n  products: !include products.yml\n")

        assert load_yaml_file(main) == {
            "vmoptions": {"products": {"GoLand": "goland64.exe.vmoptions"}}
        }

    def test_include_nonexistent_raises(self, tmp_path):
        main = tmp_path / "config.yml"
        main.write_text("data: !include missing.yml\n")
        with pytest.raises(FileNotFoundError, match="missing.yml"):
            load_yaml_file(main)

    def test_circular_include_raises(self, tmp_path):
        (tmp_path / "a.yml").write_text("x: !include b.yml\n")
        (tmp_path / "b.yml").write_text("y: !include a.yml\n")
        with pytest.raises(ValueError, match="Circular include"):
            load_yaml_file(tmp_path / "a.yml")

    def test_sibling_includes_of_same_file_allowed(self, tmp_path):
        (tmp_path / "shared.yml").write_text("v: 1\n")
        main = tmp_path / "config.yml"
        main.write_text("a: !include shared.yml\nb: !include shared.yml\n")
        assert load_yaml_file(main) == {"a": {"v": 1}, "b": {"v": 1}}

    def test_global_safe_loader_not_polluted(self, tmp_path):
        cfg = tmp_path / "test.yml"
        cfg.write_text("x: !include other.yml\n")
        with pytest.raises(yaml.constructor.ConstructorError):
            with open(cfg) as fh:
                yaml.safe_load(fh)


# -------------------------------------------------------------------------
# Discovery and merge
# -------------------------------------------------------------------------


class TestDiscoverConfigFiles:
    def test_env_var_first(self, isolated, monkeypatch):
        custom = isolated / "custom.yml"
        custom.write_text("x: 1\n")
        project = _project_config(isolated, "y: 1\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(custom))

        assert discover_config_files() == [custom.resolve(), project]

    def test_project_before_global(self, isolated):
        glob = _global_config(isolated, "g: 1\n")
        project = _project_config(isolated, "p: 1\n", name="config.yaml")
        result = discover_config_files()
        assert result.index(project) < result.index(glob)

    def test_nothing_found(self, isolated):
        assert discover_config_files() == []


class TestLoadHierarchicalConfig:
    def test_zero_config(self, isolated):
        assert load_hierarchical_config() == {}

    def test_project_section_replaces_global(self, isolated):
        _global_config(
            isolated,
            """\
            vmoptions:
              backup_dir: global-backup
              keep_count: 9
            license:
              archive_dir: global-license
            """,
        )
        _project_config(
            isolated,
            """\
            vmoptions:
              keep_count: 3
            """,
        )

        result = load_hierarchical_config()

        assert result["vmoptions"] == {"keep_count": 3}
        assert result["license"] == {"archive_dir": "global-license"}

    def test_interpolation_after_merge(self, isolated, monkeypatch):
        monkeypatch.setenv("JB_DIR", "/data/JetBrains")
        _project_config(isolated, "paths:\n  user_dir: ${JB_DIR}\n")
        assert load_hierarchical_config()["paths"]["user_dir"] == "/data/JetBrains"

    def test_non_dict_root_skipped(self, isolated, caplog):
        _project_config(isolated, "- just\n- a list\n")
        assert load_hierarchical_config() == {}
        assert "expected a mapping" in caplog.text

    def test_invalid_yaml_raises(self, isolated):
        _project_config(isolated, "vmoptions: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config()
