"""Tests for jetbrains_sync.cli -- argument handling and exit codes."""

import json
from unittest.mock import patch

import pytest

from jetbrains_sync import __version__
from jetbrains_sync.cli import (
    EXIT_CONFIG,
    EXIT_FAILED,
    EXIT_OK,
    build_parser,
    main,
)
from jetbrains_sync.config_loader import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """No stray config files, env vars or logging setup."""
    for name in (
        CONFIG_ENV_VAR,
        "JETBRAINS_USER_DIR",
        "JETBRAINS_SYNC_PROJECT_ROOT",
        "JETBRAINS_SYNC_BACKUP_DIR",
        "JETBRAINS_SYNC_KEEP_COUNT",
        "JETBRAINS_SYNC_LICENSE_DIR",
        "JETBRAINS_SYNC_RESOURCES_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    with patch("jetbrains_sync.cli.setup_logging"), patch(
        "jetbrains_sync.cli.load_dotenv"
    ):
        yield


def _args(user_dir, project_root, fragments_dir, *extra):
    return [
        *extra,
        "--user-dir",
        str(user_dir),
        "--project-root",
        str(project_root),
        "--resources-dir",
        str(fragments_dir),
    ]


class TestParser:
    def test_default_command(self):
        args = build_parser().parse_args([])
        assert args.command == "all"
        assert args.dry_run is False
        assert args.keep_count is None

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out

    def test_unknown_command_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["everything"])


class TestMain:
    def test_vmoptions_run(
        self, user_dir, project_root, fragments_dir, capsys
    ):
        code = main(_args(user_dir, project_root, fragments_dir, "vmoptions"))

        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert "vmoptions sync report" in out
        target = user_dir / "IntelliJIdea2024.3" / "idea64.exe.vmoptions"
        assert target.read_bytes().startswith(b"-Xms1024m\n-Xmx2048m\n")

    def test_dry_run_json(
        self, user_dir, project_root, fragments_dir, capsys
    ):
        code = main(
            _args(
                user_dir,
                project_root,
                fragments_dir,
                "vmoptions",
                "--dry-run",
                "--json",
            )
        )

        assert code == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["dry_run"] is True
        assert data["counts"]["written"] == 0
        assert data["counts"]["would_write"] == 1
        assert not (user_dir / "IntelliJIdea2024.3" / "idea64.exe.vmoptions").exists()

    def test_license_run(self, user_dir, project_root, fragments_dir, capsys):
        (user_dir / "IntelliJIdea2024.3" / "idea.key").write_bytes(b"key")

        code = main(_args(user_dir, project_root, fragments_dir, "license"))

        assert code == EXIT_OK
        assert "license sync report" in capsys.readouterr().out
        assert (project_root / "license" / "IntelliJIdea" / "idea.key").exists()

    def test_all_runs_both(self, user_dir, project_root, fragments_dir, capsys):
        code = main(_args(user_dir, project_root, fragments_dir))
        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "vmoptions sync report" in out
        assert "license sync report" in out

    def test_missing_user_dir_exits_failed(
        self, tmp_path, project_root, fragments_dir
    ):
        code = main(
            _args(tmp_path / "nowhere", project_root, fragments_dir)
        )
        assert code == EXIT_FAILED

    def test_failed_target_exits_failed(
        self, user_dir, project_root, fragments_dir
    ):
        # A directory where the vmoptions file should be
        (user_dir / "IntelliJIdea2024.3" / "idea64.exe.vmoptions").mkdir()
        code = main(_args(user_dir, project_root, fragments_dir, "vmoptions"))
        assert code == EXIT_FAILED

    def test_invalid_keep_count_is_config_error(
        self, user_dir, project_root, fragments_dir, capsys
    ):
        code = main(
            _args(user_dir, project_root, fragments_dir, "--keep", "0")
        )
        assert code == EXIT_CONFIG
        assert "Configuration error" in capsys.readouterr().err

    def test_invalid_yaml_is_config_error(
        self, tmp_path, user_dir, project_root, fragments_dir
    ):
        config_dir = tmp_path / ".jetbrains_sync"
        config_dir.mkdir()
        (config_dir / "config.yml").write_text("vmoptions:\n  keep_count: lots\n")

        code = main(_args(user_dir, project_root, fragments_dir))

        assert code == EXIT_CONFIG

    def test_yaml_config_applied(
        self, tmp_path, user_dir, project_root, fragments_dir
    ):
        config_dir = tmp_path / ".jetbrains_sync"
        config_dir.mkdir()
        (config_dir / "config.yml").write_text("vmoptions:\n  backup_dir: archive\n")
        target = user_dir / "IntelliJIdea2024.3" / "idea64.exe.vmoptions"
        target.write_bytes(b"-Xmx1\n")

        main(_args(user_dir, project_root, fragments_dir, "vmoptions"))

        assert list((project_root / "archive" / "IntelliJIdea").iterdir())
