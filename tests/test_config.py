"""Tests for configuration defaults, TOML settings and overrides."""

import logging
from pathlib import Path

from codemap_cli.config import DEFAULT_ANALYZER_COMMAND, build_config
from codemap_cli.config_manager import load_scanner_settings, save_scanner_settings


class TestBuildConfig:
    def test_defaults(self, project):
        config = build_config(project)

        assert config.project_root == project.resolve()
        assert config.manifest_path == project.resolve() / "codebase-map.json"
        assert config.source_dir == project.resolve() / "src"
        assert config.backup_dir == project.resolve() / ".codemap" / "backups"
        assert config.report_path == project.resolve() / ".codemap" / "depcruise" / "dependency-report.json"
        assert config.sync_path == "*/src"
        assert config.sync_segments == ["*", "src"]
        assert config.discover_tests is True
        assert config.compute_dependents is False
        assert config.analyzer_command == DEFAULT_ANALYZER_COMMAND
        assert config.src_prefix == "src"

    def test_overrides_beat_settings(self, project):
        config = build_config(
            project,
            settings={"source_dir": "app", "sync_path": "web/app", "discover_tests": False},
            overrides={"source_dir": "lib", "sync_path": None},
        )

        assert config.source_dir == project.resolve() / "lib"
        assert config.sync_path == "web/app"
        assert config.discover_tests is False

    def test_non_boolean_flags_fall_back_to_defaults(self, project, caplog):
        with caplog.at_level(logging.WARNING, logger="codemap_cli"):
            config = build_config(project, settings={"discover_tests": "false", "compute_dependents": 1})

        assert config.discover_tests is True
        assert config.compute_dependents is False
        assert "Ignoring non-boolean discover_tests = 'false'" in caplog.text

    def test_absolute_paths_kept(self, project, temp_dir):
        elsewhere = temp_dir / "maps" / "map.json"

        config = build_config(project, overrides={"manifest": elsewhere})

        assert config.manifest_path == elsewhere

    def test_nested_source_prefix(self, project):
        config = build_config(project, overrides={"source_dir": "packages/web/src"})

        assert config.src_prefix == "packages/web/src"


class TestConfigFile:
    def test_save_and_load_settings(self, temp_dir):
        config_file = temp_dir / "codemap.toml"

        save_scanner_settings(
            config_file,
            {"source_dir": "app", "sync_path": "*/app", "analyzer_command": ["depcruise"]},
        )
        settings = load_scanner_settings(config_file)

        assert settings == {"source_dir": "app", "sync_path": "*/app", "analyzer_command": ["depcruise"]}
        assert "[analyzer]" in config_file.read_text()

    def test_missing_file(self, temp_dir):
        assert load_scanner_settings(temp_dir / "codemap.toml") == {}

    def test_malformed_file_is_ignored(self, temp_dir, caplog):
        config_file = temp_dir / "codemap.toml"
        config_file.write_text("[scanner\nsource_dir = ")

        with caplog.at_level(logging.WARNING, logger="codemap_cli"):
            assert load_scanner_settings(config_file) == {}

        assert "Ignoring unreadable config" in caplog.text
