"""Unit tests for settings loading, validation, and persistence."""

import json
from pathlib import Path

import pytest

from vhostpane.config import Settings, SettingsError, load_settings, save_settings
from vhostpane.constants import DEFAULT_APPS_DIR


def _write(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


class TestSettings:
    def test_defaults(self):
        """
        Given no arguments
        When Settings is constructed
        Then the pane's default locations are used
        """
        settings = Settings()
        assert settings.apps_dir == DEFAULT_APPS_DIR
        assert settings.extension == "vhost.conf"
        assert settings.default_vhostname == "*:80"
        assert settings.writer == "helper"

    def test_unknown_writer_raises(self):
        """
        Given an unsupported writer name
        When Settings.model_validate is called
        Then a ValidationError is raised
        """
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            Settings.model_validate({"writer": "ftp"})

    def test_config_path_is_named_after_host(self, tmp_path: Path):
        """
        Given settings pointing at a vhost directory
        When config_path_for is called
        Then the file is {host}.{extension} in that directory
        """
        settings = Settings(apps_dir=tmp_path)
        assert settings.config_path_for("blog.local") == tmp_path / "blog.local.vhost.conf"

    def test_vhost_files_lists_matching_files_sorted(self, tmp_path: Path):
        """
        Given a directory with two vhost files and an unrelated file
        When vhost_files is called
        Then only the vhost files are returned, sorted by name
        """
        (tmp_path / "b.local.vhost.conf").write_text("")
        (tmp_path / "a.local.vhost.conf").write_text("")
        (tmp_path / "notes.txt").write_text("")
        settings = Settings(apps_dir=tmp_path)
        assert settings.vhost_files() == [
            tmp_path / "a.local.vhost.conf",
            tmp_path / "b.local.vhost.conf",
        ]

    def test_vhost_files_empty_when_directory_missing(self, tmp_path: Path):
        """
        Given an apps_dir that does not exist
        When vhost_files is called
        Then it returns an empty list
        """
        assert Settings(apps_dir=tmp_path / "missing").vhost_files() == []


class TestLoadSettings:
    def test_returns_defaults_when_file_missing(self, tmp_path: Path, monkeypatch):
        """
        Given no config file exists
        When load_settings is called
        Then defaults are returned and the file and README are created
        """
        cfg_path = tmp_path / "config.json"
        readme_path = tmp_path / "README.md"
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)
        monkeypatch.setattr("vhostpane.config._README_PATH", readme_path)

        result = load_settings()

        assert result == Settings()
        assert json.loads(cfg_path.read_text()) == {}
        assert readme_path.exists()

    def test_values_override_defaults(self, tmp_path: Path, monkeypatch):
        """
        Given a config.json setting apps_dir and writer
        When load_settings is called
        Then those values are used and the rest stay default
        """
        cfg_path = tmp_path / "config.json"
        _write(cfg_path, {"apps_dir": str(tmp_path / "vhosts"), "writer": "file"})
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)

        result = load_settings()

        assert result.apps_dir == tmp_path / "vhosts"
        assert result.writer == "file"
        assert result.extension == "vhost.conf"

    def test_underscore_keys_are_stripped(self, tmp_path: Path, monkeypatch):
        """
        Given config.json contains a key starting with '_'
        When load_settings is called
        Then it is ignored rather than rejected
        """
        cfg_path = tmp_path / "config.json"
        _write(cfg_path, {"_comment": "local apache", "extension": "conf"})
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)

        assert load_settings().extension == "conf"

    def test_empty_file_returns_defaults(self, tmp_path: Path, monkeypatch):
        """
        Given an empty config.json
        When load_settings is called
        Then defaults are returned
        """
        cfg_path = tmp_path / "config.json"
        cfg_path.write_text("")
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)

        assert load_settings() == Settings()

    def test_invalid_json_raises_settings_error(self, tmp_path: Path, monkeypatch):
        """
        Given config.json contains invalid JSON
        When load_settings is called
        Then SettingsError is raised
        """
        cfg_path = tmp_path / "config.json"
        cfg_path.write_text("{not json")
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)

        with pytest.raises(SettingsError, match="not valid JSON"):
            load_settings()

    def test_non_object_root_raises_settings_error(self, tmp_path: Path, monkeypatch):
        """
        Given config.json contains a JSON array
        When load_settings is called
        Then SettingsError is raised
        """
        cfg_path = tmp_path / "config.json"
        _write(cfg_path, ["apps_dir"])
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)

        with pytest.raises(SettingsError, match="JSON object"):
            load_settings()

    def test_invalid_value_raises_settings_error(self, tmp_path: Path, monkeypatch):
        """
        Given config.json with a non-list hosts_list_command
        When load_settings is called
        Then SettingsError is raised
        """
        cfg_path = tmp_path / "config.json"
        _write(cfg_path, {"hosts_list_command": 42})
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)

        with pytest.raises(SettingsError, match="Invalid settings"):
            load_settings()


class TestSaveSettings:
    def test_round_trip(self, tmp_path: Path, monkeypatch):
        """
        Given custom settings
        When saved and loaded again
        Then the loaded settings are equal
        """
        cfg_path = tmp_path / "nested" / "config.json"
        monkeypatch.setattr("vhostpane.config.CONFIG_PATH", cfg_path)
        settings = Settings(apps_dir=tmp_path / "vhosts", writer="file", host_suffix=".test")

        save_settings(settings)

        assert load_settings() == settings
