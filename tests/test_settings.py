"""Tests for the JSON settings file and its consumers."""

import json

import pytest

import cmd_workbench.io.settings
from cmd_workbench.core.commands import DEFAULT_COMMANDS


@pytest.fixture
def tmp_settings(tmp_path, monkeypatch):
    """Redirect settings file to a temp directory."""
    settings_file = tmp_path / "settings.json"
    monkeypatch.setattr(
        "cmd_workbench.io.settings.get_config_path",
        lambda: settings_file,
    )
    return settings_file


class TestConfigPath:
    def test_uses_xdg_config_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert cmd_workbench.io.settings.get_config_path() == tmp_path / "cmd-workbench" / "settings.json"


class TestLoadSave:
    def test_missing_file_is_empty(self, tmp_settings):
        assert cmd_workbench.io.settings.load_settings() == {}

    def test_corrupt_file_is_empty(self, tmp_settings):
        tmp_settings.write_text("{not json")
        assert cmd_workbench.io.settings.load_settings() == {}

    def test_non_dict_file_is_empty(self, tmp_settings):
        tmp_settings.write_text("[1, 2]")
        assert cmd_workbench.io.settings.load_settings() == {}

    def test_save_then_load(self, tmp_settings):
        cmd_workbench.io.settings.save_settings({"server_url": "ws://h:1/x"})
        assert json.loads(tmp_settings.read_text()) == {"server_url": "ws://h:1/x"}
        assert cmd_workbench.io.settings.load_settings() == {"server_url": "ws://h:1/x"}

    def test_save_creates_parent_dirs(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "deep" / "er"))
        cmd_workbench.io.settings.save_setting("a", 1)
        assert (tmp_path / "deep" / "er" / "cmd-workbench" / "settings.json").exists()

    def test_save_setting_merges(self, tmp_settings):
        cmd_workbench.io.settings.save_setting("a", 1)
        cmd_workbench.io.settings.save_setting("b", 2)
        assert cmd_workbench.io.settings.load_settings() == {"a": 1, "b": 2}
        assert cmd_workbench.io.settings.load_setting("missing", "dflt") == "dflt"

    def test_no_temp_files_left_behind(self, tmp_settings):
        cmd_workbench.io.settings.save_settings({"a": 1})
        assert [p.name for p in tmp_settings.parent.iterdir()] == ["settings.json"]


class TestServerUrl:
    def test_default(self, tmp_settings):
        assert cmd_workbench.io.settings.load_server_url() == cmd_workbench.io.settings.DEFAULT_SERVER_URL

    def test_from_file(self, tmp_settings):
        tmp_settings.write_text(json.dumps({"server_url": "ws://remote:9000/wsoapi"}))
        assert cmd_workbench.io.settings.load_server_url() == "ws://remote:9000/wsoapi"

    def test_blank_falls_back(self, tmp_settings):
        tmp_settings.write_text(json.dumps({"server_url": ""}))
        assert cmd_workbench.io.settings.load_server_url() == cmd_workbench.io.settings.DEFAULT_SERVER_URL


class TestCommands:
    def test_defaults_when_unset(self, tmp_settings):
        assert cmd_workbench.io.settings.load_commands() == DEFAULT_COMMANDS

    def test_user_catalog_replaces_defaults(self, tmp_settings):
        tmp_settings.write_text(json.dumps({
            "commands": [{"key": "lint", "title": "Lint", "command": "runjs", "script": "/ci/lint.mjs"}],
        }))
        commands = cmd_workbench.io.settings.load_commands()
        assert [c.key for c in commands] == ["lint"]

    def test_invalid_catalog_falls_back(self, tmp_settings):
        tmp_settings.write_text(json.dumps({"commands": [{"key": "broken"}]}))
        assert cmd_workbench.io.settings.load_commands() == DEFAULT_COMMANDS


class TestNamedArgs:
    def test_unsaved_is_none(self, tmp_settings):
        assert cmd_workbench.io.settings.load_named_args("shellSampleView") is None

    def test_round_trip_per_command(self, tmp_settings):
        cmd_workbench.io.settings.save_named_args("shellSampleView", {"v": "-v"})
        cmd_workbench.io.settings.save_named_args("extensionSampleView", {"q": "-q"})
        assert cmd_workbench.io.settings.load_named_args("shellSampleView") == {"v": "-v"}
        assert cmd_workbench.io.settings.load_named_args("extensionSampleView") == {"q": "-q"}

    def test_preserves_other_settings(self, tmp_settings):
        cmd_workbench.io.settings.save_setting("server_url", "ws://x")
        cmd_workbench.io.settings.save_named_args("k", {})
        assert cmd_workbench.io.settings.load_server_url() == "ws://x"
        assert cmd_workbench.io.settings.load_named_args("k") == {}

    def test_malformed_entries_are_none(self, tmp_settings):
        tmp_settings.write_text(json.dumps({"named_args": {"k": "nope"}}))
        assert cmd_workbench.io.settings.load_named_args("k") is None
        tmp_settings.write_text(json.dumps({"named_args": []}))
        assert cmd_workbench.io.settings.load_named_args("k") is None
