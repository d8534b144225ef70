"""Tests for the command line entry point"""
import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

import cover_sync
from cover_sync import ClickImagePicker, main
from settings import SettingsManager

from conftest import FakeProvider, MemoryTagStore, make_album, make_image


@pytest.fixture
def cli_env(tmp_path):
    store = MemoryTagStore()
    provider = FakeProvider("A", result=[make_image(200, 200, source="A")])
    with patch.object(cover_sync, "setup_logging"), \
            patch.object(cover_sync, "MutagenTagStore", return_value=store), \
            patch.object(cover_sync, "build_providers", return_value=[provider]) as build, \
            patch.object(cover_sync, "scan_tracks", return_value=make_album(2)):
        yield {"store": store, "provider": provider, "build": build, "path": str(tmp_path)}


def test_cli_saves_covers(cli_env):
    result = CliRunner().invoke(main, [cli_env["path"], "--timeout", "2"])

    assert result.exit_code == 0, result.output
    assert "Searching covers for 2 track(s)" in result.output
    assert "01.mp3: cover saved" in result.output
    assert "Done. 2 cover(s) saved." in result.output
    assert len(cli_env["store"].writes) == 2


def test_cli_manual_mode_prompts(cli_env):
    result = CliRunner().invoke(main, [cli_env["path"], "--manual"], input="0\n")

    assert result.exit_code == 0, result.output
    assert "Covers for Artist - Album:" in result.output
    assert "1) 200x200 from A" in result.output
    assert "no fitting cover" in result.output
    assert cli_env["store"].writes == []


def test_cli_without_providers(cli_env):
    cli_env["build"].return_value = []
    result = CliRunner().invoke(main, [cli_env["path"]])
    assert result.exit_code != 0
    assert "No cover providers enabled" in result.output


def test_cli_without_tracks(cli_env):
    with patch.object(cover_sync, "scan_tracks", return_value=[]):
        result = CliRunner().invoke(main, [cli_env["path"]])
    assert result.exit_code == 0
    assert "No supported audio files found." in result.output


def test_cli_requires_existing_path():
    result = CliRunner().invoke(main, ["/definitely/not/here"])
    assert result.exit_code == 2


def test_picker_choice(monkeypatch):
    candidates = [make_image(10, 10, source="A"), make_image(20, 20, source="B")]
    monkeypatch.setattr(cover_sync.click, "prompt", lambda *a, **kw: 2)
    assert ClickImagePicker().choose(candidates, "X - Y") is candidates[1]

    monkeypatch.setattr(cover_sync.click, "prompt", lambda *a, **kw: 0)
    assert ClickImagePicker().choose(candidates, "X - Y") is None


@pytest.fixture
def temp_settings(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    with patch.object(cover_sync, "settings", manager), patch.object(cover_sync, "setup_logging"):
        yield manager


def test_cli_requires_paths_without_settings_action(temp_settings):
    result = CliRunner().invoke(main, [])
    assert result.exit_code == 2
    assert "Missing argument" in result.output


def test_cli_save_settings_stores_given_options(temp_settings):
    result = CliRunner().invoke(main, ["--manual", "--timeout", "5", "--max-size", "600", "--save-settings"])

    assert result.exit_code == 0, result.output
    saved = json.loads(temp_settings.settings_file.read_text())
    assert saved["general.manual_image_selection"] is True
    assert saved["search.timeout"] == 5
    assert saved["cover.max_size"] == 600
    # Options not given keep their current value
    assert saved["general.overwrite_cover"] is False


def test_cli_save_settings_before_search(cli_env, temp_settings):
    result = CliRunner().invoke(main, [cli_env["path"], "--no-reuse", "--save-settings"])

    assert result.exit_code == 0, result.output
    assert temp_settings.get("general.auto_last_audio") is False
    assert len(cli_env["store"].writes) == 2


def test_cli_show_settings(temp_settings):
    result = CliRunner().invoke(main, ["--show-settings"])

    assert result.exit_code == 0, result.output
    assert "[General]" in result.output
    assert "cover.max_size = 1000" in result.output


def test_cli_reset_settings(temp_settings):
    temp_settings.set("cover.max_size", 300)
    temp_settings.save_to_config()

    result = CliRunner().invoke(main, ["--reset-settings"])

    assert result.exit_code == 0, result.output
    assert "Settings reset to defaults." in result.output
    assert not temp_settings.settings_file.exists()
    assert temp_settings.get("cover.max_size") == 1000
