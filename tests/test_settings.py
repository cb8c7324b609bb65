"""Tests for persisting user settings to JSON."""

import json
import logging

from composition_generator import load_settings, save_settings


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "settings.json"
    save_settings({"key": "G major", "tempo": 90}, path)
    assert load_settings(path) == {"key": "G major", "tempo": 90}


def test_missing_file_returns_empty(tmp_path):
    assert load_settings(tmp_path / "missing.json") == {}


def test_corrupt_file_is_logged(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    caplog.set_level(logging.ERROR)
    assert load_settings(path) == {}
    assert "Could not load settings" in caplog.text


def test_non_object_json_is_ignored(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(["C major"]), encoding="utf-8")
    assert load_settings(path) == {}
    assert "does not contain a JSON object" in caplog.text


def test_unwritable_destination_is_logged(tmp_path, caplog):
    caplog.set_level(logging.ERROR)
    save_settings({"key": "C"}, tmp_path / "missing_dir" / "settings.json")
    assert "Could not save settings" in caplog.text
