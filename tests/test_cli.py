"""Command line interface tests.

Every test points ``--settings-file`` at a temporary path so a settings file
in the user's home directory never influences the results.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from composition_generator.cli import run_cli


@pytest.fixture()
def settings_file(tmp_path) -> Path:
    return tmp_path / "settings.json"


def _run(tmp_path, settings_file, *args) -> dict:
    output = tmp_path / "out" / "song.json"
    run_cli([*args, "--settings-file", str(settings_file), "--output", str(output)])
    return json.loads(output.read_text(encoding="utf-8"))


def test_writes_composition_json(tmp_path, settings_file, caplog):
    caplog.set_level(logging.INFO)
    data = _run(tmp_path, settings_file, "--key", "D major", "--bars", "2", "--seed", "1")
    assert data["key"] == "D major"
    assert [c["symbol"] for c in data["chords"]] == ["D", "G", "A", "D"]
    assert data["melody"]
    assert "Composition written to" in caplog.text


def test_seed_makes_output_reproducible(tmp_path, settings_file):
    args = ("--structure", "verse-chorus", "--motif", "--seed", "42")
    assert _run(tmp_path, settings_file, *args) == _run(tmp_path, settings_file, *args)


def test_flags_reach_the_generator(tmp_path, settings_file):
    data = _run(
        tmp_path,
        settings_file,
        "--progression", "ii-V-I",
        "--extended",
        "--bass-pattern", "walking",
        "--no-humanize",
        "--seed", "3",
    )
    assert [c["symbol"] for c in data["chords"]] == ["Dm7", "Gmaj7", "Cmaj7"]
    assert [n["pitch"] for n in data["bass"][:4]] == ["D2", "A2", "D3", "A2"]


def test_inversion_flag(tmp_path, settings_file):
    data = _run(tmp_path, settings_file, "--inversion", "1", "--seed", "4")
    assert data["chords"][0]["notes"] == ["E4", "G4", "C5"]


def test_prints_to_stdout_without_output(settings_file, capsys):
    run_cli(["--seed", "5", "--settings-file", str(settings_file)])
    data = json.loads(capsys.readouterr().out)
    assert data["bars"] == 4


def test_list_keys(capsys):
    run_cli(["--list-keys"])
    out = capsys.readouterr().out
    assert "C major" in out
    assert "Modes:" in out


def test_list_progressions(capsys):
    run_cli(["--list-progressions"])
    assert "Jazz ii-V-I" in capsys.readouterr().out


def test_invalid_tempo_exits(settings_file, caplog):
    with pytest.raises(SystemExit) as exc:
        run_cli(["--tempo", "0", "--settings-file", str(settings_file)])
    assert exc.value.code == 1
    assert "Tempo must be a positive number." in caplog.text


def test_invalid_key_exits(settings_file, caplog):
    with pytest.raises(SystemExit) as exc:
        run_cli(["--key", "Z minor", "--settings-file", str(settings_file)])
    assert exc.value.code == 1
    assert "Invalid key" in caplog.text


def test_settings_file_supplies_defaults(tmp_path, settings_file):
    settings_file.write_text(json.dumps({"key": "G major", "tempo": 96}), encoding="utf-8")
    data = _run(tmp_path, settings_file, "--seed", "6")
    assert data["tempo"] == 96
    assert data["chords"][0]["symbol"] == "G"
    data = _run(tmp_path, settings_file, "--tempo", "140", "--seed", "6")
    assert data["tempo"] == 140


def test_save_settings(tmp_path, settings_file):
    _run(tmp_path, settings_file, "--key", "E minor", "--save-settings", "--seed", "7")
    saved = json.loads(settings_file.read_text(encoding="utf-8"))
    assert saved["key"] == "E minor"


def test_randomize(tmp_path, settings_file, caplog):
    caplog.set_level(logging.INFO)
    data = _run(tmp_path, settings_file, "--randomize", "--seed", "8")
    assert data["chords"]
    assert "Randomized options" in caplog.text


def test_unwritable_output_exits(tmp_path, settings_file, monkeypatch, caplog):
    """An ``OSError`` while writing is logged and exits with status 1."""

    def fail(*_args, **_kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "write_text", fail)
    with pytest.raises(SystemExit) as exc:
        run_cli(["--seed", "9", "--settings-file", str(settings_file), "--output", str(tmp_path / "x.json")])
    assert exc.value.code == 1
    assert "Could not write composition" in caplog.text
