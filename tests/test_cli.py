"""Tests for the command-line front end."""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from entry.cli import build_parser, main
from entry.config import load_config, store_config
from entry.models import Schema


@pytest.fixture
def cli(config, config_path):
    """Run ``entry`` against a stored test config."""
    store_config(config, config_path)

    def _run(*argv):
        return main(["--config", str(config_path), *argv])

    return _run


@pytest.fixture
def typed(monkeypatch):
    """Feed scripted answers to ``input()``."""
    def _typed(*answers):
        pending = list(answers)
        monkeypatch.setattr("builtins.input", lambda *args: pending.pop(0))
    return _typed


class TestParser:
    """Tests for argument parsing."""

    def test_new_defaults(self):
        args = build_parser().parse_args(["new"])
        assert args.time == "now"
        assert args.entry_name is None

    def test_new_with_time(self):
        args = build_parser().parse_args(["new", "-t", "9pm", "work"])
        assert (args.time, args.entry_name) == ("9pm", "work")

    def test_command_required(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])
        assert exc_info.value.code == 2

    def test_config_action_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["config"])


class TestStartup:
    """Tests for what every invocation does."""

    def test_creates_schema_directory(self, cli, config):
        assert cli("schema", "list") == 0
        assert config.get_schema_path().is_dir()

    def test_malformed_config_fails(self, config_path, capsys):
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text("this is not toml")

        assert main(["--config", str(config_path), "config", "list"]) == 1
        assert capsys.readouterr().err.startswith("error: failed to load config")


class TestConfigCommand:
    """Tests for ``entry config``."""

    def test_list(self, cli, capsys):
        assert cli("config", "list") == 0
        lines = capsys.readouterr().out.splitlines()
        assert "minute_bucket_size=15" in lines
        assert "create_file=false" in lines

    def test_set_then_get(self, cli, config_path, capsys):
        assert cli("config", "set", "minute_bucket_size", "5") == 0
        assert load_config(config_path).minute_bucket_size == 5

        assert cli("config", "get", "minute_bucket_size") == 0
        assert capsys.readouterr().out.strip() == "5"

    def test_set_then_get_with_conf_suffix(self, config, temp_home, capsys):
        """A config path without a .toml suffix keeps working after a set."""
        path = temp_home / "entry.conf"
        store_config(config, path)
        assert main(["--config", str(path), "config", "set", "minute_bucket_size", "5"]) == 0
        assert main(["--config", str(path), "config", "get", "minute_bucket_size"]) == 0
        assert capsys.readouterr().out.strip() == "5"

    def test_invalid_key(self, cli, capsys):
        assert cli("config", "get", "shell") == 1
        assert "error: invalid key `shell`" in capsys.readouterr().err

    def test_invalid_value_not_stored(self, cli, config_path, capsys):
        assert cli("config", "set", "minute_bucket_size", "0") == 1
        assert "invalid value" in capsys.readouterr().err
        assert load_config(config_path).minute_bucket_size == 15


class TestSetupCommand:
    """Tests for ``entry setup``."""

    def test_stores_answers(self, cli, config_path, typed, capsys):
        typed("", "journal", "30", "", "", "no")
        assert cli("setup") == 0

        config = load_config(config_path)
        assert config.default_note_name == "journal"
        assert config.minute_bucket_size == 30
        assert config.allow_empty_arrays is False
        assert f"Saved config to {config_path}" in capsys.readouterr().out


class TestSchemaCommand:
    """Tests for ``entry schema``."""

    def test_new_list_show_remove(self, cli, typed, capsys):
        typed("workout", "exercise", "string", "n", "reps", "number", "y", "")
        assert cli("schema", "new") == 0
        assert "Saving schema..." in capsys.readouterr().out

        assert cli("schema", "list") == 0
        assert capsys.readouterr().out.splitlines() == ["workout"]

        assert cli("schema", "show", "workout") == 0
        assert capsys.readouterr().out.splitlines() == [
            "exercise: string",
            "reps: array of numbers",
        ]

        assert cli("schema", "remove", "workout") == 0
        assert "Successfully removed schema `workout`" in capsys.readouterr().out

        assert cli("schema", "list") == 0
        assert capsys.readouterr().out == ""

    def test_new_empty_not_saved(self, cli, config, typed, capsys):
        typed("nothing", "")
        assert cli("schema", "new") == 0
        assert "Schema is empty, not saving." in capsys.readouterr().out
        assert list(config.get_schema_path().glob("*.json")) == []

    def test_show_missing(self, cli, capsys):
        assert cli("schema", "show", "ghost") == 1
        assert "error: schema `ghost` does not exist" in capsys.readouterr().err

    def test_show_malformed(self, cli, config, store, capsys):
        (config.get_schema_path() / "bad.json").write_text("[")
        assert cli("schema", "show", "bad") == 1
        assert "not valid JSON" in capsys.readouterr().err

    def test_remove_missing(self, cli, capsys):
        assert cli("schema", "remove", "ghost") == 1
        assert "does not exist" in capsys.readouterr().err

    def test_aborted_input(self, cli, monkeypatch, capsys):
        def eof(*args):
            raise EOFError

        monkeypatch.setattr("builtins.input", eof)
        assert cli("schema", "new") == 1
        assert "input aborted" in capsys.readouterr().err


class TestForAndLast:
    """Tests for ``entry for`` and ``entry last``."""

    def test_for_prints_and_caches(self, cli, store, workout_schema, typed, capsys):
        store.save(workout_schema, "workout")
        typed("squat", "5,5", "2024-05-10", "nope", "2024-05-10 07:30")

        assert cli("for", "workout") == 0
        out = capsys.readouterr().out.splitlines()
        assert "Invalid value received, make sure it is a valid datetime." in out
        record = json.loads(out[-1])
        assert record == {
            "exercise": "squat",
            "reps": [5, 5],
            "day": "2024-05-10",
            "started": "2024-05-10 07:30",
        }

        assert cli("last") == 0
        assert json.loads(capsys.readouterr().out) == record

    @pytest.mark.skipif(
        not hasattr(sys, "get_int_max_str_digits"), reason="interpreter has no int string limit"
    )
    def test_for_reprompts_overlong_number(self, cli, store, typed, capsys):
        store.save(Schema.from_dict({"reps": {"count": "One", "data_type": "Number"}}), "lift")
        typed("9" * 5000, "12")

        assert cli("for", "lift") == 0
        out = capsys.readouterr().out.splitlines()
        assert "Invalid value received, make sure it is a valid number." in out
        assert json.loads(out[-1]) == {"reps": 12}

    def test_for_prints_record_when_cache_write_fails(self, cli, store, typed, capsys):
        """The typed record is shown even if it cannot be cached."""
        store.save(Schema.from_dict({"mood": {"count": "One", "data_type": "String"}}), "mood")
        typed("calm")

        with patch("entry.store.write_text", side_effect=OSError("read-only file system")):
            assert cli("for", "mood") == 1

        captured = capsys.readouterr()
        assert json.loads(captured.out.splitlines()[-1]) == {"mood": "calm"}
        assert "read-only file system" in captured.err

    def test_for_missing_schema(self, cli, capsys):
        assert cli("for", "ghost") == 1
        assert "does not exist" in capsys.readouterr().err

    def test_last_without_entry(self, cli, capsys):
        assert cli("last") == 1
        assert "no entry has been generated yet" in capsys.readouterr().err


class TestNewAndFind:
    """Tests for ``entry new`` and ``entry find``."""

    def test_new_opens_editor(self, cli, config, monkeypatch):
        monkeypatch.setenv("EDITOR", "vim")
        with patch("entry.notes.open_in_editor") as open_editor:
            assert cli("new", "-t", "now", "work") == 0

        path = open_editor.call_args[0][0]
        assert path.parent == Path(config.note_directory) / "work"
        assert path.suffix == ".txt"

    def test_new_bad_time(self, cli, capsys):
        with patch("entry.notes.open_in_editor") as open_editor:
            assert cli("new", "-t", "24:00") == 1
        open_editor.assert_not_called()
        assert capsys.readouterr().err.strip() == "error: invalid hour input"

    def test_new_overlong_time(self, cli, capsys):
        with patch("entry.notes.open_in_editor") as open_editor:
            assert cli("new", "-t", "9" * 5000) == 1
        open_editor.assert_not_called()
        assert capsys.readouterr().err.strip() == "error: invalid hour input"

    def test_new_editor_failure(self, cli, monkeypatch, capsys):
        monkeypatch.setenv("EDITOR", "false")
        with patch("entry.notes.subprocess.run") as run:
            run.return_value.returncode = 1
            assert cli("new") == 1
        assert "exited with status 1" in capsys.readouterr().err

    def test_find(self, cli, config, capsys):
        note = Path(config.note_directory) / "default" / "2024-05-10-09-00.txt"
        note.parent.mkdir(parents=True)
        note.write_text("remember the milk\n")

        assert cli("find", "milk") == 0
        assert capsys.readouterr().out.splitlines() == [str(note)]

        assert cli("find", "eggs") == 0
        assert capsys.readouterr().out == ""
