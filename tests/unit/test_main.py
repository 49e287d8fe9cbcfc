"""Unit tests for the command line entry point."""

import asyncio
from pathlib import Path

import pytest

from vibe.main import App, build_parser
from vibe.services.preference_store import (
    DISPLAY_LANGUAGE_KEY,
    MODEL_OPTIONS_KEY,
    MODEL_PATH_KEY,
    TEXT_AREA_DIRECTION_KEY,
)
from vibe.storage.store import KeyValueStore


def run_command(config_file, *argv) -> int:
    args = build_parser().parse_args(["--config", config_file, *argv])
    app = App(args.config, args.log_level)
    return asyncio.run(app.run(args))


def reload_store(config_file) -> KeyValueStore:
    store = KeyValueStore(Path(config_file).parent / "data" / "store.json")
    store.load()
    return store


@pytest.mark.unit
class TestParser:
    """Test cases for argument parsing."""

    def test_transcribe_arguments(self):
        args = build_parser().parse_args(["transcribe", "talk.wav", "--lang", "de", "-o", "out", "--format", "json"])

        assert args.command == "transcribe"
        assert args.file == "talk.wav"
        assert args.lang == "de"
        assert args.output == "out"
        assert args.format == "json"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_log_to_file_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["log-to-file", "maybe"])


@pytest.mark.unit
class TestApp:
    """Test cases for commands run end to end against the temp data directory."""

    def test_set_language(self, config_file):
        assert run_command(config_file, "set-language", "he-IL") == 0

        store = reload_store(config_file)
        assert store.get(DISPLAY_LANGUAGE_KEY) == "he-IL"
        assert store.get(TEXT_AREA_DIRECTION_KEY) == "rtl"
        assert store.get(MODEL_OPTIONS_KEY)["lang"] == "he"

    def test_set_models_folder_selects_default_model(self, config_file, models_dir):
        (models_dir / "ggml-small.bin").write_bytes(b"")
        (models_dir / "ggml-base.bin").write_bytes(b"")
        (models_dir / "notes.txt").write_text("skip")

        assert run_command(config_file, "set-models-folder", str(models_dir)) == 0

        store = reload_store(config_file)
        assert store.get(MODEL_PATH_KEY) == str(models_dir / "ggml-base.bin")

    def test_set_model_rejects_missing_file(self, config_file, temp_data_dir):
        assert run_command(config_file, "set-model", str(Path(temp_data_dir) / "missing.bin")) == 1
        assert not reload_store(config_file).has(MODEL_PATH_KEY)

    def test_transcribe_failure_returns_error_code(self, config_file, audio_file, capsys):
        # engine.url in the test config points at a closed port
        assert run_command(config_file, "transcribe", audio_file) == 1

        assert "unavailable" in capsys.readouterr().out

    def test_log_to_file_then_reset(self, config_file):
        assert run_command(config_file, "log-to-file", "on") == 0
        assert reload_store(config_file).get("prefs_log_to_file") is True

        assert run_command(config_file, "reset") == 0
        assert reload_store(config_file).keys() == []

    def test_info(self, config_file, capsys):
        assert run_command(config_file, "info") == 0

        out = capsys.readouterr().out
        assert "0.1.0" in out
        assert "127.0.0.1:9" in out
