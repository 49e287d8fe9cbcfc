"""Pytest configuration and fixtures for Vibe tests."""

import asyncio
import pytest
import tempfile
import logging
from pathlib import Path
from typing import List, Optional

import yaml

from vibe.bridge import InvocationBridge
from vibe.config import VibeConfig
from vibe.engine.base import AbstractTranscriptionEngine, EngineError, TranscribeRequest
from vibe.events import EventSubscriptionManager, ProgressPublisher
from vibe.models.transcript import Transcript, Utterance
from vibe.services.job_controller import JobHost
from vibe.services.preference_store import PreferenceStore
from vibe.storage.store import KeyValueStore


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external processes or network")


class FakeEngine(AbstractTranscriptionEngine):
    """Engine double that replays scripted progress and returns a canned result."""

    def __init__(self,
                 transcript: Optional[Transcript] = None,
                 error: Optional[str] = None,
                 progress_values: Optional[List[int]] = None,
                 progress_callback=None):
        super().__init__(progress_callback)
        self.transcript = transcript or Transcript.from_utterances(
            [Utterance("hello", 0.0, 1.0), Utterance("world", 1.0, 2.0)]
        )
        self.error = error
        self.progress_values = progress_values or []
        self.requests: List[TranscribeRequest] = []
        # Cleared by tests that need the job to stay in flight
        self.release = asyncio.Event()
        self.release.set()
        self.started = asyncio.Event()

    async def transcribe(self, request: TranscribeRequest) -> Transcript:
        self.requests.append(request)
        self.started.set()
        for value in self.progress_values:
            self._report_progress(value)
            await asyncio.sleep(0)
        await self.release.wait()
        if self.error is not None:
            raise EngineError(self.error)
        return self.transcript


class RecordingHost(JobHost):
    """Host double that records every call."""

    def __init__(self):
        self.errors: List[str] = []
        self.successes = 0
        self.focus_requests = 0

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def notify_success(self) -> None:
        self.successes += 1

    def restore_focus(self) -> None:
        self.focus_requests += 1


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def config_file(temp_data_dir):
    """Write a minimal YAML configuration into the temp directory."""
    path = Path(temp_data_dir) / "vibe.yaml"
    path.write_text(yaml.safe_dump({
        "engine": {"type": "server", "url": "http://127.0.0.1:9/inference"},
        "storage": {"data_directory": "data"},
        "logging": {"console_output": False},
    }))
    return str(path)


@pytest.fixture
def config(config_file):
    return VibeConfig(config_file)


@pytest.fixture
def store_path(temp_data_dir):
    return str(Path(temp_data_dir) / "store.json")


@pytest.fixture
def store(store_path):
    kv = KeyValueStore(store_path)
    kv.load()
    return kv


@pytest.fixture
def models_dir(temp_data_dir):
    path = Path(temp_data_dir) / "models"
    path.mkdir()
    return path


@pytest.fixture
def events():
    return EventSubscriptionManager()


@pytest.fixture
def engine_factory(events):
    """Build FakeEngines wired to the progress channel."""
    def make_engine(**kwargs) -> FakeEngine:
        return FakeEngine(progress_callback=ProgressPublisher(events).get_callback(), **kwargs)

    return make_engine


@pytest.fixture
def fake_engine(engine_factory):
    return engine_factory()


@pytest.fixture
def bridge(config, store, fake_engine):
    return InvocationBridge(config, store, fake_engine)


@pytest.fixture
def preferences(store, bridge):
    prefs = PreferenceStore(store, bridge)
    prefs.load()
    return prefs


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def audio_file(temp_data_dir):
    """An (empty) audio file path that exists on disk."""
    path = Path(temp_data_dir) / "speech.wav"
    path.write_bytes(b"RIFF")
    return str(path)
