"""Transcription engine adapters."""

import logging
from typing import Optional

from .base import AbstractTranscriptionEngine, EngineError, ProgressCallback, TranscribeRequest
from .whisper_cli import WhisperCliEngine
from .whisper_server import WhisperServerEngine
from ..config import VibeConfig

logger = logging.getLogger(__name__)

ENGINE_TYPES = ("cli", "server")


def create_engine(config: VibeConfig,
                  progress_callback: Optional[ProgressCallback] = None) -> AbstractTranscriptionEngine:
    """Create the engine selected by ``engine.type``."""
    engine_type = config.get('engine.type', 'cli')
    if engine_type == "cli":
        return WhisperCliEngine(
            command=config.get('engine.command', 'whisper-cli'),
            extra_args=config.get('engine.extra_args', ''),
            progress_callback=progress_callback,
        )
    if engine_type == "server":
        return WhisperServerEngine(
            url=config.get('engine.url', 'http://127.0.0.1:8080/inference'),
            timeout_seconds=config.get('engine.timeout_seconds', 3600),
            progress_callback=progress_callback,
        )
    raise ValueError(f"Unknown engine type '{engine_type}', expected one of {ENGINE_TYPES}")


__all__ = [
    "AbstractTranscriptionEngine",
    "EngineError",
    "ProgressCallback",
    "TranscribeRequest",
    "WhisperCliEngine",
    "WhisperServerEngine",
    "create_engine",
]
