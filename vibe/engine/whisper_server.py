"""whisper.cpp HTTP server engine."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

import aiohttp

from ..models.transcript import Transcript, Utterance
from .base import AbstractTranscriptionEngine, EngineError, ProgressCallback, TranscribeRequest

logger = logging.getLogger(__name__)


def parse_verbose_json(payload: Dict[str, Any], processing_time_sec: Optional[float] = None) -> Transcript:
    """Convert a ``verbose_json`` inference response into a Transcript."""
    segments = payload.get("segments")
    if segments is None:
        text = str(payload.get("text", "")).strip()
        utterances = [Utterance(text=text)] if text else []
    else:
        utterances = [
            Utterance(
                text=str(segment.get("text", "")).strip(),
                start=segment.get("start"),
                end=segment.get("end"),
            )
            for segment in segments if segment
        ]
    return Transcript.from_utterances(utterances, processing_time_sec=processing_time_sec)


class WhisperServerEngine(AbstractTranscriptionEngine):
    """Posts audio files to a whisper.cpp server ``/inference`` endpoint.

    The server loads its own model, so ``model_path`` is not sent. The server
    does not stream progress; the progress callback is never called.
    """

    def __init__(self, url: str = "http://127.0.0.1:8080/inference",
                 timeout_seconds: float = 3600,
                 progress_callback: Optional[ProgressCallback] = None):
        """Initialize server engine.

        Args:
            url: Inference endpoint URL
            timeout_seconds: Total timeout for one request
            progress_callback: Unused by this engine, accepted for symmetry
        """
        super().__init__(progress_callback)
        self.url = url
        self.timeout_seconds = timeout_seconds
        logger.info(f"WhisperServerEngine initialized with url: {url}")

    async def transcribe(self, request: TranscribeRequest) -> Transcript:
        audio_path = Path(request.path)
        if not audio_path.exists():
            raise EngineError("audio file doesn't exist")

        started = time.monotonic()
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            with open(audio_path, 'rb') as audio:
                data = aiohttp.FormData()
                data.add_field("file", audio, filename=audio_path.name,
                               content_type="application/octet-stream")
                data.add_field("response_format", "verbose_json")
                if request.lang:
                    data.add_field("language", request.lang)
                if request.options.get("temperature") is not None:
                    data.add_field("temperature", str(request.options["temperature"]))
                if request.options.get("translate"):
                    data.add_field("translate", "true")

                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async with session.post(self.url, data=data) as response:
                        if response.status != 200:
                            error_text = await response.text()
                            raise EngineError(f"{response.status} - {error_text}".strip())
                        payload = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise EngineError(f"transcription server unavailable: {e}") from e
        except asyncio.TimeoutError as e:
            raise EngineError("transcription server timed out") from e
        except ValueError as e:
            raise EngineError(f"invalid response from transcription server: {e}") from e

        if isinstance(payload, dict) and payload.get("error"):
            raise EngineError(str(payload["error"]))
        if not isinstance(payload, dict):
            raise EngineError("unexpected response from transcription server")

        transcript = parse_verbose_json(payload, round(time.monotonic() - started, 3))
        if not transcript.utterances:
            raise EngineError("no segments found")
        logger.info(f"Transcribed {request.path} via server: {len(transcript)} segments")
        return transcript

    def get_display_info(self) -> str:
        return f"whisper server ({self.url})"
