"""Abstract base classes for transcription engines."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
import logging

from ..models.transcript import Transcript

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class EngineError(Exception):
    """Transcription invocation failed.

    ``str(error)`` is the engine's raw description and is shown to the user as is.
    """


@dataclass
class TranscribeRequest:
    """Everything the engine needs for one job."""
    path: str
    lang: Optional[str] = None
    model_path: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)


class AbstractTranscriptionEngine(ABC):
    """Abstract base class for external transcription engines."""

    def __init__(self, progress_callback: Optional[ProgressCallback] = None):
        """Initialize engine.

        Args:
            progress_callback: Called with each progress value the engine reports
        """
        self.progress_callback = progress_callback

    @abstractmethod
    async def transcribe(self, request: TranscribeRequest) -> Transcript:
        """Transcribe an audio file.

        Args:
            request: Audio path, language, model and options

        Returns:
            Transcript of the audio

        Raises:
            EngineError: If transcription fails
        """
        pass

    def _report_progress(self, value: int) -> None:
        if self.progress_callback is not None:
            self.progress_callback(value)

    def get_display_info(self) -> str:
        return self.__class__.__name__
