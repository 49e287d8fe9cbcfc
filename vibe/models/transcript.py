"""Transcript data models."""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Utterance:
    """One recognized text segment with optional timing bounds (seconds)."""
    text: str
    start: Optional[float] = None
    end: Optional[float] = None


@dataclass(frozen=True)
class Transcript:
    """Ordered result of a completed transcription job."""
    utterances: Tuple[Utterance, ...] = field(default_factory=tuple)
    processing_time_sec: Optional[float] = None

    @classmethod
    def from_utterances(cls, utterances: Iterable[Utterance],
                        processing_time_sec: Optional[float] = None) -> "Transcript":
        return cls(utterances=tuple(utterances), processing_time_sec=processing_time_sec)

    def to_text(self) -> str:
        return to_text(self)

    def __len__(self) -> int:
        return len(self.utterances)


def to_text(transcript: Transcript) -> str:
    """Render a transcript as plain text, one utterance per line.

    This is the rendering used for clipboard copy and file export.
    """
    return "\n".join(u.text for u in transcript.utterances)
