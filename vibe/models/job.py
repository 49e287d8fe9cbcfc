"""Transcription job state models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .transcript import Transcript


class JobStatus(Enum):
    """Lifecycle status of the transcription job."""
    IDLE = "idle"
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class JobState:
    """Snapshot of the single live transcription job.

    ``progress`` stays None until the engine reports a value.
    """
    status: JobStatus = JobStatus.IDLE
    path: Optional[str] = None
    progress: Optional[int] = None
    transcript: Optional[Transcript] = None
    message: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in (JobStatus.SUBMITTED, JobStatus.IN_PROGRESS)

    @classmethod
    def idle(cls) -> "JobState":
        return cls()

    @classmethod
    def submitted(cls, path: str) -> "JobState":
        return cls(status=JobStatus.SUBMITTED, path=path)

    @classmethod
    def in_progress(cls, path: str, progress: Optional[int] = None) -> "JobState":
        return cls(status=JobStatus.IN_PROGRESS, path=path, progress=progress)

    @classmethod
    def completed(cls, path: str, transcript: Transcript) -> "JobState":
        return cls(status=JobStatus.COMPLETED, path=path, transcript=transcript)

    @classmethod
    def failed(cls, path: str, message: str) -> "JobState":
        return cls(status=JobStatus.FAILED, path=path, message=message)
