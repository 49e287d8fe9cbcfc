"""Data models for the Vibe application."""

from .transcript import Utterance, Transcript, to_text
from .preference import NamedPath, Preference, DerivedSettings, LTR, RTL
from .job import JobStatus, JobState

__all__ = [
    "Utterance",
    "Transcript",
    "to_text",
    "NamedPath",
    "Preference",
    "DerivedSettings",
    "LTR",
    "RTL",
    "JobStatus",
    "JobState",
]
