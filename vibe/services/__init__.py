"""Services layer for Vibe application logic."""

from .preference_store import PreferenceStore, derive_settings
from .model_directory_service import ModelDirectoryService
from .job_controller import TranscriptionJobController, JobRejectedError, JobHost
from .settings_service import SettingsService

__all__ = [
    "PreferenceStore",
    "derive_settings",
    "ModelDirectoryService",
    "TranscriptionJobController",
    "JobRejectedError",
    "JobHost",
    "SettingsService",
]
