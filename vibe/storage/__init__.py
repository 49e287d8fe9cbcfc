"""Persistence: key/value store, model directory scanning and file export."""

from .store import KeyValueStore, StoreWriteError
from .model_directory import (
    DirectoryUnavailable,
    MODEL_EXTENSION,
    filter_models,
    list_directory,
    scan_models,
)
from .file_manager import FileManager

__all__ = [
    "KeyValueStore",
    "StoreWriteError",
    "DirectoryUnavailable",
    "MODEL_EXTENSION",
    "filter_models",
    "list_directory",
    "scan_models",
    "FileManager",
]
