"""Model directory scanning."""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Union

from ..models.preference import NamedPath

logger = logging.getLogger(__name__)

MODEL_EXTENSION = ".bin"


class DirectoryUnavailable(Exception):
    """Directory does not exist or cannot be read."""


def list_directory(directory: Union[str, Path]) -> List[NamedPath]:
    """List immediate children of a directory, sorted by name.

    Raises:
        DirectoryUnavailable: If the directory is missing or unreadable
    """
    path = Path(directory)
    try:
        with os.scandir(path) as it:
            entries = [NamedPath(name=entry.name, path=str(path / entry.name)) for entry in it]
    except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
        raise DirectoryUnavailable(f"Directory unavailable: {path} ({e.strerror or e})") from e
    except OSError as e:
        raise DirectoryUnavailable(f"Directory unavailable: {path} ({e})") from e

    entries.sort(key=lambda entry: entry.name)
    return entries


def filter_models(entries: Iterable[NamedPath], extension: str = MODEL_EXTENSION) -> List[NamedPath]:
    """Keep only entries whose name ends with the model file extension."""
    return [entry for entry in entries if entry.name.endswith(extension)]


def scan_models(directory: Union[str, Path], extension: str = MODEL_EXTENSION) -> List[NamedPath]:
    """List recognized model files; an unavailable directory yields no models."""
    try:
        entries = list_directory(directory)
    except DirectoryUnavailable as e:
        logger.warning(str(e))
        return []
    models = filter_models(entries, extension)
    logger.debug(f"Found {len(models)} models in {directory}")
    return models
