"""Invocation bridge between the application core and the host side.

The bridge exposes a small set of named request/response operations: running
the external transcription engine, resolving the models and logs folders,
reading the current log file and opening a path with the desktop.
"""

import asyncio
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .config import VibeConfig
from .engine.base import AbstractTranscriptionEngine, TranscribeRequest
from .models.transcript import Transcript
from .storage.store import KeyValueStore

logger = logging.getLogger(__name__)

MODELS_FOLDER_KEY = "models_folder"

OPERATIONS = ("transcribe", "get_models_folder", "get_logs_folder", "get_logs", "open_path")


class InvocationBridge:
    """Named operations served by the host for the application core."""

    def __init__(self, config: VibeConfig, store: KeyValueStore, engine: AbstractTranscriptionEngine):
        """Initialize bridge.

        Args:
            config: Application configuration
            store: Persisted store, consulted for the user's models folder
            engine: External transcription engine
        """
        self.config = config
        self.store = store
        self.engine = engine

    async def invoke(self, operation: str, **kwargs: Any) -> Any:
        """Dispatch an operation by name.

        Raises:
            ValueError: If the operation is not recognized
        """
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown bridge operation: {operation}")
        logger.debug(f"invoke {operation} {kwargs}")
        return await getattr(self, operation)(**kwargs)

    async def transcribe(self, path: str, lang: Optional[str] = None,
                         model_path: Optional[str] = None,
                         options: Optional[Dict[str, Any]] = None) -> Transcript:
        """Run the engine on an audio file.

        Raises:
            EngineError: With the engine's raw error description
        """
        request = TranscribeRequest(path=path, lang=lang, model_path=model_path,
                                    options=dict(options or {}))
        return await self.engine.transcribe(request)

    async def get_models_folder(self) -> str:
        """Return the user's models folder, or the default one, creating it if needed."""
        folder = self.store.get(MODELS_FOLDER_KEY)
        if not isinstance(folder, str) or not folder:
            folder = self.config.get_default_models_directory()
            Path(folder).mkdir(parents=True, exist_ok=True)
        return folder

    async def get_logs_folder(self) -> str:
        folder = self.config.get_logs_directory()
        Path(folder).mkdir(parents=True, exist_ok=True)
        return folder

    async def get_logs(self) -> str:
        """Return the contents of the current log file ("" when nothing was logged)."""
        log_file = Path(self.config.get_log_file_path())
        if not log_file.exists():
            return ""
        with open(log_file, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    async def open_path(self, path: str) -> None:
        """Open a path with the desktop's default handler. Best effort."""
        try:
            if sys.platform.startswith("win"):
                os.startfile(path)  # type: ignore[attr-defined]
                return
            opener = "open" if sys.platform == "darwin" else "xdg-open"
            proc = await asyncio.create_subprocess_exec(
                opener, path,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await proc.wait()
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not open {path}: {e}")
