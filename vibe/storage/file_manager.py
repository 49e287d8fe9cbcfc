"""File management for application data directories and transcript export."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Union

from ..models.transcript import Transcript, to_text

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("txt", "json")


class FileManager:
    """Manages the data directory layout and transcript files."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for the store, logs and default models folder
        """
        self.data_dir = Path(data_dir)
        self.logs_dir = self.data_dir / "logs"
        self.models_dir = self.data_dir / "models"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.logs_dir, self.models_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def export_transcript(self, transcript: Transcript, file_path: Union[str, Path],
                          fmt: str = "txt") -> str:
        """Write a transcript to disk.

        Args:
            transcript: Transcript to export
            file_path: Destination path; the format's extension is added if missing
            fmt: "txt" for the plain-text rendering, "json" for segments with timings

        Returns:
            Full path of the written file
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unknown export format: {fmt}")

        path = Path(file_path)
        if path.suffix != f".{fmt}":
            path = path.with_name(path.name + f".{fmt}")
        path.parent.mkdir(parents=True, exist_ok=True)

        if fmt == "txt":
            content = to_text(transcript)
        else:
            content = json.dumps(self._transcript_to_dict(transcript), indent=2, ensure_ascii=False)

        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Error exporting transcript: {e}")
            raise

        logger.info(f"Transcript exported: {path} ({len(transcript)} utterances)")
        return str(path)

    def _transcript_to_dict(self, transcript: Transcript) -> dict:
        return {
            "generated_at": datetime.now().isoformat(),
            "processing_time_sec": transcript.processing_time_sec,
            "utterances": [
                {
                    "segment_id": i + 1,
                    "text": u.text,
                    "start": u.start,
                    "end": u.end,
                }
                for i, u in enumerate(transcript.utterances)
            ],
        }
