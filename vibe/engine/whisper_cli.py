"""whisper.cpp command line engine."""

import asyncio
import json
import logging
import re
import shlex
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..models.transcript import Transcript, Utterance
from .base import AbstractTranscriptionEngine, EngineError, ProgressCallback, TranscribeRequest

logger = logging.getLogger(__name__)

PROGRESS_PATTERN = re.compile(r"progress\s*=\s*(\d+)\s*%")

# Tail of stderr kept for error messages
STDERR_TAIL_LINES = 20


def parse_progress_line(line: str) -> Optional[int]:
    """Extract a progress percentage from a CLI output line."""
    match = PROGRESS_PATTERN.search(line)
    if match is None:
        return None
    return int(match.group(1))


def parse_transcript_json(payload: Dict[str, Any], processing_time_sec: Optional[float] = None) -> Transcript:
    """Convert whisper.cpp ``-oj`` output into a Transcript.

    Segment offsets are milliseconds; utterance bounds are seconds.
    """
    utterances = []
    for segment in payload.get("transcription", []):
        if not segment:
            continue
        offsets = segment.get("offsets") or {}
        start = offsets.get("from")
        end = offsets.get("to")
        utterances.append(Utterance(
            text=str(segment.get("text", "")).strip(),
            start=start / 1000.0 if start is not None else None,
            end=end / 1000.0 if end is not None else None,
        ))
    return Transcript.from_utterances(utterances, processing_time_sec=processing_time_sec)


def build_option_args(options: Dict[str, Any]) -> List[str]:
    """Map model options to CLI flags. Unknown options are ignored."""
    args: List[str] = []
    if options.get("translate"):
        args.append("--translate")
    if options.get("word_timestamps"):
        args.extend(["--split-on-word", "--max-len", str(options.get("max_sentence_len") or 1)])
    if options.get("temperature") is not None:
        args.extend(["--temperature", str(options["temperature"])])
    if options.get("max_text_ctx") is not None:
        args.extend(["--max-context", str(options["max_text_ctx"])])
    if options.get("init_prompt"):
        args.extend(["--prompt", str(options["init_prompt"])])
    if options.get("n_threads") is not None:
        args.extend(["--threads", str(options["n_threads"])])
    return args


class WhisperCliEngine(AbstractTranscriptionEngine):
    """Runs a whisper.cpp style CLI as a subprocess and reads its JSON output."""

    def __init__(self,
                 command: Union[str, Sequence[str]] = "whisper-cli",
                 extra_args: Union[str, Sequence[str]] = "",
                 progress_callback: Optional[ProgressCallback] = None):
        """Initialize CLI engine.

        Args:
            command: Executable (and optional leading arguments)
            extra_args: Additional arguments appended to every invocation
            progress_callback: Called with each progress percentage
        """
        super().__init__(progress_callback)
        parts = shlex.split(command) if isinstance(command, str) else list(command)
        self.command = [p for p in parts if p] or ["whisper-cli"]
        self.extra_args = shlex.split(extra_args) if isinstance(extra_args, str) else list(extra_args)
        logger.info(f"WhisperCliEngine initialized with command: {' '.join(self.command)}")

    def build_command(self, request: TranscribeRequest, output_base: Path) -> List[str]:
        cmd = list(self.command)
        cmd.extend(["--model", str(request.model_path), "--file", str(request.path)])
        if request.lang:
            cmd.extend(["--language", request.lang])
        cmd.extend(build_option_args(request.options))
        cmd.extend(["--output-json", "--output-file", str(output_base), "--print-progress"])
        cmd.extend(self.extra_args)
        return cmd

    async def transcribe(self, request: TranscribeRequest) -> Transcript:
        if not Path(request.path).exists():
            raise EngineError("audio file doesn't exist")
        if not request.model_path:
            raise EngineError("no model selected")
        if not Path(request.model_path).exists():
            raise EngineError("model file doesn't exist")

        tmpdir = Path(tempfile.mkdtemp(prefix="vibe_whisper_"))
        output_base = tmpdir / Path(request.path).stem
        cmd = self.build_command(request, output_base)
        logger.debug(f"Running transcriber: {cmd}")

        started = time.monotonic()
        try:
            try:
                proc = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                raise EngineError(f"Transcriber command '{self.command[0]}' not found") from e
            except PermissionError as e:
                raise EngineError(f"Transcriber command '{self.command[0]}' is not executable") from e

            try:
                stderr_tail = await self._read_stderr(proc)
                returncode = await proc.wait()
            except asyncio.CancelledError:
                logger.info("Transcription cancelled, terminating transcriber")
                await self._kill(proc)
                raise

            logger.debug(f"Transcriber exited with code {returncode}")
            if returncode != 0:
                detail = "\n".join(stderr_tail).strip()
                raise EngineError(detail or f"transcriber failed with exit code {returncode}")

            json_path = output_base.with_name(output_base.name + ".json")
            if not json_path.exists():
                raise EngineError("transcriber produced no output")
            try:
                with open(json_path, 'r', encoding='utf-8', errors='replace') as f:
                    payload = json.load(f)
            except ValueError as e:
                raise EngineError(f"failed to parse transcriber output: {e}") from e

            transcript = parse_transcript_json(payload, round(time.monotonic() - started, 3))
            if not transcript.utterances:
                raise EngineError("no segments found")
            logger.info(f"Transcribed {request.path}: {len(transcript)} segments")
            return transcript
        finally:
            shutil.rmtree(tmpdir, ignore_errors=True)

    async def _read_stderr(self, proc: asyncio.subprocess.Process) -> List[str]:
        """Forward progress lines and keep the tail for error reporting."""
        tail: List[str] = []
        while True:
            raw = await proc.stderr.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").rstrip()
            progress = parse_progress_line(line)
            if progress is not None:
                self._report_progress(progress)
                continue
            if line:
                tail.append(line)
                if len(tail) > STDERR_TAIL_LINES:
                    tail.pop(0)
        return tail

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()

    def get_display_info(self) -> str:
        return f"whisper cli ({self.command[0]})"
