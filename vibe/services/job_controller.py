"""Transcription job lifecycle controller.

The controller owns exactly one transcription job at a time and moves it
through ``Idle -> Submitted -> InProgress -> Completed | Failed -> Idle``.
Progress values come from the engine through the progress channel and are
applied verbatim; the engine's completion or failure is the only source of
truth for the terminal state.
"""

import asyncio
import logging
from typing import Optional

from ..bridge import InvocationBridge
from ..events.subscriptions import EventSubscriptionManager, SubscriptionScope
from ..events.topics import JOB_STATE, PROGRESS
from ..models.job import JobState, JobStatus
from ..models.transcript import Transcript
from .preference_store import PreferenceStore

logger = logging.getLogger(__name__)


class JobRejectedError(Exception):
    """A job is already submitted or in progress."""


class JobHost:
    """Host-side effects of the job lifecycle. Defaults do nothing."""

    def show_error(self, message: str) -> None:
        pass

    def notify_success(self) -> None:
        pass

    def restore_focus(self) -> None:
        pass


class TranscriptionJobController:
    """Drives one transcription job at a time."""

    def __init__(self,
                 bridge: InvocationBridge,
                 preferences: PreferenceStore,
                 events: EventSubscriptionManager,
                 host: Optional[JobHost] = None):
        """Initialize job controller.

        Args:
            bridge: Invocation bridge used to run the engine
            preferences: Preference store consulted for model path and options
            events: Subscription manager for progress and job state events
            host: Receives error dialogs, success notification and focus requests
        """
        self.bridge = bridge
        self.preferences = preferences
        self.events = events
        self.host = host or JobHost()
        self._state = JobState.idle()
        self._task: Optional[asyncio.Task] = None
        self._scope: Optional[SubscriptionScope] = None
        self.last_error: Optional[str] = None

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def path(self) -> Optional[str]:
        return self._state.path

    @property
    def progress(self) -> Optional[int]:
        return self._state.progress

    @property
    def transcript(self) -> Optional[Transcript]:
        return self._state.transcript

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def start(self) -> None:
        """Subscribe to engine progress."""
        if self._scope is not None:
            return
        self._scope = SubscriptionScope(self.events)
        self._scope.subscribe(PROGRESS, self._on_progress)
        logger.info("TranscriptionJobController started - subscribed to progress events")

    async def close(self) -> None:
        """Cancel the running job and release subscriptions."""
        if self._task is not None and not self._task.done():
            self.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        if self._scope is not None:
            self._scope.close()
            self._scope = None
        logger.info("TranscriptionJobController closed")

    async def __aenter__(self) -> "TranscriptionJobController":
        self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    def submit(self, path: str, lang: Optional[str] = None) -> asyncio.Task:
        """Accept a job and start it on the running event loop.

        The state is ``Submitted`` when this returns.

        Args:
            path: Audio file to transcribe
            lang: Engine language code; defaults to the model options language

        Returns:
            Task running the job; it never raises for engine failures

        Raises:
            ValueError: If path is empty
            JobRejectedError: If a job is already submitted or in progress
        """
        if not path:
            raise ValueError("path must not be empty")
        if self._state.is_active:
            raise JobRejectedError(f"A transcription job is already running: {self._state.path}")

        model_path = self.preferences.model_path
        options = self.preferences.model_options
        if not lang:
            lang = options.get("lang")

        self.last_error = None
        self._set_state(JobState.submitted(path))
        self._task = asyncio.get_running_loop().create_task(
            self._run(path, lang, model_path, options)
        )
        logger.info(f"Transcription submitted: {path} (lang={lang}, model={model_path})")
        return self._task

    def cancel(self) -> bool:
        """Cancel the in-flight job. Returns True if a job was cancelled."""
        if self._task is None or self._task.done() or not self._state.is_active:
            return False
        logger.info(f"Cancelling transcription: {self._state.path}")
        not_started = self._state.status == JobStatus.SUBMITTED
        self._task.cancel()
        if not_started:
            # _run never gets to its own cancellation handling
            self._set_state(JobState.idle())
            self._call_host(self.host.restore_focus)
        return True

    def dismiss(self) -> None:
        """Drop a finished job's result and return to Idle."""
        if self._state.is_active:
            raise JobRejectedError("Cannot dismiss a running job")
        if self._state.status != JobStatus.IDLE:
            self._set_state(JobState.idle())

    async def _run(self, path: str, lang: Optional[str], model_path: Optional[str], options: dict) -> None:
        self._set_state(JobState.in_progress(path))
        try:
            transcript = await self.bridge.transcribe(
                path=path, lang=lang, model_path=model_path, options=options
            )
        except asyncio.CancelledError:
            logger.info(f"Transcription cancelled: {path}")
            self._set_state(JobState.idle())
            raise
        except Exception as e:
            message = str(e)
            logger.error(f"Transcription failed for {path}: {message}")
            self.last_error = message
            self._set_state(JobState.failed(path, message))
            self._call_host(self.host.show_error, message)
            self._set_state(JobState.idle())
        else:
            logger.info(f"Transcription completed for {path}: {len(transcript)} utterances")
            self._set_state(JobState.completed(path, transcript))
            self._call_host(self.host.notify_success)
        finally:
            self._call_host(self.host.restore_focus)

    def _on_progress(self, value) -> None:
        if not self._state.is_active:
            logger.debug(f"Ignoring progress {value!r}: no active job")
            return
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
            logger.warning(f"Ignoring invalid progress value: {value!r}")
            return
        self._set_state(JobState.in_progress(self._state.path, value))

    def _set_state(self, state: JobState) -> None:
        previous = self._state
        self._state = state
        if previous.status != state.status:
            logger.debug(f"Job state: {previous.status.value} -> {state.status.value}")
        self.events.publish(JOB_STATE, state=state)

    def _call_host(self, func, *args) -> None:
        try:
            func(*args)
        except Exception as e:
            logger.warning(f"Host call {getattr(func, '__name__', func)} failed: {e}")
