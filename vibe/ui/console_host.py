"""Console host: renders job progress and results with rich."""

import logging
from typing import Dict, Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.table import Table
from rich.text import Text

from ..events.subscriptions import EventSubscriptionManager, SubscriptionScope
from ..events.topics import JOB_STATE
from ..models.job import JobState, JobStatus
from ..models.preference import NamedPath, RTL
from ..models.transcript import Transcript, to_text
from ..services.job_controller import JobHost

logger = logging.getLogger(__name__)


class ConsoleHost(JobHost):
    """Terminal stand-in for the desktop window."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._scope: Optional[SubscriptionScope] = None
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None

    def attach(self, events: EventSubscriptionManager) -> None:
        """Follow job state changes."""
        if self._scope is not None:
            return
        self._scope = SubscriptionScope(events)
        self._scope.subscribe(JOB_STATE, self.on_job_state)

    def detach(self) -> None:
        if self._scope is not None:
            self._scope.close()
            self._scope = None
        self._stop_progress()

    def on_job_state(self, state: JobState) -> None:
        if state.status == JobStatus.SUBMITTED:
            self._start_progress(state.path)
        elif state.status == JobStatus.IN_PROGRESS:
            if self._progress is None:
                self._start_progress(state.path)
            if state.progress is not None:
                self._progress.update(self._task_id, total=100, completed=state.progress)
        else:
            self._stop_progress()

    def show_error(self, message: str) -> None:
        self.console.print(Panel(Text(message), title="Error", border_style="red"))

    def notify_success(self) -> None:
        self.console.bell()
        self.console.print("✅ Transcription finished", style="bold green")

    def restore_focus(self) -> None:
        logger.debug("Focus restore requested (no window in console mode)")

    def print_transcript(self, transcript: Transcript, direction: str = "ltr") -> None:
        justify = "right" if direction == RTL else "left"
        self.console.print(Panel(Text(to_text(transcript), justify=justify),
                                 title="Transcript", border_style="blue"))

    def print_models(self, models: Iterable[NamedPath], selected: Optional[str] = None) -> None:
        table = Table(title="Models")
        table.add_column("")
        table.add_column("Name")
        table.add_column("Path", style="dim")
        count = 0
        for model in models:
            marker = "*" if model.path == selected else ""
            table.add_row(marker, model.name, model.path)
            count += 1
        if count == 0:
            self.console.print("No models found", style="yellow")
            return
        self.console.print(table)

    def print_app_info(self, info: Dict[str, str]) -> None:
        table = Table(title="Vibe", show_header=False)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in info.items():
            table.add_row(key, value)
        self.console.print(table)

    def _start_progress(self, path: Optional[str]) -> None:
        self._stop_progress()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]Transcribing...[/bold] {task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            console=self.console,
            transient=True,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(path or "", total=None)

    def _stop_progress(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task_id = None
