"""Live progress line for the enrichment phase."""

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn


class ProgressReporter:
    """
    Spinner with a dispatched/total counter, drawn on the error console.

    Rendering happens on rich's refresh thread. Leaving the context stops
    and joins that thread and clears the line, so later output never races
    the cursor. Does nothing when the console is not a terminal.
    """

    def __init__(self, total: int, console: Console, description: str = "Scanning applications..."):
        self.total = total
        self.console = console
        self.description = description
        self.enabled = console.is_terminal
        self._progress: Progress | None = None
        self._task: TaskID | None = None

    def __enter__(self) -> "ProgressReporter":
        if self.enabled:
            self._progress = Progress(
                SpinnerColumn("line"),
                TextColumn("{task.description}"),
                TextColumn("{task.completed}/{task.total}"),
                console=self.console,
                transient=True,
                refresh_per_second=10,
            )
            self._task = self._progress.add_task(self.description, total=self.total)
            self._progress.start()
        return self

    def update(self, completed: int, total: int) -> None:
        """Dispatch callback: record how many candidates were handed out."""
        if self._progress is not None and self._task is not None:
            self._progress.update(self._task, completed=completed, total=total)

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task = None

    @property
    def running(self) -> bool:
        return self._progress is not None
