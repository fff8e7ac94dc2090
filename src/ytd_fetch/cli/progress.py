"""Rich-based progress display driven by transport progress callbacks.

The transport calls ``callback(downloaded, total)`` synchronously after
every chunk, on the downloading thread.  :class:`RichProgressHook` is
such a callback: it only updates an in-memory Rich task, which Rich
renders from its own refresh thread, so each call returns promptly.

* Shutdown-safe: calls after :meth:`RichProgressHook.stop` are ignored.
* No ``print()`` — Rich handles all rendering.
"""

from __future__ import annotations

from typing import Any

from ytd_fetch.cli.console import get_rich_console
from ytd_fetch.exceptions import EnvironmentError


class RichProgressHook:
    """Callable progress adapter for Rich.

    Usage::

        with RichProgressHook("video.mp4") as hook:
            orchestrator.download(url, progress_callback=hook)
    """

    def __init__(self, description: str = "Downloading") -> None:
        try:
            from rich.progress import (
                BarColumn,
                DownloadColumn,
                Progress,
                SpinnerColumn,
                TextColumn,
                TimeRemainingColumn,
                TransferSpeedColumn,
            )
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=get_rich_console(),
            transient=False,
        )
        self._description: str = _shorten(description)
        self._task_id: Any = None
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> RichProgressHook:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        if not self._started:
            self._progress.start()
            self._started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------

    def __call__(self, downloaded: int, total: int) -> None:
        """Record that *downloaded* of *total* bytes have arrived."""
        if not self._started:
            return

        if self._task_id is None:
            self._task_id = self._progress.add_task(self._description, total=total or None)

        if total > 0:
            self._progress.update(self._task_id, total=total, completed=downloaded)
        else:
            self._progress.update(self._task_id, completed=downloaded)


def _shorten(name: str, limit: int = 50) -> str:
    """Trim *name* to *limit* characters for display."""
    if len(name) > limit:
        return name[: limit - 3] + "..."
    return name
