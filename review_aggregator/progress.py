# MIT License
#
# Copyright (c) 2024 Review Aggregator Contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""Progress notifications for batch reviews.

The orchestrator reports three events: a batch started, one file was
analyzed, the batch completed. Listeners decide how to present them.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .analyzers.base_analyzer import ReviewResult

logger = logging.getLogger(__name__)


class ProgressListener:
    """Base class for review progress listeners. Every hook is a no-op."""

    def analysis_started(self, total_files: int) -> None:
        """A batch of `total_files` files is about to be analyzed."""
        pass

    def file_analyzed(self, file_path: str, result: ReviewResult) -> None:
        """One file finished. Called in input order."""
        pass

    def analysis_completed(self, results: Sequence[ReviewResult]) -> None:
        """The batch finished (or was cancelled) with these results."""
        pass


class LoggingProgressListener(ProgressListener):
    """Reports progress through the module logger."""

    def analysis_started(self, total_files: int) -> None:
        logger.info(f"Analyzing {total_files} files")

    def file_analyzed(self, file_path: str, result: ReviewResult) -> None:
        logger.info(
            f"Analyzed {file_path}: score {result.score}, {len(result.issues)} issues"
        )

    def analysis_completed(self, results: Sequence[ReviewResult]) -> None:
        logger.info(f"Analysis completed for {len(results)} files")


class RichProgressListener(ProgressListener):
    """Rich progress bar advanced once per analyzed file."""

    def __init__(self, console: Console | None = None, transient: bool = True):
        """Initialize the listener.

        Args:
            console: Console to draw on (a new one if None)
            transient: Remove the bar once the batch completes
        """
        self.console = console or Console()
        self.transient = transient
        self.progress: Progress | None = None
        self.task: TaskID | None = None

    def analysis_started(self, total_files: int) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=self.transient,
        )
        self.progress.start()
        self.task = self.progress.add_task(
            "[bold green]Reviewing files", total=total_files
        )

    def file_analyzed(self, file_path: str, result: ReviewResult) -> None:
        if self.progress is None or self.task is None:
            return
        self.progress.update(
            self.task,
            advance=1,
            description=f"[bold green]Reviewed[/bold green] {file_path}",
        )

    def analysis_completed(self, results: Sequence[ReviewResult]) -> None:
        if self.progress is not None:
            self.progress.stop()
        self.progress = None
        self.task = None

    def __enter__(self) -> RichProgressListener:
        return self

    def __exit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        # Batch may have raised before analysis_completed was reached
        if self.progress is not None:
            self.progress.stop()
            self.progress = None
