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

"""Review orchestrator for multi-source file analysis.

This module wires the review sources together: for each changed file it runs
the enabled analyzers concurrently, isolates per-source failures, combines
the results and records the merged issues for path-tolerant lookup.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any

from ..analyzers.base_analyzer import BaseAnalyzer, FileChange, Issue, ReviewResult
from ..analyzers.diagnostic_analyzer import DiagnosticAnalyzer, DiagnosticProvider
from ..analyzers.diff_analyzer import DiffAnalyzer
from ..analyzers.heuristic_analyzer import HeuristicAnalyzer
from ..analyzers.semantic_analyzer import SemanticReviewer
from ..completion_client import CommandCompletionClient, CompletionClient
from ..exceptions import NotInitializedError
from ..path_resolver import IssueRegistry
from ..progress import ProgressListener
from ..result_cache import ResultCache
from .review_aggregator import ReviewAggregator

logger = logging.getLogger(__name__)

ENV_PREFIX = "REVIEW_AGGREGATOR_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e


@dataclass
class ReviewConfig:
    """Configuration for the review orchestrator."""

    # Analysis settings
    enable_heuristic_analysis: bool = True
    enable_diagnostic_analysis: bool = True
    enable_semantic_analysis: bool = True
    enable_diff_analysis: bool = False

    # Batch settings
    max_concurrent_files: int = 1
    workspace_root: str | None = None

    # Semantic boundary
    completion_command: str | None = None

    # Heuristic thresholds
    max_line_length: int = 120

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_concurrent_files < 1:
            raise ValueError(
                f"max_concurrent_files must be at least 1, got {self.max_concurrent_files}"
            )
        if self.max_line_length < 1:
            raise ValueError(
                f"max_line_length must be positive, got {self.max_line_length}"
            )
        if self.completion_command is not None and not self.completion_command.strip():
            self.completion_command = None

    @classmethod
    def from_env(cls, **overrides: Any) -> ReviewConfig:
        """Build a config from REVIEW_AGGREGATOR_* environment variables.

        Keyword overrides win over the environment.
        """
        values: dict[str, Any] = {
            "enable_heuristic_analysis": _env_flag("ENABLE_HEURISTIC", True),
            "enable_diagnostic_analysis": _env_flag("ENABLE_DIAGNOSTIC", True),
            "enable_semantic_analysis": _env_flag("ENABLE_SEMANTIC", True),
            "enable_diff_analysis": _env_flag("ENABLE_DIFF", False),
            "max_concurrent_files": _env_int("MAX_CONCURRENT_FILES", 1),
            "workspace_root": os.environ.get(ENV_PREFIX + "WORKSPACE_ROOT") or None,
            "completion_command": os.environ.get(ENV_PREFIX + "COMPLETION_COMMAND")
            or None,
            "max_line_length": _env_int("MAX_LINE_LENGTH", 120),
        }
        values.update(overrides)
        return cls(**values)

    def analyzer_config(self) -> dict[str, Any]:
        return {"max_line_length": self.max_line_length}


class ReviewOrchestrator:
    """Runs the review sources for each changed file and merges their results.

    Per file the enabled analyzers run concurrently; a source that raises is
    replaced by its error result so the remaining sources still count.
    """

    def __init__(
        self,
        config: ReviewConfig,
        completion_client: CompletionClient | None = None,
        diagnostic_provider: DiagnosticProvider | None = None,
        cache: ResultCache | None = None,
        registry: IssueRegistry | None = None,
        progress_callback: ProgressListener | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            config: Review configuration.
            completion_client: Client for the semantic boundary. Built from
                `config.completion_command` when not given.
            diagnostic_provider: Callable returning diagnostics for a path.
            cache: Shared semantic result cache (a new one if None).
            registry: Issue registry receiving merged issues (a new one if None).
            progress_callback: Listener notified as files complete.
        """
        self.config = config
        if completion_client is None and config.completion_command:
            completion_client = CommandCompletionClient(config.completion_command)
        self.completion_client = completion_client
        self.cache = cache if cache is not None else ResultCache()
        self.registry = registry if registry is not None else IssueRegistry()
        self.progress = progress_callback or ProgressListener()
        self.aggregator = ReviewAggregator()

        analyzer_config = config.analyzer_config()
        self.analyzers: list[BaseAnalyzer] = []
        if config.enable_heuristic_analysis:
            self.analyzers.append(HeuristicAnalyzer(analyzer_config))
        if config.enable_diagnostic_analysis:
            self.analyzers.append(
                DiagnosticAnalyzer(diagnostic_provider, analyzer_config)
            )
        if config.enable_semantic_analysis:
            self.analyzers.append(
                SemanticReviewer(self.completion_client, self.cache, analyzer_config)
            )
        if config.enable_diff_analysis:
            self.analyzers.append(DiffAnalyzer(self.completion_client, analyzer_config))

        logger.info(
            "Review orchestrator initialized with analyzers: "
            f"{[a.get_analyzer_name() for a in self.analyzers]}"
        )

    def ensure_ready(self) -> None:
        """Raise NotInitializedError if semantic review has no client."""
        if self.config.enable_semantic_analysis and self.completion_client is None:
            raise NotInitializedError()

    async def analyze_file(self, change: FileChange) -> ReviewResult:
        """Run every enabled analyzer on one file and combine the results.

        Args:
            change: The changed file

        Returns:
            Merged ReviewResult for the file

        Raises:
            NotInitializedError: If semantic review is enabled without a client,
                or the client reports that it cannot run
        """
        self.ensure_ready()

        if not self.analyzers:
            logger.warning(f"No analyzers enabled, nothing to review for {change.path}")
            result = ReviewResult(file=change.path, score=10.0, summary="No analyzers enabled")
            self._register(change.path, result)
            return result

        outcomes = await asyncio.gather(
            *(analyzer.analyze_file(change) for analyzer in self.analyzers),
            return_exceptions=True,
        )

        results = []
        for analyzer, outcome in zip(self.analyzers, outcomes):
            if isinstance(outcome, ReviewResult):
                results.append(outcome)
            elif isinstance(outcome, NotInitializedError):
                raise outcome
            elif isinstance(outcome, Exception):
                logger.warning(
                    f"{analyzer.get_analyzer_name()} analysis failed for "
                    f"{change.path}: {outcome}"
                )
                results.append(analyzer.create_error_result(change.path, outcome))
            else:
                raise outcome

        merged = self.aggregator.combine(results)
        self._register(change.path, merged)
        return merged

    async def analyze_files(
        self,
        changes: Sequence[FileChange],
        cancel_event: asyncio.Event | None = None,
    ) -> list[ReviewResult]:
        """Review a batch of changed files.

        The semantic cache is cleared first, so a batch always reflects the
        current state of the files. At most `max_concurrent_files` files are
        in flight; completion is reported in input order. When `cancel_event`
        is set, files not yet dispatched are skipped.

        Args:
            changes: Changed files to review
            cancel_event: Optional event that stops the batch early

        Returns:
            Merged results for the files that were dispatched, in input order
        """
        self.ensure_ready()
        self.cache.clear()
        self.progress.analysis_started(len(changes))
        logger.info(f"Reviewing {len(changes)} files")

        results: list[ReviewResult] = []
        pending: deque[tuple[FileChange, asyncio.Task[ReviewResult]]] = deque()

        async def finish_oldest() -> None:
            change, task = pending.popleft()
            result = await task
            results.append(result)
            self.progress.file_analyzed(change.path, result)

        try:
            for change in changes:
                if cancel_event is not None and cancel_event.is_set():
                    break
                pending.append((change, asyncio.ensure_future(self.analyze_file(change))))
                if len(pending) >= self.config.max_concurrent_files:
                    await finish_oldest()
            while pending:
                await finish_oldest()
        finally:
            for _, task in pending:
                task.cancel()

        if len(results) < len(changes):
            logger.info(f"Review cancelled after {len(results)} of {len(changes)} files")
        self.progress.analysis_completed(results)
        return results

    def get_issues(self, file_path: str) -> list[Issue]:
        """Merged issues recorded for a file, under any path spelling."""
        return self.registry.get_issues(file_path)

    def _register(self, file_path: str, result: ReviewResult) -> None:
        self.registry.set_issues(file_path, result.issues)
        root = self.config.workspace_root
        if root and not PurePath(file_path).is_absolute():
            absolute = (Path(root) / file_path).as_posix()
            self.registry.set_issues(absolute, result.issues)

    def save_results(
        self, results: Sequence[ReviewResult], output_file: str
    ) -> str:
        """Save review results to a JSON file.

        Args:
            results: Merged results to save
            output_file: Output file path (relative or absolute)

        Returns:
            Path where results were saved
        """
        output_path = Path(output_file)
        if output_path.parent != Path("."):
            output_path.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            "files": [result.to_dict() for result in results],
            "score_statistics": self.aggregator.calculate_score_statistics(results),
        }
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)

        logger.info(f"Review results saved to {output_path}")
        return str(output_path)
