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

"""Base analyzer abstract class and common data structures.

This module provides the foundation for all review sources, defining the
shared result shape (issues, suggestions, score, summary) and the interface
every analyzer implements.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Severity(Enum):
    """Severity levels for reported issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueSource(Enum):
    """Which analysis source produced a finding."""

    HEURISTIC = "heuristic"
    SEMANTIC = "semantic"
    DIAGNOSTIC = "diagnostic"
    DIFF_LOCAL = "diff"


class ChangeKind(Enum):
    """How a file changed."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class Issue:
    """A single finding, 1-based line in the new file's coordinates."""

    severity: Severity
    line: int
    message: str
    source: IssueSource
    column: int | None = None
    rule: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "severity": self.severity.value,
            "line": self.line,
            "message": self.message,
            "source": self.source.value,
        }
        if self.column is not None:
            data["column"] = self.column
        if self.rule is not None:
            data["rule"] = self.rule
        return data


@dataclass(frozen=True)
class Suggestion:
    """An improvement hint. Relates to issues by line number only."""

    line: int
    message: str
    source: IssueSource
    column: int | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "line": self.line,
            "message": self.message,
            "source": self.source.value,
        }
        if self.column is not None:
            data["column"] = self.column
        if self.code is not None:
            data["code"] = self.code
        return data


@dataclass
class FileChange:
    """A changed file as supplied by the change-detection collaborator."""

    path: str
    change_kind: ChangeKind
    diff_text: str = ""
    content: str | None = None


@dataclass
class ReviewResult:
    """Results from one analyzer for one file, or the merged result."""

    file: str
    issues: list[Issue] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    score: float = 0.0  # 0.0 to 10.0
    summary: str = ""

    def copy(self) -> ReviewResult:
        """Return a copy whose issue and suggestion lists are independent."""
        return ReviewResult(
            file=self.file,
            issues=list(self.issues),
            suggestions=list(self.suggestions),
            score=self.score,
            summary=self.summary,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "issues": [issue.to_dict() for issue in self.issues],
            "suggestions": [suggestion.to_dict() for suggestion in self.suggestions],
            "score": self.score,
            "summary": self.summary,
        }


@dataclass
class ScanResult:
    """Issues and suggestions found by a scanner, in discovery order."""

    issues: list[Issue] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)

    def extend(self, other: ScanResult) -> None:
        self.issues.extend(other.issues)
        self.suggestions.extend(other.suggestions)


def count_by_severity(issues: Iterable[Issue]) -> dict[Severity, int]:
    """Count issues per severity, every severity present in the result."""
    counts = dict.fromkeys(Severity, 0)
    for issue in issues:
        counts[issue.severity] += 1
    return counts


class BaseAnalyzer(ABC):
    """Abstract base class for all review sources.

    Each analyzer turns one FileChange into one ReviewResult and provides
    the scoring and summary conventions shared by the sources.
    """

    severity_penalties: dict[Severity, float] = {
        Severity.ERROR: 3.0,
        Severity.WARNING: 1.0,
        Severity.INFO: 0.5,
    }
    round_score = False
    summary_label = ""
    clean_summary = "No major issues detected."

    def __init__(self, config: dict[str, Any] | None = None):
        """Initialize the base analyzer with configuration.

        Args:
            config: Optional configuration dictionary for the analyzer.
        """
        self.config = config or {}

    @abstractmethod
    async def analyze_file(self, change: FileChange) -> ReviewResult:
        """Analyze a single file change and return results.

        Args:
            change: The file change to analyze

        Returns:
            ReviewResult containing issues, suggestions, score and summary
        """

    @abstractmethod
    def get_analyzer_name(self) -> str:
        """Return the name of this analyzer."""

    @abstractmethod
    def get_source(self) -> IssueSource:
        """Return the source tag stamped on this analyzer's findings."""

    async def analyze_many(self, changes: Sequence[FileChange]) -> list[ReviewResult]:
        """Analyze several changes one after another.

        A change whose analysis raises is replaced by an error result; the
        remaining changes are still analyzed.
        """
        results = []
        for change in changes:
            try:
                results.append(await self.analyze_file(change))
            except Exception as e:
                logger.warning(
                    f"{self.get_analyzer_name()} failed to analyze {change.path}: {e}"
                )
                results.append(self.create_error_result(change.path, e))
        return results

    def calculate_score(self, issues: Sequence[Issue]) -> float:
        """Start at 10 and subtract a penalty per issue, floored at 0."""
        score = 10.0
        for issue in issues:
            score -= self.severity_penalties.get(issue.severity, 1.0)
        if self.round_score:
            score = round(score, 1)
        return max(0.0, score)

    def generate_summary(
        self, issues: Sequence[Issue], suggestions: Sequence[Suggestion]
    ) -> str:
        counts = count_by_severity(issues)
        if counts[Severity.ERROR] == 0 and counts[Severity.WARNING] == 0:
            return self.clean_summary

        prefix = f"{self.summary_label}: " if self.summary_label else ""
        return (
            f"{prefix}Found {counts[Severity.ERROR]} errors, "
            f"{counts[Severity.WARNING]} warnings, and "
            f"{counts[Severity.INFO]} info items. "
            f"Generated {len(suggestions)} suggestions for improvement."
        )

    def create_empty_result(self, file_path: str, summary: str) -> ReviewResult:
        return ReviewResult(file=file_path, score=10.0, summary=summary)

    def create_error_result(self, file_path: str, error: BaseException) -> ReviewResult:
        """Build the one-issue stand-in result used when analysis fails."""
        name = self.get_analyzer_name()
        return ReviewResult(
            file=file_path,
            issues=[
                Issue(
                    severity=Severity.ERROR,
                    line=1,
                    message=f"{name} analysis failed: {error}",
                    source=self.get_source(),
                )
            ],
            suggestions=[],
            score=0.0,
            summary=f"{name} analysis failed",
        )
