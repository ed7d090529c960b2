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

"""Aggregator for combining per-source review results.

This module merges the results of independent review sources for one file.
Issues and suggestions are concatenated in source order without
de-duplication; the composite score is the plain mean of the per-source
scores. Line grouping for presentation is derived from the merged issues.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from ..analyzers.base_analyzer import Issue, ReviewResult, Severity, count_by_severity

logger = logging.getLogger(__name__)

SUMMARY_SEPARATOR = " | "


def round_half_up(value: float, digits: int = 1) -> float:
    """Round with halves going up, e.g. 6.25 -> 6.3."""
    factor = 10**digits
    return float(np.floor(value * factor + 0.5) / factor)


@dataclass
class LineSummary:
    """Issues reported on one line, with counts per severity."""

    line: int
    issues: list[Issue] = field(default_factory=list)
    errors: int = 0
    warnings: int = 0
    infos: int = 0

    @property
    def title(self) -> str:
        """Short label such as "2 errors, 1 warning"."""
        parts = []
        if self.errors:
            parts.append(f"{self.errors} error{'s' if self.errors > 1 else ''}")
        if self.warnings:
            parts.append(f"{self.warnings} warning{'s' if self.warnings > 1 else ''}")
        if self.infos:
            parts.append(f"{self.infos} info")
        return ", ".join(parts)


class ReviewAggregator:
    """Combines results from multiple review sources for a single file.

    The composite score is the arithmetic mean of the sources' own scores.
    It is not recomputed from the merged issue list, so a source reporting
    many issues with a high self-assigned score lifts the composite.
    """

    def combine(self, results: Sequence[ReviewResult]) -> ReviewResult:
        """Merge per-source results into one.

        Args:
            results: Per-source results for the same file, in source order

        Returns:
            ReviewResult with all issues and suggestions and the mean score

        Raises:
            ValueError: If no results are given
        """
        if not results:
            raise ValueError("At least one result is required to combine")

        file_path = results[0].file
        other_files = {r.file for r in results} - {file_path}
        if other_files:
            logger.warning(
                f"Combining results for {file_path} with results for {sorted(other_files)}"
            )

        issues: list[Issue] = []
        suggestions = []
        for result in results:
            issues.extend(result.issues)
            suggestions.extend(result.suggestions)

        scores = [r.score for r in results]
        score = round_half_up(float(np.mean(scores, dtype=np.float64)))
        summary = SUMMARY_SEPARATOR.join(r.summary for r in results if r.summary)

        counts = count_by_severity(issues)
        logger.debug(
            f"Combined {len(results)} results for {file_path}: "
            f"{len(issues)} issues ({counts[Severity.ERROR]} errors, "
            f"{counts[Severity.WARNING]} warnings, {counts[Severity.INFO]} info), "
            f"score {score}"
        )

        return ReviewResult(
            file=file_path,
            issues=issues,
            suggestions=suggestions,
            score=score,
            summary=summary,
        )

    def calculate_score_statistics(
        self, results: Sequence[ReviewResult]
    ) -> dict[str, float]:
        """Calculate basic statistics for the per-source scores."""
        if not results:
            return {}

        score_values = [r.score for r in results]
        return {
            "mean": float(np.mean(score_values, dtype=np.float64)),
            "median": float(np.median(score_values)),
            "std": float(np.std(score_values, dtype=np.float64)),
            "min": float(np.min(score_values)),
            "max": float(np.max(score_values)),
            "range": float(np.max(score_values) - np.min(score_values)),
        }


def group_by_line(issues: Sequence[Issue] | ReviewResult) -> dict[int, list[Issue]]:
    """Partition issues by line number.

    Lines appear in order of first occurrence and issues keep their relative
    order within a line.
    """
    if isinstance(issues, ReviewResult):
        issues = issues.issues

    grouped: dict[int, list[Issue]] = {}
    for issue in issues:
        grouped.setdefault(issue.line, []).append(issue)
    return grouped


def summarize_lines(issues: Sequence[Issue] | ReviewResult) -> list[LineSummary]:
    """Per-line severity counts, ordered by line number."""
    summaries = []
    for line, line_issues in sorted(group_by_line(issues).items()):
        counts = count_by_severity(line_issues)
        summaries.append(
            LineSummary(
                line=line,
                issues=line_issues,
                errors=counts[Severity.ERROR],
                warnings=counts[Severity.WARNING],
                infos=counts[Severity.INFO],
            )
        )
    return summaries


def interpret_score(score: float) -> str:
    """Provide human-readable interpretation of a 0-10 score."""
    if score >= 9.0:
        return "Excellent"
    elif score >= 8.0:
        return "Very Good"
    elif score >= 7.0:
        return "Good"
    elif score >= 6.0:
        return "Fair"
    elif score >= 5.0:
        return "Needs Improvement"
    else:
        return "Poor"
