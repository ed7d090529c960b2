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

"""Diff-aware analyzer.

Reconstructs the old and new text of a change, runs quick hygiene checks
on the new text and, when a completion client is available, asks the model
to compare old against new.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from ..diff_reconstructor import DiffReconstructor
from ..parsing.language_registry import LanguageRegistry
from ..parsing.response_parser import parse_line_protocol
from .base_analyzer import (
    BaseAnalyzer,
    FileChange,
    Issue,
    IssueSource,
    ReviewResult,
    ScanResult,
    Severity,
    Suggestion,
)

if TYPE_CHECKING:
    from ..completion_client import CompletionClient

logger = logging.getLogger(__name__)


class DiffLocalScanner:
    """Hygiene checks run on the added side of a diff."""

    def __init__(self, max_line_length: int = 120):
        self.max_line_length = max_line_length
        self.rules = self._init_rules()

    def _init_rules(self) -> list[dict[str, Any]]:
        """Initialize line rules, applied in order to every line."""
        credential = re.compile(r"password|secret|key")
        return [
            {
                "check": lambda line: bool(re.search(r"console\.(log|error)", line)),
                "severity": Severity.WARNING,
                "message": "Console statement found in new code",
                "suggestion": "Remove console statements before committing",
            },
            {
                "check": lambda line: "debugger" in line,
                "severity": Severity.ERROR,
                "message": "Debugger statement found in new code",
                "suggestion": "Remove debugger statement before committing",
            },
            {
                "check": lambda line: "TODO" in line or "FIXME" in line,
                "severity": Severity.WARNING,
                "message": "TODO/FIXME comment found in new code",
                "suggestion": "Address TODO/FIXME before committing",
            },
            {
                "check": lambda line: bool(credential.search(line))
                and "=" in line
                and "//" not in line,
                "severity": Severity.WARNING,
                "message": "Potential hardcoded credential in new code",
                "suggestion": "Use environment variables instead of hardcoded credentials",
            },
            {
                "check": lambda line: len(line) > self.max_line_length,
                "severity": Severity.WARNING,
                "message": f"Line is too long (>{self.max_line_length} characters)",
                "suggestion": "Break this line into multiple lines for better readability",
            },
            {
                "check": lambda line: "@ts-ignore" in line or "@ts-nocheck" in line,
                "severity": Severity.WARNING,
                "message": "TypeScript ignore directive found",
                "suggestion": "Consider fixing the underlying type issues instead of ignoring them",
            },
        ]

    def scan(self, lines: Sequence[str]) -> ScanResult:
        """Apply every rule to every line; each issue gets a paired suggestion."""
        result = ScanResult()
        for line_num, line in enumerate(lines, start=1):
            for rule in self.rules:
                if rule["check"](line):
                    self._add(result, line_num, rule)
        return result

    def _add(self, result: ScanResult, line: int, rule: dict[str, Any]) -> None:
        result.issues.append(
            Issue(
                severity=rule["severity"],
                line=line,
                message=rule["message"],
                source=IssueSource.DIFF_LOCAL,
            )
        )
        result.suggestions.append(
            Suggestion(line=line, message=rule["suggestion"], source=IssueSource.DIFF_LOCAL)
        )


class DiffAnalyzer(BaseAnalyzer):
    """Analyzes the change itself rather than the whole file."""

    summary_label = "Diff Analysis"
    clean_summary = "Diff Analysis: Changes look good with no major issues detected."

    def __init__(
        self,
        client: CompletionClient | None = None,
        config: dict[str, Any] | None = None,
    ):
        """Initialize the analyzer.

        Args:
            client: Optional completion client for the old/new comparison.
            config: Optional configuration dictionary.
        """
        super().__init__(config)
        self.client = client
        self.reconstructor = DiffReconstructor()
        self.scanner = DiffLocalScanner(self.config.get("max_line_length", 120))
        self.language_registry = LanguageRegistry()

    def get_analyzer_name(self) -> str:
        return "diff"

    def get_source(self) -> IssueSource:
        return IssueSource.DIFF_LOCAL

    def build_comparison_prompt(
        self, file_path: str, old_content: str, new_content: str
    ) -> str:
        ext = self.language_registry.get_extension(file_path)
        return (
            f"You are a code reviewer analyzing changes in a {ext} file.\n\n"
            f"OLD CODE:\n```{ext}\n{old_content}\n```\n\n"
            f"NEW CODE:\n```{ext}\n{new_content}\n```\n\n"
            "Please analyze the changes and identify:\n"
            "1. Any new bugs or issues introduced\n"
            "2. Potential performance problems\n"
            "3. Security vulnerabilities\n"
            "4. Code quality issues\n"
            "5. Best practices violations\n"
            "6. Suggestions for improvement\n\n"
            "Focus on what changed and whether the changes introduce new "
            "problems or improve the code.\n\n"
            "Respond in this format:\n"
            "ISSUE: [line number]: [description]\n"
            "SUGGESTION: [line number]: [description]\n\n"
            'If no issues found, respond with: "No issues found"'
        )

    async def compare(
        self, file_path: str, old_content: str, new_content: str
    ) -> ScanResult:
        """Ask the model to compare old and new text.

        Failures are logged and produce an empty ScanResult.
        """
        if self.client is None:
            return ScanResult()
        try:
            response = await self.client.complete(
                self.build_comparison_prompt(file_path, old_content, new_content)
            )
        except Exception as e:
            logger.warning(f"Diff comparison failed for {file_path}: {e}")
            return ScanResult()
        return parse_line_protocol(response, IssueSource.SEMANTIC)

    async def analyze_file(self, change: FileChange) -> ReviewResult:
        """Analyze the diff of a file change.

        Args:
            change: File change carrying unified diff text

        Returns:
            ReviewResult with diff-local and comparison findings
        """
        if not change.diff_text:
            logger.debug(f"No diff to analyze for {change.path}")
            return self.create_empty_result(change.path, "No diff content to analyze")

        old_content, new_content = self.reconstructor.reconstruct(change.diff_text)
        if not new_content.strip():
            logger.debug(f"No new content to analyze for {change.path}")
            return self.create_empty_result(change.path, "No diff content to analyze")

        findings = self.scanner.scan(new_content.split("\n"))
        if old_content and new_content:
            findings.extend(await self.compare(change.path, old_content, new_content))

        score = self.calculate_score(findings.issues)
        logger.debug(
            f"Diff analysis of {change.path}: {len(findings.issues)} issues, score {score}"
        )
        return ReviewResult(
            file=change.path,
            issues=findings.issues,
            suggestions=findings.suggestions,
            score=score,
            summary=self.generate_summary(findings.issues, findings.suggestions),
        )
