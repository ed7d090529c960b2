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

"""Diagnostic importer for externally supplied lint and editor findings.

External diagnostics arrive with 0-based positions, their own severity enum
and a rule code of arbitrary shape. This module normalizes them into the
common Issue and Suggestion types.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

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

logger = logging.getLogger(__name__)


class DiagnosticSeverity(Enum):
    """Severity enum used by editor and lint collaborators."""

    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"
    HINT = "hint"


SEVERITY_MAP = {
    DiagnosticSeverity.ERROR: Severity.ERROR,
    DiagnosticSeverity.WARNING: Severity.WARNING,
    DiagnosticSeverity.INFORMATION: Severity.INFO,
    DiagnosticSeverity.HINT: Severity.INFO,
}

# Language Server Protocol DiagnosticSeverity numbering (1-based)
_NUMERIC_SEVERITIES = {
    1: DiagnosticSeverity.ERROR,
    2: DiagnosticSeverity.WARNING,
    3: DiagnosticSeverity.INFORMATION,
    4: DiagnosticSeverity.HINT,
}

SUGGESTION_REWRITES = [
    ("unused", "Consider removing unused code to improve maintainability"),
    ("deprecated", "Consider updating to the recommended alternative"),
    ("missing", "Consider adding the missing element for better code quality"),
    ("prefer", "Consider using the preferred approach for consistency"),
]


def _decode_severity(raw: Any) -> DiagnosticSeverity:
    if isinstance(raw, DiagnosticSeverity):
        return raw
    if isinstance(raw, int) and not isinstance(raw, bool):
        return _NUMERIC_SEVERITIES.get(raw, DiagnosticSeverity.INFORMATION)
    if isinstance(raw, str):
        value = raw.strip().lower()
        for severity in DiagnosticSeverity:
            if value == severity.value or value == severity.name.lower():
                return severity
        if value in ("info", "note"):
            return DiagnosticSeverity.INFORMATION
    return DiagnosticSeverity.INFORMATION


def _decode_position(raw: Any) -> int:
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        return 0


@dataclass
class ExternalDiagnostic:
    """A diagnostic as reported by an editor or linter (0-based positions)."""

    severity: DiagnosticSeverity
    line: int
    character: int
    message: str
    code: str | int | Mapping[str, Any] | None = None
    source: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExternalDiagnostic:
        """Decode a loosely typed mapping, defaulting anything missing.

        Accepts either flat `line`/`character` keys or an LSP-style
        `range.start` object. Numeric severities follow the LSP numbering
        (1 Error, 2 Warning, 3 Information, 4 Hint); any other number is
        treated as Information.
        """
        line = data.get("line")
        character = data.get("character", data.get("column"))
        range_data = data.get("range")
        if isinstance(range_data, Mapping):
            start = range_data.get("start")
            if isinstance(start, Mapping):
                line = start.get("line", line)
                character = start.get("character", character)

        source = data.get("source")
        return cls(
            severity=_decode_severity(data.get("severity")),
            line=_decode_position(line),
            character=_decode_position(character),
            message=str(data.get("message", "")),
            code=data.get("code"),
            source=str(source) if source else None,
        )


def normalize_rule(code: Any, source: str | None = None) -> str:
    """Turn a diagnostic code of any shape into a rule string.

    Strings and numbers are used as-is, mappings contribute their "value"
    entry, anything else becomes "unknown". A source tag is prefixed as
    `source:rule`.
    """
    rule = "unknown"
    if isinstance(code, str) and code:
        rule = code
    elif isinstance(code, (int, float)) and not isinstance(code, bool):
        rule = str(code)
    elif isinstance(code, Mapping) and code.get("value") is not None:
        rule = str(code["value"])

    if source:
        rule = f"{source}:{rule}"
    return rule


def rewrite_as_suggestion(message: str) -> str:
    lower = message.lower()
    for keyword, rewrite in SUGGESTION_REWRITES:
        if keyword in lower:
            return rewrite
    return f"Consider addressing: {message}"


class DiagnosticImporter:
    """Normalizes external diagnostics into issues and suggestions."""

    def __init__(self, source: IssueSource = IssueSource.DIAGNOSTIC):
        self.source = source

    def import_diagnostics(self, diagnostics: Sequence[ExternalDiagnostic]) -> ScanResult:
        """Convert diagnostics to 1-based issues.

        Information-level diagnostics additionally yield a suggestion whose
        text is rewritten from the diagnostic message.

        Args:
            diagnostics: Diagnostics with 0-based positions

        Returns:
            ScanResult in diagnostic order
        """
        result = ScanResult()
        for diagnostic in diagnostics:
            issue = self.convert(diagnostic)
            result.issues.append(issue)

            if diagnostic.severity == DiagnosticSeverity.INFORMATION:
                result.suggestions.append(
                    Suggestion(
                        line=issue.line,
                        column=issue.column,
                        message=rewrite_as_suggestion(diagnostic.message),
                        source=self.source,
                    )
                )

        logger.debug(
            f"Imported {len(result.issues)} diagnostics, "
            f"{len(result.suggestions)} derived suggestions"
        )
        return result

    def convert(self, diagnostic: ExternalDiagnostic) -> Issue:
        return Issue(
            severity=SEVERITY_MAP.get(diagnostic.severity, Severity.INFO),
            line=diagnostic.line + 1,
            column=diagnostic.character + 1,
            message=diagnostic.message,
            rule=normalize_rule(diagnostic.code, diagnostic.source),
            source=self.source,
        )


DiagnosticProvider = Callable[[str], Sequence[ExternalDiagnostic]]


class DiagnosticAnalyzer(BaseAnalyzer):
    """Reports the diagnostics a collaborator holds for each file."""

    severity_penalties = {
        Severity.ERROR: 2.0,
        Severity.WARNING: 1.0,
        Severity.INFO: 0.3,
    }
    round_score = True
    clean_summary = "No linting issues found - code follows style guidelines well."

    def __init__(
        self,
        provider: DiagnosticProvider | None = None,
        config: dict[str, Any] | None = None,
    ):
        """Initialize the analyzer.

        Args:
            provider: Callable returning the diagnostics for a path.
            config: Optional configuration dictionary.
        """
        super().__init__(config)
        self.provider = provider
        self.importer = DiagnosticImporter()

    def get_analyzer_name(self) -> str:
        return "diagnostic"

    def get_source(self) -> IssueSource:
        return IssueSource.DIAGNOSTIC

    async def analyze_file(self, change: FileChange) -> ReviewResult:
        if self.provider is None:
            logger.debug(f"No diagnostic provider configured for {change.path}")
            return self.create_empty_result(
                change.path, "No linting analysis available"
            )

        diagnostics = self.provider(change.path)
        imported = self.importer.import_diagnostics(diagnostics)
        score = self.calculate_score(imported.issues)

        return ReviewResult(
            file=change.path,
            issues=imported.issues,
            suggestions=imported.suggestions,
            score=score,
            summary=self.generate_summary(imported.issues, imported.suggestions),
        )
