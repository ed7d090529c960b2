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

"""Heuristic analyzer for line-pattern code quality checks.

This analyzer works on raw text lines only. It looks at line length,
nesting and complexity, security-sensitive calls, performance and hygiene
patterns, and general best practices. None of the rules parse the language.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
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


class HeuristicScanner:
    """Pure line-pattern scanner.

    Rule families:
    - Line length and file-level complexity
    - Security patterns
    - Performance and hygiene patterns
    - Best-practice patterns
    """

    def __init__(
        self,
        source: IssueSource = IssueSource.HEURISTIC,
        config: dict[str, Any] | None = None,
    ):
        """Initialize the scanner.

        Args:
            source: Source tag stamped on every finding.
            config: Optional threshold overrides.
        """
        self.source = source
        self.config = config or {}
        self.max_line_length = self.config.get("max_line_length", 120)
        self.max_long_lines_reported = self.config.get("max_long_lines_reported", 3)
        self.max_nesting_depth = self.config.get("max_nesting_depth", 5)
        self.max_complexity = self.config.get("max_complexity", 10)
        self.max_functions = self.config.get("max_functions", 15)
        self.loop_lookback = self.config.get("loop_lookback", 5)
        self.handler_lookahead = self.config.get("handler_lookahead", 10)
        self.complexity_patterns = self._init_complexity_patterns()
        self.security_patterns = self._init_security_patterns()
        self.performance_patterns = self._init_performance_patterns()

    def _init_complexity_patterns(self) -> dict[str, Any]:
        """Initialize complexity counting patterns."""
        return {
            "function_declaration": {
                "patterns": [
                    r"\bfunction\s",
                    r"=\s*\([^)]*\)\s*=>",
                    r"^\s*(async\s+)?def\s+\w+",
                ],
                "description": "Function-like declaration",
            },
            "branch": {
                "keywords": ["if ", "else if "],
                "description": "Conditional branch",
            },
            "loop": {
                "keywords": ["for ", "while "],
                "description": "Loop",
            },
            "logical_operator": {
                "keywords": ["&&", "||"],
                "description": "Short-circuit logical operator",
            },
        }

    def _init_security_patterns(self) -> dict[str, Any]:
        """Initialize security patterns."""
        return {
            "dynamic_execution": {
                "pattern": r"\b(eval|exec)\s*\(",
                "severity": Severity.ERROR,
                "message": "Use of eval() is dangerous and should be avoided",
                "suggestion": "Replace eval() with safer alternatives like JSON.parse() or direct function calls",
                "rule": "security/dynamic-execution",
            },
            "dom_sink_assignment": {
                "pattern": r"\b(innerHTML|outerHTML)\b.*=",
                "severity": Severity.WARNING,
                "message": "Direct innerHTML assignment may lead to XSS vulnerabilities",
                "suggestion": "Use textContent or sanitization libraries instead",
                "rule": "security/dom-sink",
            },
            "hardcoded_credential": {
                "pattern": r"(?i)password|secret|key|token",
                "severity": Severity.WARNING,
                "message": "Potential hardcoded credential detected",
                "suggestion": "Use environment variables or secure configuration management",
                "rule": "security/hardcoded-credential",
            },
        }

    def _init_performance_patterns(self) -> dict[str, Any]:
        """Initialize performance and hygiene patterns."""
        return {
            "time_in_loop": {
                "pattern": r"new Date\(\)|\bdatetime\.now\(\)",
                "loop_pattern": r"\b(for|while) ",
            },
            "debug_print": {
                "pattern": r"console\.(log|error|debug)\b",
            },
            "breakpoint": {
                "pattern": r"\bdebugger\b|\bpdb\.set_trace\(\)|\bbreakpoint\(\)",
            },
        }

    def scan(self, lines: Sequence[str]) -> ScanResult:
        """Run every rule family over the lines.

        Args:
            lines: File text split on newlines

        Returns:
            ScanResult with findings appended in rule-family order
        """
        result = ScanResult()
        result.extend(self.check_code_quality(lines))
        result.extend(self.check_security(lines))
        result.extend(self.check_performance(lines))
        result.extend(self.check_best_practices(lines))
        logger.debug(
            f"Heuristic scan of {len(lines)} lines found {len(result.issues)} issues"
        )
        return result

    def check_code_quality(self, lines: Sequence[str]) -> ScanResult:
        """Line length plus the file-level nesting, complexity and size checks."""
        result = ScanResult()
        current_depth = 0
        max_depth = 0
        function_count = 0
        complexity = 0
        long_lines = 0

        for line_num, line in enumerate(lines, 1):
            trimmed = line.strip()

            if len(line) > self.max_line_length:
                long_lines += 1
                if long_lines <= self.max_long_lines_reported:
                    self._add(
                        result,
                        Severity.WARNING,
                        line_num,
                        f"Line is too long (>{self.max_line_length} characters)",
                        "Break this line into multiple lines for better readability",
                        rule="style/line-length",
                    )

            if self._matches_any(
                trimmed, self.complexity_patterns["function_declaration"]["patterns"]
            ):
                function_count += 1

            for name in ("branch", "loop", "logical_operator"):
                keywords = self.complexity_patterns[name]["keywords"]
                if any(keyword in trimmed for keyword in keywords):
                    complexity += 1

            current_depth += line.count("{") - line.count("}")
            max_depth = max(max_depth, current_depth)

        if max_depth > self.max_nesting_depth:
            self._add(
                result,
                Severity.WARNING,
                1,
                f"Maximum nesting depth is {max_depth}, consider refactoring",
                "Extract deeply nested logic into separate functions",
                rule="complexity/nesting",
            )

        if complexity > self.max_complexity:
            self._add(
                result,
                Severity.WARNING,
                1,
                f"Cyclomatic complexity is {complexity}, consider simplifying",
                "Break down complex functions into smaller, simpler ones",
                rule="complexity/cyclomatic",
            )

        if function_count > self.max_functions:
            self._add(
                result,
                Severity.WARNING,
                1,
                f"File contains {function_count} functions, consider splitting",
                rule="complexity/function-count",
            )

        return result

    def check_security(self, lines: Sequence[str]) -> ScanResult:
        result = ScanResult()
        for line_num, line in enumerate(lines, 1):
            for name, info in self.security_patterns.items():
                if not re.search(info["pattern"], line):
                    continue
                if name == "hardcoded_credential" and (
                    "=" not in line or self._is_commented(line)
                ):
                    continue
                self._add(
                    result,
                    info["severity"],
                    line_num,
                    info["message"],
                    info["suggestion"],
                    rule=info["rule"],
                )
        return result

    def check_performance(self, lines: Sequence[str]) -> ScanResult:
        result = ScanResult()
        time_in_loop = self.performance_patterns["time_in_loop"]

        for index, line in enumerate(lines):
            line_num = index + 1

            if index > 0 and re.search(time_in_loop["pattern"], line):
                previous = lines[max(0, index - self.loop_lookback) : index]
                if any(re.search(time_in_loop["loop_pattern"], p) for p in previous):
                    self._add(
                        result,
                        Severity.WARNING,
                        line_num,
                        "new Date() in loop may cause performance issues",
                        "Move new Date() outside the loop or use performance.now() for timing",
                        rule="performance/time-in-loop",
                    )

            if re.search(self.performance_patterns["debug_print"]["pattern"], line):
                self._add(
                    result,
                    Severity.INFO,
                    line_num,
                    "Console statement found",
                    "Remove console statements in production code",
                    rule="hygiene/debug-print",
                )

            if re.search(self.performance_patterns["breakpoint"]["pattern"], line):
                self._add(
                    result,
                    Severity.WARNING,
                    line_num,
                    "Debugger statement found",
                    "Remove debugger statement before production",
                    rule="hygiene/debugger",
                )

        return result

    def check_best_practices(self, lines: Sequence[str]) -> ScanResult:
        result = ScanResult()

        for index, line in enumerate(lines):
            line_num = index + 1

            if "TODO" in line or "FIXME" in line:
                self._add(
                    result,
                    Severity.WARNING,
                    line_num,
                    "TODO/FIXME comment found",
                    "Address this TODO/FIXME before merging to production",
                    rule="practice/todo",
                )

            magic = re.search(r"\b\d{3,}\b", line)
            if magic and "//" not in line and "/*" not in line:
                number = magic.group(0)
                if int(number) > 100:
                    self._add(
                        result,
                        Severity.INFO,
                        line_num,
                        f"Magic number {number} found, consider using a named constant",
                        "Define a constant with a descriptive name for this value",
                        rule="practice/magic-number",
                    )

            if "catch" in line and "{" in line:
                following = lines[index + 1 : index + 1 + self.handler_lookahead]
                has_statement = any(
                    f.strip() and not f.strip().startswith("//") for f in following
                )
                if not has_statement:
                    self._add(
                        result,
                        Severity.WARNING,
                        line_num,
                        "Empty catch block found (empty handler)",
                        "Add proper error handling or logging in catch block",
                        rule="practice/empty-handler",
                    )

            unused = self._unused_named_imports(lines, index)
            if unused:
                self._add(
                    result,
                    Severity.WARNING,
                    line_num,
                    f"Potentially unused imports: {', '.join(unused)} (possibly unused import)",
                    "Remove unused imports to clean up the code",
                    rule="practice/unused-import",
                )

        return result

    def _unused_named_imports(self, lines: Sequence[str], index: int) -> list[str]:
        line = lines[index]
        if not line.strip().startswith("import ") or " from " not in line:
            return []
        match = re.search(r"import\s+(?:\w+\s*,\s*)?\{([^}]+)\}\s+from", line)
        if not match:
            return []

        rest = " ".join(lines[:index]) + " " + " ".join(lines[index + 1 :])
        unused = []
        for raw in match.group(1).split(","):
            name = raw.strip()
            if not name:
                continue
            # `a as b` binds b
            local_name = re.split(r"\s+as\s+", name)[-1].strip()
            if local_name not in rest:
                unused.append(local_name)
        return unused

    def _is_commented(self, line: str) -> bool:
        return "//" in line or line.strip().startswith("#")

    def _matches_any(self, text: str, patterns: Sequence[str]) -> bool:
        return any(re.search(pattern, text) for pattern in patterns)

    def _add(
        self,
        result: ScanResult,
        severity: Severity,
        line: int,
        message: str,
        suggestion: str | None = None,
        rule: str | None = None,
    ) -> None:
        result.issues.append(
            Issue(
                severity=severity,
                line=line,
                message=message,
                source=self.source,
                rule=rule,
            )
        )
        if suggestion:
            result.suggestions.append(
                Suggestion(line=line, message=suggestion, source=self.source)
            )


class HeuristicAnalyzer(BaseAnalyzer):
    """Runs the heuristic scanner over a file's full content."""

    summary_label = "Custom Analysis"
    clean_summary = "Custom Analysis: Code quality is good with no major issues detected."

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.scanner = HeuristicScanner(IssueSource.HEURISTIC, self.config)

    def get_analyzer_name(self) -> str:
        return "heuristic"

    def get_source(self) -> IssueSource:
        return IssueSource.HEURISTIC

    async def analyze_file(self, change: FileChange) -> ReviewResult:
        """Scan the file content for heuristic issues.

        Args:
            change: File change whose content is scanned

        Returns:
            ReviewResult with heuristic findings
        """
        if not change.content:
            logger.debug(f"No content to analyze for {change.path}")
            return self.create_empty_result(change.path, "No content to analyze")

        scan = self.scanner.scan(change.content.split("\n"))
        score = self.calculate_score(scan.issues)

        logger.debug(
            f"Heuristic analysis of {change.path}: {len(scan.issues)} issues, "
            f"{len(scan.suggestions)} suggestions, score {score}"
        )
        return ReviewResult(
            file=change.path,
            issues=scan.issues,
            suggestions=scan.suggestions,
            score=score,
            summary=self.generate_summary(scan.issues, scan.suggestions),
        )
