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

"""
Pytest configuration and shared fixtures for the test suite.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import pytest

from review_aggregator import (
    ChangeKind,
    FileChange,
    Issue,
    IssueSource,
    ReviewResult,
    Severity,
    StaticCompletionClient,
    Suggestion,
)


@pytest.fixture
def sample_diff() -> str:
    """Minimal unified diff with one removal, one addition and one context line."""
    return "-foo\n+bar\n context\n"


@pytest.fixture
def git_diff() -> str:
    """Two-file diff in `git diff` format, one modified file and one new file."""
    return (
        "diff --git a/src/app.ts b/src/app.ts\n"
        "index 1111111..2222222 100644\n"
        "--- a/src/app.ts\n"
        "+++ b/src/app.ts\n"
        "@@ -1,3 +1,3 @@\n"
        " const name = 'app';\n"
        "-const retries = 1;\n"
        "+const retries = 3;\n"
        " export default name;\n"
        "diff --git a/src/new.ts b/src/new.ts\n"
        "new file mode 100644\n"
        "index 0000000..3333333\n"
        "--- /dev/null\n"
        "+++ b/src/new.ts\n"
        "@@ -0,0 +1,2 @@\n"
        "+debugger;\n"
        "+export const ready = true;\n"
    )


@pytest.fixture
def sample_typescript() -> str:
    """TypeScript source with an eval call, a console statement and a TODO."""
    return "\n".join(
        [
            "import { useState, useEffect } from 'react';",
            "",
            "export function run(code: string) {",
            "  const [value, setValue] = useState(code);",
            "  console.log(value);",
            "  // TODO: validate input",
            "  return eval(code);",
            "}",
        ]
    )


@pytest.fixture
def clean_typescript() -> str:
    """TypeScript source that triggers no heuristic rule."""
    return "\n".join(
        [
            "export function add(a: number, b: number): number {",
            "  return a + b;",
            "}",
        ]
    )


@pytest.fixture
def semantic_response() -> str:
    """Model response wrapped in a Markdown fence, as models usually reply."""
    payload = {
        "issues": [
            {
                "line": 4,
                "type": "error",
                "message": "Variable 'valu' should be 'value'",
                "rule": "typo",
                "source": "heuristic",
            }
        ],
        "suggestions": [{"line": 4, "message": "Rename 'valu' to 'value'"}],
        "summary": "One typo breaks the state update",
        "score": 6,
    }
    return "Here is my review:\n```json\n" + json.dumps(payload, indent=2) + "\n```\n"


@pytest.fixture
def static_client(semantic_response: str) -> StaticCompletionClient:
    """Completion client that always answers with the semantic response."""
    return StaticCompletionClient(semantic_response)


@pytest.fixture
def make_change() -> Callable[..., FileChange]:
    """Factory for FileChange records."""

    def _make(
        path: str = "src/app.ts",
        content: str | None = "const a = 1;",
        diff_text: str = "",
        change_kind: ChangeKind = ChangeKind.MODIFIED,
    ) -> FileChange:
        return FileChange(
            path=path, change_kind=change_kind, diff_text=diff_text, content=content
        )

    return _make


@pytest.fixture
def make_result() -> Callable[..., ReviewResult]:
    """Factory for ReviewResult records with `n_issues` warnings."""

    def _make(
        score: float = 10.0,
        n_issues: int = 0,
        file: str = "src/app.ts",
        source: IssueSource = IssueSource.HEURISTIC,
        summary: str = "",
        severity: Severity = Severity.WARNING,
    ) -> ReviewResult:
        issues = [
            Issue(severity=severity, line=i + 1, message=f"issue {i}", source=source)
            for i in range(n_issues)
        ]
        suggestions = [
            Suggestion(line=i + 1, message=f"fix {i}", source=source)
            for i in range(n_issues)
        ]
        return ReviewResult(
            file=file,
            issues=issues,
            suggestions=suggestions,
            score=score,
            summary=summary,
        )

    return _make
