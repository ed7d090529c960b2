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
Tests for defensive model response parsing.
"""

from __future__ import annotations

from review_aggregator.analyzers.base_analyzer import IssueSource, Severity
from review_aggregator.parsing.response_parser import (
    PARSE_FAILED_SUMMARY,
    decode_review_result,
    decode_score,
    escape_control_chars_in_strings,
    extract_json_span,
    parse_line_protocol,
    parse_review_response,
    strip_code_fences,
)


class TestParseReviewResponse:
    """Tests for the tiered response parser."""

    def test_fenced_response_with_literal_newline(self) -> None:
        """A fenced payload with a raw newline inside a string still parses."""
        response = (
            "```json\n"
            '{"issues": [{"line": 3, "type": "warning", "message": "first line\n'
            'second line"}], "suggestions": [], "summary": "ok"}\n'
            "```"
        )

        parsed = parse_review_response(response)

        assert parsed.tier == "structured"
        assert parsed.payload["issues"][0]["message"] == "first line\nsecond line"
        assert parsed.payload["summary"] == "ok"

    def test_no_json_falls_back(self) -> None:
        """Text without any JSON-like span degrades to the empty payload."""
        parsed = parse_review_response("I could not review this file, sorry.")

        assert parsed.tier == "fallback"
        assert parsed.payload == {
            "issues": [],
            "suggestions": [],
            "summary": PARSE_FAILED_SUMMARY,
        }

    def test_empty_response_falls_back(self) -> None:
        """An empty response is not an error."""
        assert parse_review_response("").tier == "fallback"

    def test_loose_tier_recovers_issues_object(self) -> None:
        """When the largest span is not JSON, the object holding "issues" is used."""
        response = (
            "Notes {this is not json at all, just a long remark in braces that keeps going on} "
            '{"issues": [{"line": 1, "message": "x"}], "summary": "s"}'
        )

        parsed = parse_review_response(response)

        assert parsed.tier == "loose"
        assert parsed.payload["issues"] == [{"line": 1, "message": "x"}]

    def test_braces_inside_strings(self) -> None:
        """Braces inside string values do not confuse span extraction."""
        response = '{"issues": [{"line": 2, "message": "use {x} here"}], "summary": "}"}'

        parsed = parse_review_response(response)

        assert parsed.tier == "structured"
        assert parsed.payload["issues"][0]["message"] == "use {x} here"


class TestParsingHelpers:
    """Tests for the parsing building blocks."""

    def test_strip_code_fences(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_extract_largest_span(self) -> None:
        """The largest balanced object wins over earlier small ones."""
        text = 'a {"x": 1} b {"issues": [], "summary": "longer"} c'

        assert extract_json_span(text) == '{"issues": [], "summary": "longer"}'

    def test_extract_truncated_object(self) -> None:
        """A truncated outer object still yields its balanced inner object."""
        assert extract_json_span('{"a": {"b": 1}') == '{"b": 1}'

    def test_extract_unbalanced_uses_outer_braces(self) -> None:
        """With no balanced span, first { to last } is returned."""
        assert extract_json_span('{ "a": "}') == '{ "a": "}'
        assert extract_json_span("{ {") is None
        assert extract_json_span("no braces") is None

    def test_escape_only_inside_strings(self) -> None:
        """Newlines outside strings are kept; inside they are escaped."""
        text = '{"a": "x\ny",\n"b":\t"p\tq"}'

        assert escape_control_chars_in_strings(text) == '{"a": "x\\ny",\n"b":\t"p\\tq"}'

    def test_decode_score(self) -> None:
        """Numeric scores pass through clamped; other values become 0."""
        assert decode_score(7) == 7.0
        assert decode_score(8.5) == 8.5
        assert decode_score(15) == 10.0
        assert decode_score(-1) == 0.0
        assert decode_score("8") == 0.0
        assert decode_score(None) == 0.0
        assert decode_score(True) == 0.0


class TestDecodeReviewResult:
    """Tests for payload normalization."""

    def test_source_is_always_stamped(self) -> None:
        """The payload's own source field is never honored."""
        payload = {
            "issues": [{"line": 1, "message": "m", "source": "heuristic"}],
            "suggestions": [{"line": 1, "message": "s", "source": "diagnostic"}],
            "summary": "x",
        }

        result = decode_review_result("a.ts", payload)

        assert result.issues[0].source == IssueSource.SEMANTIC
        assert result.suggestions[0].source == IssueSource.SEMANTIC

    def test_field_normalization(self) -> None:
        """Severity, line and column are coerced with defaults."""
        payload = {
            "issues": [
                {"line": "7", "type": "error", "message": "a", "rule": "logic"},
                {"line": -3, "type": "critical", "message": "b", "column": 4},
                {"type": "bogus", "message": "c"},
                {"severity": "info", "message": "d"},
                "not an object",
                42,
            ],
        }

        result = decode_review_result("a.ts", payload)

        assert [i.line for i in result.issues] == [7, 1, 1, 1]
        assert [i.severity for i in result.issues] == [
            Severity.ERROR,
            Severity.ERROR,
            Severity.WARNING,
            Severity.INFO,
        ]
        assert result.issues[0].rule == "logic"
        assert result.issues[1].column == 4

    def test_missing_fields(self) -> None:
        """An empty payload decodes to an empty result with defaults."""
        result = decode_review_result("a.ts", {})

        assert result.file == "a.ts"
        assert result.issues == []
        assert result.suggestions == []
        assert result.score == 0.0
        assert result.summary == "No summary provided"

    def test_wrong_container_types(self) -> None:
        """Non-list issues and non-string summaries are ignored."""
        result = decode_review_result(
            "a.ts", {"issues": {"line": 1}, "suggestions": "none", "summary": 3, "score": 9}
        )

        assert result.issues == []
        assert result.suggestions == []
        assert result.summary == "No summary provided"
        assert result.score == 9.0

    def test_suggestion_code(self) -> None:
        """Suggestions keep an optional code snippet."""
        result = decode_review_result(
            "a.ts", {"suggestions": [{"line": 2, "message": "m", "code": "const x = 1;"}]}
        )

        assert result.suggestions[0].code == "const x = 1;"


class TestLineProtocol:
    """Tests for the ISSUE:/SUGGESTION: response format."""

    def test_issues_and_suggestions(self) -> None:
        response = (
            "ISSUE: 3: Null check was removed\n"
            "SUGGESTION: 4: Restore the guard clause\n"
            "Some chatter that is ignored\n"
        )

        result = parse_line_protocol(response)

        assert len(result.issues) == 1
        assert result.issues[0].line == 3
        assert result.issues[0].severity == Severity.WARNING
        assert result.issues[0].message == "Null check was removed"
        assert result.issues[0].source == IssueSource.SEMANTIC
        assert [s.line for s in result.suggestions] == [4]

    def test_no_issues_found(self) -> None:
        """The explicit all-clear reply yields nothing."""
        result = parse_line_protocol('"No issues found"')

        assert result.issues == []
        assert result.suggestions == []
