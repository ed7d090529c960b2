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

"""Defensive parsing of model responses.

Model output is untrusted text that is usually, but not always, a JSON
object. Parsing goes through three tiers:

1. Strip Markdown fences, take the largest balanced ``{...}`` span, escape
   raw control characters inside string values, then ``json.loads``.
2. Decode starting from an opening brace that precedes the ``"issues"`` key.
3. Fall back to an empty payload whose summary is ``"parse failed"``.

Decoded payloads are then normalized into Issue and Suggestion objects
without trusting field presence or types.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..analyzers.base_analyzer import (
    Issue,
    IssueSource,
    ReviewResult,
    ScanResult,
    Severity,
    Suggestion,
)
from ..exceptions import ParseFailure

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
PARSE_FAILED_SUMMARY = "parse failed"
MISSING_SUMMARY = "No summary provided"

_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}

_SEVERITY_NAMES = {
    "error": Severity.ERROR,
    "critical": Severity.ERROR,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    "info": Severity.INFO,
    "information": Severity.INFO,
    "hint": Severity.INFO,
}


@dataclass
class ParsedResponse:
    """A decoded payload and the tier that produced it."""

    payload: dict[str, Any]
    tier: str  # "structured", "loose" or "fallback"


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers, keeping the fenced text."""
    return FENCE_PATTERN.sub("", text).strip()


def _balanced_end(text: str, start: int) -> int | None:
    """Index of the brace closing the one at `start`, ignoring braces in strings."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def extract_json_span(text: str) -> str | None:
    """Return the largest balanced ``{...}`` span in the text.

    When no opening brace finds its match, the span from the first ``{`` to
    the last ``}`` is returned instead. None means the text has no
    JSON-like span at all.
    """
    spans: list[tuple[int, int]] = []
    position = 0
    while True:
        start = text.find("{", position)
        if start == -1:
            break
        end = _balanced_end(text, start)
        if end is None:
            position = start + 1
            continue
        spans.append((start, end))
        position = end + 1

    if spans:
        start, end = max(spans, key=lambda span: span[1] - span[0])
        return text[start : end + 1]

    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        return text[first : last + 1]
    return None


def escape_control_chars_in_strings(text: str) -> str:
    """Escape raw newlines, carriage returns and tabs inside string literals.

    Characters outside quoted strings are left untouched.
    """
    out: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            elif char in _CONTROL_ESCAPES:
                out.append(_CONTROL_ESCAPES[char])
                continue
        elif char == '"':
            in_string = True
        out.append(char)
    return "".join(out)


def _parse_structured(cleaned: str) -> dict[str, Any]:
    span = extract_json_span(cleaned)
    if span is None:
        raise ParseFailure("No JSON object found in response", stage="structured")
    try:
        parsed = json.loads(escape_control_chars_in_strings(span))
    except json.JSONDecodeError as e:
        raise ParseFailure(f"JSON parsing failed: {e}", stage="structured") from e
    if not isinstance(parsed, dict):
        raise ParseFailure("Parsed response is not an object", stage="structured")
    return parsed


def _parse_loose(cleaned: str) -> dict[str, Any]:
    anchor = cleaned.find('"issues"')
    if anchor == -1:
        raise ParseFailure('No "issues" key in response', stage="loose")

    escaped = escape_control_chars_in_strings(cleaned)
    anchor = escaped.find('"issues"')
    decoder = json.JSONDecoder()
    start = escaped.rfind("{", 0, anchor)
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(escaped, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict) and "issues" in parsed:
            return parsed
        start = escaped.rfind("{", 0, start)
    raise ParseFailure('Could not decode an object holding "issues"', stage="loose")


def parse_review_response(response: str) -> ParsedResponse:
    """Decode a model response into a payload dictionary. Never raises.

    Args:
        response: Raw model output

    Returns:
        ParsedResponse with the payload and the tier that decoded it
    """
    cleaned = strip_code_fences(response or "")

    try:
        return ParsedResponse(_parse_structured(cleaned), "structured")
    except ParseFailure as e:
        logger.debug(f"Structured parse failed: {e}")

    try:
        return ParsedResponse(_parse_loose(cleaned), "loose")
    except ParseFailure as e:
        logger.debug(f"Loose parse failed: {e}")

    logger.warning(
        f"Could not parse model response ({len(response or '')} chars), "
        "using empty result"
    )
    return ParsedResponse(
        {"issues": [], "suggestions": [], "summary": PARSE_FAILED_SUMMARY},
        "fallback",
    )


def _positive_int(raw: Any, default: int | None) -> int | None:
    if isinstance(raw, bool):
        return default
    if isinstance(raw, (int, float)):
        value = int(raw)
    elif isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        value = int(raw.strip())
    else:
        return default
    return value if value >= 1 else default


def _optional_str(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw or None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return str(raw)
    return None


def decode_severity(raw: Any, default: Severity = Severity.WARNING) -> Severity:
    if isinstance(raw, str):
        return _SEVERITY_NAMES.get(raw.strip().lower(), default)
    return default


def decode_issue(entry: Any, source: IssueSource) -> Issue | None:
    """Build an Issue from one payload entry; non-mappings are dropped."""
    if not isinstance(entry, Mapping):
        return None
    severity_raw = entry.get("type", entry.get("severity"))
    return Issue(
        severity=decode_severity(severity_raw),
        line=_positive_int(entry.get("line"), 1) or 1,
        column=_positive_int(entry.get("column"), None),
        message=str(entry.get("message", "")),
        rule=_optional_str(entry.get("rule")),
        source=source,
    )


def decode_suggestion(entry: Any, source: IssueSource) -> Suggestion | None:
    if not isinstance(entry, Mapping):
        return None
    return Suggestion(
        line=_positive_int(entry.get("line"), 1) or 1,
        column=_positive_int(entry.get("column"), None),
        message=str(entry.get("message", "")),
        code=_optional_str(entry.get("code")),
        source=source,
    )


def decode_score(raw: Any) -> float:
    """Numeric scores pass through, clamped to 0..10; anything else is 0."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return 0.0
    return max(0.0, min(10.0, float(raw)))


def decode_review_result(
    file_path: str,
    payload: Mapping[str, Any],
    source: IssueSource = IssueSource.SEMANTIC,
) -> ReviewResult:
    """Normalize a decoded payload into a ReviewResult.

    Every finding is stamped with `source`; whatever the payload says about
    its own source is ignored.
    """
    raw_issues = payload.get("issues")
    raw_suggestions = payload.get("suggestions")

    issues = []
    if isinstance(raw_issues, list):
        for entry in raw_issues:
            issue = decode_issue(entry, source)
            if issue is not None:
                issues.append(issue)

    suggestions = []
    if isinstance(raw_suggestions, list):
        for entry in raw_suggestions:
            suggestion = decode_suggestion(entry, source)
            if suggestion is not None:
                suggestions.append(suggestion)

    summary = payload.get("summary")
    return ReviewResult(
        file=file_path,
        issues=issues,
        suggestions=suggestions,
        score=decode_score(payload.get("score")),
        summary=summary if isinstance(summary, str) else MISSING_SUMMARY,
    )


_LINE_PROTOCOL = re.compile(r"^(ISSUE|SUGGESTION):\s*(\d+):\s*(.+)$")


def parse_line_protocol(
    response: str, source: IssueSource = IssueSource.SEMANTIC
) -> ScanResult:
    """Parse ``ISSUE: <line>: <text>`` / ``SUGGESTION: <line>: <text>`` lines.

    A response saying "no issues found" yields nothing. Issues are Warnings.
    """
    result = ScanResult()
    if not response or "no issues found" in response.lower():
        return result

    for raw_line in response.split("\n"):
        match = _LINE_PROTOCOL.match(raw_line.strip())
        if not match:
            continue
        kind, line_text, message = match.groups()
        line = max(1, int(line_text))
        if kind == "ISSUE":
            result.issues.append(
                Issue(
                    severity=Severity.WARNING,
                    line=line,
                    message=message.strip(),
                    source=source,
                )
            )
        else:
            result.suggestions.append(
                Suggestion(line=line, message=message.strip(), source=source)
            )
    return result
