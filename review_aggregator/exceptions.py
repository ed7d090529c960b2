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

"""Custom exceptions for the review pipeline.

This module provides specific exception types for analyzer and boundary
failures so that callers can tell recoverable degradation apart from
conditions that need user action.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base exception for review pipeline errors with actionable suggestions."""

    def __init__(self, message: str, suggestions: list[str] | None = None) -> None:
        """Initialize review error with optional suggestions.

        Args:
            message: Error message describing the issue
            suggestions: List of actionable suggestions for the user (optional)
        """
        super().__init__(message)
        self.suggestions = suggestions or []

    def get_user_friendly_message(self) -> str:
        """Get user-friendly error message with suggestions.

        Returns:
            Formatted error message with actionable suggestions.
        """
        msg = str(self)
        if self.suggestions:
            msg += "\n\nSuggestions:"
            for suggestion in self.suggestions:
                msg += f"\n  • {suggestion}"
        return msg


class ParseFailure(ReviewError):
    """Raised when a diff or a model response cannot be decoded.

    Never escapes the component that raised it: callers degrade to an empty
    or fallback result instead.
    """

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class AnalysisFailedError(ReviewError):
    """Raised when a single analyzer invocation fails."""

    def __init__(
        self,
        message: str,
        analyzer: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize analysis failure.

        Args:
            message: Error message describing the failure
            analyzer: Name of the analyzer that failed (optional)
            original_error: Underlying exception (optional)
        """
        super().__init__(message)
        self.analyzer = analyzer
        self.original_error = original_error


class NotInitializedError(ReviewError):
    """Raised when the semantic boundary is used before it is configured."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "Completion client not initialized. Configure it first.",
            suggestions=[
                "Pass --completion-command to the CLI (for example 'claude -p')",
                "Set REVIEW_AGGREGATOR_COMPLETION_COMMAND in the environment",
                "Use --disable-semantic to run without the semantic reviewer",
            ],
        )
