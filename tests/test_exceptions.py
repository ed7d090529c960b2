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
Tests for the review error taxonomy.
"""

from __future__ import annotations

from review_aggregator.exceptions import (
    AnalysisFailedError,
    NotInitializedError,
    ParseFailure,
    ReviewError,
)


class TestReviewErrors:
    """Tests for error messages and attributes."""

    def test_user_friendly_message(self) -> None:
        error = ReviewError("Something broke", suggestions=["Try again", "Check input"])

        assert error.get_user_friendly_message() == (
            "Something broke\n\nSuggestions:\n  • Try again\n  • Check input"
        )

    def test_message_without_suggestions(self) -> None:
        assert ReviewError("plain").get_user_friendly_message() == "plain"

    def test_not_initialized_defaults(self) -> None:
        error = NotInitializedError()

        assert str(error) == "Completion client not initialized. Configure it first."
        assert any("--disable-semantic" in s for s in error.suggestions)

    def test_analysis_failed_keeps_cause(self) -> None:
        cause = TimeoutError("slow")
        error = AnalysisFailedError("semantic failed", analyzer="semantic", original_error=cause)

        assert isinstance(error, ReviewError)
        assert error.analyzer == "semantic"
        assert error.original_error is cause

    def test_parse_failure_stage(self) -> None:
        error = ParseFailure("bad json", stage="structured")

        assert isinstance(error, ReviewError)
        assert error.stage == "structured"
