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

"""Semantic reviewer backed by a text-completion model.

The reviewer owns prompt construction and response parsing. The model call
itself goes through a CompletionClient, invoked once per review with no
retries. Model output is untrusted: every finding is re-stamped with the
semantic source and malformed responses degrade to an empty result.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..exceptions import AnalysisFailedError, NotInitializedError, ReviewError
from ..parsing.language_registry import LanguageRegistry
from ..parsing.response_parser import decode_review_result, parse_review_response
from .base_analyzer import BaseAnalyzer, FileChange, IssueSource, ReviewResult

if TYPE_CHECKING:
    from ..completion_client import CompletionClient
    from ..result_cache import ResultCache

logger = logging.getLogger(__name__)

RESPONSE_FORMAT = """Respond with JSON only, using exactly this structure:
{
  "issues": [
    {
      "line": number,
      "type": "error|warning|info",
      "message": "What is wrong and how to fix it",
      "rule": "logic|syntax|undefined|typo"
    }
  ],
  "suggestions": [
    {
      "line": number,
      "message": "Actionable improvement with specific implementation details"
    }
  ],
  "summary": "Brief actionable summary of what to fix"
}"""


def number_lines(content: str) -> str:
    """Prefix every line with its 1-based number, right-aligned to 3 columns."""
    return "\n".join(
        f"{str(index).rjust(3)}: {line}"
        for index, line in enumerate(content.split("\n"), start=1)
    )


class SemanticReviewer(BaseAnalyzer):
    """Asks a completion model to review one file's full content."""

    def __init__(
        self,
        client: CompletionClient | None = None,
        cache: ResultCache | None = None,
        config: dict[str, Any] | None = None,
    ):
        """Initialize the reviewer.

        Args:
            client: Completion client used for the model call.
            cache: Shared result cache; reviews are memoized per (path, content).
            config: Optional configuration dictionary.
        """
        super().__init__(config)
        self.client = client
        self.cache = cache
        self.language_registry = LanguageRegistry()

    def get_analyzer_name(self) -> str:
        return "semantic"

    def get_source(self) -> IssueSource:
        return IssueSource.SEMANTIC

    def build_prompt(self, file_path: str, content: str) -> str:
        language = self.language_registry.get_language_label(file_path)
        return (
            f"You are an expert code reviewer analyzing this {language} file. "
            "Find real bugs, logic errors, and issues that prevent the code "
            "from working correctly.\n\n"
            "FOCUS ON:\n"
            "- Variable name mismatches and typos\n"
            "- Undefined variables or incorrect references\n"
            "- Logic errors and syntax issues\n"
            "- Real bugs that break functionality\n\n"
            f"File: {file_path}\n"
            "Content with line numbers:\n"
            f"```\n{number_lines(content)}\n```\n\n"
            f"{RESPONSE_FORMAT}\n\n"
            "Write messages as actionable instructions and refer to the line "
            "numbers shown above."
        )

    async def review(self, file_path: str, content: str) -> ReviewResult:
        """Review one file with a single model call.

        Args:
            file_path: Path shown to the model and stamped on the result
            content: Full file text

        Returns:
            ReviewResult whose findings are all tagged as semantic

        Raises:
            NotInitializedError: If no completion client is configured
            AnalysisFailedError: If the model call fails
        """
        if self.client is None:
            raise NotInitializedError()

        prompt = self.build_prompt(file_path, content)
        logger.debug(f"Requesting semantic review of {file_path} ({len(prompt)} chars)")

        try:
            response = await self.client.complete(prompt)
        except ReviewError:
            raise
        except Exception as e:
            raise AnalysisFailedError(
                f"Semantic review of {file_path} failed: {e}",
                analyzer=self.get_analyzer_name(),
                original_error=e,
            ) from e

        parsed = parse_review_response(response)
        result = decode_review_result(file_path, parsed.payload, self.get_source())
        logger.debug(
            f"Semantic review of {file_path} parsed via {parsed.tier}: "
            f"{len(result.issues)} issues, {len(result.suggestions)} suggestions"
        )
        return result

    async def analyze_file(self, change: FileChange) -> ReviewResult:
        if self.client is None:
            raise NotInitializedError()
        if not change.content:
            return self.create_empty_result(change.path, "No content to analyze")

        content = change.content
        if self.cache is None:
            return await self.review(change.path, content)
        return await self.cache.get_or_compute(
            change.path, content, lambda: self.review(change.path, content)
        )
