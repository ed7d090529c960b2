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
Unified diff reconstruction.

This module turns unified-diff text into the "before" and "after" text that
the diff shows. The reconstruction only covers lines visible in the hunks,
not the complete file.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)

HEADER_PREFIXES = ("diff --git", "index ", "--- ", "+++ ", "@@")


class ReconstructedContent(NamedTuple):
    """Old and new text visible in a diff."""

    old_content: str
    new_content: str


def _diff_lines(diff_text: str) -> list[str]:
    # A terminating newline does not start another (empty) line.
    lines = diff_text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class DiffReconstructor:
    """Reconstructs old and new content from unified diff text."""

    def reconstruct(self, diff_text: str) -> ReconstructedContent:
        """
        Split a unified diff into its old and new sides.

        Header lines are dropped, removed lines go to the old side, added
        lines to the new side, and context lines (leading space or empty)
        to both. Anything else is ignored, so malformed input yields at worst
        an empty reconstruction.

        Args:
            diff_text: Unified diff text, possibly empty

        Returns:
            ReconstructedContent with newline-joined old and new text
        """
        old_lines: list[str] = []
        new_lines: list[str] = []

        for line in _diff_lines(diff_text or ""):
            if line.startswith(HEADER_PREFIXES):
                continue

            if line.startswith("-") and not line.startswith("---"):
                old_lines.append(line[1:])
            elif line.startswith("+") and not line.startswith("+++"):
                new_lines.append(line[1:])
            elif line.startswith(" ") or line == "":
                context = line[1:] if line else line
                old_lines.append(context)
                new_lines.append(context)

        logger.debug(
            f"Reconstructed diff: {len(old_lines)} old lines, {len(new_lines)} new lines"
        )
        return ReconstructedContent("\n".join(old_lines), "\n".join(new_lines))

    def split_file_diffs(self, diff_text: str) -> dict[str, str]:
        """
        Split a multi-file unified diff into per-file diff texts.

        Args:
            diff_text: Output of `git diff` or `diff -u`

        Returns:
            Dictionary mapping the new-side path of each file to its diff text
        """
        lines = _diff_lines(diff_text or "")
        chunks: list[list[str]] = []
        current: list[str] | None = None

        for index, line in enumerate(lines):
            starts_file = line.startswith("diff --git")
            if not starts_file and line.startswith("--- "):
                next_line = lines[index + 1] if index + 1 < len(lines) else ""
                in_git_header = (
                    current is not None
                    and current[0].startswith("diff --git")
                    and not any(part.startswith("@@") for part in current)
                )
                starts_file = next_line.startswith("+++ ") and not in_git_header
            if starts_file:
                current = []
                chunks.append(current)
            if current is not None:
                current.append(line)

        file_diffs: dict[str, str] = {}
        for chunk in chunks:
            path = self._chunk_path(chunk)
            if path is None:
                logger.debug("Skipping diff chunk without a file path")
                continue
            file_diffs[path] = "\n".join(chunk) + "\n"

        logger.info(f"Split diff into {len(file_diffs)} files")
        return file_diffs

    def _chunk_path(self, chunk: list[str]) -> str | None:
        old_path = new_path = None
        for line in chunk:
            if line.startswith("--- ") and old_path is None:
                old_path = self._header_path(line[4:], "a/")
            elif line.startswith("+++ ") and new_path is None:
                new_path = self._header_path(line[4:], "b/")

        if new_path and new_path != "/dev/null":
            return new_path
        if old_path and old_path != "/dev/null":
            return old_path

        header = chunk[0] if chunk else ""
        if header.startswith("diff --git"):
            parts = header.split(" b/", 1)
            if len(parts) == 2:
                return parts[1].strip()
        return None

    def _header_path(self, raw: str, prefix: str) -> str:
        path = raw.split("\t", 1)[0].strip()
        if path.startswith(prefix):
            path = path[len(prefix) :]
        return path


def reconstruct(diff_text: str) -> ReconstructedContent:
    """Module-level shortcut for DiffReconstructor().reconstruct."""
    return DiffReconstructor().reconstruct(diff_text)
