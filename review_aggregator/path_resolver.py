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

"""Fuzzy lookup of issues recorded under a different path spelling.

Findings may be registered under a relative path and queried with an
absolute one (or the other way round, or with different separators and
case). Resolution tries an exact key first, then a normalized comparison.
A miss is not an error: it returns an empty list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from .analyzers.base_analyzer import Issue

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Forward slashes, lower case."""
    return path.replace("\\", "/").lower()


def _last_segment(normalized: str) -> str:
    return normalized.rstrip("/").rsplit("/", 1)[-1]


def paths_match(stored: str, query: str) -> bool:
    """Whether two path spellings are taken to name the same file.

    True when either normalized path is a suffix of the other, or when
    either path's last segment occurs in the other's normalized form.
    """
    a, b = normalize_path(stored), normalize_path(query)
    if a.endswith(b) or b.endswith(a):
        return True
    a_name, b_name = _last_segment(a), _last_segment(b)
    return bool(a_name and a_name in b) or bool(b_name and b_name in a)


def lookup(index: Mapping[str, Sequence[Issue]], query_path: str) -> list[Issue]:
    """Return the issues recorded for `query_path`, tolerating path spelling.

    Args:
        index: Path to issues mapping, searched in iteration order
        query_path: Path as spelled by the caller

    Returns:
        The first matching entry's issues, or an empty list
    """
    if query_path in index:
        return list(index[query_path])

    for stored_path, issues in index.items():
        if paths_match(stored_path, query_path):
            logger.debug(f"Resolved {query_path} to stored path {stored_path}")
            return list(issues)

    logger.debug(f"No issues recorded for {query_path}")
    return []


class IssueRegistry:
    """Path to merged issues, queried through the fuzzy resolver."""

    def __init__(self) -> None:
        self._index: dict[str, list[Issue]] = {}

    def set_issues(self, path: str, issues: Iterable[Issue]) -> None:
        self._index[path] = list(issues)

    def add_issues(self, path: str, issues: Iterable[Issue]) -> None:
        self._index.setdefault(path, []).extend(issues)

    def get_issues(self, path: str) -> list[Issue]:
        return lookup(self._index, path)

    def clear_issues(self, path: str | None = None) -> None:
        """Forget one path's issues, or every path when none is given."""
        if path is None:
            self._index.clear()
        else:
            self._index.pop(path, None)

    def paths(self) -> list[str]:
        return list(self._index)

    def __len__(self) -> int:
        return len(self._index)
