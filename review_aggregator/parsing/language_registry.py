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

"""Language labels guessed from file extensions.

The labels only feed prompt text; nothing here parses source code.
"""

from __future__ import annotations

from pathlib import PurePosixPath


class LanguageRegistry:
    """Maps file extensions to human-readable language labels."""

    LANGUAGE_MAP = {
        "TypeScript": [".ts", ".tsx"],
        "JavaScript": [".js", ".jsx"],
        "Vue": [".vue"],
        "Python": [".py"],
        "Java": [".java"],
        "CSS": [".css", ".scss"],
    }

    DEFAULT_LABEL = "code"

    def __init__(self) -> None:
        self.extension_map: dict[str, str] = {}
        for label, extensions in self.LANGUAGE_MAP.items():
            for ext in extensions:
                self.extension_map[ext] = label

    def get_language_label(self, file_path: str) -> str:
        """Return the language label for a path, or "code" when unknown."""
        suffix = PurePosixPath(file_path.replace("\\", "/")).suffix.lower()
        return self.extension_map.get(suffix, self.DEFAULT_LABEL)

    def get_extension(self, file_path: str) -> str:
        """Return the bare extension (no dot) used to tag fenced code blocks."""
        return PurePosixPath(file_path.replace("\\", "/")).suffix.lstrip(".")

    def get_supported_extensions(self) -> set[str]:
        return set(self.extension_map.keys())
