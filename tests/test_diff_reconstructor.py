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
Tests for unified diff reconstruction and splitting.
"""

from __future__ import annotations

from review_aggregator.diff_reconstructor import (
    DiffReconstructor,
    ReconstructedContent,
    reconstruct,
)


class TestReconstruct:
    """Tests for DiffReconstructor.reconstruct."""

    def test_empty_diff(self) -> None:
        """An empty diff reconstructs to two empty texts."""
        assert reconstruct("") == ReconstructedContent("", "")

    def test_removal_addition_and_context(self, sample_diff: str) -> None:
        """Removed lines go old, added lines go new, context goes to both."""
        result = reconstruct(sample_diff)

        assert result.old_content == "foo\ncontext"
        assert result.new_content == "bar\ncontext"

    def test_headers_are_skipped(self) -> None:
        """File and hunk headers never reach either side."""
        diff = (
            "diff --git a/x.ts b/x.ts\n"
            "index 123..456 100644\n"
            "--- a/x.ts\n"
            "+++ b/x.ts\n"
            "@@ -1 +1 @@\n"
            "-old\n"
            "+new\n"
        )

        old_content, new_content = DiffReconstructor().reconstruct(diff)

        assert old_content == "old"
        assert new_content == "new"

    def test_context_lines_appear_on_both_sides(self) -> None:
        """Every context line shows up unchanged in old and new text."""
        diff = " first\n-removed\n second\n+added\n third\n"

        old_content, new_content = reconstruct(diff)

        for context in ("first", "second", "third"):
            assert context in old_content.split("\n")
            assert context in new_content.split("\n")
        assert old_content == "first\nremoved\nsecond\nthird"
        assert new_content == "first\nsecond\nadded\nthird"

    def test_blank_line_is_context(self) -> None:
        """An empty line inside a hunk counts as context."""
        old_content, new_content = reconstruct("-a\n\n+b\n")

        assert old_content == "a\n"
        assert new_content == "\nb"

    def test_triple_markers_without_space_are_ignored(self) -> None:
        """Lines starting with --- or +++ are never treated as content."""
        old_content, new_content = reconstruct("---x\n+++y\n-real\n")

        assert old_content == "real"
        assert new_content == ""

    def test_unknown_lines_are_ignored(self) -> None:
        """Lines with no recognised marker are dropped."""
        diff = "-a\n+b\n\\ No newline at end of file\n"

        assert reconstruct(diff) == ReconstructedContent("a", "b")

    def test_crlf_line_endings(self) -> None:
        """Carriage returns from CRLF diffs are stripped."""
        assert reconstruct("-a\r\n+b\r\n") == ReconstructedContent("a", "b")

    def test_malformed_input_does_not_raise(self) -> None:
        """Garbage input degrades to an empty reconstruction."""
        assert reconstruct("not a diff\nat all") == ReconstructedContent("", "")


class TestSplitFileDiffs:
    """Tests for splitting multi-file diffs."""

    def test_git_diff_is_split_per_file(self, git_diff: str) -> None:
        """Each file section is keyed by its new-side path."""
        file_diffs = DiffReconstructor().split_file_diffs(git_diff)

        assert list(file_diffs) == ["src/app.ts", "src/new.ts"]
        assert file_diffs["src/app.ts"].startswith("diff --git a/src/app.ts")
        assert "+const retries = 3;" in file_diffs["src/app.ts"]
        assert "+debugger;" not in file_diffs["src/app.ts"]

    def test_split_sections_reconstruct_independently(self, git_diff: str) -> None:
        """A split section reconstructs only its own file."""
        reconstructor = DiffReconstructor()
        file_diffs = reconstructor.split_file_diffs(git_diff)

        old_content, new_content = reconstructor.reconstruct(file_diffs["src/new.ts"])

        assert old_content == ""
        assert new_content == "debugger;\nexport const ready = true;"

    def test_deleted_file_uses_old_path(self) -> None:
        """A deleted file is keyed by its old-side path."""
        diff = (
            "diff --git a/gone.py b/gone.py\n"
            "deleted file mode 100644\n"
            "--- a/gone.py\n"
            "+++ /dev/null\n"
            "@@ -1 +0,0 @@\n"
            "-print('bye')\n"
        )

        assert list(DiffReconstructor().split_file_diffs(diff)) == ["gone.py"]

    def test_plain_unified_diff(self) -> None:
        """Output of `diff -u` is split on its ---/+++ header pairs."""
        diff = (
            "--- a.txt\t2024-01-01 10:00:00\n"
            "+++ a.txt\t2024-01-02 10:00:00\n"
            "@@ -1 +1 @@\n"
            "-x\n"
            "+y\n"
            "--- b.txt\t2024-01-01 10:00:00\n"
            "+++ b.txt\t2024-01-02 10:00:00\n"
            "@@ -1 +1 @@\n"
            "-p\n"
            "+q\n"
        )

        file_diffs = DiffReconstructor().split_file_diffs(diff)

        assert list(file_diffs) == ["a.txt", "b.txt"]
        assert reconstruct(file_diffs["b.txt"]) == ReconstructedContent("p", "q")

    def test_empty_diff_has_no_files(self) -> None:
        """An empty diff splits into nothing."""
        assert DiffReconstructor().split_file_diffs("") == {}
