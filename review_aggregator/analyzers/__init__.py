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

"""Review sources.

This package provides the analyzers that each turn one changed file into a
scored list of issues and suggestions: line heuristics, imported
diagnostics, the model-backed semantic reviewer and the diff comparator.
"""

from .base_analyzer import (
    BaseAnalyzer,
    ChangeKind,
    FileChange,
    Issue,
    IssueSource,
    ReviewResult,
    ScanResult,
    Severity,
    Suggestion,
)
from .diagnostic_analyzer import (
    DiagnosticAnalyzer,
    DiagnosticImporter,
    DiagnosticSeverity,
    ExternalDiagnostic,
)
from .diff_analyzer import DiffAnalyzer, DiffLocalScanner
from .heuristic_analyzer import HeuristicAnalyzer, HeuristicScanner
from .semantic_analyzer import SemanticReviewer

__all__ = [
    "BaseAnalyzer",
    "ChangeKind",
    "FileChange",
    "Issue",
    "IssueSource",
    "ReviewResult",
    "ScanResult",
    "Severity",
    "Suggestion",
    "HeuristicScanner",
    "HeuristicAnalyzer",
    "DiagnosticImporter",
    "DiagnosticAnalyzer",
    "DiagnosticSeverity",
    "ExternalDiagnostic",
    "SemanticReviewer",
    "DiffLocalScanner",
    "DiffAnalyzer",
]
