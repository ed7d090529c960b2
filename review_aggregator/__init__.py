"""
Review Aggregator - multi-source code review for changed files.

This package provides tools to:
- Reconstruct old and new text from unified diffs
- Scan changed code with line heuristics and imported lint diagnostics
- Ask a text-completion model for a semantic review, cached per content
- Merge every source into one scored, line-indexed report

Main Components:
- DiffReconstructor: Unified diff to old/new text
- ResultCache: Singleflight cache for semantic reviews
- ReviewAggregator: Combines per-source results for a file
- ReviewOrchestrator: Runs the sources and records merged issues

Example Usage:
    import asyncio

    from review_aggregator import ChangeKind, FileChange, ReviewConfig, ReviewOrchestrator

    orchestrator = ReviewOrchestrator(ReviewConfig(completion_command="claude -p"))
    change = FileChange("src/app.ts", ChangeKind.MODIFIED, content=source_text)
    result = asyncio.run(orchestrator.analyze_file(change))
    print(f"Score: {result.score}/10, {len(result.issues)} issues")
"""

__version__ = "0.1.0"
__author__ = "Review Aggregator Team"

from .analyzers import (
    ChangeKind,
    FileChange,
    Issue,
    IssueSource,
    ReviewResult,
    Severity,
    Suggestion,
)
from .completion_client import (
    CommandCompletionClient,
    CompletionClient,
    StaticCompletionClient,
)
from .diff_reconstructor import DiffReconstructor
from .path_resolver import IssueRegistry, lookup
from .result_cache import ResultCache
from .scorers import ReviewAggregator, ReviewConfig, ReviewOrchestrator

__all__ = [
    "ChangeKind",
    "FileChange",
    "Issue",
    "IssueSource",
    "ReviewResult",
    "Severity",
    "Suggestion",
    "CompletionClient",
    "CommandCompletionClient",
    "StaticCompletionClient",
    "DiffReconstructor",
    "IssueRegistry",
    "lookup",
    "ResultCache",
    "ReviewAggregator",
    "ReviewConfig",
    "ReviewOrchestrator",
]
