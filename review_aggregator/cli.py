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

"""CLI for multi-source code review.

This module provides a command-line interface that reviews changed files
with the heuristic, diagnostic, semantic and diff sources and prints one
merged, line-ordered report per file.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .analyzers.base_analyzer import ChangeKind, FileChange, ReviewResult, Severity
from .analyzers.diagnostic_analyzer import DiagnosticProvider, ExternalDiagnostic
from .diff_reconstructor import DiffReconstructor
from .exceptions import NotInitializedError, ReviewError
from .path_resolver import paths_match
from .progress import RichProgressListener
from .scorers import ReviewConfig, ReviewOrchestrator
from .scorers.review_aggregator import interpret_score, summarize_lines

console = Console()
logger = logging.getLogger(__name__)

SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Multi-source code reviewer for changed files."""
    # Set up logging
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Ensure context object exists
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option(
    "--diff",
    "diff_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Unified diff (git diff or diff -u) describing the changes",
)
@click.option(
    "--diagnostics",
    "diagnostics_file",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file mapping file paths to lists of diagnostics",
)
@click.option(
    "--completion-command",
    help="Command that reads a prompt on stdin and prints the completion",
)
@click.option("--disable-heuristic", is_flag=True, help="Disable heuristic analysis")
@click.option("--disable-diagnostic", is_flag=True, help="Disable diagnostic import")
@click.option("--disable-semantic", is_flag=True, help="Disable semantic review")
@click.option("--enable-diff", is_flag=True, help="Enable diff-aware analysis")
@click.option(
    "--max-concurrent-files",
    type=click.IntRange(min=1),
    help="Number of files reviewed at the same time",
)
@click.option(
    "--workspace-root",
    type=click.Path(file_okay=False),
    help="Root that relative paths are resolved against",
)
@click.option("--output", "-o", help="Output file for results (JSON format)")
@click.pass_context
def review(
    ctx: click.Context,
    paths: tuple[str, ...],
    diff_file: str | None,
    diagnostics_file: str | None,
    completion_command: str | None,
    disable_heuristic: bool,
    disable_diagnostic: bool,
    disable_semantic: bool,
    enable_diff: bool,
    max_concurrent_files: int | None,
    workspace_root: str | None,
    output: str | None,
) -> None:
    """Review changed files and print a merged report per file."""
    verbose = ctx.obj.get("verbose", False) if ctx.obj else False

    try:
        overrides: dict[str, Any] = {}
        if disable_heuristic:
            overrides["enable_heuristic_analysis"] = False
        if disable_diagnostic:
            overrides["enable_diagnostic_analysis"] = False
        if disable_semantic:
            overrides["enable_semantic_analysis"] = False
        if enable_diff:
            overrides["enable_diff_analysis"] = True
        if max_concurrent_files is not None:
            overrides["max_concurrent_files"] = max_concurrent_files
        if workspace_root:
            overrides["workspace_root"] = workspace_root
        if completion_command:
            overrides["completion_command"] = completion_command
        config = ReviewConfig.from_env(**overrides)

        diff_text = Path(diff_file).read_text(encoding="utf-8") if diff_file else ""
        changes = build_changes(paths, diff_text, config.workspace_root)
        if not changes:
            console.print("[yellow]No files to review[/yellow]")
            return

        provider = (
            load_diagnostics(diagnostics_file) if diagnostics_file else None
        )
        orchestrator = ReviewOrchestrator(config, diagnostic_provider=provider)

        console.print(f"[bold blue]Reviewing {len(changes)} file(s)[/bold blue]")
        start_time = time.time()
        with RichProgressListener(console) as listener:
            orchestrator.progress = listener
            results = asyncio.run(orchestrator.analyze_files(changes))
        review_time = time.time() - start_time

        console.print(f"[green]Review completed in {review_time:.2f}s[/green]")
        _display_results(results, verbose)

        if output:
            orchestrator.save_results(results, output)
            console.print(f"[green]Results saved to {output}[/green]")

    except NotInitializedError as e:
        console.print(f"[red]{escape(e.get_user_friendly_message())}[/red]")
        sys.exit(1)
    except (ReviewError, ValueError, OSError) as e:
        console.print(f"[red]Error during review: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.argument("diff_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--side",
    type=click.Choice(["both", "old", "new"]),
    default="both",
    help="Which reconstructed side to print",
)
def reconstruct(diff_file: str, side: str) -> None:
    """Print the old and new text visible in a unified diff."""
    diff_text = Path(diff_file).read_text(encoding="utf-8")
    reconstructor = DiffReconstructor()

    for path, file_diff in _split_or_whole(reconstructor, diff_text).items():
        old_content, new_content = reconstructor.reconstruct(file_diff)
        if side in ("both", "old"):
            console.print(Panel(Text(old_content), title=f"{path} (old)", border_style="red"))
        if side in ("both", "new"):
            console.print(Panel(Text(new_content), title=f"{path} (new)", border_style="green"))


def _split_or_whole(reconstructor: DiffReconstructor, diff_text: str) -> dict[str, str]:
    file_diffs = reconstructor.split_file_diffs(diff_text)
    return file_diffs or {"<diff>": diff_text}


def build_changes(
    paths: Sequence[str], diff_text: str, workspace_root: str | None = None
) -> list[FileChange]:
    """Build FileChange records from paths on disk and an optional diff.

    Without explicit paths, every file named in the diff is reviewed.

    Args:
        paths: Paths given on the command line
        diff_text: Unified diff text, possibly empty
        workspace_root: Directory relative paths are read from

    Returns:
        One FileChange per path, in order
    """
    file_diffs = DiffReconstructor().split_file_diffs(diff_text) if diff_text else {}
    targets = list(paths) or list(file_diffs)
    root = Path(workspace_root) if workspace_root else None

    changes = []
    for target in targets:
        file_path = Path(target)
        if root is not None and not file_path.is_absolute():
            file_path = root / file_path

        file_diff = _find_diff(file_diffs, target)
        if file_path.is_file():
            content: str | None = file_path.read_text(encoding="utf-8", errors="replace")
            kind = ChangeKind.ADDED if "--- /dev/null" in file_diff else ChangeKind.MODIFIED
        else:
            logger.info(f"{target} does not exist on disk, treating it as deleted")
            content = None
            kind = ChangeKind.DELETED

        changes.append(
            FileChange(path=target, change_kind=kind, diff_text=file_diff, content=content)
        )
    return changes


def _find_diff(file_diffs: dict[str, str], target: str) -> str:
    if target in file_diffs:
        return file_diffs[target]
    for path, file_diff in file_diffs.items():
        if paths_match(path, target):
            return file_diff
    return ""


def load_diagnostics(diagnostics_file: str) -> DiagnosticProvider:
    """Load a `{path: [diagnostic, ...]}` JSON file as a diagnostic provider."""
    with open(diagnostics_file, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError("Diagnostics file must hold an object keyed by file path")

    diagnostics: dict[str, list[ExternalDiagnostic]] = {}
    for path, entries in raw.items():
        if not isinstance(entries, list):
            logger.warning(f"Ignoring diagnostics for {path}: expected a list")
            continue
        diagnostics[path] = [
            ExternalDiagnostic.from_dict(entry) for entry in entries if isinstance(entry, dict)
        ]
    logger.info(f"Loaded diagnostics for {len(diagnostics)} files")

    def provider(file_path: str) -> list[ExternalDiagnostic]:
        if file_path in diagnostics:
            return diagnostics[file_path]
        for path, entries in diagnostics.items():
            if paths_match(path, file_path):
                return entries
        return []

    return provider


def _display_results(results: Sequence[ReviewResult], verbose: bool = False) -> None:
    """Display review results in a formatted way."""
    for result in results:
        score_color = _get_score_color(result.score)
        console.print(
            Panel(
                f"[{score_color}]Score: {result.score:.1f}/10[/{score_color}] "
                f"[dim]({interpret_score(result.score)})[/dim]\n"
                f"{escape(result.summary)}",
                title=escape(result.file),
                border_style=score_color,
            )
        )

        if not result.issues:
            console.print("[dim]No issues found[/dim]")
            continue

        table = Table(title="Issues")
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("Severity")
        table.add_column("Source", style="dim")
        table.add_column("Message")

        for line_summary in summarize_lines(result):
            for issue in line_summary.issues:
                style = SEVERITY_STYLES[issue.severity]
                table.add_row(
                    str(issue.line),
                    f"[{style}]{issue.severity.value}[/{style}]",
                    issue.source.value,
                    escape(issue.message),
                )
        console.print(table)

        if verbose and result.suggestions:
            console.print("[bold]Suggestions:[/bold]")
            for suggestion in result.suggestions:
                console.print(f"[dim]  • line {suggestion.line}: {escape(suggestion.message)}[/dim]")


def _get_score_color(score: float) -> str:
    """Get color for a 0-10 score."""
    if score >= 8.0:
        return "green"
    elif score >= 6.0:
        return "yellow"
    else:
        return "red"


if __name__ == "__main__":
    cli()
