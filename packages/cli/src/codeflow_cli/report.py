"""Terminal rendering of a ReviewResult."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from codeflow_core.models import ReviewResult

console = Console()

_RULE = "─" * 60


def score_style(score: int) -> str:
    if score < 60:
        return "red"
    if score < 75:
        return "yellow"
    if score < 90:
        return "cyan"
    return "green"


def verdict(score: int) -> str:
    if score < 60:
        return "✗ Do not ship"
    if score < 75:
        return "⚠ Needs work"
    if score < 90:
        return "○ Good, fix warnings"
    return "✓ Ship it!"


def score_bar(score: int, width: int = 20) -> str:
    filled = round(score / (100 / width))
    style = score_style(score)
    return f"[{style}]{'█' * filled}[/{style}][dim]{'░' * (width - filled)}[/dim] {score}"


def _diff_lines(before: str, after: str) -> None:
    for line in before.splitlines() or [""]:
        console.print(f"    [red]- {escape(line)}[/red]")
    for line in after.splitlines() or [""]:
        console.print(f"    [green]+ {escape(line)}[/green]")


def print_report(result: ReviewResult) -> None:
    """Print the full review: summary, score, categories, findings, actions."""
    console.print(f"[dim]{_RULE}[/dim]\n")

    if result.summary:
        console.print(f"[bold]Summary:[/bold] {escape(result.summary)}\n")

    style = score_style(result.score)
    console.print(
        f"[bold]Overall Score: [{style}]{result.score}/100[/{style}][/bold] [dim]{verdict(result.score)}[/dim]\n"
    )

    cats = result.categories
    console.print("[bold]Category Breakdown:[/bold]")
    console.print(f"  Security:       {score_bar(cats.security)}")
    console.print(f"  Performance:    {score_bar(cats.performance)}")
    console.print(f"  Readability:    {score_bar(cats.readability)}")
    console.print(f"  Best Practices: {score_bar(cats.best_practices)}")
    console.print()

    if not result.issues:
        console.print("[green]✓ No issues found![/green]\n")
    else:
        console.print(f"[bold]Issues Found ({len(result.issues)}):[/bold]\n")
        for issue in result.issues:
            color = "red" if issue.severity == "critical" else "yellow"
            icon = "●" if issue.severity == "critical" else "○"
            console.print(f"[{color}]{icon}[/{color}] [bold]{escape(issue.title)}[/bold] [dim]({issue.id})[/dim]")
            console.print(
                f"  [dim]Line {issue.line if issue.line is not None else '?'} |[/dim] "
                f"[{color}]{issue.severity.upper()}[/{color}]"
            )
            console.print(f"  {escape(issue.description)}")
            if issue.fix is not None and issue.fix.before and issue.fix.after is not None:
                console.print("  [dim]Fix:[/dim]")
                _diff_lines(issue.fix.before, issue.fix.after)
            console.print()

    if result.suggestions:
        console.print(f"[bold]Suggestions ({len(result.suggestions)}):[/bold]\n")
        for sug in result.suggestions:
            console.print(f"[cyan]💡[/cyan] [bold]{escape(sug.title)}[/bold] [dim]({sug.id})[/dim]")
            console.print(f"   {escape(sug.description)}")
            if sug.before and sug.after:
                console.print(f"   [dim]Before:[/dim] {escape(sug.before[:50])}...")
                console.print(f"   [dim]After:[/dim]  {escape(sug.after[:50])}...")
            console.print()

    if result.action_items:
        console.print("[bold]Action Items:[/bold]\n")
        for item in result.action_items:
            icon = "[red]![/red]" if item.priority == "high" else "[dim]○[/dim]"
            console.print(f"  {icon} {escape(item.title)}")
        console.print()

    console.print(f"[dim]{_RULE}[/dim]")


def print_changes(result: ReviewResult) -> None:
    """List the proposed changes a user can select, one per fix."""
    if not result.proposed_changes:
        console.print("[yellow]No proposed changes to apply.[/yellow]")
        return
    console.print(f"\n[bold]Proposed changes ({len(result.proposed_changes)}):[/bold]")
    for change in result.proposed_changes:
        lines = ""
        if change.line_start is not None:
            end = change.line_end if change.line_end is not None else change.line_start
            lines = f" [dim]lines {change.line_start}-{end}[/dim]"
        console.print(f"  [bold]{escape(change.id)}[/bold]  {escape(change.title)}{lines}")
