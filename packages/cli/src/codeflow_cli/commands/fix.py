"""fix command: review, apply selected fixes, and iterate on the patched code."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.console import Console

from codeflow_core.errors import InputError
from codeflow_core.session import ReviewSession, SessionStatus, create_session
from codeflow_cli.report import print_changes, print_report
from codeflow_cli.source import load_checked_config, read_source

console = Console()

_METHOD_LABELS = {
    "remote": "applied by the fix service",
    "local": "fix service unavailable, applied locally",
    "fixed_code": "replaced with the proposed fixed code",
    "unchanged": "no applicable code in the selected fixes",
}


def _select(session: ReviewSession, ids: tuple[str, ...], select_all: bool, interactive: bool) -> None:
    if select_all:
        session.select_all()
        return
    if not ids and interactive:
        answer = click.prompt(
            "\nChange ids to apply (comma separated, 'all', blank to stop)",
            default="",
            show_default=False,
        ).strip()
        if answer.lower() == "all":
            session.select_all()
            return
        ids = tuple(i.strip() for i in answer.split(",") if i.strip())
    for fix_id in ids:
        try:
            if fix_id not in session.selection:
                session.toggle(fix_id)
        except InputError as e:
            console.print(f"[yellow]{e}[/yellow]")


async def run_fix_rounds(
    session: ReviewSession,
    code: str,
    language: str | None,
    filename: str | None,
    ids: tuple[str, ...],
    select_all: bool,
    rounds: int,
    interactive: bool,
) -> int:
    """Run up to ``rounds`` review → select → apply cycles; return the number applied.

    Explicit ids only make sense for the first review; later rounds select
    everything with --all, or prompt.
    """
    applied_rounds = 0
    for round_no in range(1, rounds + 1):
        if round_no == 1:
            status = await session.submit(code, language=language, filename=filename)
        else:
            console.print(f"\n[bold cyan]Round {round_no}: re-reviewing patched code[/bold cyan]\n")
            status = await session.resubmit()
        if status is not SessionStatus.SUCCESS:
            return applied_rounds

        print_report(session.result)
        print_changes(session.result)

        _select(session, ids if round_no == 1 else (), select_all, interactive)
        if not session.selection:
            break

        count = len(session.selection)
        outcome = await session.apply_fixes()
        console.print(
            f"\n[green]{count} fix(es) selected, {outcome.applied_count} applied: "
            f"{_METHOD_LABELS[outcome.method]}.[/green]"
        )
        applied_rounds += 1
    return applied_rounds


@click.command("fix")
@click.argument("path")
@click.option("--select", "-s", "ids", multiple=True, help="Id of a proposed change to apply. Repeatable.")
@click.option("--all", "select_all", is_flag=True, help="Apply every proposed change.")
@click.option("--rounds", type=click.IntRange(min=1), default=1, show_default=True, help="Review/fix cycles to run.")
@click.option("--output", "-o", default=None, help="Write the patched code here instead of printing it.")
@click.option("--language", "-l", default=None, help="Language of the code, e.g. python. Sent as a hint.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--yes", "-y", is_flag=True, help="Never prompt; apply only --select ids or --all.")
@click.pass_context
def fix_cmd(
    ctx,
    path: str,
    ids: tuple[str, ...],
    select_all: bool,
    rounds: int,
    output: str | None,
    language: str | None,
    model: str | None,
    yes: bool,
):
    """Review PATH, apply the chosen fixes, and optionally re-review.

    Each extra round re-reviews the patched code, so fixes converge over
    iterations. Exits 1 when the last score is below the pass score or the
    review fails.
    """
    config = load_checked_config(ctx, model)
    code, filename = read_source(ctx, path)

    if not code.strip():
        console.print("[red]Error: No code to review[/red]")
        ctx.exit(1)

    session = create_session(config)
    applied = asyncio.run(
        run_fix_rounds(session, code, language, filename, ids, select_all, rounds, interactive=not yes)
    )

    # Patched code from completed rounds is kept even when a later re-review fails.
    if applied:
        if output:
            Path(output).write_text(session.working_code, encoding="utf-8")
            console.print(f"[green]Patched code written to {output}[/green]")
        else:
            console.print("\n[bold]Patched code:[/bold]\n")
            click.echo(session.working_code)

    if session.status is not SessionStatus.SUCCESS:
        console.print(f"[red]Error: {session.error_message}[/red]")
        ctx.exit(1)

    if session.result.score < config.get("pass_score", 60):
        ctx.exit(1)
