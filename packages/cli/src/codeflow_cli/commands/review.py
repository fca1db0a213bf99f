"""review command: analyze code and print the report."""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console

from codeflow_core.config import DEFAULT_CONFIG
from codeflow_core.demo import DEMO_CODE, DEMO_FILENAME, DEMO_LANGUAGE
from codeflow_core.session import SessionStatus, create_demo_session, create_session
from codeflow_cli.report import print_report
from codeflow_cli.source import load_checked_config, read_source

console = Console()


@click.command("review")
@click.argument("path", required=False)
@click.option("--language", "-l", default=None, help="Language of the code, e.g. python. Sent as a hint.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the normalized review as JSON instead of the report.")
@click.option("--demo", is_flag=True, help="Review built-in sample code with a sample result. No API key needed.")
@click.pass_context
def review_cmd(ctx, path: str | None, language: str | None, model: str | None, as_json: bool, demo: bool):
    """Review a file, or code piped on stdin.

    Exits 1 when the score is below the pass score (60 by default) or when
    the review fails, so it can gate a CI step.

    \b
    Required environment variables:
      ANTHROPIC_API_KEY    Required when using --model anthropic (default)
      OPENAI_API_KEY       Required when using --model openai
      (neither is needed with --demo)
    """
    if demo:
        config = DEFAULT_CONFIG
        code, filename, language = DEMO_CODE, DEMO_FILENAME, DEMO_LANGUAGE
        session = create_demo_session()
        console.print(f"[dim]Demo review of {filename} (no API call)[/dim]\n")
    else:
        config = load_checked_config(ctx, model)
        code, filename = read_source(ctx, path)
        if not code.strip():
            console.print("[red]Error: No code to review[/red]")
            ctx.exit(1)
        session = create_session(config)

    with console.status("Analyzing code..."):
        status = asyncio.run(session.submit(code, language=language, filename=filename))

    if status is not SessionStatus.SUCCESS:
        console.print(f"[red]Error: {session.error_message}[/red]")
        ctx.exit(1)

    result = session.result
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_report(result)

    if result.score < config.get("pass_score", 60):
        ctx.exit(1)
