"""Reading code to review from a file argument or piped stdin."""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

from codeflow_core.config import load_config
from codeflow_cli.auth import api_key_env, resolve_api_key, setup_instruction

console = Console()

USAGE = """[bold]Usage:[/bold]
  [cyan]codeflow review <file>[/cyan]        Review a file
  [cyan]cat file | codeflow review[/cyan]   Review piped input

[bold]Examples:[/bold]
  [dim]codeflow review src/app.js[/dim]
  [dim]cat utils.py | codeflow review[/dim]
  [dim]pbpaste | codeflow review[/dim]     (review clipboard on macOS)"""


def read_source(ctx: click.Context, path: str | None) -> tuple[str, str | None]:
    """Return (code, filename) from path, or from stdin when path is None or "-".

    With no path and an interactive terminal there is nothing to read: print
    usage and exit 0.
    """
    if path and path != "-":
        file_path = Path(path)
        if not file_path.is_file():
            console.print(f"[red]Error: File not found: {path}[/red]")
            ctx.exit(1)
        console.print(f"[dim]Reviewing: {file_path.name}[/dim]\n")
        return file_path.read_text(encoding="utf-8", errors="replace"), file_path.name

    stdin = click.get_text_stream("stdin")
    if stdin.isatty():
        console.print(USAGE)
        ctx.exit(0)
    console.print("[dim]Reviewing piped input...[/dim]\n")
    return stdin.read(), None


def load_checked_config(ctx: click.Context, model: str | None) -> dict:
    """Load config and exit 1 with a setup hint when the provider key is missing."""
    config_path = (ctx.obj or {}).get("config_path", ".codeflow.yml")
    try:
        config = load_config(config_path, cli_overrides={"model": model})
    except (ValueError, OSError, yaml.YAMLError) as e:
        console.print(f"[red]Error: could not load {config_path}: {e}[/red]")
        ctx.exit(1)
    if not resolve_api_key(config):
        env = api_key_env(config.get("model", "anthropic"))
        console.print(f"[red]Error: {env} environment variable is required.[/red]")
        console.print(f"\n{setup_instruction(config)}")
        ctx.exit(1)
    return config
