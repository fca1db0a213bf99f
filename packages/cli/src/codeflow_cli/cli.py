"""CLI entry point for codeflow.

Commands:
  review  : review a file or piped code and print the report
  fix     : review, apply selected fixes, and optionally re-review the result
"""

from __future__ import annotations

import importlib.metadata
import logging

import click

from codeflow_cli.commands.fix import fix_cmd
from codeflow_cli.commands.review import review_cmd


@click.group()
@click.version_option(
    version=importlib.metadata.version("codeflow"),
    prog_name="codeflow",
)
@click.option(
    "--config",
    "config_path",
    default=".codeflow.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="CODEFLOW_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log pipeline details to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI code review with selectable, iterative fixes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # Keep SDK transport noise out of --verbose output.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(fix_cmd)
