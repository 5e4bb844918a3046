"""CLI entry point for prverdict.

Commands:
  review  : run the AI review on a pull request and publish the report
  detect  : show which files would be reviewed and the inferred stack
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.logging import RichHandler

from prverdict_cli.commands.detect import detect_cmd
from prverdict_cli.commands.review import review_cmd


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
    )
    # PyGithub and urllib3 are chatty at DEBUG.
    logging.getLogger("github").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prverdict"),
    prog_name="prverdict",
)
@click.option(
    "--config",
    "config_path",
    default=".prverdict.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRVERDICT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI-powered GitHub pull request reviewer with stack-aware prompts."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(detect_cmd)
