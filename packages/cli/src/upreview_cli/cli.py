"""CLI entry point for upreview.

Commands:
  run   review pending Upsource reviews once or on a polling loop
"""

from __future__ import annotations

import importlib.metadata
import logging

import click

from upreview_cli.commands.run import run_cmd


@click.group()
@click.version_option(
    version=importlib.metadata.version("upreview"),
    prog_name="upreview",
)
@click.option(
    "--config",
    "config_path",
    default=".upreview.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="UPREVIEW_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI code reviewer for Upsource reviews backed by GitHub branches."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(run_cmd)
