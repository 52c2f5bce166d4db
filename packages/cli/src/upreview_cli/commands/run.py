"""run command: review pending Upsource reviews."""

from __future__ import annotations

import time

import click
from rich.console import Console

from upreview_core.config import ConfigError, load_config, validate_config
from upreview_core.reviewer import RunSummary, run_once
from upreview_core.upsource.client import UpsourceClient, UpsourceError

console = Console()


def _print_summary(summary: RunSummary) -> None:
    console.print(
        f"\n[bold]Processed {summary.reviews_processed}/{summary.reviews_found} review(s)[/bold] · "
        f"{summary.inline_posted} inline · {summary.aggregated_posted} in summary discussions"
    )
    if summary.failed:
        console.print(f"[red]Failed: {', '.join(summary.failed)}[/red]")


@click.command("run")
@click.option("--once", is_flag=True, help="Process pending reviews once and exit instead of polling.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print review comments without posting or labelling.",
)
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option(
    "--guidelines",
    "guidelines_path",
    default=None,
    help="Path to a Markdown guidelines file. Overrides config file.",
)
@click.pass_context
def run_cmd(ctx: click.Context, once: bool, shadow: bool, model: str | None, guidelines_path: str | None):
    """Review open Upsource reviews and post AI comments.

    \b
    Required environment variables:
      UPSOURCE_USERNAME    Upsource user that posts discussions
      UPSOURCE_PASSWORD    Password for that user
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      ANTHROPIC_API_KEY    Required when using --model anthropic
      OPENAI_API_KEY       Required when using --model openai
    """
    from upreview_cli.auth import resolve_github_token

    config_path = ctx.obj.get("config_path", ".upreview.yml") if ctx.obj else ".upreview.yml"
    config = load_config(config_path, cli_overrides={"model": model, "guidelines": guidelines_path})
    config["github_token"] = resolve_github_token()

    try:
        validate_config(config)
    except ConfigError as e:
        raise click.UsageError(str(e))

    client = UpsourceClient(config["upsource_url"], config["upsource_username"], config["upsource_password"])
    try:
        while True:
            try:
                summary = run_once(config, client, shadow=shadow)
                _print_summary(summary)
            except UpsourceError as e:
                console.print(f"[red]Could not list reviews: {e}[/red]")
            if once:
                break
            interval = config["poll_interval_seconds"]
            console.print(f"[dim]Sleeping {interval}s before the next poll.[/dim]")
            time.sleep(interval)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped.[/yellow]")
    finally:
        client.close()
