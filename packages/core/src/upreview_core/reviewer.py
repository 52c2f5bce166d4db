"""Review orchestration: Upsource reviews in, AI discussions out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from github import GithubException
from rich.console import Console

from upreview_core.anchor import AnchorError
from upreview_core.config import load_guidelines
from upreview_core.diff.verify import verify_comments
from upreview_core.gh.compare import get_repo, get_review_changes
from upreview_core.models import SEVERITY_HIGH, SEVERITY_LOW, SEVERITY_MEDIUM, ReviewComment
from upreview_core.providers.anthropic import AnthropicReviewer
from upreview_core.providers.openai import OpenAIReviewer
from upreview_core.upsource.client import UpsourceClient, UpsourceError
from upreview_core.upsource.reviews import ReviewTarget, add_review_label, create_discussion, list_reviews

console = Console()
logger = logging.getLogger(__name__)

AGGREGATED_HEADER = "### Low-Medium Priority Comments (AI generated):\n\n"

# post_inline threshold -> severities that may be anchored to a line
_INLINE_SEVERITIES = {
    "high": {SEVERITY_HIGH},
    "mid": {SEVERITY_MEDIUM, SEVERITY_HIGH},
    "low": {SEVERITY_LOW, SEVERITY_MEDIUM, SEVERITY_HIGH},
    "none": set(),
}


@dataclass
class RunSummary:
    """Counts for one pass over the pending reviews."""

    reviews_found: int = 0
    reviews_processed: int = 0
    inline_posted: int = 0
    aggregated_posted: int = 0
    failed: list[str] = field(default_factory=list)


def _get_reviewer(config: dict):
    model = config["model"]
    if model == "anthropic":
        return AnthropicReviewer(
            api_key=config["anthropic_api_key"],
            model=config.get("llm_model"),
            timeout=config.get("llm_timeout_seconds"),
        )
    if model == "openai":
        return OpenAIReviewer(
            api_key=config["openai_api_key"],
            model=config.get("llm_model"),
            base_url=config.get("llm_base_url"),
            timeout=config.get("llm_timeout_seconds"),
        )
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")


def split_comments(
    comments: list[ReviewComment], post_inline: str
) -> tuple[list[ReviewComment], list[ReviewComment]]:
    """Partition comments into (inline, aggregated).

    A comment goes inline only when its severity meets the threshold and its
    line citation survived verification.
    """
    allowed = _INLINE_SEVERITIES.get(post_inline, set())
    inline, aggregated = [], []
    for comment in comments:
        if comment.severity in allowed and comment.has_anchor:
            inline.append(comment)
        else:
            aggregated.append(comment)
    return inline, aggregated


def build_aggregated_discussion(comments: list[ReviewComment]) -> str:
    if not comments:
        return ""
    lines = [AGGREGATED_HEADER]
    for c in comments:
        lines.append(f"**{c.severity.upper()}** {c.file_path}:{c.line_number} {c.comment}\n\n")
    return "".join(lines)


def post_comments(client: UpsourceClient, target: ReviewTarget, comments: list[ReviewComment], config: dict):
    """Post inline discussions, then one aggregated discussion for the rest.

    Returns (inline_posted, aggregated_posted). An inline comment whose
    anchor cannot be placed is moved to the aggregated discussion.
    """
    label = config["reviewed_label"]
    inline, aggregated = split_comments(comments, config["post_inline"])

    posted = 0
    for comment in inline:
        try:
            create_discussion(client, target, comment.comment, label, comment.file_path, comment.line_number)
            posted += 1
        except (AnchorError, UpsourceError) as e:
            logger.warning(
                "Could not anchor comment to %s:%d (%s); adding it to the summary discussion",
                comment.file_path,
                comment.line_number,
                e,
            )
            aggregated.append(comment)

    text = build_aggregated_discussion(aggregated)
    if text:
        create_discussion(client, target, text, label)

    return posted, len(aggregated)


def print_shadow_comments(target: ReviewTarget, comments: list[ReviewComment]) -> None:
    """Print comments to the terminal without posting to Upsource."""
    _severity_color = {"high": "red", "medium": "yellow", "low": "blue"}
    if not comments:
        console.print(f"[yellow]Shadow mode: no comments generated for {target.title}.[/yellow]")
        return
    console.print(f"\n[bold]Shadow review of {target.title} — {len(comments)} comment(s) (not posted)[/bold]\n")
    for c in comments:
        color = _severity_color.get(c.severity, "white")
        where = f"{c.file_path}:{c.line_number}" if c.has_anchor else (c.file_path or "(general)")
        console.print(f"[bold cyan]{where}[/bold cyan]  [{color}]{c.severity.upper()}[/{color}]")
        console.print(f"  {c.comment}")
        console.print()


def review_one(repo, reviewer, target: ReviewTarget, guidelines: str, config: dict) -> list[ReviewComment]:
    """Ask the model to review one branch and return its verified comments."""
    changes, commits = get_review_changes(repo, target.default_branch, target.branch)

    max_chars = config.get("max_chars_per_diff", 100000)
    prompt_changes = changes
    if len(prompt_changes) > max_chars:
        prompt_changes = prompt_changes[:max_chars] + "\n... [diff truncated]"

    comments = reviewer.review(prompt_changes, commits, guidelines, config["max_comments_per_review"])
    return verify_comments(changes, comments)


def run_once(
    config: dict,
    client: UpsourceClient,
    reviewer=None,
    shadow: bool = False,
) -> RunSummary:
    """Process every pending review once.

    A failure on one review is logged and does not stop the others.
    """
    reviewer = reviewer if reviewer is not None else _get_reviewer(config)
    guidelines = load_guidelines(config)
    summary = RunSummary()

    targets = list_reviews(client, config["upsource_query"], config["reviewed_label"])
    summary.reviews_found = len(targets)
    console.print(f"Found {len(targets)} review(s) to process.")

    repos: dict = {}
    for target in targets:
        console.print(f"\nReviewing [bold]{target.title}[/bold] ({target.default_branch} → {target.branch})")
        try:
            if target.repo_slug not in repos:
                repos[target.repo_slug] = get_repo(target.repo_slug, token=config["github_token"])
            comments = review_one(repos[target.repo_slug], reviewer, target, guidelines, config)

            if shadow:
                print_shadow_comments(target, comments)
                summary.reviews_processed += 1
                continue

            # Label first so a failed post is not retried on the next poll.
            add_review_label(client, target, config["reviewed_label"])

            if not comments:
                console.print("  [green]No issues found.[/green]")
                summary.reviews_processed += 1
                continue

            inline, aggregated = post_comments(client, target, comments, config)
            summary.inline_posted += inline
            summary.aggregated_posted += aggregated
            summary.reviews_processed += 1
            console.print(f"  {inline} inline comment(s), {aggregated} in the summary discussion.")
        except (GithubException, UpsourceError, ValueError) as e:
            logger.error("Error processing review %s: %s", target.title, e)
            console.print(f"  [red]Failed: {e}[/red]")
            summary.failed.append(target.title)

    return summary
