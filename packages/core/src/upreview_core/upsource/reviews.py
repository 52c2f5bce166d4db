"""Upsource review discovery, labelling and discussion posting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from upreview_core.anchor import resolve_line_range
from upreview_core.gh.compare import parse_repo_slug
from upreview_core.upsource.client import UpsourceClient, UpsourceError

logger = logging.getLogger(__name__)

MARKDOWN_MARKUP = "markdown"


@dataclass
class ReviewTarget:
    """An Upsource review paired with the Git branches it compares."""

    review_id: dict  # {"projectId": ..., "reviewId": ...}
    title: str
    branch: str
    default_branch: str
    repo_slug: str
    files: list[dict] = field(default_factory=list)  # FileInRevision entries

    @property
    def project_id(self) -> str:
        return self.review_id["projectId"]


def _has_label(review: dict, label: str) -> bool:
    return any(lbl.get("name") == label for lbl in review.get("labels") or [])


def _build_target(client: UpsourceClient, review: dict) -> ReviewTarget:
    review_id = review["reviewId"]
    project_id = review_id["projectId"]

    links = client.get_project_vcs_links(project_id)
    urls = links[0].get("url", []) if links else []
    if not urls:
        raise UpsourceError(f"project {project_id} has no VCS link")

    info = client.get_project_info(project_id)
    file_changes = client.get_review_file_changes(review_id)

    return ReviewTarget(
        review_id=review_id,
        title=review.get("title", ""),
        branch=review["branch"][0],
        default_branch=info.get("defaultBranch", ""),
        repo_slug=parse_repo_slug(urls[0]),
        files=[change["file"] for change in file_changes if change.get("file")],
    )


def list_reviews(client: UpsourceClient, query: str, reviewed_label: str) -> list[ReviewTarget]:
    """Return reviews matching ``query`` that have a branch and no reviewed label."""
    targets = []
    for review in client.get_reviews(query):
        title = review.get("title", "")
        if not review.get("branch"):
            logger.info("Skipping review %s because it has no branch", title)
            continue
        if _has_label(review, reviewed_label):
            logger.info("Skipping review %s already AI-reviewed", title)
            continue
        try:
            targets.append(_build_target(client, review))
        except (UpsourceError, ValueError) as e:
            logger.warning("Skipping review %s: %s", title, e)
    return targets


def add_review_label(client: UpsourceClient, target: ReviewTarget, label: str) -> None:
    client.add_review_label(target.project_id, target.review_id, label)


def _find_file(target: ReviewTarget, file_path: str) -> dict | None:
    for file in target.files:
        if file.get("fileName") in ("/" + file_path, file_path):
            return file
    return None


def _anchor_for_line(client: UpsourceClient, file: dict, line: int) -> dict:
    text = client.get_file_content(file)
    anchor = resolve_line_range(text, line)
    return {
        "revisionId": file["revisionId"],
        "fileId": file["fileName"],
        "range": {"startOffset": anchor.start_offset, "endOffset": anchor.end_offset},
    }


def create_discussion(
    client: UpsourceClient,
    target: ReviewTarget,
    text: str,
    label: str,
    file_path: str = "",
    line: int = 0,
) -> None:
    """Post a discussion on the review, anchored to ``file_path:line`` when given.

    Raises UpsourceError when the file is not part of the review and
    AnchorError when the line cannot carry an anchor.
    """
    anchor: dict = {}
    if file_path:
        file = _find_file(target, file_path)
        if file is None:
            raise UpsourceError(f"file {file_path} not found in review {target.title}")
        anchor = _anchor_for_line(client, file, line)

    client.create_discussion(
        {
            "anchor": anchor,
            "reviewId": target.review_id,
            "text": text,
            "projectId": target.project_id,
            "markupType": MARKDOWN_MARKUP,
            "labels": [{"name": label}],
        }
    )
