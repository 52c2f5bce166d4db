from __future__ import annotations

import logging
from urllib.parse import urlparse

from github import Github

from upreview_core.diff.assemble import build_changes_text, build_commits_text
from upreview_core.models import ChangeRecord, CommitRecord

logger = logging.getLogger(__name__)


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def parse_repo_slug(remote: str) -> str:
    """Return ``owner/name`` for a git remote URL.

    Accepts https and ssh URLs, scp-like ``git@host:owner/name.git`` remotes
    and bare ``host/owner/name`` paths. Everything but the last path segment
    is the owner, so nested groups are kept intact.
    """
    if not remote:
        raise ValueError("empty remote")

    remote = remote.rstrip("/").removesuffix(".git")

    if ":" in remote and "://" not in remote:
        path = remote.split(":", 1)[1]
        if not path:
            raise ValueError(f"invalid scp-like remote: {remote!r}")
    else:
        parsed = urlparse(remote)
        if parsed.scheme and parsed.path:
            path = parsed.path
        elif "/" in remote[:-1]:
            path = remote.split("/", 1)[1]
        else:
            raise ValueError(f"cannot parse remote: {remote!r}")

    path = path.strip("/").removesuffix(".git").strip("/")
    segments = [s for s in path.split("/") if s]
    if len(segments) < 2:
        raise ValueError(f"path {path!r} does not contain owner and repository name")

    return "/".join(segments)


def change_record_from_file(file) -> ChangeRecord:
    """Map a file entry from GitHub's compare API to a ChangeRecord."""
    status = file.status
    old_path = file.previous_filename or file.filename
    return ChangeRecord(
        old_path=old_path,
        new_path=file.filename,
        diff_body=file.patch or "",
        is_new=status == "added",
        is_deleted=status == "removed",
        is_renamed=status == "renamed",
    )


def get_review_changes(repo, base: str, head: str) -> tuple[str, str]:
    """Compare ``base`` with ``head`` and return (diff text, commit log text)."""
    logger.info("Comparing %s...%s in %s", base, head, repo.full_name)
    comparison = repo.compare(base, head)

    files = list(comparison.files)
    if not files:
        raise ValueError(f"No changes found between {base!r} and {head!r}.")

    changes = [change_record_from_file(f) for f in files]
    commits = [CommitRecord(id=c.sha, message=c.commit.message) for c in comparison.commits]
    return build_changes_text(changes), build_commits_text(commits)
