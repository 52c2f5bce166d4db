"""Render comparison records as the diff and commit-log text sent to the model."""

from __future__ import annotations

from collections.abc import Iterable

from upreview_core.models import ChangeRecord, CommitRecord


def _file_header(change: ChangeRecord) -> str:
    if change.is_new:
        return f"--- /dev/null\n+++ b/{change.new_path}\n"
    if change.is_deleted:
        return f"--- a/{change.old_path}\n+++ /dev/null\n"
    # Renames get the same header shape as a plain modification.
    return f"--- a/{change.old_path}\n+++ b/{change.new_path}\n"


def build_changes_text(changes: Iterable[ChangeRecord]) -> str:
    """Concatenate file changes into one unified-diff blob, in input order.

    Each record becomes its ``---``/``+++`` header, the raw hunk body and a
    blank-line separator.
    """
    parts = []
    for change in changes:
        parts.append(_file_header(change))
        parts.append(change.diff_body)
        parts.append("\n\n")
    return "".join(parts)


def build_commits_text(commits: Iterable[CommitRecord]) -> str:
    """Render commits as a plain log: ``Commit <id>:`` then the message."""
    return "".join(f"Commit {commit.id}:\n{commit.message}\n\n" for commit in commits)
