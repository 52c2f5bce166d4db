from upreview_core.diff.assemble import build_changes_text, build_commits_text
from upreview_core.diff.line_index import build_line_index, normalize_diff_path
from upreview_core.diff.verify import verify_comments

__all__ = [
    "build_changes_text",
    "build_commits_text",
    "build_line_index",
    "normalize_diff_path",
    "verify_comments",
]
