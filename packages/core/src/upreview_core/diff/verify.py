from __future__ import annotations

import logging

from upreview_core.diff.line_index import build_line_index, normalize_diff_path
from upreview_core.models import ReviewComment

logger = logging.getLogger(__name__)


def verify_comments(diff_text: str, comments: list[ReviewComment]) -> list[ReviewComment]:
    """Check each comment's cited line against the lines added in ``diff_text``.

    Comments are updated in place and the same list is returned. A citation
    that cannot be confirmed is cleared to line 0 so the comment is posted
    without an anchor instead of being dropped.
    """
    if not diff_text or not comments:
        return comments

    index = build_line_index(diff_text)

    for comment in comments:
        comment.line_verified = False
        if comment.line_number <= 0:
            comment.line_number = 0
            continue

        lines = index.get(normalize_diff_path(comment.file_path))
        if lines is not None and comment.line_number in lines:
            comment.line_verified = True
            continue

        logger.debug("Line %d of %s is not an added line in the diff", comment.line_number, comment.file_path)
        comment.line_number = 0

    return comments
