"""
Index of new-file line numbers that a review comment may legitimately cite.

The parser walks unified-diff text one line at a time and moves between three
states:

    NoFile ──"+++ b/path"──▶ AwaitingHunk(path) ──"@@ ... +N @@"──▶ InHunk(path, N)
      ▲                                                              │
      └──────────── "diff --git" or "+++ /dev/null" ◀────────────────┘

Only ``+`` lines inside a hunk are recorded. Context lines advance the
new-file counter, removed lines do not. Anything the parser does not
recognise is skipped, so truncated or malformed diffs yield a smaller index
rather than an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from upreview_core.models import LineIndex

_HUNK_HEADER_RE = re.compile(r"@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")

_DIFF_GIT_PREFIX = "diff --git "
_NEW_FILE_PREFIX = "+++ "
_HUNK_PREFIX = "@@ "
_DEV_NULL = "/dev/null"


def normalize_diff_path(path: str) -> str:
    """Strip surrounding whitespace and one ``a/`` then one ``b/`` prefix.

    Casing, ``./`` prefixes and alternate separators are left alone: a path
    that differs from the diff header in any of those ways does not match.
    """
    path = path.strip()
    path = path.removeprefix("a/")
    path = path.removeprefix("b/")
    return path


@dataclass(frozen=True)
class NoFile:
    """No new-side file is active; body lines are ignored."""


@dataclass(frozen=True)
class AwaitingHunk:
    """A ``+++`` header named a file but no hunk header has been seen yet."""

    path: str


@dataclass(frozen=True)
class InHunk:
    path: str
    next_line: int


ParserState = Union[NoFile, AwaitingHunk, InHunk]


class LineIndexParser:
    """Incremental parser; feed() lines in order, then read ``index``."""

    def __init__(self) -> None:
        self.state: ParserState = NoFile()
        self.index: LineIndex = {}

    def feed(self, line: str) -> None:
        if line.startswith(_DIFF_GIT_PREFIX):
            self.state = NoFile()
        elif line.startswith(_NEW_FILE_PREFIX):
            self._on_new_file_header(line)
        elif line.startswith(_HUNK_PREFIX):
            self._on_hunk_header(line)
        else:
            self._on_body_line(line)

    def _on_new_file_header(self, line: str) -> None:
        path = line[len(_NEW_FILE_PREFIX) :].strip()
        if path == _DEV_NULL:
            self.state = NoFile()
            return
        self.state = AwaitingHunk(normalize_diff_path(path))

    def _on_hunk_header(self, line: str) -> None:
        if isinstance(self.state, NoFile):
            return
        match = _HUNK_HEADER_RE.search(line)
        if match is None:
            # Unparseable header: keep whatever state we were in.
            return
        start = int(match.group(1))
        if start == 0:
            # "+0,0": the new side of this hunk is empty.
            self.state = AwaitingHunk(self.state.path)
        else:
            self.state = InHunk(self.state.path, start)

    def _on_body_line(self, line: str) -> None:
        state = self.state
        if not isinstance(state, InHunk) or not line:
            return
        marker = line[0]
        if marker == "+":
            self.index.setdefault(state.path, set()).add(state.next_line)
            self.state = InHunk(state.path, state.next_line + 1)
        elif marker == " ":
            self.state = InHunk(state.path, state.next_line + 1)
        # "-" lines and "\ No newline at end of file" leave the counter alone.


def build_line_index(diff_text: str) -> LineIndex:
    """Map each new-side file path in ``diff_text`` to its added line numbers."""
    parser = LineIndexParser()
    for line in diff_text.split("\n"):
        parser.feed(line)
    return parser.index
