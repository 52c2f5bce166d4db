"""Records passed between the Git host, the model and the review tool.

Kept free of any client imports so the diff and anchor helpers can be used
on plain strings without pulling in PyGithub or httpx.
"""

from __future__ import annotations

from dataclasses import dataclass

SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"
SEVERITIES = (SEVERITY_LOW, SEVERITY_MEDIUM, SEVERITY_HIGH)

# New-file path -> new-file line numbers that were added by the diff.
LineIndex = dict[str, set[int]]


@dataclass
class ChangeRecord:
    """One file's change in a branch comparison."""

    old_path: str
    new_path: str
    diff_body: str
    is_new: bool = False
    is_deleted: bool = False
    is_renamed: bool = False


@dataclass
class CommitRecord:
    id: str
    message: str


@dataclass
class ReviewComment:
    """A single comment emitted by the model.

    ``line_verified`` is set by verify_comments(); until then the line number
    is only the model's claim.
    """

    file_path: str
    line_number: int
    comment: str
    severity: str = SEVERITY_LOW
    line_verified: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> ReviewComment:
        """Build a comment from one element of the model's JSON array."""
        severity = str(data.get("severity") or SEVERITY_LOW).lower()
        if severity not in SEVERITIES:
            severity = SEVERITY_LOW
        try:
            line_number = int(data.get("lineNumber") or 0)
        except (TypeError, ValueError):
            line_number = 0
        return cls(
            file_path=str(data.get("filePath") or ""),
            line_number=line_number,
            comment=str(data.get("comment") or ""),
            severity=severity,
        )

    @property
    def has_anchor(self) -> bool:
        """True when the comment can be attached to a specific line."""
        return self.line_verified and self.line_number > 0 and bool(self.file_path)


@dataclass(frozen=True)
class Anchor:
    """Exclusive ``[start_offset, end_offset)`` range within one file revision."""

    start_offset: int
    end_offset: int
