"""Convert a 1-based line number into the offset range a discussion anchor needs."""

from __future__ import annotations

from upreview_core.models import Anchor


class AnchorError(ValueError):
    """The requested line cannot carry an inline anchor."""


class InvalidLineError(AnchorError):
    pass


class LineOutOfRangeError(AnchorError):
    pass


class EmptyLineError(AnchorError):
    pass


def resolve_line_range(file_text: str | bytes, line: int) -> Anchor:
    """Return the exclusive offset range of ``line`` within ``file_text``.

    Offsets are in the units of the input: code points for ``str``, bytes for
    ``bytes``. Each preceding line contributes its length plus one for the
    newline that separated it.
    """
    if line <= 0:
        raise InvalidLineError(f"line number must be positive: {line}")

    separator = b"\n" if isinstance(file_text, bytes) else "\n"
    lines = file_text.split(separator)
    if line > len(lines):
        raise LineOutOfRangeError(f"line {line} does not exist in a file with {len(lines)} lines")

    target = lines[line - 1]
    if not target:
        raise EmptyLineError(f"line {line} is empty")

    start = sum(len(previous) + 1 for previous in lines[: line - 1])
    return Anchor(start_offset=start, end_offset=start + len(target))
