"""Colored unified-diff rendering."""

from enum import Enum
from typing import Iterable, Iterator, Optional

RESET = "\033[0m"


class LineOrigin(Enum):
    """What a line of a unified patch represents."""
    FILE_HEADER = "file-header"
    HUNK_HEADER = "hunk-header"
    ADDITION = "addition"
    DELETION = "deletion"
    CONTEXT = "context"


ORIGIN_COLORS = {
    LineOrigin.FILE_HEADER: "\033[1m",   # Bold
    LineOrigin.HUNK_HEADER: "\033[36m",  # Cyan
    LineOrigin.ADDITION: "\033[32m",     # Green
    LineOrigin.DELETION: "\033[31m",     # Red
    LineOrigin.CONTEXT: None,            # Uncolored
}


def classify_line(line: str, in_hunk: bool) -> LineOrigin:
    """
    Work out the origin of a patch line.

    Args:
        line: One line of unified diff output
        in_hunk: Whether a hunk header has been seen since the last file header

    Returns:
        The line's origin
    """
    if line.startswith("@@"):
        return LineOrigin.HUNK_HEADER
    if not in_hunk or line.startswith("diff --git "):
        return LineOrigin.FILE_HEADER
    if line.startswith("+"):
        return LineOrigin.ADDITION
    if line.startswith("-"):
        return LineOrigin.DELETION
    return LineOrigin.CONTEXT


def colorize_lines(lines: Iterable[str], color: bool = True) -> Iterator[str]:
    """
    Render patch lines, switching escape sequences only when the color changes.

    Args:
        lines: Unified diff lines without trailing newlines
        color: Emit ANSI escape sequences

    Yields:
        Rendered lines; the last one ends with a reset when a color is active
    """
    in_hunk = False
    current: Optional[str] = None
    pending: Optional[str] = None
    for line in lines:
        if line.startswith("diff --git "):
            in_hunk = False
        origin = classify_line(line, in_hunk)
        if origin == LineOrigin.HUNK_HEADER:
            in_hunk = True

        if pending is not None:
            yield pending
        if not color:
            pending = line
            continue

        wanted = ORIGIN_COLORS[origin]
        prefix = ""
        if wanted != current:
            prefix = wanted if wanted is not None else RESET
            if wanted is not None and current is not None:
                prefix = RESET + wanted
            current = wanted
        pending = f"{prefix}{line}"

    if pending is not None:
        yield pending + RESET if current is not None else pending
