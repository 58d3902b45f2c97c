"""Formatting utilities for git-branch-flow.

- diff: colored unified-diff rendering
- branch: branch listing and config display
"""

from .diff import LineOrigin, classify_line, colorize_lines

from .branch import (
    format_branch_listing,
    format_config_table,
    format_outcome,
)

__all__ = [
    # Diff
    "LineOrigin",
    "classify_line",
    "colorize_lines",
    # Branch
    "format_branch_listing",
    "format_config_table",
    "format_outcome",
]
