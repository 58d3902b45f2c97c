"""Branch listing, configuration and merge outcome formatting."""

from rich.table import Table

from git_branch_flow.config import WorkflowConfig
from git_branch_flow.constants import SYMBOL_CURRENT_BRANCH, SYMBOL_OTHER_BRANCH
from git_branch_flow.models.branch import BranchListing
from git_branch_flow.models.merge import Conflicted, FastForwarded, Merged, MergeOutcome, UpToDate


def format_branch_listing(listing: BranchListing) -> str:
    """
    Format one listed branch with the current-branch marker.

    Args:
        listing: Branch name and whether it is checked out

    Returns:
        "* name" for the current branch, "  name" otherwise
    """
    marker = SYMBOL_CURRENT_BRANCH if listing.is_current else SYMBOL_OTHER_BRANCH
    return f"{marker} {listing.name}"


def format_config_table(config: WorkflowConfig) -> Table:
    """
    Build a table of the persisted workflow settings.

    Args:
        config: Loaded workflow configuration

    Returns:
        Rich table with one row per config key
    """
    table = Table(title="Workflow configuration")
    table.add_column("Key")
    table.add_column("Value")
    for key, value in config.to_entries().items():
        table.add_row(key, value if value else "[dim](empty)[/dim]")
    return table


def format_outcome(outcome: MergeOutcome, source: str, target: str) -> str:
    """Describe a merge outcome in one line of rich markup."""
    if isinstance(outcome, FastForwarded):
        return f"[green]Fast-forwarded {target} to {outcome.new_tip[:7]}[/green]"
    if isinstance(outcome, Merged):
        return f"[green]Merged {source} into {target} ({outcome.new_commit[:7]})[/green]"
    if isinstance(outcome, Conflicted):
        return f"[red]Conflicts merging {source} into {target}: {', '.join(outcome.paths)}[/red]"
    if isinstance(outcome, UpToDate):
        return f"[dim]{target} already contains {source}[/dim]"
    return str(outcome)
