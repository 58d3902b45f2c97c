"""Command-line entry point for git-branch-flow"""

import sys
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TextColumn, TransferSpeedColumn

from git_branch_flow.cli.args import parse_args
from git_branch_flow.config import RunOptions, WorkflowConfig
from git_branch_flow.constants import EXIT_CONFLICT, EXIT_ERROR, EXIT_OK
from git_branch_flow.core import GitFlow, init_repository
from git_branch_flow.exceptions import GitFlowError, MergeConflictError
from git_branch_flow.formatters import format_branch_listing, format_config_table, format_outcome
from git_branch_flow.models.branch import BranchCategory
from git_branch_flow.models.merge import MergeStep, TagStep
from git_branch_flow.services.editor import ConsoleTagNamePrompt, FixedTagName
from git_branch_flow.services.git import Credentials, RebaseMode
from git_branch_flow.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


@contextmanager
def transfer_progress():
    """Rich progress bar fed by the synchronous transfer callback."""
    with Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed:.0f}"),
        TransferSpeedColumn(),
        console=console,
        transient=True,
    ) as progress:
        tasks = {}

        def callback(operation, current, total, message):
            if operation not in tasks:
                tasks[operation] = progress.add_task(operation, total=total)
            progress.update(tasks[operation], completed=current, total=total)

        yield callback


def _init(args) -> int:
    config = WorkflowConfig(
        stable_branch=args.stable,
        integration_branch=args.integration,
        prefixes={category: getattr(args, f"{category.key}_prefix") for category in BranchCategory},
        version_tag_prefix=args.versiontag_prefix,
    )
    path = Path(args.path) if args.path else Path(args.repo_path)
    config = init_repository(path, config, force=args.force)
    console.print(f"[green]Initialized workflow in {path.resolve()}[/green]")
    console.print(format_config_table(config))
    return EXIT_OK


def _finish(flow: GitFlow, category: BranchCategory, args) -> int:
    report = flow.finish(category, args.name, keep_branch=args.keep)
    for step, result in report.completed:
        if isinstance(step, MergeStep):
            console.print(format_outcome(result, step.source, step.target))
        elif isinstance(step, TagStep):
            console.print(f"[green]Tagged {step.target} as {result}[/green]")
        else:
            console.print(f"[green]Deleted {result}[/green]")
    console.print(f"[bold green]Finished {report.branch}[/bold green]")
    return EXIT_OK


def _run_category(flow: GitFlow, category: BranchCategory, args) -> int:
    action = args.action
    if action == "start":
        qualified = flow.start(category, args.name, args.base)
        console.print(f"[green]Switched to a new branch '{qualified}'[/green]")
    elif action == "finish":
        return _finish(flow, category, args)
    elif action == "list":
        listed = False
        for listing in flow.list(category):
            console.print(format_branch_listing(listing), markup=False, highlight=False)
            listed = True
        if not listed:
            console.print(f"[dim]No {category} branches exist[/dim]")
    elif action == "publish":
        credentials = Credentials(args.username, args.password or "") if args.username else None
        with transfer_progress() as callback:
            qualified = flow.publish(category, args.name, credentials, args.remote, callback)
        console.print(f"[green]Published '{qualified}' to {args.remote}[/green]")
    elif action == "track":
        with transfer_progress() as callback:
            outcome = flow.track(category, args.name, args.remote, callback)
        qualified = flow.model.resolve(category, args.name)
        console.print(format_outcome(outcome, f"{args.remote}/{qualified}", str(qualified)))
    elif action == "diff":
        color = None if args.color == "auto" else args.color == "always"
        flow.write_diff(sys.stdout, category, args.name, color=color)
    elif action == "rebase":
        mode = RebaseMode.INTERACTIVE if args.interactive else RebaseMode.REPLAY
        tip = flow.rebase(category, args.name, mode)
        console.print(f"[green]Rebased onto {flow.model.diff_base_for(category)} ({tip[:7]})[/green]")
    elif action == "checkout":
        qualified = flow.checkout(category, args.name)
        console.print(f"[green]Switched to branch '{qualified}'[/green]")
    elif action == "delete":
        qualified = flow.delete(category, args.name, force=args.force)
        console.print(f"[green]Deleted branch '{qualified}'[/green]")
    return EXIT_OK


def run(args) -> int:
    if args.command == "init":
        return _init(args)

    options = RunOptions(verbose=args.verbose, debug=args.debug, edit_messages=args.edit_messages)
    tag_name = getattr(args, "tag_name", None)
    tag_prompt = FixedTagName(tag_name) if tag_name or not sys.stdin.isatty() else ConsoleTagNamePrompt()

    with GitFlow(args.repo_path, options, tag_prompt=tag_prompt) as flow:
        if args.command == "config":
            console.print(format_config_table(flow.config))
            return EXIT_OK
        return _run_category(flow, BranchCategory.from_key(args.command), args)


def main(argv=None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)
    try:
        return run(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return EXIT_ERROR
    except MergeConflictError as e:
        console.print(f"[red]{escape(str(e))}[/red]", highlight=False, soft_wrap=True)
        console.print("[yellow]Resolve the conflicts, commit, then run finish again.[/yellow]")
        return EXIT_CONFLICT
    except (GitFlowError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False, soft_wrap=True)
        if args.debug:
            console.print_exception()
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
