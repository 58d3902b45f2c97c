"""Command-line argument parsing for git-branch-flow."""

import argparse

from git_branch_flow.__version__ import __version__
from git_branch_flow.constants import DEFAULT_INTEGRATION_BRANCH, DEFAULT_REMOTE, DEFAULT_STABLE_BRANCH
from git_branch_flow.models.branch import BranchCategory


def _add_category_commands(subparsers) -> None:
    for category in BranchCategory:
        parser = subparsers.add_parser(category.key, help=f"Manage {category.key} branches")
        actions = parser.add_subparsers(dest="action", metavar="ACTION")
        actions.required = True

        start = actions.add_parser("start", help=f"Start a new {category.key} branch")
        start.add_argument("name", help="Short branch name (without prefix)")
        start.add_argument(
            "--base",
            required=category == BranchCategory.SUPPORT,
            help="Branch, tag or commit to start from",
        )

        if category != BranchCategory.SUPPORT:
            finish = actions.add_parser("finish", help=f"Finish a {category.key} branch")
            finish.add_argument("name", nargs="?", help="Short branch name (default: current branch)")
            finish.add_argument("-k", "--keep", action="store_true", help="Keep the branch after finishing")
            if category.policy.uses_tag:
                finish.add_argument("-t", "--tag", dest="tag_name", help="Tag name (skip the prompt)")

        actions.add_parser("list", help=f"List {category.key} branches")

        publish = actions.add_parser("publish", help="Push a branch to the remote")
        publish.add_argument("name", nargs="?", help="Short branch name (default: current branch)")
        publish.add_argument("--remote", default=DEFAULT_REMOTE, help="Remote name (default: origin)")
        publish.add_argument("-u", "--username", help="Username for the remote")
        publish.add_argument("-p", "--password", help="Password or token for the remote")

        track = actions.add_parser("track", help="Fetch a branch from the remote and merge it locally")
        track.add_argument("name", help="Short branch name")
        track.add_argument("--remote", default=DEFAULT_REMOTE, help="Remote name or URL (default: origin)")

        diff = actions.add_parser("diff", help="Show changes against the base branch")
        diff.add_argument("name", nargs="?", help="Short branch name (default: HEAD)")
        diff.add_argument("--color", choices=["auto", "always", "never"], default="auto")

        rebase = actions.add_parser("rebase", help="Rebase a branch onto its base branch")
        rebase.add_argument("name", nargs="?", help="Short branch name (default: current branch)")
        rebase.add_argument("-i", "--interactive", action="store_true", help="Run git's interactive rebase")

        checkout = actions.add_parser("checkout", help="Switch to a branch")
        checkout.add_argument("name", help="Short branch name")

        delete = actions.add_parser("delete", help="Delete a local branch")
        delete.add_argument("name", help="Short branch name")
        delete.add_argument(
            "--no-force",
            dest="force",
            action="store_false",
            help="Refuse to delete a branch that is not merged into its finish target",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-branch-flow",
        description="Branching-workflow automation: feature, release, hotfix, bugfix and support branches",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show each workflow step")
    parser.add_argument("--debug", action="store_true", help="Show debug information for troubleshooting")
    parser.add_argument("--version", action="version", version=f"git-branch-flow {__version__}")
    parser.add_argument("-C", dest="repo_path", default=".", help="Run as if started in this directory")
    parser.add_argument(
        "--no-edit",
        dest="edit_messages",
        action="store_false",
        help="Accept default merge and tag messages without opening an editor",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    init = subparsers.add_parser("init", help="Set up the branching workflow in a repository")
    init.add_argument("path", nargs="?", help="Repository path (default: -C directory)")
    init.add_argument("--stable", default=DEFAULT_STABLE_BRANCH, help="Stable branch name")
    init.add_argument("--integration", default=DEFAULT_INTEGRATION_BRANCH, help="Integration branch name")
    for category in BranchCategory:
        init.add_argument(
            f"--{category.key}-prefix",
            dest=f"{category.key}_prefix",
            default=category.default_prefix,
            help=f"Prefix for {category.key} branches (default: {category.default_prefix})",
        )
    init.add_argument("--versiontag-prefix", dest="versiontag_prefix", default="", help="Prefix for release tags")
    init.add_argument("-f", "--force", action="store_true", help="Overwrite existing workflow settings")

    subparsers.add_parser("config", help="Show the workflow settings")

    _add_category_commands(subparsers)
    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
