"""Replaying a workflow branch onto its base"""

import subprocess
from enum import Enum
from typing import List

import git
from git.objects.util import altz_to_utctz_str

from git_branch_flow.exceptions import EngineError, MergeConflictError
from git_branch_flow.services.git.operations import GitOperations
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)


class RebaseMode(Enum):
    """How the commits are replayed."""
    REPLAY = "replay"            # commit by commit, driven from here
    INTERACTIVE = "interactive"  # hand over to `git rebase -i`


class Rebaser:
    """Moves a branch's own commits on top of another branch's tip."""

    def __init__(self, ops: GitOperations):
        self.ops = ops

    def commits_to_replay(self, branch: str, onto: str) -> List[git.Commit]:
        """Commits on `branch` not on `onto`, oldest first, merges skipped."""
        repo = self.ops.repo
        return list(repo.iter_commits(f"{onto}..{branch}", reverse=True, no_merges=True))

    def rebase(self, branch: str, onto: str, mode: RebaseMode = RebaseMode.REPLAY) -> str:
        """Rebase `branch` onto `onto` and leave `branch` checked out.

        Returns:
            The new tip of `branch`

        Raises:
            MergeConflictError: a commit did not apply; `branch` is unchanged
        """
        self.ops.ensure_clean(branch)
        self.ops.get_head(branch)
        onto_tip = self.ops.tip(onto)

        if mode == RebaseMode.INTERACTIVE:
            return self._interactive(branch, onto)

        commits = self.commits_to_replay(branch, onto)
        if not commits:
            logger.info(f"Nothing to replay: {branch} has no commits beyond {onto}")
            self.ops.checkout(branch)
            return self.ops.tip(branch).hexsha

        repo = self.ops.repo
        original = self.ops.tip(branch)
        logger.info(f"Replaying {len(commits)} commit(s) of {branch} onto {onto} ({onto_tip.hexsha[:7]})")
        repo.git.checkout("--detach", onto_tip.hexsha)

        new_tip = onto_tip
        for commit in commits:
            new_tip = self._replay(commit, new_tip, branch)

        self.ops.set_branch_tip(branch, new_tip, f"rebase onto {onto}")
        self.ops.checkout(branch)
        self.ops.cleanup_state()
        logger.info(f"Rebased {branch}: {original.hexsha[:7]} -> {new_tip.hexsha[:7]}")
        return new_tip.hexsha

    def _replay(self, commit: git.Commit, parent: git.Commit, branch: str) -> git.Commit:
        repo = self.ops.repo
        status, _, stderr = repo.git.cherry_pick(
            "--no-commit", commit.hexsha, with_extended_output=True, with_exceptions=False
        )
        conflicts = self.ops.unmerged_paths()
        if conflicts or status != 0:
            self._abort(branch)
            if conflicts:
                raise MergeConflictError(branch, f"{parent.hexsha[:7]} (replaying {commit.hexsha[:7]})", conflicts)
            raise EngineError(
                "rebase",
                git.exc.GitCommandError(["git", "cherry-pick", commit.hexsha], status, stderr),
                branch=branch,
            )

        tree = repo.tree(repo.git.write_tree())
        if tree == parent.tree:
            logger.debug(f"Skipping {commit.hexsha[:7]}: already applied")
            return parent
        replayed = git.Commit.create_from_tree(
            repo, tree, commit.message, parent_commits=[parent], head=False,
            author=commit.author,
            author_date=f"{commit.authored_date} {altz_to_utctz_str(commit.author_tz_offset)}",
        )
        repo.head.set_commit(replayed)
        logger.debug(f"Replayed {commit.hexsha[:7]} as {replayed.hexsha[:7]}")
        return replayed

    def _abort(self, branch: str) -> None:
        repo = self.ops.repo
        repo.git.reset("--hard", with_exceptions=False)
        self.ops.cleanup_state()
        self.ops.checkout(branch)

    def _interactive(self, branch: str, onto: str) -> str:
        """Run `git rebase -i` attached to the terminal so the editor works."""
        result = subprocess.run(["git", "rebase", "-i", onto, branch], cwd=self.ops.repo.working_tree_dir)
        if result.returncode != 0:
            conflicts = self.ops.unmerged_paths()
            if conflicts:
                raise MergeConflictError(branch, onto, conflicts)
            raise EngineError(
                "rebase",
                git.exc.GitCommandError(["git", "rebase", "-i", onto, branch], result.returncode),
                branch=branch,
            )
        return self.ops.tip(branch).hexsha
