"""Merge strategy selection and execution"""

from typing import Optional

import git

from git_branch_flow.constants import MERGE_MSG_FILE
from git_branch_flow.exceptions import EngineError, GitFlowError
from git_branch_flow.models.merge import (
    Conflicted,
    FastForwarded,
    Merged,
    MergeOutcome,
    MergeStrategy,
    UpToDate,
)
from git_branch_flow.services.editor import DefaultMessageEditor, MessageEditor
from git_branch_flow.services.git.operations import GitOperations
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)


class MergeStrategist:
    """Decides between fast-forward and three-way merges and performs them."""

    def __init__(self, ops: GitOperations, editor: Optional[MessageEditor] = None):
        self.ops = ops
        self.editor = editor or DefaultMessageEditor()

    def is_up_to_date(self, ours: git.Commit, theirs: git.Commit) -> bool:
        """`ours` already contains every commit of `theirs`."""
        return ours == theirs or self.ops.is_ancestor(theirs, ours)

    def decide(self, our_branch: str, their_branch: str, allow_fast_forward: bool = True) -> MergeStrategy:
        """Pick the strategy for merging `their_branch` into `our_branch`.

        Fast-forward only when allowed and `our_branch` is a strict
        ancestor of `their_branch`.
        """
        ours = self.ops.tip(our_branch)
        theirs = self.ops.tip(their_branch)
        return self._decide(ours, theirs, allow_fast_forward)

    def _decide(self, ours: git.Commit, theirs: git.Commit, allow_fast_forward: bool) -> MergeStrategy:
        if allow_fast_forward and ours != theirs and self.ops.is_ancestor(ours, theirs):
            return MergeStrategy.FAST_FORWARD
        return MergeStrategy.THREE_WAY

    def merge(
        self,
        our_branch: str,
        their_branch: str,
        message: str,
        allow_fast_forward: bool = True,
        their_tip: Optional[git.Commit] = None,
    ) -> MergeOutcome:
        """Bring `their_branch` (or an explicit `their_tip`) into `our_branch`.

        Leaves `our_branch` checked out unless the merge conflicted, in which
        case the conflicted merge is left in the working tree.
        """
        ours = self.ops.tip(our_branch)
        theirs = their_tip if their_tip is not None else self.ops.tip(their_branch)

        if self.is_up_to_date(ours, theirs):
            logger.info(f"{our_branch} already contains {their_branch}")
            return UpToDate()

        strategy = self._decide(ours, theirs, allow_fast_forward)
        logger.info(f"Merging {their_branch} into {our_branch} ({strategy.value})")
        if strategy == MergeStrategy.FAST_FORWARD:
            if self.ops.current_branch() == our_branch:
                self.ops.ensure_clean(our_branch)
            self.fast_forward(our_branch, theirs)
            self.ops.refresh_checkout(our_branch)
            return FastForwarded(theirs.hexsha)
        return self.three_way(our_branch, their_branch, message, their_tip=theirs)

    def fast_forward(self, our_ref: str, their_tip: git.Commit) -> None:
        """Move `our_ref` to `their_tip`. The working tree is not updated."""
        self.ops.set_branch_tip(our_ref, their_tip, f"fast-forward to {their_tip.hexsha[:7]}")

    def three_way(
        self,
        our_branch: str,
        their_branch: str,
        message: str,
        their_tip: Optional[git.Commit] = None,
    ) -> MergeOutcome:
        """Merge through the common ancestor and record a two-parent commit.

        On conflicts the merge is left in progress in the working tree with
        git's conflict markers, and no commit is created.
        """
        repo = self.ops.repo
        ours = self.ops.tip(our_branch)
        theirs = their_tip if their_tip is not None else self.ops.tip(their_branch)
        base = self.ops.merge_base(ours, theirs)
        logger.debug(
            f"Three-way merge base={base.hexsha[:7] if base else None} "
            f"ours={ours.hexsha[:7]} theirs={theirs.hexsha[:7]}"
        )

        self.ops.ensure_clean(our_branch)
        if self.ops.current_branch() != our_branch:
            self.ops.checkout(our_branch)

        status, _, stderr = repo.git.merge(
            "--no-ff", "--no-commit", theirs.hexsha,
            with_extended_output=True, with_exceptions=False,
        )
        conflicts = self.ops.unmerged_paths()
        if conflicts:
            logger.warning(f"Merge of {their_branch} into {our_branch} has conflicts: {conflicts}")
            return Conflicted(tuple(conflicts))
        if status != 0:
            # Refused before touching the index (e.g. unrelated histories)
            self.ops.cleanup_state()
            raise EngineError(
                "merge",
                git.exc.GitCommandError(["git", "merge", theirs.hexsha], status, stderr),
                branch=their_branch,
            )

        try:
            tree = repo.git.write_tree()
            final_message = self.editor.edit(self.ops.scratch_path(MERGE_MSG_FILE), message)
            commit = git.Commit.create_from_tree(
                repo, repo.tree(tree), final_message,
                parent_commits=[ours, theirs], head=False,
            )
        except git.exc.GitCommandError as e:
            self.abort(our_branch)
            raise EngineError("commit_merge", e, branch=our_branch) from e
        except GitFlowError:
            self.abort(our_branch)
            raise

        self.ops.set_branch_tip(our_branch, commit, f"merge {their_branch}")
        self.ops.cleanup_state()
        logger.info(f"Created merge commit {commit.hexsha[:7]} on {our_branch}")
        return Merged(commit.hexsha)

    def abort(self, our_branch: str) -> None:
        """Drop an uncommitted merge and restore `our_branch` to its tip."""
        logger.warning(f"Aborting the merge into {our_branch}")
        self.ops.repo.git.merge("--abort", with_exceptions=False)
        self.ops.cleanup_state()
