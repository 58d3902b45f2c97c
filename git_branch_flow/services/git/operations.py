"""Low-level repository operations used by the workflow services"""

import shutil
from pathlib import Path
from typing import Iterator, List, Optional

import git

from git_branch_flow.constants import MERGE_STATE_FILES, REBASE_STATE_DIRS
from git_branch_flow.exceptions import (
    BranchNotFoundError,
    DirtyWorkingTreeError,
    EngineError,
)
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)

_OVERWRITE_MARKERS = (
    "would be overwritten",
    "commit your changes or stash them",
    "untracked working tree files",
)


class GitOperations:
    """Thin wrapper over a GitPython repository.

    Every service shares one instance per command, so the repository is
    opened once and closed by whoever created the wrapper.
    """

    def __init__(self, repo_path: str):
        self.repo_path = str(repo_path)
        self._repo: Optional[git.Repo] = None

    def _get_repo(self) -> git.Repo:
        if self._repo is None:
            try:
                self._repo = git.Repo(self.repo_path, search_parent_directories=True)
            except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
                raise EngineError("open_repository", e) from e
        return self._repo

    @property
    def repo(self) -> git.Repo:
        return self._get_repo()

    def close(self) -> None:
        if self._repo is not None:
            self._repo.close()
            self._repo = None

    @property
    def git_dir(self) -> Path:
        return Path(self.repo.git_dir)

    def scratch_path(self, name: str) -> Path:
        """Path of a scratch file inside the repository's private directory."""
        return self.git_dir / name

    # Branch references

    def branch_exists(self, name: str) -> bool:
        return name in self.repo.heads

    def get_head(self, name: str) -> git.Head:
        """Local branch reference by name."""
        try:
            return self.repo.heads[name]
        except IndexError:
            raise BranchNotFoundError(name)

    def tip(self, name: str) -> git.Commit:
        """Commit at the tip of a local branch."""
        head = self.get_head(name)
        try:
            return head.commit
        except ValueError as e:
            raise EngineError("resolve", e, branch=name) from e

    def resolve_commit(self, rev: str) -> Optional[git.Commit]:
        """Commit a revision points at, or None when it does not resolve."""
        try:
            return self.repo.commit(rev)
        except (git.exc.BadName, git.exc.BadObject, ValueError):
            return None

    def current_branch(self) -> Optional[str]:
        """Name of the checked-out branch; None when HEAD is detached."""
        try:
            return self.repo.active_branch.name
        except TypeError:
            return None

    def iter_branches(self) -> Iterator[git.Head]:
        """Local branches in the order git enumerates them."""
        return iter(self.repo.heads)

    def create_branch(self, name: str, commit: git.Commit) -> git.Head:
        try:
            head = self.repo.create_head(name, commit)
        except (git.exc.GitCommandError, OSError) as e:
            raise EngineError("create_branch", e, branch=name) from e
        logger.debug(f"Created {name} at {commit.hexsha[:7]}")
        return head

    def set_branch_tip(self, name: str, commit: git.Commit, reason: str) -> None:
        """Move a branch reference without touching the working tree."""
        head = self.get_head(name)
        head.set_commit(commit, logmsg=f"git-branch-flow: {reason}")
        logger.debug(f"Moved {name} to {commit.hexsha[:7]} ({reason})")

    def delete_branch(self, name: str, force: bool = True) -> None:
        self.get_head(name)
        try:
            self.repo.delete_head(name, force=force)
        except git.exc.GitCommandError as e:
            raise EngineError("delete_branch", e, branch=name) from e
        logger.debug(f"Deleted branch {name}")

    # Working tree

    def is_dirty(self) -> bool:
        return self.repo.is_dirty(index=True, working_tree=True, untracked_files=False)

    def ensure_clean(self, branch: Optional[str] = None) -> None:
        if self.is_dirty():
            raise DirtyWorkingTreeError(branch)

    def checkout(self, name: str) -> None:
        """Switch the working tree and HEAD to a local branch."""
        self.get_head(name)
        try:
            self.repo.git.checkout(name)
        except git.exc.GitCommandError as e:
            stderr = str(e.stderr).lower()
            if any(marker in stderr for marker in _OVERWRITE_MARKERS):
                raise DirtyWorkingTreeError(name) from e
            raise EngineError("checkout", e, branch=name) from e
        logger.debug(f"Checked out {name}")

    def refresh_checkout(self, name: str) -> None:
        """Bring the working tree in line with a branch whose ref just moved.

        When the branch is the one checked out, its files still reflect the
        old tip and are reset to the new one; otherwise it is checked out.
        """
        if self.current_branch() == name:
            self.repo.head.reset(index=True, working_tree=True)
            logger.debug(f"Reset working tree of {name} to its new tip")
        else:
            self.checkout(name)

    def unmerged_paths(self) -> List[str]:
        """Paths the index records as conflicted."""
        output = self.repo.git.diff("--name-only", "--diff-filter=U")
        return [line for line in output.splitlines() if line]

    def cleanup_state(self) -> None:
        """Remove in-progress merge/rebase state git leaves in the git directory."""
        for name in MERGE_STATE_FILES:
            path = self.git_dir / name
            if path.exists():
                path.unlink()
        for name in REBASE_STATE_DIRS:
            path = self.git_dir / name
            if path.is_dir():
                shutil.rmtree(path)

    # History

    def is_ancestor(self, ancestor: git.Commit, descendant: git.Commit) -> bool:
        return self.repo.is_ancestor(ancestor, descendant)

    def merge_base(self, ours: git.Commit, theirs: git.Commit) -> Optional[git.Commit]:
        bases = self.repo.merge_base(ours, theirs)
        return bases[0] if bases else None
