"""Tree-to-tree diffs between workflow branches"""

from typing import IO, Iterator, Optional

import git

from git_branch_flow.exceptions import BranchNotFoundError, EngineError
from git_branch_flow.formatters.diff import colorize_lines
from git_branch_flow.services.git.operations import GitOperations
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)


class DiffReporter:
    """Computes and renders the patch between two tree-ish revisions."""

    def __init__(self, ops: GitOperations):
        self.ops = ops

    def _tree(self, treeish: str) -> git.Tree:
        try:
            return self.ops.repo.tree(treeish)
        except (git.exc.BadName, git.exc.BadObject, ValueError):
            raise BranchNotFoundError(treeish)

    def patch_lines(self, base_treeish: str, target_treeish: Optional[str] = None) -> Iterator[str]:
        """Unified patch lines from `base_treeish` to `target_treeish` (HEAD when omitted).

        Both revisions are resolved up front; the patch itself is read from
        git's output as the caller iterates.
        """
        base = self._tree(base_treeish)
        target = self._tree(target_treeish or "HEAD")
        logger.debug(f"Diffing {base_treeish} ({base.hexsha[:7]}) -> {target_treeish or 'HEAD'} ({target.hexsha[:7]})")
        if base.hexsha == target.hexsha:
            return iter(())
        return self._stream(base, target, target_treeish)

    def _stream(self, base: git.Tree, target: git.Tree, target_treeish: Optional[str]) -> Iterator[str]:
        try:
            proc = self.ops.repo.git.diff(
                base.hexsha, target.hexsha, "--no-color", "--no-ext-diff", as_process=True
            )
        except git.exc.GitCommandError as e:
            raise EngineError("diff", e, branch=target_treeish) from e
        try:
            for raw in proc.stdout:
                yield raw.decode("utf-8", errors="replace").rstrip("\r\n")
            proc.wait()
        except git.exc.GitCommandError as e:
            raise EngineError("diff", e, branch=target_treeish) from e
        finally:
            proc.stdout.close()

    def diff(self, base_treeish: str, target_treeish: Optional[str] = None, color: bool = True) -> Iterator[str]:
        """Rendered diff lines, produced lazily."""
        return colorize_lines(self.patch_lines(base_treeish, target_treeish), color=color)

    def write(
        self,
        stream: IO[str],
        base_treeish: str,
        target_treeish: Optional[str] = None,
        color: Optional[bool] = None,
    ) -> int:
        """Write the rendered diff to `stream`; returns the number of lines written.

        Color defaults to on when the stream is a terminal.
        """
        if color is None:
            color = hasattr(stream, "isatty") and stream.isatty()
        count = 0
        for line in self.diff(base_treeish, target_treeish, color=color):
            stream.write(line + "\n")
            count += 1
        return count
