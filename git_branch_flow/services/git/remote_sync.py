"""Publishing branches to a remote and tracking them back"""

import os
import stat
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import git

from git_branch_flow.constants import ASKPASS_FILE, TRACK_MERGE_MESSAGE
from git_branch_flow.exceptions import (
    AuthenticationFailedError,
    BranchNotFoundError,
    EngineError,
    NonFastForwardRejectedError,
    RemoteNotFoundError,
)
from git_branch_flow.models.merge import Conflicted, FastForwarded, MergeOutcome, UpToDate
from git_branch_flow.services.git.merge_strategist import MergeStrategist
from git_branch_flow.services.git.operations import GitOperations
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)

# (operation, current, total, message) - total is None when git does not know it
ProgressCallback = Callable[[str, float, Optional[float], str], None]

_AUTH_FAILURE_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "permission denied",
    "returned error: 401",
    "returned error: 403",
)
_NON_FAST_FORWARD_MARKERS = ("non-fast-forward", "fetch first", "[rejected]")
_MISSING_REMOTE_MARKERS = ("does not appear to be a git repository", "not found", "no such remote")

_OP_NAMES = {
    git.RemoteProgress.COUNTING: "counting",
    git.RemoteProgress.COMPRESSING: "compressing",
    git.RemoteProgress.WRITING: "writing",
    git.RemoteProgress.RECEIVING: "receiving",
    git.RemoteProgress.RESOLVING: "resolving",
    git.RemoteProgress.FINDING_SOURCES: "finding sources",
    git.RemoteProgress.CHECKING_OUT: "checking out",
}


@dataclass(frozen=True)
class Credentials:
    """Username and password handed to git when the remote asks for them."""
    username: str
    password: str = ""


class CallbackProgress(git.RemoteProgress):
    """Forwards GitPython transfer progress to a plain callback."""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        super().__init__()
        self.callback = callback

    def update(self, op_code, cur_count, max_count=None, message=""):
        if self.callback is None:
            return
        operation = _OP_NAMES.get(op_code & self.OP_MASK, "transferring")
        self.callback(operation, float(cur_count or 0), float(max_count) if max_count else None, message or "")


def _classify(error: git.exc.GitCommandError, remote: str, branch: str, operation: str) -> Exception:
    stderr = str(error.stderr).lower()
    if any(marker in stderr for marker in _AUTH_FAILURE_MARKERS):
        return AuthenticationFailedError(remote, operation)
    if any(marker in stderr for marker in _NON_FAST_FORWARD_MARKERS):
        return NonFastForwardRejectedError(remote, branch)
    if "couldn't find remote ref" in stderr:
        return BranchNotFoundError(f"{remote}/{branch}")
    if any(marker in stderr for marker in _MISSING_REMOTE_MARKERS):
        return RemoteNotFoundError(remote)
    return EngineError(operation, error, branch=branch)


class RemoteSynchronizer:
    """Pushes workflow branches to a remote and merges remote work back in."""

    def __init__(self, ops: GitOperations, strategist: MergeStrategist):
        self.ops = ops
        self.strategist = strategist

    def _get_remote(self, remote: str) -> git.Remote:
        try:
            return self.ops.repo.remote(remote)
        except ValueError:
            raise RemoteNotFoundError(remote)

    @contextmanager
    def _credentials(self, credentials: Optional[Credentials]) -> Iterator[None]:
        """Answer git's username/password prompts through a GIT_ASKPASS helper."""
        if credentials is None:
            yield
            return

        helper = self.ops.scratch_path(ASKPASS_FILE)
        helper.write_text(
            "#!/bin/sh\n"
            'case "$1" in\n'
            '  Username*) printf "%s\\n" "$GIT_BRANCH_FLOW_USERNAME" ;;\n'
            '  *) printf "%s\\n" "$GIT_BRANCH_FLOW_PASSWORD" ;;\n'
            "esac\n"
        )
        helper.chmod(helper.stat().st_mode | stat.S_IXUSR)
        env = {
            "GIT_ASKPASS": str(helper),
            "GIT_TERMINAL_PROMPT": "0",
            "GIT_BRANCH_FLOW_USERNAME": credentials.username,
            "GIT_BRANCH_FLOW_PASSWORD": credentials.password,
        }
        try:
            with self.ops.repo.git.custom_environment(**env):
                yield
        finally:
            if helper.exists():
                os.remove(helper)

    def publish(
        self,
        branch: str,
        remote: str,
        credentials: Optional[Credentials] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Push the local branch to the same name on `remote`. Local refs are not changed."""
        self.ops.get_head(branch)
        handle = self._get_remote(remote)
        refspec = f"refs/heads/{branch}:refs/heads/{branch}"
        logger.info(f"Publishing {branch} to {remote}")

        try:
            with self._credentials(credentials):
                results = handle.push(refspec=refspec, progress=CallbackProgress(progress))
        except git.exc.GitCommandError as e:
            raise _classify(e, remote, branch, "push") from e

        for info in results:
            if info.flags & (git.PushInfo.REJECTED | git.PushInfo.REMOTE_REJECTED):
                raise NonFastForwardRejectedError(remote, branch)
            if info.flags & git.PushInfo.ERROR:
                raise EngineError(
                    "push",
                    git.exc.GitCommandError(["git", "push", remote, refspec], 1, info.summary),
                    branch=branch,
                )
        logger.info(f"Published {branch} to {remote}")

    def fetch(self, branch: str, remote: str, progress: Optional[ProgressCallback] = None) -> git.Commit:
        """Fetch `branch` from `remote` and return the fetched tip.

        A configured remote updates its remote-tracking ref; anything else is
        treated as a URL or path and fetched anonymously into FETCH_HEAD.
        """
        repo = self.ops.repo
        callback = CallbackProgress(progress)
        try:
            if remote in [r.name for r in repo.remotes]:
                tracking = f"refs/remotes/{remote}/{branch}"
                repo.remote(remote).fetch(refspec=f"+refs/heads/{branch}:{tracking}", progress=callback)
                return repo.commit(tracking)
            repo.git.fetch(remote, f"refs/heads/{branch}")
            return repo.commit(repo.git.rev_parse("FETCH_HEAD"))
        except git.exc.GitCommandError as e:
            raise _classify(e, remote, branch, "fetch") from e

    def track(self, branch: str, remote: str, progress: Optional[ProgressCallback] = None) -> MergeOutcome:
        """Fetch `branch` from `remote`, merge it into the local branch and check it out."""
        self.ops.ensure_clean(branch)
        logger.info(f"Tracking {branch} from {remote}")
        remote_tip = self.fetch(branch, remote, progress)

        if not self.ops.branch_exists(branch):
            # No local history yet: the local branch starts at the fetched tip
            self.ops.create_branch(branch, remote_tip)
            self._set_upstream(branch, remote)
            self.ops.checkout(branch)
            return FastForwarded(remote_tip.hexsha)

        local_tip = self.ops.tip(branch)
        message = TRACK_MERGE_MESSAGE.format(
            remote_tip=remote_tip.hexsha[:7], local_tip=local_tip.hexsha[:7]
        )
        outcome = self.strategist.merge(branch, f"{remote}/{branch}", message, their_tip=remote_tip)
        if isinstance(outcome, UpToDate):
            self.ops.checkout(branch)
        elif not isinstance(outcome, Conflicted):
            self._set_upstream(branch, remote)
        return outcome

    def _set_upstream(self, branch: str, remote: str) -> None:
        repo = self.ops.repo
        if remote not in [r.name for r in repo.remotes]:
            return
        with repo.config_writer() as writer:
            section = f'branch "{branch}"'
            writer.set_value(section, "remote", remote)
            writer.set_value(section, "merge", f"refs/heads/{branch}")
