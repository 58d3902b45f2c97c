"""Tests for publishing and tracking branches"""
import os
from pathlib import Path

import git
import pytest

from git_branch_flow.exceptions import (
    AuthenticationFailedError,
    BranchNotFoundError,
    DirtyWorkingTreeError,
    EngineError,
    MergeConflictError,
    NonFastForwardRejectedError,
    RemoteNotFoundError,
)
from git_branch_flow.models.branch import BranchCategory
from git_branch_flow.models.merge import FastForwarded, Merged, UpToDate
from git_branch_flow.services.git import Credentials
from git_branch_flow.services.git.remote_sync import CallbackProgress, _classify

from conftest import commit_file


def push_from_colleague(colleague, branch, filename, content):
    """Commit on `branch` in the colleague clone and push it."""
    if branch in colleague.heads:
        colleague.heads[branch].checkout()
    elif f"origin/{branch}" in [ref.name for ref in colleague.remotes.origin.refs]:
        colleague.git.checkout("-b", branch, f"origin/{branch}")
    else:
        colleague.git.checkout("-b", branch, "origin/develop")
    commit = commit_file(colleague, filename, content)
    colleague.git.push("origin", f"{branch}:{branch}")
    return commit


class TestPublish:
    """Test pushing workflow branches."""

    def test_publish(self, flow, seeded_repo, remote_repo):
        """Test the branch appears on the remote at the local tip."""
        flow.start(BranchCategory.FEATURE, "login")
        tip = commit_file(seeded_repo, "login.txt", "login\n")
        develop_tip = seeded_repo.heads["develop"].commit

        flow.publish(BranchCategory.FEATURE, "login", remote="origin")

        assert remote_repo.heads["feature/login"].commit.hexsha == tip.hexsha
        assert seeded_repo.heads["feature/login"].commit == tip
        assert seeded_repo.heads["develop"].commit == develop_tip

    def test_publish_current_branch_with_progress(self, flow, seeded_repo, remote_repo):
        """Test publishing the checked-out branch with a progress callback."""
        flow.start(BranchCategory.BUGFIX, "crash")
        tip = commit_file(seeded_repo, "fix.txt", "fix\n")
        events = []

        flow.publish(BranchCategory.BUGFIX, progress=lambda *args: events.append(args))

        assert remote_repo.heads["bugfix/crash"].commit.hexsha == tip.hexsha
        for operation, current, total, message in events:
            assert isinstance(operation, str)
            assert isinstance(current, float)

    def test_publish_with_credentials(self, flow, seeded_repo, remote_repo):
        """Test credentials do not get in the way of a remote that needs none."""
        flow.start(BranchCategory.FEATURE, "login")
        flow.publish(BranchCategory.FEATURE, "login", credentials=Credentials("alice", "s3cret"))
        assert "feature/login" in remote_repo.heads
        assert not (Path(seeded_repo.git_dir) / "WORKFLOW_ASKPASS").exists()

    def test_publish_unknown_remote(self, flow, remote_repo):
        """Test publishing to a remote that is not configured."""
        flow.start(BranchCategory.FEATURE, "login")
        with pytest.raises(RemoteNotFoundError):
            flow.publish(BranchCategory.FEATURE, "login", remote="upstream")

    def test_publish_missing_branch(self, flow, remote_repo):
        """Test publishing a branch that does not exist locally."""
        with pytest.raises(BranchNotFoundError):
            flow.publish(BranchCategory.FEATURE, "ghost")

    def test_publish_rejected(self, flow, seeded_repo, remote_repo, colleague_repo):
        """Test a diverged remote branch rejects the push."""
        push_from_colleague(colleague_repo, "develop", "theirs.txt", "theirs\n")
        commit_file(seeded_repo, "ours.txt", "ours\n")

        with pytest.raises(NonFastForwardRejectedError) as exc_info:
            flow.remote_sync.publish("develop", "origin")

        assert exc_info.value.branch == "develop"
        assert exc_info.value.remote == "origin"


class TestTrack:
    """Test fetching remote work into local branches."""

    def test_track_new_branch(self, flow, seeded_repo, colleague_repo):
        """Test a branch missing locally is created at the remote tip."""
        remote_tip = push_from_colleague(colleague_repo, "feature/shared", "shared-work.txt", "work\n")

        outcome = flow.track(BranchCategory.FEATURE, "shared")

        assert outcome == FastForwarded(remote_tip.hexsha)
        assert seeded_repo.heads["feature/shared"].commit.hexsha == remote_tip.hexsha
        assert seeded_repo.active_branch.name == "feature/shared"
        reader = seeded_repo.config_reader()
        assert reader.get_value('branch "feature/shared"', "remote") == "origin"
        assert reader.get_value('branch "feature/shared"', "merge") == "refs/heads/feature/shared"

    def test_track_fast_forward(self, flow, seeded_repo, colleague_repo):
        """Test a local branch behind the remote is fast-forwarded."""
        push_from_colleague(colleague_repo, "feature/shared", "one.txt", "one\n")
        flow.track(BranchCategory.FEATURE, "shared")
        remote_tip = push_from_colleague(colleague_repo, "feature/shared", "two.txt", "two\n")

        outcome = flow.track(BranchCategory.FEATURE, "shared")

        assert outcome == FastForwarded(remote_tip.hexsha)
        assert (Path(seeded_repo.working_dir) / "two.txt").read_text() == "two\n"
        assert not seeded_repo.is_dirty()

    def test_track_diverged(self, flow, seeded_repo, colleague_repo, editor):
        """Test diverged local and remote work is joined by a merge commit."""
        push_from_colleague(colleague_repo, "feature/shared", "one.txt", "one\n")
        flow.track(BranchCategory.FEATURE, "shared")
        remote_tip = push_from_colleague(colleague_repo, "feature/shared", "theirs.txt", "theirs\n")
        local_tip = commit_file(seeded_repo, "ours.txt", "ours\n")

        outcome = flow.track(BranchCategory.FEATURE, "shared")

        assert isinstance(outcome, Merged)
        merge = seeded_repo.heads["feature/shared"].commit
        assert [parent.hexsha for parent in merge.parents] == [local_tip.hexsha, remote_tip.hexsha]
        assert editor.defaults[-1] == f"Merge: {remote_tip.hexsha[:7]} into {local_tip.hexsha[:7]}"

    def test_track_up_to_date(self, flow, seeded_repo, colleague_repo):
        """Test tracking with nothing new checks the branch out and changes nothing."""
        push_from_colleague(colleague_repo, "feature/shared", "one.txt", "one\n")
        flow.track(BranchCategory.FEATURE, "shared")
        local_tip = commit_file(seeded_repo, "ours.txt", "ours\n")
        seeded_repo.heads["develop"].checkout()

        outcome = flow.track(BranchCategory.FEATURE, "shared")

        assert outcome == UpToDate()
        assert seeded_repo.heads["feature/shared"].commit == local_tip
        assert seeded_repo.active_branch.name == "feature/shared"

    def test_track_conflict(self, flow, seeded_repo, colleague_repo):
        """Test conflicting remote work is reported with the paths."""
        push_from_colleague(colleague_repo, "feature/shared", "one.txt", "one\n")
        flow.track(BranchCategory.FEATURE, "shared")
        push_from_colleague(colleague_repo, "feature/shared", "shared.txt", "theirs\n")
        local_tip = commit_file(seeded_repo, "shared.txt", "ours\n")

        with pytest.raises(MergeConflictError) as exc_info:
            flow.track(BranchCategory.FEATURE, "shared")

        assert exc_info.value.paths == ["shared.txt"]
        assert seeded_repo.heads["feature/shared"].commit == local_tip

    def test_track_from_url(self, flow, seeded_repo, remote_repo, colleague_repo):
        """Test a remote given as a path is fetched without configuring it."""
        remote_tip = push_from_colleague(colleague_repo, "feature/shared", "one.txt", "one\n")

        outcome = flow.track(BranchCategory.FEATURE, "shared", remote=remote_repo.git_dir)

        assert outcome == FastForwarded(remote_tip.hexsha)
        assert seeded_repo.heads["feature/shared"].commit.hexsha == remote_tip.hexsha

    def test_track_missing_remote_branch(self, flow, remote_repo):
        """Test tracking a branch the remote does not have."""
        with pytest.raises(BranchNotFoundError):
            flow.track(BranchCategory.FEATURE, "ghost")

    def test_track_unknown_remote(self, flow, remote_repo):
        """Test tracking from a remote that neither is configured nor exists."""
        with pytest.raises(RemoteNotFoundError):
            flow.track(BranchCategory.FEATURE, "shared", remote="nowhere")

    def test_track_dirty_tree_keeps_changes(self, flow, seeded_repo, colleague_repo):
        """Test tracking onto a checked-out branch with uncommitted edits refuses and keeps them."""
        push_from_colleague(colleague_repo, "feature/shared", "one.txt", "one\n")
        flow.track(BranchCategory.FEATURE, "shared")
        remote_tip = push_from_colleague(colleague_repo, "feature/shared", "two.txt", "two\n")
        local_tip = seeded_repo.heads["feature/shared"].commit
        shared = Path(seeded_repo.working_dir) / "shared.txt"
        shared.write_text("work in progress\n")

        with pytest.raises(DirtyWorkingTreeError):
            flow.track(BranchCategory.FEATURE, "shared")

        assert shared.read_text() == "work in progress\n"
        assert seeded_repo.heads["feature/shared"].commit == local_tip
        assert seeded_repo.heads["feature/shared"].commit != remote_tip


class TestCredentials:
    """Test the askpass helper used for credentials."""

    def test_helper_lifetime(self, flow, seeded_repo):
        """Test the helper exists and is wired into git only inside the context."""
        helper = Path(seeded_repo.git_dir) / "WORKFLOW_ASKPASS"
        git_cmd = flow.ops.repo.git

        with flow.remote_sync._credentials(Credentials("alice", "s3cret")):
            assert helper.exists()
            assert os.access(helper, os.X_OK)
            env = git_cmd.environment()
            assert env["GIT_ASKPASS"] == str(helper)
            assert env["GIT_TERMINAL_PROMPT"] == "0"
            assert env["GIT_BRANCH_FLOW_USERNAME"] == "alice"
            assert env["GIT_BRANCH_FLOW_PASSWORD"] == "s3cret"

        assert not helper.exists()
        assert "GIT_ASKPASS" not in git_cmd.environment()

    def test_no_credentials(self, flow, seeded_repo):
        """Test nothing is written without credentials."""
        with flow.remote_sync._credentials(None):
            assert not (Path(seeded_repo.git_dir) / "WORKFLOW_ASKPASS").exists()
            assert "GIT_ASKPASS" not in flow.ops.repo.git.environment()


class TestClassify:
    """Test mapping git's remote failures onto workflow errors."""

    @staticmethod
    def error(stderr):
        return git.exc.GitCommandError(["git", "push"], 128, stderr=stderr)

    def test_authentication(self):
        """Test a failed login maps to an authentication error."""
        err = _classify(self.error("fatal: Authentication failed for 'https://example.com/repo.git/'"),
                        "origin", "develop", "push")
        assert isinstance(err, AuthenticationFailedError)

    def test_http_forbidden(self):
        """Test an HTTP 403 maps to an authentication error."""
        err = _classify(self.error("fatal: unable to access: The requested URL returned error: 403"),
                        "origin", "develop", "push")
        assert isinstance(err, AuthenticationFailedError)

    def test_non_fast_forward(self):
        """Test a rejected push names the branch it was for."""
        err = _classify(self.error(" ! [rejected]        develop -> develop (fetch first)"),
                        "origin", "develop", "push")
        assert isinstance(err, NonFastForwardRejectedError)
        assert err.branch == "develop"

    def test_missing_remote_ref(self):
        """Test a missing remote ref maps to a missing branch."""
        err = _classify(self.error("fatal: couldn't find remote ref refs/heads/feature/x"),
                        "origin", "feature/x", "fetch")
        assert isinstance(err, BranchNotFoundError)

    def test_missing_remote(self):
        """Test an unreachable remote names the remote."""
        err = _classify(self.error("fatal: 'nowhere' does not appear to be a git repository"),
                        "nowhere", "develop", "fetch")
        assert isinstance(err, RemoteNotFoundError)
        assert err.remote == "nowhere"

    def test_other(self):
        """Test anything unrecognized is an engine error."""
        err = _classify(self.error("fatal: the remote end hung up unexpectedly"), "origin", "develop", "push")
        assert isinstance(err, EngineError)


class TestCallbackProgress:
    """Test forwarding of GitPython progress."""

    def test_forwards_operation_and_counts(self):
        """Test GitPython progress is forwarded as operation name and counts."""
        events = []
        progress = CallbackProgress(lambda *args: events.append(args))

        progress.update(git.RemoteProgress.WRITING | git.RemoteProgress.BEGIN, 3, 10, "objects")
        progress.update(git.RemoteProgress.RECEIVING, 5)

        assert events == [("writing", 3.0, 10.0, "objects"), ("receiving", 5.0, None, "")]

    def test_without_callback(self):
        """Test progress without a callback is ignored."""
        CallbackProgress().update(git.RemoteProgress.COUNTING, 1, 2)
