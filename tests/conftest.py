"""Pytest fixtures for git-branch-flow tests"""
import tempfile
from pathlib import Path

import git
import pytest

from git_branch_flow.config import RunOptions
from git_branch_flow.core import GitFlow, init_repository
from git_branch_flow.services.editor import FixedTagName, MessageEditor


class RecordingEditor(MessageEditor):
    """Accepts every default and remembers what it was offered."""

    def __init__(self):
        self.calls = []

    def edit(self, path, default):
        self.calls.append((Path(path).name, default))
        return default

    @property
    def defaults(self):
        return [default for _, default in self.calls]


def commit_file(repo, name, content, message=None):
    """Write a file in the working tree and commit it on the current branch."""
    path = Path(repo.working_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(message or f"Update {name}")


def configure_user(repo):
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def plain_repo(temp_dir):
    """A git repository with one commit and no workflow settings."""
    repo_path = temp_dir / "plain_repo"
    repo_path.mkdir()
    repo = git.Repo.init(repo_path)
    configure_user(repo)
    commit_file(repo, "README.md", "# Plain\n", "Initial commit")
    yield repo
    repo.close()


@pytest.fixture
def git_repo(temp_dir):
    """An initialized workflow repository: master and develop at an empty initial commit."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()
    repo = git.Repo.init(repo_path)
    configure_user(repo)
    init_repository(repo_path)
    yield repo
    repo.close()


@pytest.fixture
def seeded_repo(git_repo):
    """Workflow repository whose develop branch has a tracked file."""
    commit_file(git_repo, "shared.txt", "base\n", "Add shared file")
    return git_repo


@pytest.fixture
def editor():
    return RecordingEditor()


@pytest.fixture
def tag_prompt():
    return FixedTagName()


@pytest.fixture
def flow(seeded_repo, editor, tag_prompt):
    """GitFlow bound to the seeded repository with non-interactive seams."""
    gf = GitFlow(
        seeded_repo.working_dir,
        RunOptions(edit_messages=False),
        editor=editor,
        tag_prompt=tag_prompt,
    )
    yield gf
    gf.close()


@pytest.fixture
def remote_repo(temp_dir, seeded_repo):
    """Bare repository registered as 'origin' holding master and develop."""
    bare_path = temp_dir / "remote.git"
    bare = git.Repo.init(bare_path, bare=True)
    bare.git.symbolic_ref("HEAD", "refs/heads/develop")
    seeded_repo.create_remote("origin", str(bare_path))
    seeded_repo.git.push("origin", "master", "develop")
    yield bare
    bare.close()


@pytest.fixture
def colleague_repo(temp_dir, remote_repo):
    """A second clone of the remote, standing in for another developer."""
    clone = git.Repo.clone_from(remote_repo.git_dir, temp_dir / "colleague")
    configure_user(clone)
    yield clone
    clone.close()
