"""Core functionality for git-branch-flow"""

from pathlib import Path
from typing import IO, Dict, Iterator, Optional, Union

import git

from git_branch_flow.config import RunOptions, WorkflowConfig
from git_branch_flow.constants import INITIAL_COMMIT_MESSAGE
from git_branch_flow.exceptions import EngineError, MergeConflictError, MissingArgumentError
from git_branch_flow.models.branch import BranchCategory, BranchListing, QualifiedBranchName
from git_branch_flow.models.merge import Conflicted, FinishReport, MergeOutcome
from git_branch_flow.services.branch_model import BranchModel
from git_branch_flow.services.editor import (
    DefaultMessageEditor,
    ExternalEditor,
    FixedTagName,
    MessageEditor,
    TagNamePrompt,
)
from git_branch_flow.services.git import (
    Credentials,
    DiffReporter,
    GitOperations,
    MergeStrategist,
    Rebaser,
    RebaseMode,
    RemoteSynchronizer,
    TagIssuer,
)
from git_branch_flow.services.git.remote_sync import ProgressCallback
from git_branch_flow.services.lifecycle import BranchLifecycle
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)


def init_repository(
    path: Optional[Union[str, Path]] = None,
    config: Optional[WorkflowConfig] = None,
    force: bool = False,
) -> WorkflowConfig:
    """Set up the workflow in a repository, creating the repository if needed.

    An unborn repository gets an empty initial commit on the stable branch;
    the integration branch is created from the stable tip and checked out.
    Without `force`, an already initialized repository keeps its settings.

    Returns:
        The workflow settings now stored in the repository
    """
    path = Path(path or Path.cwd())
    config = config or WorkflowConfig()
    try:
        repo = git.Repo.init(path)
    except (git.exc.GitCommandError, OSError) as e:
        raise EngineError("init", e) from e

    try:
        if WorkflowConfig.is_initialized(repo) and not force:
            logger.info(f"{path} is already initialized, keeping existing settings")
            return WorkflowConfig.load(repo)

        if not repo.head.is_valid():
            repo.git.symbolic_ref("HEAD", f"refs/heads/{config.stable_branch}")
            repo.index.commit(INITIAL_COMMIT_MESSAGE)
            logger.info(f"Created initial commit on {config.stable_branch}")
        elif config.stable_branch not in repo.heads:
            repo.create_head(config.stable_branch, repo.head.commit)

        if config.integration_branch not in repo.heads:
            repo.create_head(config.integration_branch, repo.heads[config.stable_branch].commit)
            logger.info(f"Created {config.integration_branch} from {config.stable_branch}")
        if not repo.is_dirty():
            repo.heads[config.integration_branch].checkout()

        config.save(repo)
        return config
    except git.exc.GitCommandError as e:
        raise EngineError("init", e) from e
    finally:
        repo.close()


class GitFlow:
    """Entry point tying the workflow services to one repository."""

    def __init__(
        self,
        repo_path: Union[str, Path],
        options: Optional[Union[RunOptions, dict]] = None,
        editor: Optional[MessageEditor] = None,
        tag_prompt: Optional[TagNamePrompt] = None,
    ):
        if isinstance(options, dict):
            options = RunOptions.from_dict(options)
        self.options = options or RunOptions()
        if editor is None:
            editor = ExternalEditor() if self.options.edit_messages else DefaultMessageEditor()
        self.editor = editor
        self.tag_prompt = tag_prompt or FixedTagName()

        self.ops = GitOperations(str(repo_path))
        try:
            self.config = WorkflowConfig.load(self.ops.repo)
        except Exception:
            self.ops.close()
            raise
        self.model = BranchModel(self.config)
        self.strategist = MergeStrategist(self.ops, self.editor)
        self.tagger = TagIssuer(self.ops, self.editor, self.tag_prompt, self.config.version_tag_prefix)
        self.lifecycle = BranchLifecycle(self.ops, self.model, self.strategist, self.tagger)
        self.remote_sync = RemoteSynchronizer(self.ops, self.strategist)
        self.diff_reporter = DiffReporter(self.ops)
        self.rebaser = Rebaser(self.ops)

    def close(self) -> None:
        self.ops.close()

    def __enter__(self) -> "GitFlow":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def current_short_name(self, category: BranchCategory) -> str:
        """Short name of the checked-out branch when it belongs to `category`."""
        current = self.ops.current_branch()
        short = self.model.short_name_of(category, current) if current else None
        if not short:
            raise MissingArgumentError(f"a {category} branch name (not on a {category} branch)", f"{category}")
        return short

    def _name_or_current(self, category: BranchCategory, short_name: Optional[str]) -> str:
        return short_name if short_name else self.current_short_name(category)

    # Lifecycle

    def start(self, category: BranchCategory, short_name: str, base: Optional[str] = None) -> QualifiedBranchName:
        return self.lifecycle.start(category, short_name, base)

    def finish(
        self,
        category: BranchCategory,
        short_name: Optional[str] = None,
        keep_branch: bool = False,
    ) -> FinishReport:
        return self.lifecycle.finish(category, self._name_or_current(category, short_name), keep_branch)

    def list(self, category: BranchCategory) -> Iterator[BranchListing]:
        return self.lifecycle.list(category)

    def checkout(self, category: BranchCategory, short_name: str) -> QualifiedBranchName:
        qualified = self.model.resolve(category, short_name)
        self.lifecycle.checkout(qualified.name)
        return qualified

    def delete(self, category: BranchCategory, short_name: str, force: bool = True) -> QualifiedBranchName:
        qualified = self.model.resolve(category, short_name)
        self.lifecycle.delete(qualified.name, force=force)
        return qualified

    # Remote

    def publish(
        self,
        category: BranchCategory,
        short_name: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        remote: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> QualifiedBranchName:
        qualified = self.model.resolve(category, self._name_or_current(category, short_name))
        self.remote_sync.publish(qualified.name, remote or self.options.remote, credentials, progress)
        return qualified

    def track(
        self,
        category: BranchCategory,
        short_name: str,
        remote: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> MergeOutcome:
        qualified = self.model.resolve(category, short_name)
        outcome = self.remote_sync.track(qualified.name, remote or self.options.remote, progress)
        if isinstance(outcome, Conflicted):
            raise MergeConflictError(f"{remote or self.options.remote}/{qualified.name}", qualified.name, outcome.paths)
        return outcome

    # Inspection

    def diff(
        self,
        category: BranchCategory,
        short_name: Optional[str] = None,
        color: bool = True,
    ) -> Iterator[str]:
        """Rendered diff of a category branch (or HEAD) against the category's base."""
        base = self.model.diff_base_for(category)
        target = self.model.resolve(category, short_name).name if short_name else None
        return self.diff_reporter.diff(base, target, color=color)

    def write_diff(
        self,
        stream: IO[str],
        category: BranchCategory,
        short_name: Optional[str] = None,
        color: Optional[bool] = None,
    ) -> int:
        base = self.model.diff_base_for(category)
        target = self.model.resolve(category, short_name).name if short_name else None
        return self.diff_reporter.write(stream, base, target, color=color)

    def rebase(
        self,
        category: BranchCategory,
        short_name: Optional[str] = None,
        mode: RebaseMode = RebaseMode.REPLAY,
        base: Optional[str] = None,
    ) -> str:
        qualified = self.model.resolve(category, self._name_or_current(category, short_name))
        onto = base or self.model.diff_base_for(category)
        return self.rebaser.rebase(qualified.name, onto, mode)

    def workflow_config(self) -> Dict[str, str]:
        """Current persisted settings as config key -> value."""
        return self.config.to_entries()
