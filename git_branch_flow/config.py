"""Configuration handling for git-branch-flow"""

from dataclasses import dataclass, field
from typing import Dict, Optional

import git

from git_branch_flow.constants import (
    DEFAULT_INTEGRATION_BRANCH,
    DEFAULT_REMOTE,
    DEFAULT_STABLE_BRANCH,
    KEY_INTEGRATION_BRANCH,
    KEY_PREFIX_TEMPLATE,
    KEY_STABLE_BRANCH,
    KEY_VERSION_TAG_PREFIX,
)
from git_branch_flow.exceptions import ConfigMissingError, EngineError, InvalidConfigError
from git_branch_flow.models.branch import BranchCategory
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)


def _default_prefixes() -> Dict[BranchCategory, str]:
    return {category: category.default_prefix for category in BranchCategory}


def _read_key(repo: git.Repo, key: str) -> Optional[str]:
    """Read one key from the repository config, None when unset."""
    try:
        return repo.git.config("--get", key)
    except git.exc.GitCommandError as e:
        # git config exits with 1 when the key is missing
        if e.status == 1:
            return None
        raise EngineError("read_config", e) from e


@dataclass
class WorkflowConfig:
    """Persisted workflow settings with validation."""

    stable_branch: str = DEFAULT_STABLE_BRANCH
    integration_branch: str = DEFAULT_INTEGRATION_BRANCH
    prefixes: Dict[BranchCategory, str] = field(default_factory=_default_prefixes)
    version_tag_prefix: str = ""

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_branch_names()
        self._validate_prefixes()
        if self.version_tag_prefix is None:
            self.version_tag_prefix = ""

    def _validate_branch_names(self):
        """Stable and integration branch names are non-empty and distinct."""
        if not self.stable_branch or not self.stable_branch.strip():
            raise InvalidConfigError("stable branch name cannot be empty")
        if not self.integration_branch or not self.integration_branch.strip():
            raise InvalidConfigError("integration branch name cannot be empty")
        self.stable_branch = self.stable_branch.strip()
        self.integration_branch = self.integration_branch.strip()
        if self.stable_branch == self.integration_branch:
            raise InvalidConfigError(
                f"stable and integration branches must differ, both are '{self.stable_branch}'"
            )

    def _validate_prefixes(self):
        """Every category has a prefix; the empty string is allowed."""
        for category in BranchCategory:
            if self.prefixes.get(category) is None:
                raise InvalidConfigError(f"prefix for {category} branches is not set")

    def prefix_for(self, category: BranchCategory) -> str:
        return self.prefixes[category]

    @classmethod
    def load(cls, repo: git.Repo) -> "WorkflowConfig":
        """Read and validate the workflow settings stored in `repo`.

        Raises:
            ConfigMissingError: a required key was never written
        """
        stable = _read_key(repo, KEY_STABLE_BRANCH)
        if stable is None:
            raise ConfigMissingError(KEY_STABLE_BRANCH)
        integration = _read_key(repo, KEY_INTEGRATION_BRANCH)
        if integration is None:
            raise ConfigMissingError(KEY_INTEGRATION_BRANCH)

        prefixes = {}
        for category in BranchCategory:
            key = KEY_PREFIX_TEMPLATE.format(category=category.key)
            value = _read_key(repo, key)
            if value is None:
                raise ConfigMissingError(key)
            prefixes[category] = value

        version_tag_prefix = _read_key(repo, KEY_VERSION_TAG_PREFIX) or ""
        config = cls(
            stable_branch=stable,
            integration_branch=integration,
            prefixes=prefixes,
            version_tag_prefix=version_tag_prefix,
        )
        logger.debug(f"Loaded workflow config: {config.to_dict()}")
        return config

    @staticmethod
    def is_initialized(repo: git.Repo) -> bool:
        """Whether the workflow settings have been written to `repo`."""
        return _read_key(repo, KEY_STABLE_BRANCH) is not None

    def save(self, repo: git.Repo) -> None:
        """Write every workflow key into the repository's local config."""
        try:
            for key, value in self.to_entries().items():
                repo.git.config("--local", key, value)
        except git.exc.GitCommandError as e:
            raise EngineError("write_config", e) from e
        logger.info("Workflow configuration saved")

    def to_entries(self) -> Dict[str, str]:
        """Config keys and values as stored in git."""
        entries = {
            KEY_STABLE_BRANCH: self.stable_branch,
            KEY_INTEGRATION_BRANCH: self.integration_branch,
        }
        for category in BranchCategory:
            entries[KEY_PREFIX_TEMPLATE.format(category=category.key)] = self.prefixes[category]
        entries[KEY_VERSION_TAG_PREFIX] = self.version_tag_prefix
        return entries

    def to_dict(self) -> dict:
        return {
            "stable_branch": self.stable_branch,
            "integration_branch": self.integration_branch,
            "prefixes": {category.key: prefix for category, prefix in self.prefixes.items()},
            "version_tag_prefix": self.version_tag_prefix,
        }


@dataclass
class RunOptions:
    """Per-invocation runtime options."""

    verbose: bool = False
    debug: bool = False
    edit_messages: bool = True  # open the editor for merge and tag messages
    remote: str = DEFAULT_REMOTE

    def __post_init__(self):
        self._validate_remote()

    def _validate_remote(self):
        """Validate remote is not empty."""
        if not self.remote or not self.remote.strip():
            raise ValueError("remote cannot be empty")
        self.remote = self.remote.strip()

    def to_dict(self) -> dict:
        return {
            "verbose": self.verbose,
            "debug": self.debug,
            "edit_messages": self.edit_messages,
            "remote": self.remote,
        }

    @classmethod
    def from_dict(cls, options: dict) -> "RunOptions":
        """Create RunOptions from a dictionary, ignoring unknown keys."""
        known_fields = {"verbose", "debug", "edit_messages", "remote"}
        filtered = {k: v for k, v in options.items() if k in known_fields}
        return cls(**filtered)
