"""Tests for workflow configuration"""
import pytest

from git_branch_flow.config import RunOptions, WorkflowConfig
from git_branch_flow.core import init_repository
from git_branch_flow.exceptions import ConfigMissingError, InvalidConfigError
from git_branch_flow.models.branch import BranchCategory


class TestWorkflowConfigValidation:
    """Test invariants checked when the config is built."""

    def test_defaults(self):
        """Test default branch names and prefixes."""
        config = WorkflowConfig()
        assert config.stable_branch == "master"
        assert config.integration_branch == "develop"
        assert config.version_tag_prefix == ""
        for category in BranchCategory:
            assert config.prefix_for(category) == f"{category.key}/"

    def test_empty_stable_branch(self):
        """Test that an empty stable branch name is rejected."""
        with pytest.raises(InvalidConfigError):
            WorkflowConfig(stable_branch="  ")

    def test_empty_integration_branch(self):
        """Test that an empty integration branch name is rejected."""
        with pytest.raises(InvalidConfigError):
            WorkflowConfig(integration_branch="")

    def test_same_branch_names(self):
        """Test that stable and integration must differ."""
        with pytest.raises(InvalidConfigError):
            WorkflowConfig(stable_branch="main", integration_branch="main")

    def test_missing_prefix(self):
        """Test that every category needs a prefix."""
        prefixes = {category: category.default_prefix for category in BranchCategory}
        prefixes[BranchCategory.BUGFIX] = None
        with pytest.raises(InvalidConfigError):
            WorkflowConfig(prefixes=prefixes)

    def test_empty_prefix_allowed(self):
        """Test that an empty prefix is a valid setting."""
        prefixes = {category: category.default_prefix for category in BranchCategory}
        prefixes[BranchCategory.FEATURE] = ""
        config = WorkflowConfig(prefixes=prefixes)
        assert config.prefix_for(BranchCategory.FEATURE) == ""

    def test_branch_names_are_stripped(self):
        """Test whitespace around branch names is removed."""
        config = WorkflowConfig(stable_branch=" main ", integration_branch="dev ")
        assert config.stable_branch == "main"
        assert config.integration_branch == "dev"


class TestWorkflowConfigPersistence:
    """Test reading and writing the workflow keys in git config."""

    def test_load_uninitialized_repo(self, plain_repo):
        """Test loading from a repository that was never initialized."""
        with pytest.raises(ConfigMissingError) as exc_info:
            WorkflowConfig.load(plain_repo)
        assert exc_info.value.key == "workflow.branch.master"

    def test_load_missing_prefix(self, plain_repo):
        """Test loading when one category prefix was never written."""
        WorkflowConfig().save(plain_repo)
        plain_repo.git.config("--local", "--unset", "workflow.prefix.hotfix")
        with pytest.raises(ConfigMissingError) as exc_info:
            WorkflowConfig.load(plain_repo)
        assert exc_info.value.key == "workflow.prefix.hotfix"

    def test_save_writes_namespaced_keys(self, plain_repo):
        """Test the persisted key layout."""
        WorkflowConfig(version_tag_prefix="v").save(plain_repo)
        assert plain_repo.git.config("--get", "workflow.branch.master") == "master"
        assert plain_repo.git.config("--get", "workflow.branch.develop") == "develop"
        assert plain_repo.git.config("--get", "workflow.prefix.feature") == "feature/"
        assert plain_repo.git.config("--get", "workflow.prefix.support") == "support/"
        assert plain_repo.git.config("--get", "workflow.prefix.versiontag") == "v"

    def test_save_then_load(self, plain_repo):
        """Test that saved settings load back unchanged."""
        prefixes = {category: f"{category.key}-" for category in BranchCategory}
        original = WorkflowConfig(
            stable_branch="main", integration_branch="next", prefixes=prefixes, version_tag_prefix=""
        )
        original.save(plain_repo)
        loaded = WorkflowConfig.load(plain_repo)
        assert loaded == original

    def test_is_initialized(self, plain_repo):
        """Test detection of initialized repositories."""
        assert WorkflowConfig.is_initialized(plain_repo) is False
        WorkflowConfig().save(plain_repo)
        assert WorkflowConfig.is_initialized(plain_repo) is True


class TestInitRepository:
    """Test setting up the workflow in a repository."""

    def test_init_new_directory(self, temp_dir):
        """Test init creates the repository, both branches and the settings."""
        import git

        path = temp_dir / "fresh"
        config = init_repository(path)
        repo = git.Repo(path)
        try:
            assert config.stable_branch == "master"
            assert "master" in repo.heads
            assert "develop" in repo.heads
            assert repo.active_branch.name == "develop"
            assert repo.heads["develop"].commit == repo.heads["master"].commit
            assert repo.heads["master"].commit.message.strip() == "Initial commit"
            assert WorkflowConfig.load(repo) == config
        finally:
            repo.close()

    def test_init_existing_history(self, plain_repo):
        """Test init on a repository that already has commits."""
        head = plain_repo.head.commit
        init_repository(plain_repo.working_dir, WorkflowConfig(stable_branch="stable", integration_branch="dev"))
        assert plain_repo.heads["stable"].commit == head
        assert plain_repo.heads["dev"].commit == head
        assert plain_repo.active_branch.name == "dev"

    def test_init_keeps_existing_settings(self, git_repo):
        """Test re-running init without force does not overwrite settings."""
        config = init_repository(git_repo.working_dir, WorkflowConfig(version_tag_prefix="v"))
        assert config.version_tag_prefix == ""
        assert WorkflowConfig.load(git_repo).version_tag_prefix == ""

    def test_init_force_overwrites(self, git_repo):
        """Test re-running init with force rewrites settings."""
        init_repository(git_repo.working_dir, WorkflowConfig(version_tag_prefix="v"), force=True)
        assert WorkflowConfig.load(git_repo).version_tag_prefix == "v"


class TestRunOptions:
    """Test per-invocation options."""

    def test_empty_remote(self):
        """Test an empty remote name is rejected."""
        with pytest.raises(ValueError):
            RunOptions(remote=" ")

    def test_from_dict_ignores_unknown(self):
        """Test unknown keys are ignored."""
        options = RunOptions.from_dict({"remote": "upstream", "stale_days": 3})
        assert options.remote == "upstream"
        assert options.edit_messages is True
        assert options.to_dict()["remote"] == "upstream"
