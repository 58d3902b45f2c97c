"""Mapping workflow categories to branch names and merge targets"""

from typing import Optional

from git_branch_flow.config import WorkflowConfig
from git_branch_flow.constants import KEY_PREFIX_TEMPLATE
from git_branch_flow.exceptions import (
    ConfigMissingError,
    MissingArgumentError,
    UnsupportedOperationError,
)
from git_branch_flow.models.branch import (
    BaseRule,
    BranchCategory,
    FinishTarget,
    QualifiedBranchName,
)


class BranchModel:
    """Pure functions of the workflow config: names, bases and finish targets."""

    def __init__(self, config: WorkflowConfig):
        self.config = config

    def resolve(self, category: BranchCategory, short_name: str) -> QualifiedBranchName:
        """Qualified branch name for `short_name` in `category`."""
        prefix = self.config.prefixes.get(category)
        if prefix is None:
            raise ConfigMissingError(KEY_PREFIX_TEMPLATE.format(category=category.key))
        if short_name is None or not short_name.strip():
            raise MissingArgumentError("a branch name", f"{category} branch")
        return QualifiedBranchName(category=category, short_name=short_name, prefix=prefix)

    def base_branch_for(self, category: BranchCategory, caller_supplied_base: Optional[str] = None) -> str:
        """Branch a new `category` branch starts from.

        Support branches have no default base and need one from the caller.
        """
        if category.policy.base_rule == BaseRule.CALLER_SUPPLIED:
            if not caller_supplied_base:
                raise MissingArgumentError("a base branch", f"{category} start")
            return caller_supplied_base
        return self.config.integration_branch

    def finish_target_for(self, category: BranchCategory) -> str:
        """Branch a finished `category` branch is merged into."""
        target = category.policy.finish_target
        if target == FinishTarget.STABLE:
            return self.config.stable_branch
        if target == FinishTarget.INTEGRATION:
            return self.config.integration_branch
        raise UnsupportedOperationError("finish", category.key)

    def diff_base_for(self, category: BranchCategory) -> str:
        """Branch a category's branches are compared against."""
        if category.policy.base_rule == BaseRule.CALLER_SUPPLIED:
            return self.config.stable_branch
        return self.config.integration_branch

    def category_of(self, branch_name: str) -> Optional[BranchCategory]:
        """Category whose prefix `branch_name` carries, longest prefix first."""
        candidates = [
            (prefix, category)
            for category, prefix in self.config.prefixes.items()
            if prefix and branch_name.startswith(prefix) and len(branch_name) > len(prefix)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda item: len(item[0]))[1]

    def short_name_of(self, category: BranchCategory, branch_name: str) -> Optional[str]:
        """Short name of `branch_name` if it belongs to `category`."""
        prefix = self.config.prefixes[category]
        if branch_name.startswith(prefix) and len(branch_name) > len(prefix):
            return branch_name[len(prefix):]
        return None
