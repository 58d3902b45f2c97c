"""Branch categories and the names derived from them"""
from enum import Enum
from dataclasses import dataclass


class BaseRule(Enum):
    """Where a new branch of a category starts from."""
    INTEGRATION = "integration"
    CALLER_SUPPLIED = "caller-supplied"


class FinishTarget(Enum):
    """Which long-lived branch a finished branch is merged into."""
    INTEGRATION = "integration"
    STABLE = "stable"
    NONE = "none"


@dataclass(frozen=True)
class CategoryPolicy:
    """Per-category workflow rules."""
    base_rule: BaseRule
    finish_target: FinishTarget
    uses_tag: bool = False
    no_ff_into_target: bool = False  # always record a merge commit on the target

    @property
    def merges_back(self) -> bool:
        """Whether the stable branch is merged back into integration after finishing."""
        return self.finish_target == FinishTarget.STABLE


class BranchCategory(Enum):
    """Short-lived branch kinds and their workflow policy."""
    FEATURE = ("feature", CategoryPolicy(BaseRule.INTEGRATION, FinishTarget.INTEGRATION))
    RELEASE = ("release", CategoryPolicy(BaseRule.INTEGRATION, FinishTarget.STABLE,
                                         uses_tag=True, no_ff_into_target=True))
    HOTFIX = ("hotfix", CategoryPolicy(BaseRule.INTEGRATION, FinishTarget.STABLE,
                                       uses_tag=True, no_ff_into_target=True))
    BUGFIX = ("bugfix", CategoryPolicy(BaseRule.INTEGRATION, FinishTarget.INTEGRATION))
    SUPPORT = ("support", CategoryPolicy(BaseRule.CALLER_SUPPLIED, FinishTarget.NONE))

    def __init__(self, key: str, policy: CategoryPolicy):
        self.key = key
        self.policy = policy

    @property
    def default_prefix(self) -> str:
        return f"{self.key}/"

    @classmethod
    def from_key(cls, key: str) -> "BranchCategory":
        """Look up a category by its command-line / config key."""
        for category in cls:
            if category.key == key:
                return category
        raise ValueError(f"Unknown branch category '{key}'")

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class QualifiedBranchName:
    """A workflow branch name: configured prefix plus short name.

    Built only by BranchModel.resolve so the prefix always comes from the
    persisted workflow settings.
    """
    category: BranchCategory
    short_name: str
    prefix: str

    @property
    def name(self) -> str:
        return f"{self.prefix}{self.short_name}"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BranchListing:
    """One line of a category's branch listing."""
    name: str
    is_current: bool = False
