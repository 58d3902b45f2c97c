"""Start, finish, checkout, delete and list workflow branches"""

from typing import Iterator, Optional

from git_branch_flow.constants import (
    GENERIC_MERGE_MESSAGE,
    INTEGRATION_MERGE_MESSAGE,
    STABLE_MERGE_MESSAGE,
)
from git_branch_flow.exceptions import (
    BaseBranchNotFoundError,
    BranchAlreadyExistsError,
    BranchNotFullyMergedError,
    BranchProtectedError,
    MergeConflictError,
)
from git_branch_flow.models.branch import BranchCategory, BranchListing, FinishTarget, QualifiedBranchName
from git_branch_flow.models.merge import (
    Conflicted,
    DeleteStep,
    FinishPlan,
    FinishReport,
    MergeStep,
    TagStep,
)
from git_branch_flow.services.branch_model import BranchModel
from git_branch_flow.services.git.merge_strategist import MergeStrategist
from git_branch_flow.services.git.operations import GitOperations
from git_branch_flow.services.git.tags import TagIssuer
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)


class BranchLifecycle:
    """Runs the lifecycle of workflow branches: NonExistent -> Started -> Finished | Deleted.

    A finish is planned in full before any step runs. Steps run in order and
    the first failure stops the plan; completed steps are not rolled back.
    """

    def __init__(
        self,
        ops: GitOperations,
        model: BranchModel,
        strategist: MergeStrategist,
        tagger: TagIssuer,
    ):
        self.ops = ops
        self.model = model
        self.strategist = strategist
        self.tagger = tagger

    @property
    def config(self):
        return self.model.config

    def start(
        self,
        category: BranchCategory,
        short_name: str,
        base_override: Optional[str] = None,
    ) -> QualifiedBranchName:
        """Create a `category` branch from its base and check it out."""
        qualified = self.model.resolve(category, short_name)
        base = base_override or self.model.base_branch_for(category)

        if self.ops.branch_exists(qualified.name):
            raise BranchAlreadyExistsError(qualified.name)
        base_commit = self.ops.resolve_commit(base)
        if base_commit is None:
            raise BaseBranchNotFoundError(base)
        self.ops.ensure_clean(qualified.name)

        self.ops.create_branch(qualified.name, base_commit)
        self.ops.checkout(qualified.name)
        logger.info(f"Started {qualified.name} from {base} ({base_commit.hexsha[:7]})")
        return qualified

    def plan_finish(
        self,
        category: BranchCategory,
        short_name: str,
        keep_branch: bool = False,
    ) -> FinishPlan:
        """Steps that retire a `category` branch, computed before anything runs."""
        qualified = self.model.resolve(category, short_name)
        target = self.model.finish_target_for(category)
        policy = category.policy
        self.ops.get_head(qualified.name)

        steps = [
            MergeStep(
                source=qualified.name,
                target=target,
                allow_fast_forward=not policy.no_ff_into_target,
                version=qualified.short_name,
            )
        ]
        if policy.uses_tag:
            steps.append(TagStep(target=target, suggested_name=qualified.short_name))
        if policy.merges_back:
            steps.append(
                MergeStep(
                    source=target,
                    target=self.config.integration_branch,
                    allow_fast_forward=True,
                    version=qualified.short_name,
                )
            )
        if not keep_branch:
            steps.append(DeleteStep(branch=qualified.name))
        plan = FinishPlan(branch=qualified.name, steps=tuple(steps))
        logger.debug(f"Finish plan for {qualified.name}: {[step.describe() for step in plan]}")
        return plan

    def finish(
        self,
        category: BranchCategory,
        short_name: str,
        keep_branch: bool = False,
    ) -> FinishReport:
        """Merge a branch into its target(s), tag if the category does, then delete it.

        Raises:
            MergeConflictError: a merge stopped on conflicts; later steps did not run
        """
        plan = self.plan_finish(category, short_name, keep_branch=keep_branch)
        self.ops.ensure_clean(plan.branch)
        report = FinishReport(branch=plan.branch)

        for step in plan:
            logger.info(f"Finishing {plan.branch}: {step.describe()}")
            if isinstance(step, MergeStep):
                outcome = self.strategist.merge(
                    step.target,
                    step.source,
                    self.merge_message(step),
                    allow_fast_forward=step.allow_fast_forward,
                )
                if isinstance(outcome, Conflicted):
                    raise MergeConflictError(step.source, step.target, outcome.paths)
                if self.ops.current_branch() != step.target:
                    self.ops.checkout(step.target)
                report.record(step, outcome)
            elif isinstance(step, TagStep):
                expected = self.tagger.qualify(step.suggested_name)
                if expected in self.tags_at(step.target):
                    # Finish re-run after a later step failed; the release is already tagged
                    logger.info(f"{step.target} is already tagged as {expected}, not tagging again")
                    report.tag = expected
                else:
                    report.tag = self.tagger.tag(step.target, step.suggested_name)
                report.record(step, report.tag)
            elif isinstance(step, DeleteStep):
                self.delete(step.branch, force=True)
                report.record(step, step.branch)

        logger.info(f"Finished {plan.branch}")
        return report

    def merge_message(self, step: MergeStep) -> str:
        """Default message for a merge step, chosen by its target."""
        if step.target == self.config.stable_branch:
            return STABLE_MERGE_MESSAGE.format(version=step.version)
        if step.target == self.config.integration_branch:
            return INTEGRATION_MERGE_MESSAGE.format(version=step.version)
        return GENERIC_MERGE_MESSAGE.format(branch=step.source, target=step.target)

    def tags_at(self, branch: str) -> list:
        """Names of tags pointing at the tip of `branch`."""
        tip = self.ops.tip(branch)
        return [tag.name for tag in self.ops.repo.tags if tag.commit == tip]

    def checkout(self, qualified_name: str) -> None:
        """Switch the working tree and HEAD to a workflow branch."""
        self.ops.checkout(str(qualified_name))
        logger.info(f"Switched to {qualified_name}")

    def delete(self, qualified_name: str, force: bool = True) -> None:
        """Remove a local workflow branch.

        Deletion is forced by default. With `force=False` the branch must
        already be merged into its category's finish target.
        """
        name = str(qualified_name)
        head = self.ops.get_head(name)
        if name in (self.config.stable_branch, self.config.integration_branch):
            raise BranchProtectedError(name)

        if not force:
            target = self._merge_check_target(name)
            if not self.ops.is_ancestor(head.commit, self.ops.tip(target)):
                raise BranchNotFullyMergedError(name, target)

        if self.ops.current_branch() == name:
            self.ops.checkout(self.config.integration_branch)
        self.ops.delete_branch(name, force=True)
        logger.info(f"Deleted {name}")

    def _merge_check_target(self, name: str) -> str:
        category = self.model.category_of(name)
        if category is not None and category.policy.finish_target != FinishTarget.NONE:
            return self.model.finish_target_for(category)
        return self.config.integration_branch

    def list(self, category: BranchCategory) -> Iterator[BranchListing]:
        """Local branches under the category's prefix, current one marked.

        Yields in git's enumeration order.
        """
        prefix = self.config.prefix_for(category)
        current = self.ops.current_branch()
        protected = (self.config.stable_branch, self.config.integration_branch)
        for head in self.ops.iter_branches():
            if head.name.startswith(prefix) and head.name not in protected:
                yield BranchListing(name=head.name, is_current=head.name == current)
