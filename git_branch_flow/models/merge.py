"""Merge outcomes and finish-plan steps"""
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union


class MergeStrategy(Enum):
    """How one branch is brought into another."""
    FAST_FORWARD = "fast-forward"
    THREE_WAY = "three-way"


@dataclass(frozen=True)
class FastForwarded:
    new_tip: str


@dataclass(frozen=True)
class Merged:
    new_commit: str


@dataclass(frozen=True)
class Conflicted:
    paths: Tuple[str, ...]


@dataclass(frozen=True)
class UpToDate:
    pass


MergeOutcome = Union[FastForwarded, Merged, Conflicted, UpToDate]


@dataclass(frozen=True)
class MergeStep:
    """Merge `source` into `target`."""
    source: str
    target: str
    allow_fast_forward: bool = True
    version: Optional[str] = None  # short name used in the default message

    def describe(self) -> str:
        return f"merge {self.source} -> {self.target}"


@dataclass(frozen=True)
class TagStep:
    """Tag the tip of `target`."""
    target: str
    suggested_name: str

    def describe(self) -> str:
        return f"tag {self.target}"


@dataclass(frozen=True)
class DeleteStep:
    """Remove the finished branch."""
    branch: str

    def describe(self) -> str:
        return f"delete {self.branch}"


PlanStep = Union[MergeStep, TagStep, DeleteStep]


@dataclass(frozen=True)
class FinishPlan:
    """Ordered steps retiring one workflow branch, computed before any step runs."""
    branch: str
    steps: Tuple[PlanStep, ...]

    def __iter__(self):
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)


@dataclass
class FinishReport:
    """What a finish invocation did, step by step."""
    branch: str
    completed: List[Tuple[PlanStep, object]] = field(default_factory=list)
    tag: Optional[str] = None

    def record(self, step: PlanStep, result: object) -> None:
        self.completed.append((step, result))

    @property
    def outcomes(self) -> List[MergeOutcome]:
        return [result for step, result in self.completed if isinstance(step, MergeStep)]
