"""Git-related services for git-branch-flow."""

from .operations import GitOperations
from .merge_strategist import MergeStrategist
from .tags import TagIssuer
from .remote_sync import Credentials, RemoteSynchronizer
from .diff_reporter import DiffReporter
from .rebase import Rebaser, RebaseMode

__all__ = [
    "GitOperations",
    "MergeStrategist",
    "TagIssuer",
    "Credentials",
    "RemoteSynchronizer",
    "DiffReporter",
    "Rebaser",
    "RebaseMode",
]
