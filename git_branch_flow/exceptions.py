"""Custom exceptions for git-branch-flow"""

from typing import Iterable, Optional


class GitFlowError(Exception):
    """Base exception for all git-branch-flow errors."""
    pass


class GitOperationError(GitFlowError):
    """Exception raised for errors in workflow operations on the repository."""

    def __init__(self, operation: str, branch: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class EngineError(GitOperationError):
    """Wraps a failure reported by git itself."""

    def __init__(self, operation: str, cause: Exception, branch: Optional[str] = None):
        self.cause = cause
        detail = getattr(cause, "stderr", None) or str(cause)
        super().__init__(operation, branch, str(detail).strip())


class ConfigMissingError(GitFlowError):
    """Raised when the workflow settings were never written (repository not initialized)."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Workflow setting '{key}' is not configured. Run 'git-branch-flow init' first."
        )


class InvalidConfigError(GitFlowError):
    """Raised when persisted workflow settings violate their invariants."""
    pass


class MissingArgumentError(GitFlowError):
    """Raised when an operation needs an argument the caller did not supply."""

    def __init__(self, argument: str, operation: str):
        self.argument = argument
        self.operation = operation
        super().__init__(f"'{operation}' requires {argument}")


class UnsupportedOperationError(GitFlowError):
    """Raised when a category does not support the requested operation."""

    def __init__(self, operation: str, category: str):
        self.operation = operation
        self.category = category
        super().__init__(f"{category} branches do not support '{operation}'")


class BranchAlreadyExistsError(GitOperationError):
    """Exception raised when starting a branch that already exists."""

    def __init__(self, branch: str):
        super().__init__("start", branch, "Branch already exists")


class BranchNotFoundError(GitOperationError):
    """Exception raised when a branch is not found."""

    def __init__(self, branch: str):
        super().__init__("find_branch", branch, "Branch not found")


class BaseBranchNotFoundError(GitOperationError):
    """Exception raised when the base of a new branch does not resolve."""

    def __init__(self, base: str):
        super().__init__("start", base, "Base branch does not resolve to a commit")


class BranchNotFullyMergedError(GitOperationError):
    """Exception raised when an unforced delete targets an unmerged branch."""

    def __init__(self, branch: str, target: str):
        self.target = target
        super().__init__("delete", branch, f"Branch is not fully merged into '{target}'")


class DirtyWorkingTreeError(GitOperationError):
    """Exception raised when uncommitted changes would be overwritten."""

    def __init__(self, branch: Optional[str] = None):
        super().__init__("checkout", branch, "Working tree has uncommitted changes")


class MergeConflictError(GitOperationError):
    """Exception raised when a three-way merge stops on conflicting paths."""

    def __init__(self, branch: str, target: str, paths: Iterable[str]):
        self.target = target
        self.paths = sorted(set(paths))
        super().__init__(
            "merge",
            branch,
            f"Conflicts merging into '{target}': {', '.join(self.paths)}",
        )


class TagAlreadyExistsError(GitOperationError):
    """Exception raised when the requested tag name is taken."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__("tag", message=f"Tag '{tag}' already exists")


class EmptyTagNameError(GitOperationError):
    """Exception raised when no tag name was entered."""

    def __init__(self):
        super().__init__("tag", message="Tag name cannot be empty")


class RemoteError(GitOperationError):
    """Base class for failures talking to a remote."""

    def __init__(self, operation: str, remote: str, message: str, branch: Optional[str] = None):
        self.remote = remote
        super().__init__(operation, branch, f"{message} ({remote})")


class RemoteNotFoundError(RemoteError):
    """Exception raised when the remote is not configured."""

    def __init__(self, remote: str):
        super().__init__("remote", remote, "Remote not found")


class AuthenticationFailedError(RemoteError):
    """Exception raised when the remote rejects the supplied credentials."""

    def __init__(self, remote: str, operation: str = "push"):
        super().__init__(operation, remote, "Authentication failed")


class NonFastForwardRejectedError(RemoteError):
    """Exception raised when the remote refuses a non-fast-forward update."""

    def __init__(self, remote: str, branch: str):
        super().__init__("push", remote, "Updates were rejected (non-fast-forward)", branch=branch)


class BranchProtectedError(GitOperationError):
    """Exception raised when attempting to delete the stable or integration branch."""

    def __init__(self, branch: str):
        super().__init__("delete", branch, "Branch is protected")
