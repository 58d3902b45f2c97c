"""Shared constants for git-branch-flow."""

# Persisted settings in the repository's git config
KEY_STABLE_BRANCH = "workflow.branch.master"
KEY_INTEGRATION_BRANCH = "workflow.branch.develop"
KEY_PREFIX_TEMPLATE = "workflow.prefix.{category}"
KEY_VERSION_TAG_PREFIX = "workflow.prefix.versiontag"

DEFAULT_STABLE_BRANCH = "master"
DEFAULT_INTEGRATION_BRANCH = "develop"
DEFAULT_REMOTE = "origin"

INITIAL_COMMIT_MESSAGE = "Initial commit"

# Default messages offered in the editor
STABLE_MERGE_MESSAGE = "Bump to version {version}"
INTEGRATION_MERGE_MESSAGE = "Develop from version {version}"
GENERIC_MERGE_MESSAGE = "Merge {branch} to {target}"
TRACK_MERGE_MESSAGE = "Merge: {remote_tip} into {local_tip}"
TAG_MESSAGE = "Release version {name}"

# Scratch files inside the repository's git directory
MERGE_MSG_FILE = "WORKFLOW_MERGE_MSG"
TAG_MSG_FILE = "WORKFLOW_TAG_MSG"
ASKPASS_FILE = "WORKFLOW_ASKPASS"

# Editor resolution order; first variable that is set wins
EDITOR_ENV_VARS = ("GIT_EDITOR", "VISUAL", "EDITOR")
DEFAULT_EDITOR = "vi"

# In-progress state git leaves behind in the git directory
MERGE_STATE_FILES = ("MERGE_HEAD", "MERGE_MSG", "MERGE_MODE", "AUTO_MERGE", "CHERRY_PICK_HEAD")
REBASE_STATE_DIRS = ("rebase-merge", "rebase-apply")

# Symbol constants
SYMBOL_CURRENT_BRANCH = "*"
SYMBOL_OTHER_BRANCH = " "

# Exit codes
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFLICT = 2
