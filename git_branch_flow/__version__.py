"""Version information for git-branch-flow."""

try:
    from git_branch_flow._version import __version__
except ImportError:
    # Running from a source checkout without a generated version file
    __version__ = "0.0.0+unknown"
