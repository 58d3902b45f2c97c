"""
git-branch-flow - branching-workflow automation on top of git
"""

from .__version__ import __version__
from .core import GitFlow
from .cli.main import main

__all__ = ["GitFlow", "main", "__version__"]
