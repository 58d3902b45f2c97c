"""Editable messages and interactive prompts.

Merge and tag messages are offered to the user for editing before the
commit or tag is created. Both seams are small capability classes so that
tests (and ``--no-edit`` runs) can swap in implementations that never
spawn a process or read stdin.
"""
import os
import shlex
import subprocess
from pathlib import Path
from typing import Optional

from rich.prompt import Prompt

from git_branch_flow.constants import DEFAULT_EDITOR, EDITOR_ENV_VARS
from git_branch_flow.exceptions import GitOperationError
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)


class MessageEditor:
    """Returns the final text of a message given its default."""

    def edit(self, path: Path, default: str) -> str:
        raise NotImplementedError


class DefaultMessageEditor(MessageEditor):
    """Accepts every default unchanged (``--no-edit``)."""

    def edit(self, path: Path, default: str) -> str:
        return default


def resolve_editor() -> str:
    """Editor command from the environment, falling back to vi."""
    for var in EDITOR_ENV_VARS:
        value = os.environ.get(var)
        if value and value.strip():
            return value
    return DEFAULT_EDITOR


def strip_comments(text: str) -> str:
    """Drop comment lines and surrounding blank lines from an edited message."""
    lines = [line.rstrip() for line in text.splitlines() if not line.lstrip().startswith("#")]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


class ExternalEditor(MessageEditor):
    """Stages the message in a scratch file and opens it in the user's editor."""

    def __init__(self, command: Optional[str] = None):
        self.command = command or resolve_editor()

    def edit(self, path: Path, default: str) -> str:
        path = Path(path)
        path.write_text(
            f"{default}\n"
            "# Please enter the message. Lines starting with '#' will be ignored,\n"
            "# and an empty message keeps the default above.\n",
            encoding="utf-8",
        )
        args = shlex.split(self.command) + [str(path)]
        logger.debug(f"Opening editor: {args}")
        try:
            subprocess.run(args, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise GitOperationError("edit_message", message=f"Editor '{self.command}' failed: {e}") from e

        try:
            edited = strip_comments(path.read_text(encoding="utf-8"))
        finally:
            path.unlink(missing_ok=True)
        return edited or default


class TagNamePrompt:
    """Asks for the name of a tag."""

    def ask(self, default: str) -> str:
        raise NotImplementedError


class FixedTagName(TagNamePrompt):
    """Answers with a name chosen up front (``--tag``) or the suggestion."""

    def __init__(self, name: Optional[str] = None):
        self.name = name

    def ask(self, default: str) -> str:
        return default if self.name is None else self.name


class ConsoleTagNamePrompt(TagNamePrompt):
    """Prompts on the terminal with rich."""

    def ask(self, default: str) -> str:
        return Prompt.ask("Tag name", default=default or None) or ""
