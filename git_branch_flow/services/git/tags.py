"""Annotated release tags"""

from typing import Optional

import git

from git_branch_flow.constants import TAG_MESSAGE, TAG_MSG_FILE
from git_branch_flow.exceptions import EmptyTagNameError, EngineError, TagAlreadyExistsError
from git_branch_flow.services.editor import (
    DefaultMessageEditor,
    FixedTagName,
    MessageEditor,
    TagNamePrompt,
)
from git_branch_flow.services.git.operations import GitOperations
from git_branch_flow.utils.logging import get_logger

logger = get_logger(__name__)


class TagIssuer:
    """Creates the annotated tag marking a release or hotfix on the stable branch."""

    def __init__(
        self,
        ops: GitOperations,
        editor: Optional[MessageEditor] = None,
        prompt: Optional[TagNamePrompt] = None,
        version_tag_prefix: str = "",
    ):
        self.ops = ops
        self.editor = editor or DefaultMessageEditor()
        self.prompt = prompt or FixedTagName()
        self.version_tag_prefix = version_tag_prefix or ""

    def qualify(self, name: str) -> str:
        """Apply the configured version-tag prefix unless already present."""
        if self.version_tag_prefix and not name.startswith(self.version_tag_prefix):
            return f"{self.version_tag_prefix}{name}"
        return name

    def tag(self, target_branch: str, suggested_name: str = "") -> str:
        """Tag the tip of `target_branch` and return the tag name.

        Raises:
            EmptyTagNameError: no name was entered
            TagAlreadyExistsError: the name is taken
        """
        commit = self.ops.tip(target_branch)
        entered = (self.prompt.ask(self.qualify(suggested_name) if suggested_name else "") or "").strip()
        if not entered:
            raise EmptyTagNameError()
        name = self.qualify(entered)

        repo = self.ops.repo
        if name in repo.tags:
            raise TagAlreadyExistsError(name)

        message = self.editor.edit(self.ops.scratch_path(TAG_MSG_FILE), TAG_MESSAGE.format(name=name))
        try:
            repo.create_tag(name, ref=commit, message=message)
        except git.exc.GitCommandError as e:
            if "already exists" in str(e.stderr):
                raise TagAlreadyExistsError(name) from e
            raise EngineError("tag", e, branch=target_branch) from e

        logger.info(f"Tagged {target_branch} ({commit.hexsha[:7]}) as {name}")
        return name
