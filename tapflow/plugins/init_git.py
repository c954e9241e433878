"""Built-in plugin: put the new project under git."""

from __future__ import annotations

import shutil
from pathlib import Path

from tapflow.creator.api import CreatorAPI
from tapflow.errors import CommandError
from tapflow.utils import print_step, print_warning

from .base import Plugin


class InitGitPlugin(Plugin):
    """Runs ``git init`` during ``init`` and commits the scaffold afterwards.

    Does nothing when git is not installed or the target already sits inside
    a work tree.
    """

    repository_created = False

    def creator(self, api: CreatorAPI) -> None:
        async def init(context: Path) -> None:
            self.repository_created = False
            if shutil.which("git") is None:
                print_warning("  git not found, skipping repository setup")
                return
            if await _inside_work_tree(api):
                return
            print_step("Initializing git repository")
            await api.exec("git", ["init"])
            self.repository_created = True

        async def after_init(context: Path) -> None:
            if not self.repository_created:
                return
            await api.exec("git", ["add", "-A"])
            await api.exec("git", ["commit", "-m", api.config.git_commit_message, "--no-verify"])

        api.tap_init(init)
        api.tap_after_init(after_init)


async def _inside_work_tree(api: CreatorAPI) -> bool:
    try:
        out = await api.exec("git", ["rev-parse", "--is-inside-work-tree"])
    except CommandError:
        return False
    return out.strip() == "true"


plugin = InitGitPlugin
