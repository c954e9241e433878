"""Built-in plugin: make sure the project has a name and an app id."""

from __future__ import annotations

from rich.prompt import Prompt

from tapflow.creator.api import CreatorAPI
from tapflow.models import ProjectMetadata

from .base import Plugin


class RequestAppIdPlugin(Plugin):
    """Fills in missing metadata during ``prepare``.

    The project name defaults to the target directory name; a missing app id
    is asked for interactively.
    """

    def creator(self, api: CreatorAPI) -> None:
        def prepare(metadata: ProjectMetadata) -> ProjectMetadata:
            updates: dict[str, str] = {}
            if not metadata.project_name:
                updates["project_name"] = api.context.name
            if not metadata.app_id:
                updates["app_id"] = Prompt.ask("AppID").strip()
            return metadata.model_copy(update=updates) if updates else metadata

        api.tap_prepare(prepare)


plugin = RequestAppIdPlugin
