"""Built-in generator: give every project a tapflow configuration file."""

from __future__ import annotations

from tapflow.config import PROJECT_CONFIG_FILES, find_project_config
from tapflow.generator.generator import GeneratorAPI
from tapflow.utils import dump_json

from .base import Plugin


class ProjectConfigPlugin(Plugin):
    """Creates ``tapflow.config.json`` with an empty plugin list if the
    project does not ship a configuration file of its own."""

    def generator(self, api: GeneratorAPI) -> None:
        if find_project_config(api.context) is not None:
            return
        api.add_file(PROJECT_CONFIG_FILES[0], dump_json({"plugins": []}))


plugin = ProjectConfigPlugin
