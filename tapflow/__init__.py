"""tapflow -- plugin-extensible project scaffolding.

Quick usage::

    from tapflow import Creator, PluginInfo

    creator = Creator(
        "./my-app",
        template="file://./templates/basic",
        project_name="my-app",
        app_id="wx0123456789",
        plugins=[PluginInfo(id="my_plugins.typescript")],
    )
    await creator.create()

    # later, inside the created project
    await Creator("./my-app").install_plugin(["my_plugins.css"])
"""

from tapflow.config import Config
from tapflow.creator import Creator, CreatorAPI
from tapflow.errors import TapflowError
from tapflow.models import ProjectMetadata, VirtualFileSet
from tapflow.plugins import Plugin, PluginInfo

__all__ = [
    "Config",
    "Creator",
    "CreatorAPI",
    "Plugin",
    "PluginInfo",
    "ProjectMetadata",
    "TapflowError",
    "VirtualFileSet",
]
