"""tapflow creator module.

Turns a template reference into a project directory and initializes it.

Key classes:
    Creator           - Drives the hook pipeline, entry points create() / install_plugin()
    CreatorAPI        - Capability handle passed to plugins
    TemplateResolver  - Local / URL / registry template acquisition
    FileRenderer      - Jinja2 rendering of template trees into memory
    Initializer       - Dependency installation and built-in generators
"""

from .api import CreatorAPI
from .creator import CREATOR_PLUGIN_ID, CreateSession, Creator
from .emitter import sync_files
from .initializer import BUILTIN_GENERATOR_PLUGINS, Initializer
from .renderer import FileRenderer
from .resolver import TemplateResolver, TempDirScope

__all__ = [
    # Orchestration
    "Creator",
    "CreateSession",
    "CreatorAPI",
    "CREATOR_PLUGIN_ID",
    # Template acquisition
    "TemplateResolver",
    "TempDirScope",
    # Rendering and output
    "FileRenderer",
    "sync_files",
    # Initialization
    "Initializer",
    "BUILTIN_GENERATOR_PLUGINS",
]
