"""Plugin base class, descriptors and the registry that loads them.

Built-in plugins live next to this module and are loaded by id like any
third-party plugin.
"""

from .base import Plugin, PluginInfo
from .registry import BUILTIN_CREATOR_PLUGINS, ENTRY_POINT_GROUP, PluginRegistry

__all__ = [
    "Plugin",
    "PluginInfo",
    "PluginRegistry",
    "BUILTIN_CREATOR_PLUGINS",
    "ENTRY_POINT_GROUP",
]
