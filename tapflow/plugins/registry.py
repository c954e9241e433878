"""Plugin discovery and loading.

A plugin id is resolved, in order, to:

1. the implementation carried by the ``PluginInfo`` itself,
2. an entry point named after the id in the ``tapflow.plugins`` group,
3. a Python module path (``package.module`` or ``package.module:attr``);
   without ``:attr`` the module's ``plugin`` attribute is used.

The resolved object must be a :class:`Plugin` instance or subclass; classes
are instantiated with the info's ``options``.
"""

from __future__ import annotations

import importlib
import re
from importlib.metadata import entry_points
from typing import Any

from tapflow.errors import PluginLoadError

from .base import Plugin, PluginInfo

ENTRY_POINT_GROUP = "tapflow.plugins"

_MODULE_PATH = re.compile(r"^[A-Za-z_][\w]*(\.[A-Za-z_][\w]*)*(:[A-Za-z_][\w]*)?$")

# Registered before user plugins, in this order.
BUILTIN_CREATOR_PLUGINS: tuple[PluginInfo, ...] = (
    PluginInfo(id="tapflow.plugins.request_app_id"),
    PluginInfo(id="tapflow.plugins.recommended"),
    PluginInfo(id="tapflow.plugins.init_git"),
)


class PluginRegistry:
    """Resolves the ordered plugin list of a ``Creator``."""

    def __init__(self, builtin: list[PluginInfo] | tuple[PluginInfo, ...] | None = None) -> None:
        self.builtin: list[PluginInfo] = list(
            BUILTIN_CREATOR_PLUGINS if builtin is None else builtin
        )

    def resolve_plugin_infos(self, inline: list[PluginInfo] | None = None) -> list[PluginInfo]:
        """Built-in plugins first, then *inline* in the order given."""
        return [*self.builtin, *(inline or [])]

    def resolve_plugins(self, inline: list[PluginInfo] | None = None) -> list[tuple[str, Plugin]]:
        """Load every plugin of :meth:`resolve_plugin_infos`."""
        resolved: list[tuple[str, Plugin]] = []
        for info in self.resolve_plugin_infos(inline):
            plugin = self.load(info)
            assert plugin is not None  # required=True never returns None
            resolved.append((info.id, plugin))
        return resolved

    def load(self, info: PluginInfo, required: bool = True) -> Plugin | None:
        """Return the implementation for *info*.

        Raises:
            PluginLoadError: If the id cannot be resolved and *required* is
                true, or if it resolves to something that is not a plugin.
        """
        target = info.plugin
        if target is None:
            target = _find(info.id)
            if target is None:
                if required:
                    raise PluginLoadError(info.id, "no entry point or module with that name")
                return None
        return _instantiate(info, target)


def _find(plugin_id: str) -> Any | None:
    matches = entry_points(group=ENTRY_POINT_GROUP, name=plugin_id)
    for ep in matches:
        return ep.load()

    if not _MODULE_PATH.match(plugin_id):
        return None
    module_name, _, attr = plugin_id.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        # Only a missing plugin module means "not found"; a broken import
        # inside an existing plugin must surface.
        if exc.name and (module_name == exc.name or module_name.startswith(exc.name + ".")):
            return None
        raise
    try:
        return getattr(module, attr or "plugin")
    except AttributeError as exc:
        raise PluginLoadError(plugin_id, f"module has no attribute '{attr or 'plugin'}'") from exc


def _instantiate(info: PluginInfo, target: Any) -> Plugin:
    if isinstance(target, type) and issubclass(target, Plugin):
        return target(info.options)
    if isinstance(target, Plugin):
        return target
    raise PluginLoadError(info.id, f"{target!r} is not a tapflow Plugin")
