"""Built-in plugin: install the configured recommended plugins."""

from __future__ import annotations

from pathlib import Path

from tapflow.creator.api import CreatorAPI

from .base import Plugin


class RecommendedPlugin(Plugin):
    def creator(self, api: CreatorAPI) -> None:
        async def after_init(context: Path) -> None:
            plugins = self.options.get("plugins", api.config.recommended_plugins)
            if plugins:
                await api.install_plugins(list(plugins))

        api.tap_after_init(after_init)


plugin = RecommendedPlugin
