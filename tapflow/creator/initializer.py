"""Post-emit project initialization."""

from __future__ import annotations

from pathlib import Path

from tapflow.config import Config
from tapflow.generator.generator import Generator
from tapflow.plugins.base import PluginInfo
from tapflow.utils import print_step

from .installer import install_node_modules

# Contributor plugins run on every freshly created project, whatever the
# user configured.
BUILTIN_GENERATOR_PLUGINS: tuple[PluginInfo, ...] = (
    PluginInfo(id="tapflow.plugins.project_config"),
    PluginInfo(id="tapflow.plugins.gitignore"),
)


class Initializer:
    """Installs dependencies and runs the built-in contributor plugins.

    Each step must succeed before the next one starts; a failure leaves the
    project partially initialized.
    """

    def __init__(
        self,
        config: Config | None = None,
        builtin_plugins: list[PluginInfo] | tuple[PluginInfo, ...] = BUILTIN_GENERATOR_PLUGINS,
    ) -> None:
        self.config = config or Config()
        self.builtin_plugins = list(builtin_plugins)

    async def init(self, target_dir: str | Path) -> None:
        # 1. The project's own dependencies
        await install_node_modules(self.config, target_dir)
        # 2. The runtime service, so the project can run generation itself
        await install_node_modules(self.config, target_dir, [self.config.service_package])
        # 3. Built-in contributors
        print_step("Running built-in generators")
        generator = Generator(target_dir, plugins=self.builtin_plugins)
        await generator.generate(apply_all=False)
