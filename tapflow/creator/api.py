"""Capability handle given to each plugin's ``creator`` method."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tapflow.config import Config
from tapflow.models import ProjectMetadata, VirtualFileSet

from .installer import exec_command, install_node_modules

if TYPE_CHECKING:
    from .creator import Creator

MaybeAwaitable = Awaitable[Any] | Any


class CreatorAPI:
    """Binds one plugin id to a ``Creator``.

    Every ``tap_*`` call registers the handler under this plugin's id, so a
    failing handler can be traced back to the plugin that installed it.
    """

    def __init__(self, plugin_id: str, creator: Creator) -> None:
        self.id = plugin_id
        self._creator = creator

    @property
    def context(self) -> Path:
        """The target project directory."""
        return self._creator.context

    @property
    def config(self) -> Config:
        return self._creator.config

    def resolve(self, *parts: str) -> Path:
        return self._creator.context.joinpath(*parts)

    # -- Side effects ------------------------------------------------------

    async def exec(self, command: str, args: list[str] | None = None) -> str:
        """Run *command* inside the project directory and return its stdout."""
        return await exec_command(self._creator.context, command, args)

    async def install_node_modules(
        self, modules: list[str] | None = None, save_dev: bool = False
    ) -> None:
        await install_node_modules(self._creator.config, self._creator.context, modules, save_dev)

    async def install_plugins(self, plugin_ids: list[str]) -> None:
        await self._creator.install_plugin(plugin_ids)

    # -- Stage taps --------------------------------------------------------

    def tap_prepare(self, handler: Callable[[ProjectMetadata], MaybeAwaitable]) -> None:
        """Handler receives the metadata and returns the (updated) metadata."""
        self._creator.hooks.prepare.tap(self.id, handler)

    def tap_resolve_template(self, handler: Callable[[str], MaybeAwaitable]) -> None:
        """Handler receives a template reference or path and returns a path."""
        self._creator.hooks.resolve_template.tap(self.id, handler)

    def tap_render(
        self, handler: Callable[[ProjectMetadata, Path, VirtualFileSet], MaybeAwaitable]
    ) -> None:
        """Handler adds rendered entries to the file set it receives."""
        self._creator.hooks.render.tap(self.id, handler)

    def tap_before_emit(self, handler: Callable[[VirtualFileSet], MaybeAwaitable]) -> None:
        self._creator.hooks.before_emit.tap(self.id, handler)

    def tap_emit(self, handler: Callable[[Path, VirtualFileSet], MaybeAwaitable]) -> None:
        self._creator.hooks.emit.tap(self.id, handler)

    def tap_init(self, handler: Callable[[Path], MaybeAwaitable]) -> None:
        self._creator.hooks.init.tap(self.id, handler)

    def tap_after_init(self, handler: Callable[[Path], MaybeAwaitable]) -> None:
        self._creator.hooks.after_init.tap(self.id, handler)
