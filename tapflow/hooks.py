"""Typed pipeline stages that plugins tap into.

Two composition kinds exist, each its own class:

* :class:`WaterfallHook` passes each handler the previous handler's return
  value; the last value is the stage result.
* :class:`SeriesHook` hands every handler the same arguments and ignores what
  they return; handlers communicate by mutating shared state such as the
  virtual file set.

Handlers always run one at a time, in the order they were tapped, and each is
awaited before the next one starts.  Handlers may be plain functions or
coroutine functions.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from tapflow.errors import HookHandlerError, TapflowError

T = TypeVar("T")


@dataclass(frozen=True)
class Tap:
    """A handler registered on a hook by one plugin."""

    plugin_id: str
    handler: Callable[..., Any]


class _Hook:
    kind = ""

    def __init__(self, name: str, arg_names: tuple[str, ...]) -> None:
        self.name = name
        self.arg_names = arg_names
        self._taps: list[Tap] = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} taps={len(self._taps)}>"

    @property
    def taps(self) -> tuple[Tap, ...]:
        return tuple(self._taps)

    def tap(self, plugin_id: str, handler: Callable[..., Any]) -> None:
        """Register *handler* on behalf of *plugin_id*."""
        if not callable(handler):
            raise TypeError(f"Handler for hook '{self.name}' must be callable")
        self._taps.append(Tap(plugin_id, handler))

    async def _invoke(self, tap: Tap, *args: Any) -> Any:
        try:
            result = tap.handler(*args)
            if inspect.isawaitable(result):
                result = await result
        except TapflowError as exc:
            exc.tag(self.name, tap.plugin_id)
            raise
        except Exception as exc:
            raise HookHandlerError(self.name, tap.plugin_id, exc) from exc
        return result


class WaterfallHook(_Hook, Generic[T]):
    """Stage whose handlers transform a value one after another."""

    kind = "waterfall"

    def __init__(self, name: str, arg_name: str) -> None:
        super().__init__(name, (arg_name,))

    def tap(self, plugin_id: str, handler: Callable[[T], T | Awaitable[T]]) -> None:
        super().tap(plugin_id, handler)

    async def call(self, value: T) -> T:
        for tap in self._taps:
            value = await self._invoke(tap, value)
        return value


class SeriesHook(_Hook):
    """Stage whose handlers observe or mutate shared arguments in order."""

    kind = "series"

    def tap(self, plugin_id: str, handler: Callable[..., Awaitable[None] | None]) -> None:
        super().tap(plugin_id, handler)

    async def call(self, *args: Any) -> None:
        if len(args) != len(self.arg_names):
            raise TypeError(
                f"Hook '{self.name}' expects {len(self.arg_names)} argument(s) "
                f"({', '.join(self.arg_names)}), got {len(args)}"
            )
        for tap in self._taps:
            await self._invoke(tap, *args)


def _waterfall(name: str, arg_name: str) -> Callable[[], WaterfallHook[Any]]:
    return lambda: WaterfallHook(name, arg_name)


def _series(name: str, *arg_names: str) -> Callable[[], SeriesHook]:
    return lambda: SeriesHook(name, arg_names)


@dataclass
class CreatorHooks:
    """The seven stages of ``Creator.create()``, in execution order."""

    # Collect project name, app id and template reference.
    prepare: WaterfallHook[Any] = field(default_factory=_waterfall("prepare", "metadata"))
    # Turn the template reference into a local directory.
    resolve_template: WaterfallHook[Any] = field(
        default_factory=_waterfall("resolve_template", "template")
    )
    # Render the template into the virtual file set.
    render: SeriesHook = field(
        default_factory=_series("render", "metadata", "template_path", "files")
    )
    # Last chance to touch the file set before it hits the disk.
    before_emit: SeriesHook = field(default_factory=_series("before_emit", "files"))
    emit: SeriesHook = field(default_factory=_series("emit", "context", "files"))
    init: SeriesHook = field(default_factory=_series("init", "context"))
    after_init: SeriesHook = field(default_factory=_series("after_init", "context"))

    def stages(self) -> list[_Hook]:
        """All hooks in the order ``create()`` runs them."""
        return [
            self.prepare,
            self.resolve_template,
            self.render,
            self.before_emit,
            self.emit,
            self.init,
            self.after_init,
        ]
