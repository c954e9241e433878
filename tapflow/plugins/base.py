"""Plugin base class and plugin descriptors."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from tapflow.creator.api import CreatorAPI
    from tapflow.generator.generator import GeneratorAPI


class Plugin:
    """Base class every tapflow plugin extends.

    ``creator`` is called once while a ``Creator`` registers its plugins and
    taps pipeline stages through the capability handle it receives.
    ``generator`` is called by generation passes (after ``init`` and by
    ``install_plugin``) and contributes or rewrites project files.  Both
    default to doing nothing, so a plugin only overrides what it needs.
    """

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        self.options: dict[str, Any] = dict(options or {})

    def creator(self, api: CreatorAPI) -> None:
        return None

    def generator(self, api: GeneratorAPI) -> Awaitable[None] | None:
        return None


class PluginInfo(BaseModel):
    """Identifies a plugin and how to construct it.

    ``plugin`` carries an implementation directly (inline plugins, tests);
    otherwise the registry loads one from ``id``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    options: dict[str, Any] = Field(default_factory=dict)
    plugin: Any = Field(default=None, exclude=True)
