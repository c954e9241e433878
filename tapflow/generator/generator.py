"""Plugin-driven generation over an existing project directory.

A generation pass loads the project's files into memory, lets each plugin's
``generator`` contribute template files, ``package.json`` fields and file
processors, applies everything in order and writes back only what changed.

``apply_all`` selects how contributed template files meet existing ones:

* ``False`` (fresh scaffold, used right after ``create``): files the project
  already has win, plugins only add new files.
* ``True`` (apply to an already-generated project, used by
  ``install_plugin``): contributed files overwrite existing ones.

File processors always see the whole project.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tapflow.creator.emitter import sync_files
from tapflow.creator.renderer import FileRenderer
from tapflow.errors import HookHandlerError, TapflowError
from tapflow.models import VirtualFileSet
from tapflow.plugins.base import PluginInfo
from tapflow.plugins.registry import PluginRegistry
from tapflow.utils import deep_merge, dump_json, match_path, print_step, print_warning

IGNORED_DIRS = frozenset({"node_modules", ".git"})

FileHandler = Callable[["FileAPI"], Awaitable[None] | None]


@dataclass
class _Processor:
    plugin_id: str
    pattern: str
    handler: FileHandler


@dataclass
class _RenderRequest:
    plugin_id: str
    template_dir: Path
    context: dict[str, Any]


@dataclass
class GenerationResult:
    """Paths touched by one generation pass, relative to the project."""

    written: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


class FileAPI:
    """Handle on one file of the in-memory project passed to processors."""

    def __init__(self, path: str, files: VirtualFileSet) -> None:
        self._path = path
        self._files = files

    @property
    def path(self) -> str:
        return self._path

    @property
    def content(self) -> str | bytes:
        return self._files[self._path]

    def replace(self, content: str | bytes) -> None:
        self._files[self._path] = content

    def rename(self, new_path: str) -> None:
        if new_path == self._path:
            return
        self._files[new_path] = self._files.pop(self._path)
        self._path = new_path

    def delete(self) -> None:
        self._files.pop(self._path, None)

    def transform(self, fn: Callable[..., str], **options: Any) -> None:
        """Replace the content with ``fn(content, path=..., **options)``."""
        content = self.content
        if isinstance(content, bytes):
            raise TypeError(f"Cannot transform binary file {self._path}")
        self.replace(fn(content, path=self._path, **options))


class GeneratorAPI:
    """Capability handle passed to ``Plugin.generator``."""

    def __init__(self, plugin_id: str, generator: "Generator") -> None:
        self.id = plugin_id
        self._generator = generator

    @property
    def context(self) -> Path:
        return self._generator.context

    def resolve(self, *parts: str) -> Path:
        return self._generator.context.joinpath(*parts)

    def render(self, template_dir: str | Path, context: dict[str, Any] | None = None) -> None:
        """Contribute every file under *template_dir*, rendered with *context*."""
        self._generator.add_render(self.id, Path(template_dir), context or {})

    def add_file(self, path: str, content: str | bytes) -> None:
        """Contribute a single file at the project-relative *path*."""
        self._generator.add_file(path, content)

    def extend_package(self, fields: dict[str, Any]) -> None:
        """Deep-merge *fields* into the project's ``package.json``."""
        self._generator.extend_package(fields)

    def process_file(self, pattern: str, handler: FileHandler) -> None:
        self._generator.process_file(self.id, pattern, handler)


class Generator:
    """Runs the ``generator`` of a list of plugins against one project."""

    def __init__(
        self,
        context: str | Path,
        plugins: list[PluginInfo],
        registry: PluginRegistry | None = None,
        renderer: FileRenderer | None = None,
    ) -> None:
        self.context = Path(context).resolve()
        self.plugins = list(plugins)
        self.registry = registry or PluginRegistry(builtin=[])
        self.renderer = renderer or FileRenderer()
        self._processors: list[_Processor] = []
        self._renders: list[_RenderRequest] = []
        self._added: dict[str, str | bytes] = {}
        self._package_fields: dict[str, Any] = {}

    # -- Registration ------------------------------------------------------

    def process_file(self, plugin_id: str, pattern: str, handler: FileHandler) -> None:
        """Run *handler* on every project file matching *pattern*."""
        self._processors.append(_Processor(plugin_id, pattern, handler))

    def add_render(self, plugin_id: str, template_dir: Path, context: dict[str, Any]) -> None:
        self._renders.append(_RenderRequest(plugin_id, template_dir, context))

    def add_file(self, path: str, content: str | bytes) -> None:
        self._added[path] = content

    def extend_package(self, fields: dict[str, Any]) -> None:
        self._package_fields = deep_merge(self._package_fields, fields)

    # -- Generation --------------------------------------------------------

    async def generate(self, apply_all: bool) -> GenerationResult:
        """Run every plugin's generator and write the changes back."""
        originals = await asyncio.to_thread(load_project_files, self.context)
        files: VirtualFileSet = dict(originals)

        for info in self.plugins:
            plugin = self.registry.load(info, required=False)
            if plugin is None:
                print_warning(f"  Plugin '{info.id}' has no Python implementation, skipping its generator")
                continue
            await _call_plugin("generate", info.id, plugin.generator, GeneratorAPI(info.id, self))

        base_context = self._base_context(files)
        for request in self._renders:
            rendered = await self.renderer.render_all(
                request.template_dir, "**/*", {**base_context, **request.context}
            )
            for rel, content in rendered.items():
                if apply_all or rel not in files:
                    files[rel] = content
        for rel, content in self._added.items():
            if apply_all or rel not in files:
                files[rel] = content

        if self._package_fields:
            package = json.loads(files.get("package.json") or "{}")
            files["package.json"] = dump_json(deep_merge(package, self._package_fields))

        for processor in self._processors:
            for rel in sorted(files):
                if rel in files and match_path(rel, processor.pattern):
                    await _call_plugin(
                        "process_file", processor.plugin_id, processor.handler, FileAPI(rel, files)
                    )

        changed = {rel: content for rel, content in files.items() if originals.get(rel) != content}
        removed = sorted(set(originals) - set(files))
        await sync_files(self.context, changed)
        await asyncio.to_thread(_remove_files, self.context, removed)

        if changed or removed:
            print_step(f"Generated {len(changed)} file(s), removed {len(removed)}")
        return GenerationResult(written=sorted(changed), removed=removed)

    def _base_context(self, files: VirtualFileSet) -> dict[str, Any]:
        name = self.context.name
        raw = files.get("package.json")
        if isinstance(raw, str) and raw.strip():
            try:
                name = json.loads(raw).get("name", name)
            except (json.JSONDecodeError, AttributeError):
                pass
        return {"projectName": name, "project_name": name}


async def _call_plugin(stage: str, plugin_id: str, fn: Callable[..., Any], *args: Any) -> None:
    try:
        result = fn(*args)
        if inspect.isawaitable(result):
            await result
    except TapflowError as exc:
        exc.tag(stage, plugin_id)
        raise
    except Exception as exc:
        raise HookHandlerError(stage, plugin_id, exc) from exc


def load_project_files(root: Path) -> VirtualFileSet:
    """Read the project below *root*, skipping dependency and VCS dirs."""
    files: VirtualFileSet = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            raw = path.read_bytes()
            rel = path.relative_to(root).as_posix()
            try:
                files[rel] = raw.decode("utf-8")
            except UnicodeDecodeError:
                files[rel] = raw
    return files


def _remove_files(root: Path, paths: list[str]) -> None:
    for rel in paths:
        (root / rel).unlink(missing_ok=True)
