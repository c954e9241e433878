"""Project creation orchestrator.

``Creator.create()`` drives seven stages in a fixed order::

    prepare -> resolve_template -> render -> before_emit -> emit -> init -> after_init

Each stage is a hook (see :mod:`tapflow.hooks`).  The creator taps its own
default handlers first, then lets every plugin tap in through a
:class:`CreatorAPI`.  The first failing handler aborts the run; nothing that
was already written to disk is rolled back.

Usage::

    creator = Creator("./my-app", template="file://./templates/basic",
                      project_name="My App", app_id="wx123")
    await creator.create()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from tapflow.config import PROJECT_CONFIG_FILES, Config
from tapflow.errors import InvalidMetadataError
from tapflow.generator.generator import FileAPI, Generator
from tapflow.generator.transforms import add_to_list
from tapflow.hooks import CreatorHooks
from tapflow.models import ProjectMetadata, VirtualFileSet
from tapflow.plugins.base import PluginInfo
from tapflow.plugins.registry import PluginRegistry
from tapflow.utils import console, print_step, print_success

from .api import CreatorAPI
from .emitter import sync_files
from .initializer import Initializer
from .installer import install_node_modules
from .renderer import FileRenderer
from .resolver import TemplateResolver, TempDirScope

CREATOR_PLUGIN_ID = "tapflow:creator"


@dataclass
class CreateSession:
    """State of one ``create()`` call."""

    metadata: ProjectMetadata
    files: VirtualFileSet = field(default_factory=dict)
    template_path: Path | None = None
    temp_dirs: TempDirScope = field(default_factory=TempDirScope)


class Creator:
    """Creates a project in *context* from a template and a set of plugins."""

    def __init__(
        self,
        context: str | Path,
        *,
        template: str = "",
        project_name: str = "",
        app_id: str = "",
        plugins: list[PluginInfo] | None = None,
        config: Config | None = None,
        registry: PluginRegistry | None = None,
        resolver: TemplateResolver | None = None,
        renderer: FileRenderer | None = None,
        initializer: Initializer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.context = Path(context).resolve()
        self.template = template
        self.project_name = project_name
        self.app_id = app_id
        self.plugins = list(plugins or [])
        self.config = config or Config()
        self.registry = registry or PluginRegistry()
        self.resolver = resolver or TemplateResolver(self.config, transport=transport)
        self.renderer = renderer or FileRenderer()
        self.initializer = initializer or Initializer(self.config)

        self.hooks = CreatorHooks()
        self.session: CreateSession | None = None
        self._plugins_initialized = False

        self.hooks.resolve_template.tap(CREATOR_PLUGIN_ID, self._resolve_template)
        self.hooks.render.tap(CREATOR_PLUGIN_ID, self._render)
        self.hooks.emit.tap(CREATOR_PLUGIN_ID, self._emit)
        self.hooks.init.tap(CREATOR_PLUGIN_ID, self._init)

    # -- Default stage handlers --------------------------------------------

    async def _resolve_template(self, template: str) -> str:
        scope = self.session.temp_dirs if self.session is not None else None
        return str(await self.resolver.resolve(template, scope=scope))

    async def _render(self, metadata: ProjectMetadata, template_path: Path, files: VirtualFileSet) -> None:
        rendered = await self.renderer.render_all(template_path, "**/*", metadata.as_context())
        files.update(rendered)

    async def _emit(self, context: Path, files: VirtualFileSet) -> None:
        await sync_files(context, files)

    async def _init(self, context: Path) -> None:
        await self.initializer.init(context)

    # -- Plugins -----------------------------------------------------------

    def init_plugins(self) -> None:
        """Let every plugin tap its handlers, built-ins first.  Runs once."""
        if self._plugins_initialized:
            return
        for plugin_id, plugin in self.registry.resolve_plugins(self.plugins):
            plugin.creator(CreatorAPI(plugin_id, self))
        self._plugins_initialized = True

    # -- Entry points ------------------------------------------------------

    async def create(self) -> CreateSession:
        """Run the whole pipeline and return the state it produced."""
        self.init_plugins()

        metadata = await self.hooks.prepare.call(
            ProjectMetadata(
                project_name=self.project_name,
                app_id=self.app_id,
                template=self.template,
            )
        )
        if not isinstance(metadata, ProjectMetadata):
            metadata = self._validate_metadata(metadata)

        session = CreateSession(metadata=metadata)
        self.session = session
        console.print(f"Creating [bold]{metadata.project_name or self.context.name}[/bold] in {self.context}")

        # The template directory only has to live until rendering is done.
        async with session.temp_dirs:
            session.template_path = Path(await self.hooks.resolve_template.call(metadata.template))
            await self.hooks.render.call(metadata, session.template_path, session.files)

        await self.hooks.before_emit.call(session.files)
        print_step(f"Writing {len(session.files)} file(s)")
        await self.hooks.emit.call(self.context, session.files)

        await self.hooks.init.call(self.context)
        await self.hooks.after_init.call(self.context)

        print_success(f"Project created in {self.context}")
        return session

    def _validate_metadata(self, value: Any) -> ProjectMetadata:
        try:
            return ProjectMetadata.model_validate(value)
        except ValidationError as exc:
            taps = self.hooks.prepare.taps
            error = InvalidMetadataError(f"prepare produced invalid project metadata: {exc}")
            error.tag("prepare", taps[-1].plugin_id if taps else CREATOR_PLUGIN_ID)
            raise error from exc

    async def install_plugin(self, plugin_ids: list[str]) -> None:
        """Add plugins to the existing project in ``context``.

        The packages are installed, their ids appended to the project's
        declared plugin list (ids already listed are left alone) and their
        generators applied over the existing files.
        """
        if not plugin_ids:
            return
        await install_node_modules(self.config, self.context, plugin_ids)

        generator = Generator(
            self.context,
            plugins=[PluginInfo(id=plugin_id) for plugin_id in plugin_ids],
            registry=self.registry,
            renderer=self.renderer,
        )

        def add_plugins(file: FileAPI) -> None:
            file.transform(add_to_list, field="plugins", items=list(plugin_ids))

        for name in PROJECT_CONFIG_FILES:
            generator.process_file(CREATOR_PLUGIN_ID, name, add_plugins)
        await generator.generate(apply_all=True)
        print_success(f"Installed {', '.join(plugin_ids)}")
