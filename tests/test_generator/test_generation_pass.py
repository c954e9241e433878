"""Tests for tapflow.generator.generator.

Tests cover:
- Loading the project into memory (dependency and VCS dirs skipped)
- apply_all semantics for contributed files and rendered templates
- package.json merging
- File processors: matching, ordering, rename and delete
- Unresolvable plugins and failing plugins
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import write_tree
from tapflow.errors import HookHandlerError, PluginLoadError
from tapflow.generator import FileAPI, Generator, GeneratorAPI
from tapflow.generator.generator import load_project_files
from tapflow.plugins import Plugin, PluginInfo


class FunctionPlugin(Plugin):
    """Plugin whose generator is the given function."""

    def __init__(self, fn) -> None:
        super().__init__()
        self.fn = fn

    def generator(self, api: GeneratorAPI):
        return self.fn(api)


def run(project: Path, *fns, apply_all: bool = False):
    plugins = [PluginInfo(id=f"plugin-{i}", plugin=FunctionPlugin(fn)) for i, fn in enumerate(fns)]
    return Generator(project, plugins=plugins).generate(apply_all=apply_all)


# ---------------------------------------------------------------------------
# Project loading
# ---------------------------------------------------------------------------


class TestLoadProjectFiles:
    @pytest.mark.unit
    def test_skips_dependency_and_vcs_dirs(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {
            "src/app.js": "App({})",
            "node_modules/lib/index.js": "x",
            ".git/HEAD": "ref: refs/heads/main",
            "logo.png": b"\xff\xfe\x00",
        })
        files = load_project_files(tmp_project_dir)
        assert files == {"logo.png": b"\xff\xfe\x00", "src/app.js": "App({})"}


# ---------------------------------------------------------------------------
# Contributions
# ---------------------------------------------------------------------------


class TestContributions:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_file_does_not_overwrite_without_apply_all(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {"README.md": "mine"})

        def contribute(api: GeneratorAPI) -> None:
            api.add_file("README.md", "theirs")
            api.add_file("docs/guide.md", "guide")

        result = await run(tmp_project_dir, contribute)

        assert (tmp_project_dir / "README.md").read_text() == "mine"
        assert (tmp_project_dir / "docs" / "guide.md").read_text() == "guide"
        assert result.written == ["docs/guide.md"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_file_overwrites_with_apply_all(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {"README.md": "mine"})
        await run(tmp_project_dir, lambda api: api.add_file("README.md", "theirs"), apply_all=True)
        assert (tmp_project_dir / "README.md").read_text() == "theirs"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_render_template_dir(self, tmp_path: Path, tmp_project_dir: Path):
        template = write_tree(tmp_path / "tpl", {
            "hello.txt": "{{ projectName }} / {{ flavour }}\n",
            "img/logo.png": b"\x89PNG\xff",
        })
        write_tree(tmp_project_dir, {"package.json": '{"name": "shop"}\n'})

        async def contribute(api: GeneratorAPI) -> None:
            api.render(template, {"flavour": "ts"})

        await run(tmp_project_dir, contribute)
        assert (tmp_project_dir / "hello.txt").read_text() == "shop / ts\n"
        assert (tmp_project_dir / "img" / "logo.png").read_bytes() == b"\x89PNG\xff"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_project_name_falls_back_to_directory_name(self, tmp_path: Path, tmp_project_dir: Path):
        template = write_tree(tmp_path / "tpl", {"name.txt": "{{ projectName }}"})
        await run(tmp_project_dir, lambda api: api.render(template))
        assert (tmp_project_dir / "name.txt").read_text() == tmp_project_dir.name

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_extend_package_merges_nested_fields(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {
            "package.json": '{"name": "demo", "scripts": {"dev": "vite"}}\n',
        })

        def first(api: GeneratorAPI) -> None:
            api.extend_package({"scripts": {"lint": "eslint ."}})

        def second(api: GeneratorAPI) -> None:
            api.extend_package({"scripts": {"test": "jest"}, "private": True})

        await run(tmp_project_dir, first, second)
        package = json.loads((tmp_project_dir / "package.json").read_text())
        assert package == {
            "name": "demo",
            "scripts": {"dev": "vite", "lint": "eslint .", "test": "jest"},
            "private": True,
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unchanged_project_writes_nothing(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {"a.txt": "a"})
        result = await run(tmp_project_dir, lambda api: None)
        assert result.written == []
        assert result.removed == []


# ---------------------------------------------------------------------------
# File processors
# ---------------------------------------------------------------------------


class TestProcessors:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_processors_see_matching_files_in_registration_order(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {
            "src/app.js": "a",
            "src/pages/index.js": "b",
            "src/style.css": "c",
        })

        def contribute(api: GeneratorAPI) -> None:
            api.process_file("src/**/*.js", lambda f: f.replace(f.content + "1"))
            api.process_file("src/**/*.js", lambda f: f.replace(f.content + "2"))

        await run(tmp_project_dir, contribute)

        assert (tmp_project_dir / "src" / "app.js").read_text() == "a12"
        assert (tmp_project_dir / "src" / "pages" / "index.js").read_text() == "b12"
        assert (tmp_project_dir / "src" / "style.css").read_text() == "c"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rename_and_delete(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {"app.js": "App({})", "obsolete.txt": "x"})

        def contribute(api: GeneratorAPI) -> None:
            api.process_file("app.js", lambda f: f.rename("app.ts"))
            api.process_file("obsolete.txt", lambda f: f.delete())

        result = await run(tmp_project_dir, contribute)

        assert (tmp_project_dir / "app.ts").read_text() == "App({})"
        assert not (tmp_project_dir / "app.js").exists()
        assert not (tmp_project_dir / "obsolete.txt").exists()
        assert result.written == ["app.ts"]
        assert result.removed == ["app.js", "obsolete.txt"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_async_processor(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {"a.txt": "a"})

        async def upper(file: FileAPI) -> None:
            file.replace(file.content.upper())

        await run(tmp_project_dir, lambda api: api.process_file("*.txt", upper))
        assert (tmp_project_dir / "a.txt").read_text() == "A"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transform_refuses_binary_files(self, tmp_project_dir: Path):
        write_tree(tmp_project_dir, {"logo.png": b"\xff\xfe"})

        def contribute(api: GeneratorAPI) -> None:
            api.process_file("*.png", lambda f: f.transform(lambda content, path: content))

        with pytest.raises(HookHandlerError) as excinfo:
            await run(tmp_project_dir, contribute)
        assert excinfo.value.stage == "process_file"
        assert isinstance(excinfo.value.__cause__, TypeError)


# ---------------------------------------------------------------------------
# Plugin resolution and failures
# ---------------------------------------------------------------------------


class TestPluginHandling:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_plugin_is_skipped(self, tmp_project_dir: Path):
        generator = Generator(tmp_project_dir, plugins=[PluginInfo(id="@scope/js-only-plugin")])
        result = await generator.generate(apply_all=True)
        assert result.written == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failing_generator_is_reported_with_its_id(self, tmp_project_dir: Path):
        def broken(api: GeneratorAPI) -> None:
            raise ValueError("bad options")

        with pytest.raises(HookHandlerError) as excinfo:
            await run(tmp_project_dir, broken)
        assert excinfo.value.plugin_id == "plugin-0"
        assert excinfo.value.stage == "generate"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_tapflow_errors_keep_their_type(self, tmp_project_dir: Path):
        def broken(api: GeneratorAPI) -> None:
            raise PluginLoadError("nested", "missing")

        with pytest.raises(PluginLoadError) as excinfo:
            await run(tmp_project_dir, broken)
        assert excinfo.value.plugin_id == "plugin-0"
