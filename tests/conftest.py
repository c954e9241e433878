"""Shared pytest fixtures for the tapflow test suite.

Provides reusable fixtures for:
- Temporary project and template directories
- In-memory template tarballs and mock HTTP transports
- Mock subprocess helpers
- A recording plugin that logs when each of its stage handlers runs
"""

from __future__ import annotations

import asyncio
import io
import tarfile
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tapflow.creator import Creator, Initializer
from tapflow.plugins import Plugin, PluginRegistry


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Target directory for generated projects (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Write ``{relative path: content}`` below *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def template_package(tmp_path: Path) -> Path:
    """A local template package: ``<pkg>/template/...``."""
    return write_tree(
        tmp_path / "basic-template",
        {
            "package.json": '{"name": "basic-template"}\n',
            "template/README.md": "# {{ projectName }}\n",
            "template/project.config.json": '{"appid": "{{ appId }}"}\n',
            "template/src/app.js": "App({})\n",
        },
    )


# ---------------------------------------------------------------------------
# Tarballs & HTTP
# ---------------------------------------------------------------------------

def make_tarball(files: dict[str, str | bytes]) -> bytes:
    """Build a gzipped tarball in memory, as a registry would serve it."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


@pytest.fixture
def template_tarball() -> bytes:
    return make_tarball(
        {
            "package/package.json": '{"name": "remote-template"}\n',
            "package/template/README.md": "# {{ projectName }}\n",
            "package/template/src/app.js": "App({})\n",
        }
    )


def serve_bytes(body: bytes, status_code: int = 200, requests: list[httpx.Request] | None = None) -> httpx.MockTransport:
    """Mock transport answering every request with *body*."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status_code, content=body)

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


# ---------------------------------------------------------------------------
# Creators & plugins
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_initializer() -> MagicMock:
    """Initializer whose ``init`` does nothing (no package manager calls)."""
    initializer = MagicMock(spec=Initializer)
    initializer.init = AsyncMock()
    return initializer


@pytest.fixture
def make_creator(tmp_project_dir: Path, mock_initializer: MagicMock) -> Callable[..., Creator]:
    """Factory for creators without built-in plugins or dependency installs."""

    def factory(**kwargs: Any) -> Creator:
        kwargs.setdefault("project_name", "demo")
        kwargs.setdefault("app_id", "wx0001")
        kwargs.setdefault("registry", PluginRegistry(builtin=[]))
        kwargs.setdefault("initializer", mock_initializer)
        return Creator(tmp_project_dir, **kwargs)

    return factory


class RecorderPlugin(Plugin):
    """Taps every stage and logs ``<name>:<stage>:start|end`` events."""

    def __init__(self, name: str, events: list[str]) -> None:
        super().__init__()
        self.name = name
        self.events = events

    def _record(self, stage: str, passthrough: bool) -> Callable[..., Any]:
        async def handler(*args: Any) -> Any:
            self.events.append(f"{self.name}:{stage}:start")
            await asyncio.sleep(0)
            self.events.append(f"{self.name}:{stage}:end")
            return args[0] if passthrough else None

        return handler

    def creator(self, api) -> None:
        api.tap_prepare(self._record("prepare", True))
        api.tap_resolve_template(self._record("resolve_template", True))
        api.tap_render(self._record("render", False))
        api.tap_before_emit(self._record("before_emit", False))
        api.tap_emit(self._record("emit", False))
        api.tap_init(self._record("init", False))
        api.tap_after_init(self._record("after_init", False))
