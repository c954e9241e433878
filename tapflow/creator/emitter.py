"""Materialisation of a virtual file set on disk."""

from __future__ import annotations

import asyncio
from pathlib import Path

from tapflow.errors import WriteError
from tapflow.models import VirtualFileSet


async def sync_files(target_dir: str | Path, files: VirtualFileSet) -> list[Path]:
    """Write every entry of *files* below *target_dir*.

    Existing files are overwritten, files absent from *files* are left alone.
    Writing stops at the first failure; files written before it stay on disk.

    Returns:
        The written paths, in write order.

    Raises:
        WriteError: If a path cannot be written or lies outside
            *target_dir*.
    """
    return await asyncio.to_thread(_sync_files, Path(target_dir), files)


def _sync_files(root: Path, files: VirtualFileSet) -> list[Path]:
    base = root.resolve()
    written: list[Path] = []
    for rel, content in files.items():
        path = root / rel
        if not path.resolve().is_relative_to(base):
            raise WriteError(path, "path is outside the target directory")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise WriteError(path, exc.strerror or str(exc)) from exc
        written.append(path)
    return written
