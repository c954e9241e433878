"""Dependency installation and command execution inside a project."""

from __future__ import annotations

from pathlib import Path

from tapflow.config import Config
from tapflow.errors import CommandError, DependencyInstallError
from tapflow.utils import print_step, run_command


async def install_node_modules(
    config: Config,
    context: str | Path,
    modules: list[str] | None = None,
    save_dev: bool = False,
) -> None:
    """Install *modules* into the project at *context*.

    With no modules the project's own declared dependencies are installed.

    Raises:
        DependencyInstallError: If the package manager exits non-zero.
    """
    cmd = config.install_command_for(modules, save_dev=save_dev)
    print_step(f"Installing {', '.join(modules) if modules else 'dependencies'}")
    returncode, _, stderr = await run_command(cmd, cwd=context)
    if returncode != 0:
        raise DependencyInstallError(cmd, returncode, stderr)


async def exec_command(context: str | Path, command: str, args: list[str] | None = None) -> str:
    """Run *command* in *context* and return its stdout.

    Raises:
        CommandError: If the command exits non-zero.
    """
    cmd = [command, *(args or [])]
    returncode, stdout, stderr = await run_command(cmd, cwd=context)
    if returncode != 0:
        raise CommandError(cmd, returncode, stderr)
    return stdout
