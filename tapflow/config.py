"""tapflow configuration.

Centralised, typed configuration for the scaffolding pipeline.  All settings
use Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables without boiler-plate.

Command settings are argv templates: ``{name}`` in the package lookup command
is replaced with the registry package name before the command runs.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


PROJECT_CONFIG_FILES: tuple[str, ...] = (
    "tapflow.config.json",
    "tapflow.config.yaml",
    "tapflow.config.yml",
)


class Config(BaseModel):
    """Global tapflow configuration.

    Instances are typically created once by the CLI entry point and passed to
    ``Creator``, which hands them on to the resolver, the initializer and
    every plugin through ``CreatorAPI.config``.
    """

    local_prefix: str = Field(
        default="file://", description="Marker for template references on the local disk"
    )
    template_dir_name: str = Field(
        default="template", description="Subdirectory of a template package holding the files"
    )
    archive_root_dir: str = Field(
        default="package", description="Top-level directory inside downloaded tarballs"
    )
    package_lookup_command: list[str] = Field(
        default=["npm", "view", "{name}", "dist.tarball"],
        description="Command printing the tarball URL of a registry package",
    )
    install_command: list[str] = Field(
        default=["npm", "install"], description="Command installing project dependencies"
    )
    save_dev_flag: str = Field(default="--save-dev")
    service_package: str = Field(
        default="@tapflow/service",
        description="Runtime package installed into every new project",
    )
    recommended_plugins: list[str] = Field(
        default_factory=list,
        description="Plugins installed by the 'recommended' built-in after init",
    )
    git_commit_message: str = Field(default="init")

    # ------------------------------------------------------------------
    # Command helpers
    # ------------------------------------------------------------------

    def lookup_command_for(self, package: str) -> list[str]:
        """Return the package lookup argv with *package* substituted."""
        return [part.replace("{name}", package) for part in self.package_lookup_command]

    def install_command_for(self, modules: list[str] | None = None, save_dev: bool = False) -> list[str]:
        """Return the install argv for *modules* (all declared deps when empty)."""
        cmd = list(self.install_command)
        if modules:
            cmd.extend(modules)
            if save_dev:
                cmd.append(self.save_dev_flag)
        return cmd

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            TAPFLOW_SERVICE_PACKAGE, TAPFLOW_INSTALL_COMMAND,
            TAPFLOW_LOOKUP_COMMAND, TAPFLOW_RECOMMENDED_PLUGINS,
            TAPFLOW_TEMPLATE_DIR.

        Commands are split with shell rules; the plugin list is
        comma-separated.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("TAPFLOW_SERVICE_PACKAGE"):
            kwargs["service_package"] = os.environ["TAPFLOW_SERVICE_PACKAGE"]
        if os.environ.get("TAPFLOW_INSTALL_COMMAND"):
            kwargs["install_command"] = shlex.split(os.environ["TAPFLOW_INSTALL_COMMAND"])
        if os.environ.get("TAPFLOW_LOOKUP_COMMAND"):
            kwargs["package_lookup_command"] = shlex.split(os.environ["TAPFLOW_LOOKUP_COMMAND"])
        if os.environ.get("TAPFLOW_TEMPLATE_DIR"):
            kwargs["template_dir_name"] = os.environ["TAPFLOW_TEMPLATE_DIR"]

        plugins_str = os.environ.get("TAPFLOW_RECOMMENDED_PLUGINS", "")
        kwargs["recommended_plugins"] = [p.strip() for p in plugins_str.split(",") if p.strip()]

        return cls(**kwargs)


def find_project_config(project_dir: str | Path) -> Path | None:
    """Return the project's configuration file, or ``None`` if it has none."""
    root = Path(project_dir)
    for name in PROJECT_CONFIG_FILES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None
