"""Error taxonomy for tapflow.

Every failure raised by the pipeline derives from :class:`TapflowError`.
Hooks attach the originating stage and plugin id to these errors before
re-raising them, so callers of ``Creator.create()`` see the original error
type with enough context to tell which plugin broke.
"""

from __future__ import annotations

from pathlib import Path


class TapflowError(Exception):
    """Base class for all tapflow errors."""

    stage: str | None = None
    plugin_id: str | None = None

    def tag(self, stage: str, plugin_id: str) -> None:
        """Record where the error surfaced.  The innermost tag wins."""
        if self.stage is not None:
            return
        self.stage = stage
        self.plugin_id = plugin_id
        self.add_note(f"raised in stage '{stage}' by plugin '{plugin_id}'")


class TemplateNotFoundError(TapflowError):
    """The resolved template directory does not exist."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"Template directory not found: {self.path}")


class PackageLookupError(TapflowError):
    """The package-metadata query failed or printed nothing."""

    def __init__(self, package: str, detail: str) -> None:
        self.package = package
        super().__init__(f"Cannot resolve download URL for '{package}': {detail}")


class TempAllocationError(TapflowError):
    """The filesystem could not provide a temporary directory."""


class DownloadError(TapflowError):
    """The template archive could not be downloaded."""

    def __init__(self, url: str, detail: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Download of {url} failed: {detail}")


class ExtractionError(TapflowError):
    """The downloaded archive is not a readable tarball."""

    def __init__(self, url: str, detail: str) -> None:
        self.url = url
        super().__init__(f"Cannot extract archive from {url}: {detail}")


class InvalidMetadataError(TapflowError):
    """A ``prepare`` handler returned something that is not project metadata."""


class TemplateRenderError(TapflowError):
    """A template file contains invalid substitution syntax."""

    def __init__(self, path: str | Path, detail: str) -> None:
        self.path = Path(path)
        super().__init__(f"Cannot render {self.path}: {detail}")


class WriteError(TapflowError):
    """A file of the virtual file set could not be written."""

    def __init__(self, path: str | Path, detail: str) -> None:
        self.path = Path(path)
        super().__init__(f"Cannot write {self.path}: {detail}")


class CommandError(TapflowError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed with exit code {returncode}: {' '.join(command)}"
        if stderr:
            message += f"\n{stderr}"
        super().__init__(message)


class DependencyInstallError(CommandError):
    """Installing project dependencies failed."""


class PluginLoadError(TapflowError):
    """A plugin id could not be resolved to an implementation."""

    def __init__(self, plugin_id: str, detail: str) -> None:
        self.requested_id = plugin_id
        super().__init__(f"Cannot load plugin '{plugin_id}': {detail}")


class HookHandlerError(TapflowError):
    """A plugin handler raised something that is not a tapflow error."""

    def __init__(self, stage: str, plugin_id: str, cause: BaseException) -> None:
        super().__init__(
            f"Plugin '{plugin_id}' failed in stage '{stage}': "
            f"{type(cause).__name__}: {cause}"
        )
        self.stage = stage
        self.plugin_id = plugin_id
