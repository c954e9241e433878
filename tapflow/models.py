"""Data model shared by the pipeline stages."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


# Project-relative posix path -> rendered text, or raw bytes for binary files.
VirtualFileSet = dict[str, Union[str, bytes]]

_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


class ProjectMetadata(BaseModel):
    """What the user told us about the project to create.

    Frozen: ``prepare`` handlers return an updated copy instead of mutating
    the value they received.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(default="", description="Human-readable project name")
    app_id: str = Field(default="", description="Application id written into project config")
    template: str = Field(default="", description="Template reference to scaffold from")

    def as_context(self) -> dict[str, Any]:
        """Rendering context for template files.

        Both the camelCase names used by template authors and the
        snake_case field names are available.
        """
        return {
            "projectName": self.project_name,
            "appId": self.app_id,
            "project_name": self.project_name,
            "app_id": self.app_id,
        }


class TemplateKind(str, Enum):
    """Where a template reference points."""

    LOCAL = "local"
    REMOTE = "remote"
    REGISTRY = "registry"


class TemplateReference(BaseModel):
    """A classified template reference."""

    model_config = ConfigDict(frozen=True)

    kind: TemplateKind
    value: str

    @classmethod
    def classify(cls, reference: str, local_prefix: str = "file://") -> "TemplateReference":
        """Classify *reference*.

        A reference starting with *local_prefix* is a local path (the prefix
        is stripped), an absolute http(s) URL is remote, anything else is a
        registry package name.
        """
        if reference.startswith(local_prefix):
            return cls(kind=TemplateKind.LOCAL, value=reference[len(local_prefix):])
        if _URL_PATTERN.match(reference):
            return cls(kind=TemplateKind.REMOTE, value=reference)
        return cls(kind=TemplateKind.REGISTRY, value=reference)
