"""Structural transforms applied to project files by generation passes.

A transform takes the current file content plus keyword options and returns
the new content.  ``FileAPI.transform`` passes the file path as ``path`` so a
transform can pick the right format.
"""

from __future__ import annotations

import json
from pathlib import PurePosixPath
from typing import Any

import yaml

from tapflow.utils import dump_json

_YAML_SUFFIXES = {".yaml", ".yml"}


def _load(content: str, path: str) -> dict[str, Any]:
    if PurePosixPath(path).suffix in _YAML_SUFFIXES:
        data = yaml.safe_load(content)
    else:
        data = json.loads(content) if content.strip() else {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a mapping")
    return data


def _dump(data: dict[str, Any], path: str) -> str:
    if PurePosixPath(path).suffix in _YAML_SUFFIXES:
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return dump_json(data)


def add_to_list(content: str, *, path: str, field: str, items: list[str]) -> str:
    """Append *items* to the list stored under *field*.

    Items already present are skipped, so running the transform twice is a
    no-op and existing entries keep their order.  The list is created when
    the field is missing.
    """
    data = _load(content, path)
    current = data.get(field)
    if current is None:
        current = []
    elif not isinstance(current, list):
        raise ValueError(f"'{field}' in {path} is not a list")

    for item in items:
        if item not in current:
            current.append(item)
    data[field] = current
    return _dump(data, path)
