"""Plugin-driven generation over existing project directories."""

from .generator import FileAPI, GenerationResult, Generator, GeneratorAPI
from .transforms import add_to_list

__all__ = [
    "FileAPI",
    "GenerationResult",
    "Generator",
    "GeneratorAPI",
    "add_to_list",
]
