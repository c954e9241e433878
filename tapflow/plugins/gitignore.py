"""Built-in generator: keep build output and dependencies out of git."""

from __future__ import annotations

from tapflow.generator.generator import FileAPI, GeneratorAPI

from .base import Plugin

DEFAULT_ENTRIES: tuple[str, ...] = ("node_modules/", "dist/")


class GitignorePlugin(Plugin):
    def generator(self, api: GeneratorAPI) -> None:
        entries = list(self.options.get("entries", DEFAULT_ENTRIES))
        if not api.resolve(".gitignore").is_file():
            api.add_file(".gitignore", "")

        def ensure_entries(file: FileAPI) -> None:
            content = file.content
            if isinstance(content, bytes):
                return
            present = {line.strip() for line in content.splitlines()}
            missing = [entry for entry in entries if entry not in present]
            if not missing:
                return
            if content and not content.endswith("\n"):
                content += "\n"
            file.replace(content + "".join(f"{entry}\n" for entry in missing))

        api.process_file(".gitignore", ensure_entries)


plugin = GitignorePlugin
