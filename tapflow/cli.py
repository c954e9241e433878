"""Command-line entry point.

Usage::

    tapflow create ./my-app --template file://./templates/basic --name my-app --app-id wx123
    tapflow create ./my-app --template @tapflow/template-default --plugin my_plugins.typescript
    tapflow add my_plugins.css --cwd ./my-app
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.panel import Panel

from tapflow.config import Config
from tapflow.creator import Creator
from tapflow.errors import TapflowError
from tapflow.plugins import PluginInfo
from tapflow.utils import console, print_error, print_summary_table

DEFAULT_TEMPLATE = "@tapflow/template-default"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tapflow",
        description="tapflow -- plugin-extensible project scaffolding",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with tapflow settings (defaults to TAPFLOW_* environment variables)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a new project from a template")
    create.add_argument("directory", type=Path, help="Target project directory")
    create.add_argument("--template", "-t", default=DEFAULT_TEMPLATE, help="file://path, URL or package name")
    create.add_argument("--name", default="", help="Project name (defaults to the directory name)")
    create.add_argument("--app-id", default="", help="Application id (prompted for when missing)")
    create.add_argument(
        "--plugin", "-p", action="append", default=[], dest="plugins",
        help="Extra creator plugin id; repeat for several",
    )

    add = sub.add_parser("add", help="Install plugins into an existing project")
    add.add_argument("plugins", nargs="+", help="Plugin ids to install")
    add.add_argument("--cwd", type=Path, default=Path("."), help="Project directory")

    return parser


async def _run(args: argparse.Namespace, config: Config) -> None:
    if args.command == "create":
        console.print(
            Panel(
                f"Template : {args.template}\n"
                f"Target   : {args.directory.resolve()}",
                title="[bold]tapflow create[/bold]",
                border_style="bright_cyan",
            )
        )
        creator = Creator(
            args.directory,
            template=args.template,
            project_name=args.name,
            app_id=args.app_id,
            plugins=[PluginInfo(id=plugin_id) for plugin_id in args.plugins],
            config=config,
        )
        session = await creator.create()
        print_summary_table(
            {
                "Project": session.metadata.project_name,
                "App ID": session.metadata.app_id,
                "Template": session.metadata.template,
                "Files": str(len(session.files)),
                "Directory": str(creator.context),
            },
            title="Created",
        )
    else:
        await Creator(args.cwd, config=config).install_plugin(args.plugins)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = Config.load(args.config) if args.config else Config.from_env()
    try:
        asyncio.run(_run(args, config))
    except TapflowError as exc:
        print_error(str(exc))
        for note in getattr(exc, "__notes__", []):
            console.print(f"[dim]{note}[/dim]")
        return 1
    except KeyboardInterrupt:
        print_error("Aborted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
