"""dockertest command line.

Usage:
  dockertest presets                    # List available service presets
  dockertest check                      # Show how the engine will be reached
  dockertest up redis                   # Start a preset and leave it running
  dockertest up postgres -- -c fsync=off
  dockertest down 3f1c2a9b8d7e ...      # Kill and remove containers
"""

import argparse
import asyncio
import sys

from rich import box
from rich.console import Console
from rich.table import Table

from .config import Settings
from .models.container import ContainerHandle
from .models.errors import DockerTestException
from .services.lifecycle import LifecycleController
from .services.presets import PRESETS, setup_preset
from .utils.logging import setup_logging

console = Console()


def build_presets_table(settings: Settings) -> Table:
    table = Table(title="Service presets", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Image")
    table.add_column("Port", justify="right")
    table.add_column("Environment")
    for name, factory in PRESETS.items():
        spec = factory(settings)
        table.add_row(name, spec.image, str(spec.container_port), ", ".join(spec.env))
    return table


async def cmd_presets(args, controller: LifecycleController):
    """List presets."""
    console.print(build_presets_table(controller.settings))


async def cmd_check(args, controller: LifecycleController):
    """Run preflight and print the resulting setup."""
    await controller.preflight()
    table = Table(show_header=False, box=None, padding=(0, 2))
    for key, value in controller.describe().items():
        table.add_row(key, str(value))
    console.print(table)


async def cmd_up(args, controller: LifecycleController):
    """Start a preset and print where it listens."""
    result = await setup_preset(args.preset, *args.extra, controller=controller)
    console.print(f"[green]{args.preset} ready[/green] at {result.address}")
    console.print(f"container: {result.container_id}")
    console.print(f"[dim]stop with: dockertest down {result.handle.short_id}[/dim]")


async def cmd_down(args, controller: LifecycleController):
    """Kill and remove containers."""
    await controller.preflight()
    failed = False
    for container_id in args.containers:
        handle = ContainerHandle(container_id=container_id, engine=controller.engine)
        try:
            await handle.kill_and_remove()
        except DockerTestException as e:
            console.print(f"[red]{container_id}: {e.message}[/red]")
            failed = True
            continue
        console.print(f"[green]removed {container_id}[/green]")
    if failed:
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dockertest",
        description="Disposable service containers for tests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Never remove containers (overrides DOCKERTEST_DEBUG)",
    )
    parser.add_argument(
        "--bind-localhost",
        action="store_true",
        help="Publish ports on 127.0.0.1 (overrides DOCKERTEST_BIND_LOCALHOST)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("presets", help="List service presets")
    subparsers.add_parser("check", help="Check that the engine can be reached")

    up_p = subparsers.add_parser("up", help="Start a service container")
    up_p.add_argument("preset", choices=sorted(PRESETS), help="Preset name")
    up_p.add_argument("extra", nargs=argparse.REMAINDER, help="Arguments after the image")

    down_p = subparsers.add_parser("down", help="Kill and remove containers")
    down_p.add_argument("containers", nargs="+", help="Container IDs")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "up" and args.extra[:1] == ["--"]:
        args.extra = args.extra[1:]

    overrides = {}
    if args.debug:
        overrides["debug"] = True
    if args.bind_localhost:
        overrides["bind_localhost"] = True
    settings = Settings(**overrides)
    setup_logging(settings)
    controller = LifecycleController(settings=settings)

    handlers = {
        "presets": cmd_presets,
        "check": cmd_check,
        "up": cmd_up,
        "down": cmd_down,
    }

    try:
        asyncio.run(handlers[args.command](args, controller))
    except DockerTestException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
