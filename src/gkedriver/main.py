import argparse
import logging
import signal
import sys
from importlib.metadata import version
from pathlib import Path
from typing import Any

from rich.console import Console

from .core import POLL_INTERVAL
from .driver import Driver
from .exceptions import DriverError
from .logger import logger
from .schemas.info import ClusterInfo

# Options that take a list of strings. Repeating them appends.
LIST_OPTIONS = {"labels", "locations"}


def parse_options(pairs: list[str]) -> dict[str, Any]:
    """Turns repeated KEY=VALUE arguments into a driver option bag."""
    options: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"expected KEY=VALUE, got {pair!r}")
        if key in LIST_OPTIONS:
            options.setdefault(key, []).extend(v for v in value.split(",") if v)
        else:
            options[key] = value
    return options


def load_info(path: Path) -> ClusterInfo:
    if not path.exists():
        return ClusterInfo()
    return ClusterInfo.model_validate_json(path.read_text())


def save_info(path: Path, info: ClusterInfo) -> None:
    path.write_text(info.model_dump_json(indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="gkedriver: manage a GKE cluster through driver options",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a cluster and record its state in c1.json
  gkedriver create --info c1.json -o name=c1 -o project-id=p1 -o zone=us-central1-a -o node-count=3

  # Fill endpoint and credentials once it is up
  gkedriver post-check --info c1.json

  # Scale the first node pool
  gkedriver set-size --info c1.json 5

  # Delete it
  gkedriver remove --info c1.json
""",
    )
    try:
        ver = version("gkedriver")
    except Exception:
        ver = "unknown"
    parser.add_argument("--version", action="version", version=f"gkedriver v{ver}")

    parser.add_argument(
        "command",
        choices=[
            "create",
            "update",
            "post-check",
            "remove",
            "get-size",
            "set-size",
            "get-version",
            "set-version",
            "capabilities",
        ],
    )
    parser.add_argument(
        "value",
        nargs="?",
        help="Node count for set-size, Kubernetes version for set-version",
    )
    parser.add_argument(
        "--info",
        type=Path,
        default=Path("cluster-info.json"),
        help="Cluster info JSON file, read and written back (default: cluster-info.json)",
    )
    parser.add_argument(
        "-o",
        "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Driver option, e.g. -o node-count=3. Repeatable.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up waiting for RUNNING after this many seconds (default: wait forever)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=POLL_INTERVAL,
        help=f"Seconds between status polls (default: {POLL_INTERVAL:g})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def run(args: argparse.Namespace, driver: Driver, console: Console) -> None:
    info = load_info(args.info)
    options = parse_options(args.option)

    if args.command in ("set-size", "set-version") and not args.value:
        raise ValueError(f"{args.command} needs a value")

    if args.command == "create":
        info = driver.create(options, info)
    elif args.command == "update":
        # update() records each finished step in info, keep them even on failure
        try:
            info = driver.update(info, options)
        finally:
            save_info(args.info, info)
    elif args.command == "post-check":
        info = driver.post_check(info)
    elif args.command == "remove":
        driver.remove(info)
        console.print(f"[green]Removed[/green] {args.info}")
        return
    elif args.command == "get-size":
        console.print(driver.get_cluster_size(info))
        return
    elif args.command == "set-size":
        driver.set_cluster_size(info, int(args.value))
    elif args.command == "get-version":
        console.print(driver.get_version(info))
        return
    elif args.command == "set-version":
        driver.set_version(info, args.value)
    elif args.command == "capabilities":
        for capability in sorted(driver.get_capabilities(), key=lambda c: c.value):
            console.print(capability.value)
        return

    save_info(args.info, info)
    console.print(f"[green]{args.command}[/green] done, state saved to {args.info}")


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logger.setLevel(logging.DEBUG)

    console = Console(stderr=True)
    driver = Driver(poll_interval=args.poll_interval, wait_timeout=args.timeout)

    # SIGTERM cancels any wait in progress
    signal.signal(signal.SIGTERM, lambda *_: driver.cancel.set())

    try:
        run(args, driver, console)
    except (DriverError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[bold red]Operation cancelled by user.[/bold red]")
        sys.exit(130)
