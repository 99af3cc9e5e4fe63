"""Command line inspection of a project.

    gcengine zones
    gcengine machine-types --zone us-central1-a
    gcengine images --project debian-cloud
    gcengine operations --zone us-central1-a
    gcengine wait https://www.googleapis.com/compute/v1/projects/p/zones/z/operations/op-1
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.api.pages import collect
from gcengine.api.uris import name_from_uri
from gcengine.compute.adapter import ComputeServiceAdapter
from gcengine.compute.locations import LocationSupplier
from gcengine.compute.naming import GroupNamingConvention
from gcengine.config import GCE, resolve_config
from gcengine.errors import GoogleComputeEngineError, OperationTimeoutError
from gcengine.infra.http import Auth, BearerAuth, GoogleCredentialsAuth
from gcengine.logging import LogConfig, setup_logging, teardown_logging

TOKEN_ENV = "GCENGINE_TOKEN"

STATUS_STYLES = {
    "RUNNING": "green",
    "UP": "green",
    "DONE": "green",
    "READY": "green",
    "PENDING": "yellow",
    "STAGING": "yellow",
    "PROVISIONING": "yellow",
    "STOPPING": "yellow",
    "STOPPED": "bright_black",
    "TERMINATED": "bright_black",
    "DOWN": "red",
    "FAILED": "red",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gcengine", description="Inspect Google Compute Engine resources")
    parser.add_argument("--project", help="project id (default: config, env or ADC)")
    parser.add_argument("--token", help=f"OAuth2 bearer token (default: ${TOKEN_ENV}, else ADC)")
    parser.add_argument("--verbose", "-v", action="store_true", help="log requests to stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("zones", help="list zones")
    sub.add_parser("regions", help="list regions")

    machine_types = sub.add_parser("machine-types", help="list machine types of a zone")
    machine_types.add_argument("--zone", required=True)

    images = sub.add_parser("images", help="list images of a project")
    images.add_argument("--project", dest="image_project", help="image project, e.g. debian-cloud")

    sub.add_parser("nodes", help="list instances of every zone as nodes")

    operations = sub.add_parser("operations", help="list operations (global by default)")
    scope = operations.add_mutually_exclusive_group()
    scope.add_argument("--zone")
    scope.add_argument("--region")

    wait = sub.add_parser("wait", help="wait for an operation to finish")
    wait.add_argument("operation", help="operation selfLink")
    wait.add_argument("--timeout", type=float, default=None)
    return parser


def _styled(status: str | None) -> str:
    status = status or "-"
    style = STATUS_STYLES.get(status)
    return f"[{style}]{status}[/{style}]" if style else status


def _table(title: str, *columns: str) -> Table:
    table = Table(title=title, title_justify="left", header_style="bold", box=None, padding=(0, 2))
    for column in columns:
        table.add_column(column)
    return table


def _deprecation(resource: dict[str, Any]) -> str:
    return resource.get("deprecated", {}).get("state", "")


async def run(args: argparse.Namespace, api: GoogleComputeEngineApi, console: Console) -> int:
    """Execute one parsed command and print its result."""
    match args.command:
        case "zones":
            table = _table("Zones", "NAME", "REGION", "STATUS", "DEPRECATED")
            for zone in await api.zones().list():
                table.add_row(
                    zone["name"], name_from_uri(zone.get("region", "")), _styled(zone.get("status")),
                    _deprecation(zone),
                )

        case "regions":
            table = _table("Regions", "NAME", "ZONES", "STATUS")
            for region in await api.regions().list():
                zones = ", ".join(name_from_uri(z) for z in region.get("zones", []))
                table.add_row(region["name"], zones, _styled(region.get("status")))

        case "machine-types":
            table = _table(f"Machine types in {args.zone}", "NAME", "CPUS", "MEMORY (MB)", "DEPRECATED")
            for mt in await api.machine_types_in_zone(args.zone).list():
                table.add_row(mt["name"], str(mt["guestCpus"]), str(mt["memoryMb"]), _deprecation(mt))

        case "images":
            project = args.image_project or api.project
            table = _table(f"Images in {project}", "NAME", "FAMILY", "STATUS", "DEPRECATED")
            for image in await api.images(project).list():
                table.add_row(
                    image["name"], image.get("family", ""), _styled(image.get("status")), _deprecation(image)
                )

        case "nodes":
            locations = LocationSupplier(api)
            adapter = ComputeServiceAdapter(api, locations, GroupNamingConvention(api.config.shared_name_prefix))
            table = _table("Nodes", "ID", "GROUP", "STATUS", "PUBLIC", "PRIVATE")
            for node in await adapter.list_nodes():
                table.add_row(
                    node.id, node.group or "", _styled(node.backend_status),
                    ", ".join(node.public_addresses), ", ".join(node.private_addresses),
                )

        case "operations":
            ops = api.operations()
            if args.zone:
                listing, where = ops.in_zone(args.zone), args.zone
            elif args.region:
                listing, where = ops.in_region(args.region), args.region
            else:
                listing, where = ops.in_global(), "global"
            table = _table(f"Operations ({where})", "NAME", "TYPE", "TARGET", "STATUS", "ERROR")
            for op in await collect(listing.pages()):
                table.add_row(
                    op["name"], op.get("operationType", ""), name_from_uri(op.get("targetLink", "")),
                    _styled(op.get("status")), str(op.get("httpErrorStatusCode", "")),
                )

        case "wait":
            ops = api.operations()
            operation = await ops.get(args.operation)
            if operation is None:
                console.print(f"[red]operation not found:[/red] {args.operation}")
                return 1
            done = await ops.wait_done(operation, timeout=args.timeout)
            if "httpErrorStatusCode" in done or done.get("error"):
                console.print(
                    f"[red]{done['name']} failed:[/red] {done.get('httpErrorStatusCode', '')} "
                    f"{done.get('httpErrorMessage', '')}"
                )
                return 1
            console.print(f"{done['name']} {_styled(done.get('status'))}")
            return 0

        case _:
            raise ValueError(f"unknown command {args.command}")

    console.print(table)
    return 0


def _config(args: argparse.Namespace) -> GCE:
    config = resolve_config(project_dir=Path.cwd())
    if args.project:
        config = replace(config, project=args.project)
    return config.with_project()


def _auth(args: argparse.Namespace) -> Auth:
    token = args.token or os.environ.get(TOKEN_ENV)
    return BearerAuth(token) if token else GoogleCredentialsAuth()


async def _main(args: argparse.Namespace, console: Console) -> int:
    async with GoogleComputeEngineApi(_config(args), _auth(args)) as api:
        return await run(args, api, console)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    errors = Console(stderr=True)
    handlers = setup_logging(LogConfig(level="DEBUG")) if args.verbose else []
    try:
        return asyncio.run(_main(args, console))
    except (GoogleComputeEngineError, OperationTimeoutError, ValueError) as e:
        errors.print(f"[red]error:[/red] {e}")
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        teardown_logging(handlers)


if __name__ == "__main__":
    sys.exit(main())
