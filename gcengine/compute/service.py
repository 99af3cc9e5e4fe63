"""Group-level compute operations: templates, node groups and cleanup.

Example:
    async with GoogleComputeEngineApi(GCE(project="my-project"), auth) as api:
        compute = GoogleComputeEngineService(api)
        template = await compute.template(hardware_id="e2-small", location_id="us-central1-a")
        nodes = await compute.create_nodes_in_group("web", 2, template)
        ...
        await compute.destroy_nodes_matching(lambda n: n.group == "web")
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace

from loguru import logger

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.api.options import FirewallOptions, FirewallRuleSpec, filter_by
from gcengine.api.types import Network, Operation, has_failed
from gcengine.api.uris import name_from_uri
from gcengine.errors import GoogleComputeEngineError, NodeCreationError, OperationFailedError

from .adapter import ComputeServiceAdapter
from .functions import GROUP_METADATA_KEY, find_orphaned_groups, simplify_ports
from .keys import generate_key_pair
from .locations import LocationSupplier
from .model import Hardware, Image, Location, NodeMetadata, Template
from .naming import UNIQUE_SUFFIXES, FirewallTagNamingConvention, GroupNamingConvention
from .networks import DEFAULT_INTERNAL_RANGE, NetworkAndAddressRange, NetworkCreator
from .options import TemplateOptions
from .security_groups import SecurityGroupExtension

DEFAULT_NETWORK = "default"
EXTERIOR_RANGE = "0.0.0.0/0"
DEFAULT_IMAGE_FAMILY = "debian"

log = logger.bind(component="compute")


class GoogleComputeEngineService:
    def __init__(self, api: GoogleComputeEngineApi) -> None:
        self.api = api
        self.config = api.config
        self.naming = GroupNamingConvention(self.config.shared_name_prefix)
        self.locations = LocationSupplier(api)
        self.networks = NetworkCreator(api)
        self.adapter = ComputeServiceAdapter(api, self.locations, self.naming)
        self.security_group_extension = SecurityGroupExtension(api, self.networks, self.naming)

    # ─── Templates ───────────────────────────────────────────────────

    async def template(
        self,
        *,
        hardware_id: str | None = None,
        image_id: str | None = None,
        location_id: str | None = None,
        options: TemplateOptions | None = None,
    ) -> Template:
        """Resolve hardware, image and zone by id, or pick defaults.

        Defaults are the first zone, the smallest current machine type in it,
        and the newest current Debian image (any current image when there is
        none).
        """
        location = await self._pick_location(location_id)
        hardware = (
            await self.adapter.get_hardware(hardware_id, location)
            if hardware_id
            else await self._smallest_hardware(location)
        )
        image = await self.adapter.get_image(image_id) if image_id else await self._default_image()
        return Template(image=image, hardware=hardware, location=location, options=options or TemplateOptions())

    async def _pick_location(self, location_id: str | None) -> Location:
        if location_id:
            return await self.locations.zone(location_id)
        zones = await self.locations.zones()
        if not zones:
            raise LookupError("project has no zones")
        return zones[0]

    async def _smallest_hardware(self, zone: Location) -> Hardware:
        machine_types = await self.api.machine_types_in_zone(zone.id).list()
        current = [m for m in machine_types if not m.get("deprecated")]
        if not current:
            raise LookupError(f"no machine types in {zone.id}")
        smallest = min(current, key=lambda m: (m["guestCpus"], m["memoryMb"], m["name"]))
        return await self.adapter.get_hardware(smallest["selfLink"], zone)

    async def _default_image(self) -> Image:
        images = [i for i in await self.adapter.list_images() if not i.deprecated and i.status == "AVAILABLE"]
        preferred = [i for i in images if i.operating_system.family == DEFAULT_IMAGE_FAMILY] or images
        if not preferred:
            raise LookupError("no usable images found")
        return max(preferred, key=lambda i: i.name)

    # ─── Node groups ─────────────────────────────────────────────────

    async def create_nodes_in_group(self, group: str, count: int, template: Template) -> list[NodeMetadata]:
        """Create ``count`` nodes named ``{prefix}-{group}-{suffix}`` concurrently.

        Raises:
            ValueError: If more than one network is requested, the network does not exist,
                or the group has fewer than ``count`` unused names left in the zone.
            NodeCreationError: If any node failed; created nodes are attached to the error.
        """
        options = template.options
        network = await self._resolve_network(options.networks)
        names = await self._free_names(group, count, template.location.id)
        await self._ensure_firewall(group, options, network)

        options = options.with_network(network["selfLink"]).with_metadata(GROUP_METADATA_KEY, group)
        if options.auto_create_key_pair and not options.public_key:
            log.debug("Creating default key pair for {group}", group=group)
            keys = generate_key_pair(f"gcengine-{group}")
            options = replace(options.authorize_public_key(keys.public), login_private_key=keys.private)
        template = replace(template, options=options)

        log.info("Creating {count} nodes in group {group}", count=count, group=group)
        results = await asyncio.gather(
            *(self.adapter.create_node_with_group_encoded_into_name(group, n, template) for n in names),
            return_exceptions=True,
        )

        created: list[NodeMetadata] = []
        failures: dict[str, BaseException] = {}
        for name, result in zip(names, results, strict=True):
            if isinstance(result, BaseException):
                log.error("Failed to create node {name}: {error}", name=name, error=result)
                failures[name] = result
            else:
                created.append(await self.adapter.to_node(result.instance, result.credentials))

        if failures:
            raise NodeCreationError(group, created, failures)
        return created

    async def _free_names(self, group: str, count: int, zone: str) -> list[str]:
        """``count`` unique names for ``group`` that no instance in ``zone`` uses yet."""
        taken = {i["name"] for i in await self.api.instances_in_zone(zone).list()}
        left = UNIQUE_SUFFIXES - sum(1 for n in taken if self.naming.is_unique_name_for_group(n, group))
        if count > left:
            raise ValueError(f"cannot create {count} nodes in group {group}: only {left} names left in {zone}")

        names: set[str] = set()
        while len(names) < count:
            name = self.naming.unique_name_for_group(group)
            if name not in taken:
                names.add(name)
        return sorted(names)

    async def _resolve_network(self, networks: Sequence[str]) -> Network:
        if len(networks) > 1:
            raise ValueError("only one network can be specified in template options on GCE")
        name = name_from_uri(networks[0]) if networks else DEFAULT_NETWORK
        network = await self.api.networks().get(name)
        if network is None:
            raise ValueError(f"no network with name {name} was found")
        return network

    async def _ensure_firewall(self, group: str, options: TemplateOptions, network: Network) -> None:
        """Open the inbound ports to the world on tcp and udp for the group's tag."""
        if not options.inbound_ports:
            return
        ports = simplify_ports(options.inbound_ports)
        name = FirewallTagNamingConvention.for_group(self.naming, group).name(ports)
        firewalls = self.api.firewalls()
        if await firewalls.get(name) is not None:
            return

        log.info("Creating firewall {name} for ports {ports}", name=name, ports=",".join(ports))
        firewall = FirewallOptions(
            allowed=(FirewallRuleSpec("tcp", tuple(ports)), FirewallRuleSpec("udp", tuple(ports))),
            source_ranges=(DEFAULT_INTERNAL_RANGE, EXTERIOR_RANGE),
            source_tags=options.tags,
            target_tags=(name,),
        )
        operation = await firewalls.create_in_network(name, network["selfLink"], firewall)
        done = await self.api.operations().wait_done(operation)
        if has_failed(done):
            raise OperationFailedError(done)

    # ─── Nodes ───────────────────────────────────────────────────────

    async def list_nodes(self) -> list[NodeMetadata]:
        return await self.adapter.list_nodes()

    async def get_node(self, id: str) -> NodeMetadata | None:
        return await self.adapter.get_node(id)

    async def reboot_node(self, id: str) -> None:
        await self.adapter.reboot_node(id)

    async def suspend_node(self, id: str) -> None:
        await self.adapter.suspend_node(id)

    async def resume_node(self, id: str) -> None:
        await self.adapter.resume_node(id)

    async def reset_windows_password(self, id: str, user: str | None = None, email: str | None = None) -> str:
        return await self.adapter.reset_windows_password(id, user, email)

    async def destroy_node(self, id: str) -> NodeMetadata | None:
        node = await self.adapter.get_node(id)
        if node is None:
            return None
        await self.adapter.destroy_node(id)
        await self.clean_up_incidental_resources([node])
        return node

    async def destroy_nodes_matching(self, predicate: Callable[[NodeMetadata], bool]) -> list[NodeMetadata]:
        doomed = [n for n in await self.list_nodes() if predicate(n)]
        if not doomed:
            return []
        log.info("Destroying {count} nodes", count=len(doomed))
        results = await asyncio.gather(*(self.adapter.destroy_node(n.id) for n in doomed), return_exceptions=True)

        destroyed: list[NodeMetadata] = []
        failures: list[BaseException] = []
        for node, result in zip(doomed, results, strict=True):
            if isinstance(result, BaseException):
                log.error("Failed to destroy node {id}: {error}", id=node.id, error=result)
                failures.append(result)
            else:
                destroyed.append(node)

        # nodes that failed to go away are still live and keep their group's resources
        await self.clean_up_incidental_resources(destroyed)
        if failures:
            raise failures[0]
        return destroyed

    # ─── Cleanup ─────────────────────────────────────────────────────

    async def clean_up_incidental_resources(self, dead_nodes: Sequence[NodeMetadata]) -> None:
        """Delete the port firewalls and shared network of groups left without nodes.

        Failures are logged; nothing here raises.
        """
        try:
            live = await self.list_nodes()
        except GoogleComputeEngineError as e:
            log.warning("Skipping cleanup, could not list nodes: {error}", error=e)
            return

        for group in sorted(find_orphaned_groups(dead_nodes, live)):
            try:
                shared = self.naming.shared_name_for_group(group)
            except ValueError:
                log.warning("Group {group} has no valid shared name, skipping cleanup", group=group)
                continue
            log.info("Cleaning up resources of orphaned group {group}", group=group)
            await self._delete_group_firewalls(shared)
            await self._delete_group_network(shared)

    async def _delete_quietly(
        self, kind: str, name: str, delete: Callable[[str], Awaitable[Operation | None]]
    ) -> bool:
        try:
            operation = await delete(name)
            if operation is None:
                return True
            done = await self.api.operations().wait_done(operation)
        except (GoogleComputeEngineError, TimeoutError) as e:
            log.warning("Failed to delete {kind} {name}: {error}", kind=kind, name=name, error=e)
            return False
        if has_failed(done):
            log.warning(
                "Failed to delete {kind} {name}: {code} {message}",
                kind=kind, name=name,
                code=done.get("httpErrorStatusCode"), message=done.get("httpErrorMessage"),
            )
            return False
        return True

    async def _delete_group_firewalls(self, shared: str) -> None:
        firewalls = self.api.firewalls()
        naming = FirewallTagNamingConvention(shared)
        try:
            port_firewalls = await firewalls.list(filter_by(f"name eq {shared}-[0-9a-f]{{3}}"))
            network_firewalls = await firewalls.list(filter_by(f"network eq .*/{shared}"))
        except GoogleComputeEngineError as e:
            log.warning("Failed to list firewalls of {shared}: {error}", shared=shared, error=e)
            return

        names = sorted(
            {fw["name"] for fw in port_firewalls if naming.is_firewall_tag(fw["name"])}
            | {fw["name"] for fw in network_firewalls}
        )

        async def _delete_one(name: str) -> None:
            await self._delete_quietly("firewall", name, firewalls.delete)

        await asyncio.gather(*(_delete_one(n) for n in names))

    async def _delete_group_network(self, shared: str) -> None:
        networks = self.api.networks()
        try:
            network = await networks.get(shared)
        except GoogleComputeEngineError as e:
            log.warning("Failed to look up network {name}: {error}", name=shared, error=e)
            return
        if network is None:
            return
        if await self._delete_quietly("network", shared, networks.delete):
            self.networks.invalidate(NetworkAndAddressRange(shared))
