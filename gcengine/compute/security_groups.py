"""Security groups on GCE: a group is a network, its permissions are firewalls."""

from __future__ import annotations

from loguru import logger

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.api.options import FirewallOptions, FirewallRuleSpec, filter_by
from gcengine.api.types import Firewall, Network, Operation
from gcengine.api.uris import name_from_uri

from .functions import firewall_to_ip_permissions, network_to_security_group, port_range, split_node_id
from .model import IpPermission, SecurityGroup
from .naming import GroupNamingConvention
from .networks import DEFAULT_INTERNAL_RANGE, NetworkAndAddressRange, NetworkCreator

log = logger.bind(component="security-groups")


def same_permission(a: IpPermission, b: IpPermission) -> bool:
    return (
        a.protocol == b.protocol
        and a.from_port == b.from_port
        and a.to_port == b.to_port
        and set(a.cidr_blocks) == set(b.cidr_blocks)
        and set(a.group_ids) == set(b.group_ids)
    )


class SecurityGroupExtension:
    supports_tenant_id_group_name_pairs = False
    supports_tenant_id_group_id_pairs = False
    supports_group_ids = True
    supports_port_ranges_for_groups = True
    supports_exclusion_cidr_blocks = False

    def __init__(
        self,
        api: GoogleComputeEngineApi,
        networks: NetworkCreator,
        naming: GroupNamingConvention,
    ) -> None:
        self._api = api
        self._networks = networks
        self._naming = naming

    async def _wait(self, operation: Operation | None) -> None:
        if operation is not None:
            await self._api.operations().wait_done(operation, raise_on_error=True)

    async def _firewalls_in(self, network: str) -> list[Firewall]:
        return await self._api.firewalls().list(filter_by(f"network eq .*/{network}"))

    async def _to_group(self, network: Network) -> SecurityGroup:
        return network_to_security_group(network, await self._firewalls_in(network["name"]))

    # ─── Queries ─────────────────────────────────────────────────────

    async def list_security_groups(self) -> list[SecurityGroup]:
        return [await self._to_group(n) for n in await self._api.networks().list()]

    async def list_security_groups_in_location(self, location_id: str) -> list[SecurityGroup]:
        """Networks are global, so every location sees every group."""
        return await self.list_security_groups()

    async def list_security_groups_for_node(self, id: str) -> list[SecurityGroup]:
        """Groups whose firewalls apply to the node's tags, over each of its networks."""
        zone, name = split_node_id(id)
        instance = await self._api.instances_in_zone(zone).get(name)
        if instance is None:
            return []

        tags = set(instance.get("tags", {}).get("items", []))
        groups: list[SecurityGroup] = []
        for nic in instance.get("networkInterfaces", []):
            network = await self._api.networks().get(name_from_uri(nic["network"]))
            if network is None:
                continue
            firewalls = await self._firewalls_in(network["name"])
            applies = any(
                not fw.get("targetTags") or tags.intersection(fw.get("targetTags", []))
                for fw in firewalls
            )
            if applies:
                groups.append(network_to_security_group(network, firewalls))
        return groups

    async def get_security_group_by_id(self, id: str) -> SecurityGroup | None:
        network = await self._api.networks().get(name_from_uri(id))
        return await self._to_group(network) if network is not None else None

    # ─── Mutations ───────────────────────────────────────────────────

    async def create_security_group(self, name: str) -> SecurityGroup:
        network = await self._networks.get_or_create(NetworkAndAddressRange(name, DEFAULT_INTERNAL_RANGE))
        return await self._to_group(network)

    async def remove_security_group(self, id: str) -> bool:
        """Delete the network's firewalls, then the network. False if it does not exist."""
        name = name_from_uri(id)
        networks = self._api.networks()
        if await networks.get(name) is None:
            return False

        for firewall in await self._firewalls_in(name):
            log.info("Deleting firewall {name}", name=firewall["name"])
            await self._wait(await self._api.firewalls().delete(firewall["name"]))

        log.info("Deleting network {name}", name=name)
        await self._wait(await networks.delete(name))
        self._networks.invalidate(NetworkAndAddressRange(name, DEFAULT_INTERNAL_RANGE))
        return True

    async def add_ip_permission(self, permission: IpPermission, group: SecurityGroup) -> SecurityGroup:
        """Open ``permission`` in ``group`` through a new firewall. No-op if already open."""
        current = await self.get_security_group_by_id(group.id)
        if current is None:
            raise LookupError(f"security group {group.id} not found")
        if any(same_permission(permission, p) for p in current.ip_permissions):
            return current

        firewall = self._naming.unique_name_for_group(group.name)
        options = FirewallOptions(
            allowed=(
                FirewallRuleSpec(permission.protocol, (port_range(permission.from_port, permission.to_port),)),
            ),
            source_ranges=permission.cidr_blocks,
            source_tags=permission.group_ids,
        )
        log.info("Creating firewall {name} in {group}", name=firewall, group=group.name)
        await self._wait(await self._api.firewalls().create_in_network(firewall, current.uri, options))
        return await self._refresh(group)

    async def remove_ip_permission(self, permission: IpPermission, group: SecurityGroup) -> SecurityGroup:
        """Delete every firewall of ``group`` that grants ``permission``."""
        for firewall in await self._firewalls_in(group.name):
            if any(same_permission(permission, p) for p in firewall_to_ip_permissions(firewall)):
                log.info("Deleting firewall {name}", name=firewall["name"])
                await self._wait(await self._api.firewalls().delete(firewall["name"]))
        return await self._refresh(group)

    async def _refresh(self, group: SecurityGroup) -> SecurityGroup:
        if (refreshed := await self.get_security_group_by_id(group.id)) is None:
            raise LookupError(f"security group {group.id} not found")
        return refreshed
