from __future__ import annotations

from typing import Any

from ..options import AddressCreationOptions, FirewallOptions, RouteOptions
from ..types import Address, Firewall, Network, Operation, Route, Subnetwork
from .base import ResourceApi


class NetworkApi(ResourceApi[Network]):
    """Global VPC networks."""

    async def create_in_ipv4_range(
        self, name: str, ipv4_range: str, gateway: str | None = None
    ) -> Operation:
        """Create a legacy network spanning a single ``ipv4_range``."""
        body: dict[str, Any] = {"name": name, "IPv4Range": ipv4_range}
        if gateway:
            body["gatewayIPv4"] = gateway
        return await self._insert(body)

    async def create(
        self, name: str, auto_create_subnetworks: bool = True, description: str | None = None
    ) -> Operation:
        body: dict[str, Any] = {"name": name, "autoCreateSubnetworks": auto_create_subnetworks}
        if description:
            body["description"] = description
        return await self._insert(body)


class SubnetworkApi(ResourceApi[Subnetwork]):
    """Subnetworks of one region."""

    async def create_in_network(
        self, name: str, network_uri: str, ip_cidr_range: str, description: str | None = None
    ) -> Operation:
        body: dict[str, Any] = {"name": name, "network": network_uri, "ipCidrRange": ip_cidr_range}
        if description:
            body["description"] = description
        return await self._insert(body)


class FirewallApi(ResourceApi[Firewall]):
    async def create_in_network(
        self, name: str, network_uri: str, options: FirewallOptions
    ) -> Operation:
        return await self._insert(options.to_json(name, network_uri))

    async def update(self, name: str, network_uri: str, options: FirewallOptions) -> Operation:
        """Replace the firewall; fields missing from ``options`` are cleared."""
        return await self._put(name, options.to_json(name, network_uri))

    async def patch(self, name: str, options: FirewallOptions) -> Operation:
        """Change only the fields set in ``options``."""
        return await self._patch(name, options.to_json(name))


class RouteApi(ResourceApi[Route]):
    async def create_in_network(
        self, name: str, network_uri: str, options: RouteOptions
    ) -> Operation:
        return await self._insert(options.to_json(name, network_uri))


class AddressApi(ResourceApi[Address]):
    """Static external addresses of one region."""

    async def create(self, name: str, options: AddressCreationOptions | None = None) -> Operation:
        return await self._insert((options or AddressCreationOptions()).to_json(name))
