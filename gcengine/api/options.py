"""List options and request-body builders.

Builders are frozen dataclasses; ``to_json()`` renders the camelCase body the
API expects and leaves unset (None) fields out.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from .types import (
    AttachedDisk,
    Deprecated,
    DeprecationState,
    InitializeParams,
    NetworkInterface,
    Scheduling,
    ServiceAccount,
    metadata_from_dict,
)


def _compact(body: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in body.items() if v is not None and v != () and v != []}


# =============================================================================
# Listing
# =============================================================================


@dataclass(frozen=True, slots=True)
class ListOptions:
    """Server-side list filtering.

    Args:
        filter: Filter expression, e.g. ``name eq my-instance.*``.
        max_results: Page size (the API caps it at 500).
        order_by: Sort expression, e.g. ``creationTimestamp desc``.
    """

    filter: str | None = None
    max_results: int | None = None
    order_by: str | None = None

    def to_params(self, page_token: str | None = None) -> list[tuple[str, Any]]:
        return [
            ("pageToken", page_token),
            ("filter", self.filter),
            ("maxResults", self.max_results),
            ("orderBy", self.order_by),
        ]


def filter_by(expression: str) -> ListOptions:
    return ListOptions(filter=expression)


# =============================================================================
# Instances
# =============================================================================


@dataclass(frozen=True, slots=True)
class NetworkInterfaceSpec:
    network: str
    subnetwork: str | None = None
    external_nat: bool = True
    nat_ip: str | None = None

    def to_json(self) -> NetworkInterface:
        body: dict[str, Any] = {"network": self.network}
        if self.subnetwork:
            body["subnetwork"] = self.subnetwork
        if self.external_nat:
            body["accessConfigs"] = [
                _compact({"name": "External NAT", "type": "ONE_TO_ONE_NAT", "natIP": self.nat_ip})
            ]
        return body  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class AttachedDiskSpec:
    source: str | None = None
    boot: bool = False
    auto_delete: bool = False
    mode: Literal["READ_WRITE", "READ_ONLY"] = "READ_WRITE"
    device_name: str | None = None
    type: Literal["PERSISTENT", "SCRATCH"] = "PERSISTENT"
    initialize_params: InitializeParams | None = None

    @classmethod
    def existing_boot(cls, disk_uri: str, *, auto_delete: bool = True) -> AttachedDiskSpec:
        return cls(source=disk_uri, boot=True, auto_delete=auto_delete)

    @classmethod
    def from_image(
        cls,
        image_uri: str,
        *,
        size_gb: int | None = None,
        disk_type: str | None = None,
        disk_name: str | None = None,
    ) -> AttachedDiskSpec:
        params = _compact(
            {
                "sourceImage": image_uri,
                "diskSizeGb": str(size_gb) if size_gb else None,
                "diskType": disk_type,
                "diskName": disk_name,
            }
        )
        return cls(boot=True, auto_delete=True, initialize_params=params)  # type: ignore[arg-type]

    def to_json(self) -> AttachedDisk:
        return _compact(  # type: ignore[return-value]
            {
                "type": self.type,
                "mode": self.mode,
                "source": self.source,
                "deviceName": self.device_name,
                "boot": self.boot,
                "autoDelete": self.auto_delete,
                "initializeParams": self.initialize_params,
            }
        )


@dataclass(frozen=True, slots=True)
class SchedulingOptions:
    on_host_maintenance: Literal["MIGRATE", "TERMINATE"] = "MIGRATE"
    automatic_restart: bool = True
    preemptible: bool = False

    def to_json(self) -> Scheduling:
        return {
            "onHostMaintenance": self.on_host_maintenance,
            "automaticRestart": self.automatic_restart,
            "preemptible": self.preemptible,
        }


@dataclass(frozen=True, slots=True)
class NewInstance:
    """Body of an ``instances.insert`` call.

    The first disk must be the boot disk.
    """

    name: str
    machine_type: str
    network_interfaces: tuple[NetworkInterfaceSpec, ...]
    disks: tuple[AttachedDiskSpec, ...]
    description: str | None = None
    tags: tuple[str, ...] = ()
    metadata: Mapping[str, str] = field(default_factory=dict)
    service_accounts: tuple[ServiceAccount, ...] = ()
    scheduling: SchedulingOptions | None = None
    can_ip_forward: bool | None = None

    def __post_init__(self) -> None:
        if self.disks and not self.disks[0].boot:
            raise ValueError("the first disk of a new instance must be the boot disk")

    @classmethod
    def create(
        cls,
        name: str,
        machine_type: str,
        network: str,
        disks: tuple[AttachedDiskSpec, ...],
        description: str | None = None,
        *,
        subnetwork: str | None = None,
        external_ip: bool = True,
    ) -> NewInstance:
        nic = NetworkInterfaceSpec(network=network, subnetwork=subnetwork, external_nat=external_ip)
        return cls(
            name=name,
            machine_type=machine_type,
            network_interfaces=(nic,),
            disks=disks,
            description=description,
        )

    def to_json(self) -> dict[str, Any]:
        return _compact(
            {
                "name": self.name,
                "description": self.description,
                "machineType": self.machine_type,
                "canIpForward": self.can_ip_forward,
                "networkInterfaces": [n.to_json() for n in self.network_interfaces],
                "disks": [d.to_json() for d in self.disks],
                "tags": {"items": list(self.tags)} if self.tags else None,
                "metadata": metadata_from_dict(dict(self.metadata)) if self.metadata else None,
                "serviceAccounts": [dict(s) for s in self.service_accounts],
                "scheduling": self.scheduling.to_json() if self.scheduling else None,
            }
        )


@dataclass(frozen=True, slots=True)
class AttachDiskOptions:
    source: str
    mode: Literal["READ_WRITE", "READ_ONLY"] = "READ_WRITE"
    device_name: str | None = None
    boot: bool = False
    auto_delete: bool = False
    type: Literal["PERSISTENT", "SCRATCH"] = "PERSISTENT"

    def to_json(self) -> AttachedDisk:
        return AttachedDiskSpec(
            source=self.source,
            boot=self.boot,
            auto_delete=self.auto_delete,
            mode=self.mode,
            device_name=self.device_name,
            type=self.type,
        ).to_json()


# =============================================================================
# Disks and images
# =============================================================================


@dataclass(frozen=True, slots=True)
class DiskCreationOptions:
    type: str | None = None
    source_image: str | None = None
    source_snapshot: str | None = None
    description: str | None = None

    def to_json(self, name: str, size_gb: int | None) -> dict[str, Any]:
        return _compact(
            {
                "name": name,
                "sizeGb": size_gb,
                "type": self.type,
                "sourceImage": self.source_image,
                "sourceSnapshot": self.source_snapshot,
                "description": self.description,
            }
        )


@dataclass(frozen=True, slots=True)
class DeprecateOptions:
    state: DeprecationState
    replacement: str | None = None
    deprecated: str | None = None
    obsolete: str | None = None
    deleted: str | None = None

    def to_json(self) -> Deprecated:
        return _compact(  # type: ignore[return-value]
            {
                "state": self.state,
                "replacement": self.replacement,
                "deprecated": self.deprecated,
                "obsolete": self.obsolete,
                "deleted": self.deleted,
            }
        )


# =============================================================================
# Networking
# =============================================================================


@dataclass(frozen=True, slots=True)
class FirewallRuleSpec:
    protocol: str
    ports: tuple[str, ...] = ()

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {"IPProtocol": self.protocol}
        if self.ports:
            body["ports"] = list(self.ports)
        return body


@dataclass(frozen=True, slots=True)
class FirewallOptions:
    allowed: tuple[FirewallRuleSpec, ...] = ()
    source_ranges: tuple[str, ...] = ()
    source_tags: tuple[str, ...] = ()
    target_tags: tuple[str, ...] = ()
    description: str | None = None

    def to_json(self, name: str | None = None, network: str | None = None) -> dict[str, Any]:
        return _compact(
            {
                "name": name,
                "description": self.description,
                "network": network,
                "allowed": [r.to_json() for r in self.allowed],
                "sourceRanges": list(self.source_ranges),
                "sourceTags": list(self.source_tags),
                "targetTags": list(self.target_tags),
            }
        )


@dataclass(frozen=True, slots=True)
class RouteOptions:
    dest_range: str
    priority: int = 1000
    next_hop_instance: str | None = None
    next_hop_ip: str | None = None
    next_hop_network: str | None = None
    next_hop_gateway: str | None = None
    tags: tuple[str, ...] = ()
    description: str | None = None

    def to_json(self, name: str, network: str) -> dict[str, Any]:
        return _compact(
            {
                "name": name,
                "network": network,
                "destRange": self.dest_range,
                "priority": self.priority,
                "nextHopInstance": self.next_hop_instance,
                "nextHopIp": self.next_hop_ip,
                "nextHopNetwork": self.next_hop_network,
                "nextHopGateway": self.next_hop_gateway,
                "tags": list(self.tags),
                "description": self.description,
            }
        )


@dataclass(frozen=True, slots=True)
class AddressCreationOptions:
    address: str | None = None
    description: str | None = None

    def to_json(self, name: str) -> dict[str, Any]:
        return _compact({"name": name, "address": self.address, "description": self.description})


# =============================================================================
# Load balancing
# =============================================================================


@dataclass(frozen=True, slots=True)
class ForwardingRuleCreationOptions:
    target: str
    ip_address: str | None = None
    ip_protocol: Literal["TCP", "UDP", "ESP", "AH", "SCTP"] | None = None
    port_range: str | None = None
    description: str | None = None

    def to_json(self, name: str) -> dict[str, Any]:
        return _compact(
            {
                "name": name,
                "target": self.target,
                "IPAddress": self.ip_address,
                "IPProtocol": self.ip_protocol,
                "portRange": self.port_range,
                "description": self.description,
            }
        )


@dataclass(frozen=True, slots=True)
class TargetPoolCreationOptions:
    health_checks: tuple[str, ...] = ()
    instances: tuple[str, ...] = ()
    session_affinity: Literal["NONE", "CLIENT_IP", "CLIENT_IP_PROTO"] | None = None
    failover_ratio: float | None = None
    backup_pool: str | None = None
    description: str | None = None

    def to_json(self, name: str) -> dict[str, Any]:
        return _compact(
            {
                "name": name,
                "healthChecks": list(self.health_checks),
                "instances": list(self.instances),
                "sessionAffinity": self.session_affinity,
                "failoverRatio": self.failover_ratio,
                "backupPool": self.backup_pool,
                "description": self.description,
            }
        )


@dataclass(frozen=True, slots=True)
class HttpHealthCheckCreationOptions:
    host: str | None = None
    request_path: str | None = None
    port: int | None = None
    check_interval_sec: int | None = None
    timeout_sec: int | None = None
    unhealthy_threshold: int | None = None
    healthy_threshold: int | None = None
    description: str | None = None

    def to_json(self, name: str | None = None) -> dict[str, Any]:
        return _compact(
            {
                "name": name,
                "host": self.host,
                "requestPath": self.request_path,
                "port": self.port,
                "checkIntervalSec": self.check_interval_sec,
                "timeoutSec": self.timeout_sec,
                "unhealthyThreshold": self.unhealthy_threshold,
                "healthyThreshold": self.healthy_threshold,
                "description": self.description,
            }
        )
