"""Conversions from GCE resources to the portable compute model."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Final

from gcengine.api import types as gce
from gcengine.api.types import metadata_as_dict
from gcengine.api.uris import name_from_uri, parse_custom_machine_type, project_from_uri

from .model import (
    Hardware,
    Image,
    ImageStatus,
    IpPermission,
    IpProtocol,
    Location,
    LoginCredentials,
    NodeMetadata,
    NodeStatus,
    OperatingSystem,
    Processor,
    SecurityGroup,
    Volume,
)
from .naming import FirewallTagNamingConvention, GroupNamingConvention

GROUP_METADATA_KEY: Final = "gcengine-group"
IMAGE_METADATA_KEY: Final = "gcengine-image"
DELETE_BOOT_DISK_METADATA_KEY: Final = "gcengine-delete-boot-disk"

INTERNAL_METADATA_KEYS: Final = frozenset(
    {GROUP_METADATA_KEY, IMAGE_METADATA_KEY, DELETE_BOOT_DISK_METADATA_KEY}
)

PROVIDER: Final = Location(id="google-compute-engine", scope="PROVIDER", description="Google Compute Engine")

NODE_STATUS: Final[Mapping[str, NodeStatus]] = {
    "PROVISIONING": "PENDING",
    "STAGING": "PENDING",
    "RUNNING": "RUNNING",
    "STOPPING": "PENDING",
    "SUSPENDING": "PENDING",
    "STOPPED": "SUSPENDED",
    "SUSPENDED": "SUSPENDED",
    "TERMINATED": "TERMINATED",
}

IMAGE_STATUS: Final[Mapping[str, ImageStatus]] = {
    "READY": "AVAILABLE",
    "PENDING": "PENDING",
    "FAILED": "ERROR",
}

# Leading token of public image names -> OS family.
OS_FAMILIES: Final[Mapping[str, str]] = {
    "centos": "centos",
    "debian": "debian",
    "rhel": "rhel",
    "ubuntu": "ubuntu",
    "sles": "suse",
    "opensuse": "suse",
    "coreos": "coreos",
    "cos": "cos",
    "windows": "windows",
    "rocky": "rocky",
    "fedora": "fedora",
}


# =============================================================================
# Node ids
# =============================================================================


def node_id(zone: str, name: str) -> str:
    return f"{zone}/{name}"


def split_node_id(id: str) -> tuple[str, str]:
    """``us-central1-a/web-1`` -> ``("us-central1-a", "web-1")``."""
    zone, sep, name = id.partition("/")
    if not sep or not zone or not name or "/" in name:
        raise ValueError(f"node id must be zone/name, got {id!r}")
    return zone, name


# =============================================================================
# Instances
# =============================================================================


def instance_status(status: str | None) -> NodeStatus:
    return NODE_STATUS.get(status or "", "UNRECOGNIZED")


def instance_to_node(
    instance: gce.Instance,
    naming: GroupNamingConvention,
    *,
    location: Location | None = None,
    credentials: LoginCredentials | None = None,
) -> NodeMetadata:
    zone = name_from_uri(instance["zone"])
    metadata = metadata_as_dict(instance.get("metadata"))
    group = metadata.get(GROUP_METADATA_KEY) or naming.group_in_name(instance["name"])

    public: list[str] = []
    private: list[str] = []
    for nic in instance.get("networkInterfaces", []):
        if ip := nic.get("networkIP"):
            private.append(ip)
        public.extend(ac["natIP"] for ac in nic.get("accessConfigs", []) if ac.get("natIP"))

    tags = tuple(instance.get("tags", {}).get("items", []))
    if group:
        firewall_naming = FirewallTagNamingConvention(f"{naming.prefix}-{group}")
        tags = tuple(t for t in tags if not firewall_naming.is_firewall_tag(t))

    return NodeMetadata(
        id=node_id(zone, instance["name"]),
        name=instance["name"],
        hostname=instance["name"],
        group=group,
        location=location,
        hardware_id=instance["machineType"],
        image_id=metadata.get(IMAGE_METADATA_KEY),
        status=instance_status(instance.get("status")),
        backend_status=instance.get("status"),
        uri=instance["selfLink"],
        public_addresses=tuple(public),
        private_addresses=tuple(private),
        tags=tags,
        user_metadata={k: v for k, v in metadata.items() if k not in INTERNAL_METADATA_KEYS},
        credentials=credentials,
        provider_id=instance["id"],
    )


def find_orphaned_groups(
    dead_nodes: Iterable[NodeMetadata], live_nodes: Iterable[NodeMetadata]
) -> set[str]:
    """Groups of ``dead_nodes`` that no remaining node still belongs to.

    A node in ``live_nodes`` keeps its group alive unless it is TERMINATED or
    is one of the dead nodes.
    """
    dead = list(dead_nodes)
    dead_ids = {n.id for n in dead}
    candidates = {n.group for n in dead if n.group}
    alive = {
        n.group
        for n in live_nodes
        if n.group and n.status != "TERMINATED" and n.id not in dead_ids
    }
    return candidates - alive


# =============================================================================
# Hardware
# =============================================================================


def machine_type_to_hardware(machine_type: gce.MachineType, location: Location | None = None) -> Hardware:
    volumes: list[Volume] = []
    if image_space := machine_type.get("imageSpaceGb"):
        volumes.append(Volume(size_gb=float(image_space), boot_device=True))
    volumes.extend(Volume(size_gb=float(d["diskGb"])) for d in machine_type.get("scratchDisks", []))
    return Hardware(
        id=machine_type["selfLink"],
        name=machine_type["name"],
        provider_id=machine_type["id"],
        location=location,
        processors=(Processor(cores=float(machine_type["guestCpus"]), speed=1.0),),
        ram_mb=machine_type["memoryMb"],
        volumes=tuple(volumes),
        deprecated=bool(machine_type.get("deprecated", {}).get("state")),
    )


def custom_machine_type_to_hardware(uri: str, location: Location | None = None) -> Hardware:
    """Hardware for a ``custom-{cpus}-{ram_mb}`` machine type URI."""
    parsed = parse_custom_machine_type(uri)
    if parsed is None:
        raise ValueError(f"not a custom machine type: {uri}")
    cpus, ram_mb = parsed
    return Hardware(
        id=uri,
        name=name_from_uri(uri),
        provider_id=name_from_uri(uri),
        location=location,
        processors=(Processor(cores=float(cpus), speed=1.0),),
        ram_mb=ram_mb,
    )


# =============================================================================
# Images
# =============================================================================


def image_os(name: str, description: str = "") -> OperatingSystem:
    """Infer the OS from a public image name like ``debian-12-bookworm-v20240110``."""
    tokens = name.split("-")
    family = OS_FAMILIES.get(tokens[0], "unrecognized")
    version = tokens[1] if len(tokens) > 1 and tokens[1][:1].isdigit() else ""
    return OperatingSystem(
        family=family,
        version=version,
        description=description or name,
        arch="arm64" if "arm64" in tokens else "x86_64",
    )


def image_to_image(image: gce.Image) -> Image:
    deprecation = image.get("deprecated", {}).get("state")
    status: ImageStatus = "DELETED" if deprecation == "DELETED" else IMAGE_STATUS.get(
        image.get("status", ""), "UNRECOGNIZED"
    )
    return Image(
        id=image["selfLink"],
        name=image["name"],
        provider_id=image["id"],
        operating_system=image_os(image["name"], image.get("description", "")),
        status=status,
        description=image.get("description", ""),
        location=PROVIDER,
        version=image.get("family", ""),
        deprecated=bool(deprecation),
    )


# =============================================================================
# Locations
# =============================================================================


def region_and_zones_to_locations(
    regions: Iterable[gce.Region], provider: Location = PROVIDER
) -> tuple[Location, ...]:
    """Each region followed by its zones; zones point at their region."""
    locations: list[Location] = []
    for region in regions:
        parent = Location(id=region["name"], scope="REGION", description=region["selfLink"], parent=provider)
        locations.append(parent)
        locations.extend(
            Location(id=name_from_uri(zone), scope="ZONE", description=zone, parent=parent)
            for zone in region.get("zones", [])
        )
    return tuple(locations)


# =============================================================================
# Firewalls
# =============================================================================


def simplify_ports(ports: Iterable[int]) -> list[str]:
    """Collapse ports into sorted firewall ranges: ``[22, 80, 81, 82]`` -> ``["22", "80-82"]``."""
    ordered = sorted(set(ports))
    if not ordered:
        return []

    ranges: list[str] = []
    start = end = ordered[0]
    for port in ordered[1:]:
        if port == end + 1:
            end = port
            continue
        ranges.append(str(start) if start == end else f"{start}-{end}")
        start = end = port
    ranges.append(str(start) if start == end else f"{start}-{end}")
    return ranges


def parse_port_range(spec: str) -> tuple[int, int]:
    low, _, high = spec.partition("-")
    return int(low), int(high or low)


def port_range(from_port: int, to_port: int) -> str:
    return str(from_port) if from_port == to_port else f"{from_port}-{to_port}"


def firewall_to_ip_permissions(firewall: gce.Firewall) -> tuple[IpPermission, ...]:
    """One permission per allowed rule and port range; a rule without ports opens 1-65535."""
    cidrs = tuple(firewall.get("sourceRanges", []))
    groups = tuple(firewall.get("sourceTags", []))
    permissions: list[IpPermission] = []
    for rule in firewall.get("allowed", []):
        protocol: IpProtocol = rule["IPProtocol"]  # type: ignore[assignment]
        for low, high in [parse_port_range(p) for p in rule.get("ports", [])] or [(1, 65535)]:
            permissions.append(
                IpPermission(protocol=protocol, from_port=low, to_port=high, cidr_blocks=cidrs, group_ids=groups)
            )
    return tuple(permissions)


def network_to_security_group(
    network: gce.Network,
    firewalls: Iterable[gce.Firewall] = (),
    location: Location | None = PROVIDER,
) -> SecurityGroup:
    return SecurityGroup(
        id=network["name"],
        name=network["name"],
        provider_id=network["id"],
        uri=network["selfLink"],
        location=location,
        ip_permissions=tuple(p for fw in firewalls for p in firewall_to_ip_permissions(fw)),
        owner_id=project_from_uri(network["selfLink"]),
    )
