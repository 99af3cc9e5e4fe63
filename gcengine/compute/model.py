from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from gcengine.api.types import Instance

    from .options import TemplateOptions

type LocationScope = Literal["PROVIDER", "REGION", "ZONE"]

type NodeStatus = Literal[
    "PENDING",
    "RUNNING",
    "SUSPENDED",
    "TERMINATED",
    "ERROR",
    "UNRECOGNIZED",
]

type ImageStatus = Literal["AVAILABLE", "PENDING", "ERROR", "DELETED", "UNRECOGNIZED"]

type IpProtocol = Literal["tcp", "udp", "icmp", "all"]


@dataclass(frozen=True, slots=True)
class Location:
    """Where resources live: the provider, one of its regions, or a zone in a region."""
    id: str
    scope: LocationScope
    description: str
    parent: Location | None = None
    iso3166_codes: tuple[str, ...] = ()

    @property
    def region(self) -> str | None:
        match self.scope:
            case "REGION":
                return self.id
            case "ZONE":
                return self.parent.id if self.parent else None
            case _:
                return None


@dataclass(frozen=True, slots=True)
class Processor:
    cores: float
    speed: float


@dataclass(frozen=True, slots=True)
class Volume:
    size_gb: float
    device: str | None = None
    boot_device: bool = False
    durable: bool = False
    type: Literal["LOCAL", "SAN"] = "LOCAL"


@dataclass(frozen=True, slots=True)
class Hardware:
    """A machine type in a zone. ``id`` is its selfLink."""
    id: str
    name: str
    provider_id: str
    location: Location | None
    processors: tuple[Processor, ...]
    ram_mb: int
    volumes: tuple[Volume, ...] = ()
    hypervisor: str = "kvm"
    deprecated: bool = False

    @property
    def cores(self) -> float:
        return sum(p.cores for p in self.processors)


@dataclass(frozen=True, slots=True)
class OperatingSystem:
    family: str
    version: str
    description: str
    arch: str = "x86_64"
    is_64bit: bool = True


@dataclass(frozen=True, slots=True)
class Image:
    """A bootable image. ``id`` is its selfLink."""
    id: str
    name: str
    provider_id: str
    operating_system: OperatingSystem
    status: ImageStatus
    description: str = ""
    location: Location | None = None
    version: str = ""
    deprecated: bool = False


@dataclass(frozen=True, slots=True)
class LoginCredentials:
    user: str
    private_key: str | None = None
    password: str | None = None
    authenticate_sudo: bool = False

    def __repr__(self) -> str:
        return (
            f"LoginCredentials(user={self.user!r}, private_key={'<set>' if self.private_key else None}, "
            f"password={'<set>' if self.password else None})"
        )


@dataclass(frozen=True, slots=True)
class NodeMetadata:
    """A GCE instance seen through the portable model.

    ``id`` is ``{zone}/{name}``, which is enough to address the instance.
    """
    id: str
    name: str
    hostname: str
    group: str | None
    location: Location | None
    hardware_id: str
    image_id: str | None
    status: NodeStatus
    backend_status: str | None
    uri: str
    public_addresses: tuple[str, ...] = ()
    private_addresses: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    user_metadata: Mapping[str, str] = field(default_factory=dict)
    credentials: LoginCredentials | None = None
    provider_id: str = ""


@dataclass(frozen=True, slots=True)
class IpPermission:
    protocol: IpProtocol
    from_port: int
    to_port: int
    cidr_blocks: tuple[str, ...] = ()
    group_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SecurityGroup:
    """A network, with the firewalls inside it as permissions."""
    id: str
    name: str
    provider_id: str
    uri: str
    location: Location | None = None
    ip_permissions: tuple[IpPermission, ...] = ()
    owner_id: str | None = None


@dataclass(frozen=True, slots=True)
class Template:
    image: Image
    hardware: Hardware
    location: Location
    options: TemplateOptions


@dataclass(frozen=True, slots=True)
class NodeAndInitialCredentials:
    instance: Instance
    node_id: str
    credentials: LoginCredentials | None
