"""Node groups, hardware, images and security groups over the Compute Engine API."""

from .adapter import ComputeServiceAdapter
from .functions import (
    find_orphaned_groups,
    firewall_to_ip_permissions,
    image_to_image,
    instance_to_node,
    machine_type_to_hardware,
    network_to_security_group,
    region_and_zones_to_locations,
    simplify_ports,
)
from .keys import KeyPair, generate_key_pair, load_local_key_pair
from .locations import LocationSupplier
from .model import (
    Hardware,
    Image,
    IpPermission,
    Location,
    LoginCredentials,
    NodeAndInitialCredentials,
    NodeMetadata,
    NodeStatus,
    OperatingSystem,
    Processor,
    SecurityGroup,
    Template,
    Volume,
)
from .naming import FirewallTagNamingConvention, GroupNamingConvention
from .networks import NetworkAndAddressRange, NetworkCreator
from .options import TemplateOptions
from .security_groups import SecurityGroupExtension
from .service import GoogleComputeEngineService
from .windows import reset_windows_password

__all__ = [
    "ComputeServiceAdapter",
    "FirewallTagNamingConvention",
    "GoogleComputeEngineService",
    "GroupNamingConvention",
    "Hardware",
    "Image",
    "IpPermission",
    "KeyPair",
    "Location",
    "LocationSupplier",
    "LoginCredentials",
    "NetworkAndAddressRange",
    "NetworkCreator",
    "NodeAndInitialCredentials",
    "NodeMetadata",
    "NodeStatus",
    "OperatingSystem",
    "Processor",
    "SecurityGroup",
    "SecurityGroupExtension",
    "Template",
    "TemplateOptions",
    "Volume",
    "find_orphaned_groups",
    "firewall_to_ip_permissions",
    "generate_key_pair",
    "image_to_image",
    "instance_to_node",
    "load_local_key_pair",
    "machine_type_to_hardware",
    "network_to_security_group",
    "region_and_zones_to_locations",
    "reset_windows_password",
    "simplify_ports",
]
