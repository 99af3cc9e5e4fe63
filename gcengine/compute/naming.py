"""Names of the resources that belong to a node group."""

from __future__ import annotations

import re
import secrets
import zlib
from collections.abc import Sequence
from dataclasses import dataclass

_VALID_NAME = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")

# three hex digits
UNIQUE_SUFFIXES = 16**3


def check_name(name: str) -> str:
    """GCE resource names: lowercase RFC1035 labels of at most 63 characters."""
    if len(name) > 63 or not _VALID_NAME.match(name):
        raise ValueError(f"invalid resource name {name!r}: use [a-z]([-a-z0-9]*[a-z0-9])?, max 63 chars")
    return name


@dataclass(frozen=True, slots=True)
class GroupNamingConvention:
    """Encodes a group in resource names as ``{prefix}-{group}[-{suffix}]``."""

    prefix: str = "gcengine"

    def shared_name_for_group(self, group: str) -> str:
        return check_name(f"{self.prefix}-{group}")

    def unique_name_for_group(self, group: str) -> str:
        return check_name(f"{self.prefix}-{group}-{secrets.token_hex(2)[:3]}")

    def is_unique_name_for_group(self, name: str, group: str) -> bool:
        return re.fullmatch(rf"{re.escape(self.prefix)}-{re.escape(group)}-[0-9a-f]{{3}}", name) is not None

    def group_in_name(self, name: str) -> str | None:
        """The group encoded in a shared or unique name, None for foreign names."""
        head = f"{self.prefix}-"
        if not name.startswith(head) or len(name) == len(head):
            return None
        rest = name[len(head):]
        match = re.fullmatch(r"(.+)-[0-9a-f]{3}", rest)
        return match.group(1) if match else rest


@dataclass(frozen=True, slots=True)
class FirewallTagNamingConvention:
    """Names firewalls and network tags opened for a group's inbound ports."""

    shared_name: str

    def name(self, ports: Sequence[str]) -> str:
        digest = zlib.crc32(",".join(ports).encode()) & 0xFFF
        return f"{self.shared_name}-{digest:03x}"

    def name_for_port(self, port: int) -> str:
        return f"{self.shared_name}-port-{port}"

    def is_firewall_tag(self, tag: str) -> bool:
        if tag.startswith(f"{self.shared_name}-port-"):
            return True
        return re.fullmatch(rf"{re.escape(self.shared_name)}-[0-9a-f]{{3}}", tag) is not None

    @classmethod
    def for_group(cls, naming: GroupNamingConvention, group: str) -> FirewallTagNamingConvention:
        return cls(naming.shared_name_for_group(group))
