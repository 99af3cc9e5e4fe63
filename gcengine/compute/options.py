"""Per-node creation options."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Literal

from gcengine.api.options import AttachedDiskSpec
from gcengine.api.types import ServiceAccount

from .model import LoginCredentials


@dataclass(frozen=True, slots=True)
class TemplateOptions:
    """How nodes of a template are created.

    Options are immutable; the ``with_*`` helpers return changed copies.

    Args:
        inbound_ports: Ports opened to the world through a group firewall.
        tags: Network tags applied to each instance.
        user_metadata: Extra instance metadata.
        networks: Network names or URIs. At most one is allowed; "default" when empty.
        block_until_running: Wait for the insert operation before returning.
        auto_create_key_pair: Generate an SSH key pair when no public key is given.
        public_key: OpenSSH public key authorized for ``login_user``.
        login_user: User the credentials belong to.
        login_private_key: Private key returned with the node credentials.
        login_password: Password returned with the node credentials.
        authenticate_sudo: Whether sudo asks for the password.
        service_accounts: Service accounts attached to each instance.
        boot_disk_type: Disk type name, e.g. "pd-ssd". Zone default when None.
        boot_disk_size: Boot disk size in GB. 10 when None.
        keep_boot_disk: Keep the boot disk when the node is destroyed.
        disks: Disks attached to each instance. When one of them is a boot disk,
            no boot disk is created and the boot disk options are ignored.
        preemptible: Create preemptible instances.
        on_host_maintenance: MIGRATE or TERMINATE.
        automatic_restart: Restart after a host failure.
        assign_external_ip: Attach a one-to-one NAT access config.
        can_ip_forward: Allow the instance to forward packets.
    """

    inbound_ports: tuple[int, ...] = (22,)
    tags: tuple[str, ...] = ()
    user_metadata: Mapping[str, str] = field(default_factory=dict)
    networks: tuple[str, ...] = ()
    block_until_running: bool = True
    auto_create_key_pair: bool = True
    public_key: str | None = None
    login_user: str | None = None
    login_private_key: str | None = None
    login_password: str | None = None
    authenticate_sudo: bool = False
    service_accounts: tuple[ServiceAccount, ...] = ()
    boot_disk_type: str | None = None
    boot_disk_size: int | None = None
    keep_boot_disk: bool = False
    disks: tuple[AttachedDiskSpec, ...] = ()
    preemptible: bool = False
    on_host_maintenance: Literal["MIGRATE", "TERMINATE"] | None = None
    automatic_restart: bool | None = None
    assign_external_ip: bool = True
    can_ip_forward: bool | None = None

    @property
    def network(self) -> str | None:
        return self.networks[0] if self.networks else None

    def with_tags(self, *tags: str) -> TemplateOptions:
        return replace(self, tags=tuple(dict.fromkeys((*self.tags, *tags))))

    def with_metadata(self, key: str, value: str) -> TemplateOptions:
        return replace(self, user_metadata={**self.user_metadata, key: value})

    def with_network(self, network: str) -> TemplateOptions:
        return replace(self, networks=(network,))

    def authorize_public_key(self, public_key: str) -> TemplateOptions:
        return replace(self, public_key=public_key)

    def override_login_credentials(self, credentials: LoginCredentials) -> TemplateOptions:
        return replace(
            self,
            login_user=credentials.user,
            login_private_key=credentials.private_key,
            login_password=credentials.password,
            authenticate_sudo=credentials.authenticate_sudo,
        )

    def login_credentials(self, default_user: str) -> LoginCredentials:
        return LoginCredentials(
            user=self.login_user or default_user,
            private_key=self.login_private_key,
            password=self.login_password,
            authenticate_sudo=self.authenticate_sudo,
        )
