"""Node lifecycle on top of the feature APIs.

Nodes are addressed by ``{zone}/{name}``. Every mutating step waits for its
operation; a DONE operation carrying an error raises ``OperationFailedError``.
"""

from __future__ import annotations

import getpass

from loguru import logger

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.api.features import InstanceApi
from gcengine.api.options import (
    AttachedDiskSpec,
    DiskCreationOptions,
    NetworkInterfaceSpec,
    NewInstance,
    SchedulingOptions,
)
from gcengine.api.pages import collect
from gcengine.api.types import Instance, Operation, metadata_as_dict
from gcengine.api.uris import name_from_uri, project_from_uri
from gcengine.infra.wait import wait_for_ready

from .functions import (
    DELETE_BOOT_DISK_METADATA_KEY,
    GROUP_METADATA_KEY,
    IMAGE_METADATA_KEY,
    custom_machine_type_to_hardware,
    image_to_image,
    instance_to_node,
    machine_type_to_hardware,
    node_id,
    simplify_ports,
    split_node_id,
)
from .keys import ssh_keys_entry
from .locations import LocationSupplier
from .model import (
    Hardware,
    Image,
    Location,
    LoginCredentials,
    NodeAndInitialCredentials,
    NodeMetadata,
    Template,
)
from .naming import FirewallTagNamingConvention, GroupNamingConvention
from .options import TemplateOptions
from .windows import reset_windows_password

DEFAULT_BOOT_DISK_SIZE_GB = 10

log = logger.bind(component="adapter")


def boot_disk_name(instance: str) -> str:
    return f"{instance}-boot-disk"


def instance_tags(group_naming: FirewallTagNamingConvention, options: TemplateOptions) -> list[str]:
    """User tags plus the tags that let the group firewall reach the instance."""
    tags = list(options.tags)
    if options.inbound_ports:
        tags.append(group_naming.name(simplify_ports(options.inbound_ports)))
        tags.extend(group_naming.name_for_port(p) for p in sorted(set(options.inbound_ports)))
    return list(dict.fromkeys(tags))


def scheduling_for(options: TemplateOptions) -> SchedulingOptions | None:
    if not options.preemptible and options.on_host_maintenance is None and options.automatic_restart is None:
        return None
    # Preemptible instances must terminate on maintenance and cannot restart.
    return SchedulingOptions(
        on_host_maintenance=options.on_host_maintenance or ("TERMINATE" if options.preemptible else "MIGRATE"),
        automatic_restart=(
            options.automatic_restart if options.automatic_restart is not None else not options.preemptible
        ),
        preemptible=options.preemptible,
    )


class ComputeServiceAdapter:
    def __init__(
        self,
        api: GoogleComputeEngineApi,
        locations: LocationSupplier,
        naming: GroupNamingConvention,
    ) -> None:
        self._api = api
        self._config = api.config
        self._locations = locations
        self._naming = naming

    @property
    def default_login_user(self) -> str:
        return self._config.login_user or getpass.getuser()

    async def _wait(self, operation: Operation | None) -> None:
        if operation is not None:
            await self._api.operations().wait_done(operation, raise_on_error=True)

    async def _await_visible(self, instances: InstanceApi, name: str) -> Instance:
        # a freshly inserted instance can take a moment to show up in GET
        return await wait_for_ready(
            lambda: instances.get(name),
            lambda _: True,
            timeout=self._config.operation_complete_timeout,
            interval=self._config.operation_complete_interval,
            description=f"instance {name}",
        )

    async def to_node(
        self, instance: Instance, credentials: LoginCredentials | None = None
    ) -> NodeMetadata:
        zone = await self._locations.find_zone(name_from_uri(instance["zone"]))
        return instance_to_node(instance, self._naming, location=zone, credentials=credentials)

    # ─── Creation ────────────────────────────────────────────────────

    async def create_node_with_group_encoded_into_name(
        self, group: str, name: str, template: Template
    ) -> NodeAndInitialCredentials:
        """Create the boot disk, then the instance, then tag it for the group firewall.

        No boot disk is created when ``template.options.disks`` already holds one.

        ``template.options.network`` must already be resolved to a network URI.
        """
        options = template.options
        if options.network is None:
            raise ValueError("network was not resolved in template options")

        zone = template.location.id
        instances = self._api.instances_in_zone(zone)
        credentials = options.login_credentials(self.default_login_user)

        # the boot disk goes first
        disks = sorted(options.disks, key=lambda d: not d.boot)
        creates_boot_disk = not any(d.boot for d in disks)
        if creates_boot_disk:
            disks.insert(0, await self._create_boot_disk(name, template))

        metadata = {
            **options.user_metadata,
            GROUP_METADATA_KEY: group,
            IMAGE_METADATA_KEY: template.image.id,
        }
        if creates_boot_disk and not options.keep_boot_disk:
            metadata[DELETE_BOOT_DISK_METADATA_KEY] = "true"
        if options.public_key:
            metadata["sshKeys"] = ssh_keys_entry(credentials.user, options.public_key)

        new_instance = NewInstance(
            name=name,
            machine_type=template.hardware.id,
            network_interfaces=(
                NetworkInterfaceSpec(network=options.network, external_nat=options.assign_external_ip),
            ),
            disks=tuple(disks),
            metadata=metadata,
            service_accounts=options.service_accounts,
            scheduling=scheduling_for(options),
            can_ip_forward=options.can_ip_forward,
        )

        log.info("Creating instance {name} in {zone}", name=name, zone=zone)
        operation = await instances.create(new_instance)
        if options.block_until_running:
            await self._wait(operation)

        instance = await self._await_visible(instances, name)

        tags = instance_tags(FirewallTagNamingConvention.for_group(self._naming, group), options)
        if tags:
            fingerprint = instance.get("tags", {}).get("fingerprint")
            await self._wait(await instances.set_tags(name, tags, fingerprint))
            instance = await self._await_visible(instances, name)

        return NodeAndInitialCredentials(instance=instance, node_id=node_id(zone, name), credentials=credentials)

    async def _create_boot_disk(self, name: str, template: Template) -> AttachedDiskSpec:
        options = template.options
        zone = template.location.id
        resources = self._api.resources
        disk_name = boot_disk_name(name)
        log.info("Creating boot disk {disk} in {zone}", disk=disk_name, zone=zone)
        disk_type = resources.disk_type(zone, options.boot_disk_type) if options.boot_disk_type else None
        operation = await self._api.disks_in_zone(zone).create(
            disk_name,
            options.boot_disk_size or DEFAULT_BOOT_DISK_SIZE_GB,
            DiskCreationOptions(type=disk_type, source_image=template.image.id),
        )
        await self._wait(operation)
        return AttachedDiskSpec.existing_boot(resources.disk(zone, disk_name), auto_delete=not options.keep_boot_disk)

    # ─── Hardware, images, locations ─────────────────────────────────

    async def list_hardware_profiles(self) -> list[Hardware]:
        hardware: list[Hardware] = []
        for zone in await self._locations.zones():
            for machine_type in await self._api.machine_types_in_zone(zone.id).list():
                if not machine_type.get("deprecated"):
                    hardware.append(machine_type_to_hardware(machine_type, zone))
        return hardware

    async def get_hardware(self, id: str, zone: Location) -> Hardware:
        """Hardware by name or URI in ``zone``; custom machine type URIs need no lookup."""
        if name_from_uri(id).startswith("custom-"):
            uri = id if "/" in id else self._api.resources.machine_type(zone.id, id)
            return custom_machine_type_to_hardware(uri, zone)
        machine_type = await self._api.machine_types_in_zone(zone.id).get(name_from_uri(id))
        if machine_type is None:
            raise LookupError(f"machine type {id} not found in {zone.id}")
        return machine_type_to_hardware(machine_type, zone)

    async def list_images(self) -> list[Image]:
        projects = [self._api.project, *self._config.image_projects]
        images: list[Image] = []
        for project in projects:
            images.extend(image_to_image(i) for i in await self._api.images(project).list())
        return images

    async def get_image(self, id: str) -> Image:
        """Image by selfLink, or by name in the user project and then the public image projects.

        Raises:
            LookupError: If no project has the image.
        """
        if "/" in id:
            found = await self._api.images(project_from_uri(id)).get_by_uri(id)
        else:
            found = None
            for project in (self._api.project, *self._config.image_projects):
                if (found := await self._api.images(project).get(id)) is not None:
                    break
        if found is None:
            raise LookupError(f"image {id} not found")
        return image_to_image(found)

    async def list_locations(self) -> tuple[Location, ...]:
        return await self._locations.locations()

    # ─── Nodes ───────────────────────────────────────────────────────

    async def get_node(self, id: str) -> NodeMetadata | None:
        zone, name = split_node_id(id)
        instance = await self._api.instances_in_zone(zone).get(name)
        return await self.to_node(instance) if instance is not None else None

    async def list_nodes(self) -> list[NodeMetadata]:
        instances = await collect(self._api.aggregated_list().instances())
        return [await self.to_node(i) for i in instances]

    async def list_nodes_by_ids(self, ids: list[str]) -> list[NodeMetadata]:
        wanted = set(ids)
        return [n for n in await self.list_nodes() if n.id in wanted]

    async def destroy_node(self, id: str) -> None:
        """Delete the instance and, when it was created to do so, its boot disk."""
        zone, name = split_node_id(id)
        instances = self._api.instances_in_zone(zone)
        instance = await instances.get(name)
        if instance is None:
            log.debug("Node {id} already gone", id=id)
            return

        boot_disk: str | None = None
        if metadata_as_dict(instance.get("metadata")).get(DELETE_BOOT_DISK_METADATA_KEY) == "true":
            boot_disk = next(
                (
                    name_from_uri(d["source"])
                    for d in instance.get("disks", [])
                    if d.get("type") == "PERSISTENT" and d.get("boot") and d.get("source")
                ),
                None,
            )

        log.info("Deleting instance {id}", id=id)
        await self._wait(await instances.delete(name))

        if boot_disk is not None:
            log.info("Deleting boot disk {disk}", disk=boot_disk)
            await self._wait(await self._api.disks_in_zone(zone).delete(boot_disk))

    async def reboot_node(self, id: str) -> None:
        zone, name = split_node_id(id)
        await self._wait(await self._api.instances_in_zone(zone).reset(name))

    async def suspend_node(self, id: str) -> None:
        zone, name = split_node_id(id)
        await self._wait(await self._api.instances_in_zone(zone).stop(name))

    async def resume_node(self, id: str) -> None:
        zone, name = split_node_id(id)
        await self._wait(await self._api.instances_in_zone(zone).start(name))

    async def reset_windows_password(
        self,
        id: str,
        user: str | None = None,
        email: str | None = None,
        *,
        timeout: float = 600.0,
        interval: float = 30.0,
    ) -> str:
        """New password for ``user`` on a Windows node; the default login user when None."""
        zone, name = split_node_id(id)
        return await reset_windows_password(
            self._api.instances_in_zone(zone),
            self._api.operations(),
            name,
            user or self.default_login_user,
            email,
            timeout=timeout,
            interval=interval,
        )
