from __future__ import annotations

from ..options import AttachDiskOptions, NewInstance, SchedulingOptions
from ..types import AccessConfig, Instance, Operation, SerialPortOutput, metadata_from_dict
from .base import ResourceApi


class InstanceApi(ResourceApi[Instance]):
    """Instances in one zone."""

    async def create(self, template: NewInstance) -> Operation:
        return await self._insert(template.to_json())

    async def add_access_config(
        self, instance: str, access_config: AccessConfig, network_interface: str = "nic0"
    ) -> Operation:
        return await self._post(
            f"{self.uri(instance)}/addAccessConfig",
            dict(access_config),
            {"networkInterface": network_interface},
        )

    async def delete_access_config(
        self, instance: str, access_config_name: str, network_interface: str = "nic0"
    ) -> Operation:
        return await self._post(
            f"{self.uri(instance)}/deleteAccessConfig",
            params={"accessConfig": access_config_name, "networkInterface": network_interface},
        )

    async def get_serial_port_output(self, instance: str, port: int | None = None) -> SerialPortOutput:
        return await self._client.request(
            "GET", f"{self.uri(instance)}/serialPort", params={"port": port}
        )

    async def reset(self, instance: str) -> Operation:
        return await self._post(f"{self.uri(instance)}/reset")

    async def start(self, instance: str) -> Operation:
        return await self._post(f"{self.uri(instance)}/start")

    async def stop(self, instance: str) -> Operation:
        return await self._post(f"{self.uri(instance)}/stop")

    async def attach_disk(self, instance: str, options: AttachDiskOptions) -> Operation:
        return await self._post(f"{self.uri(instance)}/attachDisk", dict(options.to_json()))

    async def detach_disk(self, instance: str, device_name: str) -> Operation:
        return await self._post(
            f"{self.uri(instance)}/detachDisk", params={"deviceName": device_name}
        )

    async def set_metadata(
        self, instance: str, metadata: dict[str, str], fingerprint: str | None
    ) -> Operation:
        """Replace all metadata items. ``fingerprint`` must match the current one."""
        return await self._post(
            f"{self.uri(instance)}/setMetadata", dict(metadata_from_dict(metadata, fingerprint))
        )

    async def set_tags(self, instance: str, items: list[str], fingerprint: str | None) -> Operation:
        body: dict[str, object] = {"items": items}
        if fingerprint:
            body["fingerprint"] = fingerprint
        return await self._post(f"{self.uri(instance)}/setTags", body)

    async def set_disk_auto_delete(
        self, instance: str, device_name: str, auto_delete: bool
    ) -> Operation:
        return await self._post(
            f"{self.uri(instance)}/setDiskAutoDelete",
            params={"autoDelete": auto_delete, "deviceName": device_name},
        )

    async def set_scheduling(self, instance: str, scheduling: SchedulingOptions) -> Operation:
        return await self._post(f"{self.uri(instance)}/setScheduling", dict(scheduling.to_json()))
