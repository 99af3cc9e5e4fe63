from __future__ import annotations

from typing import Any

import pytest

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.compute.functions import network_to_security_group
from gcengine.compute.model import IpPermission, SecurityGroup
from gcengine.compute.naming import GroupNamingConvention
from gcengine.compute.networks import NetworkCreator
from gcengine.compute.security_groups import SecurityGroupExtension, same_permission

from conftest import PROJECT, ZONE, FakeGce

pytestmark = [pytest.mark.unit]

NETWORKS = f"projects/{PROJECT}/global/networks"
FIREWALLS = f"projects/{PROJECT}/global/firewalls"
SSH = IpPermission("tcp", 22, 22, ("0.0.0.0/0",))


@pytest.fixture
def extension(api: GoogleComputeEngineApi) -> SecurityGroupExtension:
    return SecurityGroupExtension(api, NetworkCreator(api), GroupNamingConvention())


def _group(network: dict[str, Any]) -> SecurityGroup:
    return network_to_security_group(network)  # type: ignore[arg-type]


def _firewall(gce: FakeGce, name: str, network: str = "default", **extra: Any) -> dict[str, Any]:
    return {
        "name": name,
        "network": gce.project_link(f"global/networks/{network}"),
        "allowed": [{"IPProtocol": "tcp", "ports": ["22"]}],
        "sourceRanges": ["0.0.0.0/0"],
        **extra,
    }


def test_same_permission_ignores_order():
    a = IpPermission("tcp", 80, 81, ("10.0.0.0/8", "0.0.0.0/0"), ("lb",))
    b = IpPermission("tcp", 80, 81, ("0.0.0.0/0", "10.0.0.0/8"), ("lb",))
    assert same_permission(a, b)
    assert not same_permission(a, IpPermission("udp", 80, 81, a.cidr_blocks, a.group_ids))


def test_capabilities():
    assert SecurityGroupExtension.supports_group_ids
    assert SecurityGroupExtension.supports_port_ranges_for_groups
    assert not SecurityGroupExtension.supports_exclusion_cidr_blocks


async def test_list_security_groups(gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any]):
    gce.expect("GET", NETWORKS, {"items": [network_body]})
    gce.expect("GET", FIREWALLS, {"items": [_firewall(gce, "default-allow-ssh")]})

    groups = await extension.list_security_groups()

    assert [g.name for g in groups] == ["default"]
    assert groups[0].ip_permissions == (SSH,)
    assert gce.requests[1].query == {"filter": "network eq .*/default"}


async def test_groups_in_location_are_all_groups(
    gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any]
):
    gce.expect("GET", NETWORKS, {"items": [network_body]})
    gce.expect("GET", FIREWALLS, {"items": []})

    assert [g.id for g in await extension.list_security_groups_in_location(ZONE)] == ["default"]


class TestGroupsForNode:
    async def test_matching_target_tag(
        self, gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any], make_instance: Any
    ):
        gce.expect_project("GET", f"zones/{ZONE}/instances/web-1", make_instance("web-1", tags={"items": ["web"]}))
        gce.expect("GET", f"{NETWORKS}/default", network_body)
        gce.expect("GET", FIREWALLS, {"items": [_firewall(gce, "fw", targetTags=["web"])]})

        groups = await extension.list_security_groups_for_node(f"{ZONE}/web-1")

        assert [g.name for g in groups] == ["default"]

    async def test_firewalls_for_other_tags_do_not_apply(
        self, gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any], make_instance: Any
    ):
        gce.expect_project("GET", f"zones/{ZONE}/instances/web-1", make_instance("web-1", tags={"items": ["web"]}))
        gce.expect("GET", f"{NETWORKS}/default", network_body)
        gce.expect("GET", FIREWALLS, {"items": [_firewall(gce, "fw", targetTags=["db"])]})

        assert await extension.list_security_groups_for_node(f"{ZONE}/web-1") == []

    async def test_untargeted_firewall_applies_to_every_instance(
        self, gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any], make_instance: Any
    ):
        gce.expect_project("GET", f"zones/{ZONE}/instances/web-1", make_instance("web-1"))
        gce.expect("GET", f"{NETWORKS}/default", network_body)
        gce.expect("GET", FIREWALLS, {"items": [_firewall(gce, "fw")]})

        assert len(await extension.list_security_groups_for_node(f"{ZONE}/web-1")) == 1

    async def test_missing_node(self, gce: FakeGce, extension: SecurityGroupExtension):
        gce.expect_project("GET", f"zones/{ZONE}/instances/web-1", {"error": {"code": 404}}, status=404)
        assert await extension.list_security_groups_for_node(f"{ZONE}/web-1") == []


async def test_get_missing_group(gce: FakeGce, extension: SecurityGroupExtension):
    gce.expect("GET", f"{NETWORKS}/nope", {"error": {"code": 404}}, status=404)
    assert await extension.get_security_group_by_id("nope") is None


async def test_create_security_group(gce: FakeGce, extension: SecurityGroupExtension):
    network = {"id": "5", "name": "sg", "selfLink": gce.link(f"{NETWORKS}/sg"), "IPv4Range": "10.0.0.0/8"}
    gce.expect("GET", f"{NETWORKS}/sg", {"error": {"code": 404}}, status=404)
    gce.expect_done("POST", "global/networks")
    gce.expect("GET", f"{NETWORKS}/sg", network)
    gce.expect("GET", FIREWALLS, {"items": []})

    group = await extension.create_security_group("sg")

    assert (group.id, group.ip_permissions) == ("sg", ())
    assert gce.requests_to("POST", NETWORKS)[0].json == {"name": "sg", "IPv4Range": "10.0.0.0/8"}


async def test_remove_security_group(gce: FakeGce, extension: SecurityGroupExtension):
    network = {"id": "5", "name": "sg", "selfLink": gce.link(f"{NETWORKS}/sg")}
    gce.expect("GET", f"{NETWORKS}/sg", network)
    gce.expect("GET", FIREWALLS, {"items": [_firewall(gce, "sg-a", "sg"), _firewall(gce, "sg-b", "sg")]})
    gce.expect_done("DELETE", "global/firewalls/sg-a")
    gce.expect_done("DELETE", "global/firewalls/sg-b")
    gce.expect_done("DELETE", "global/networks/sg")

    assert await extension.remove_security_group("sg") is True
    assert gce.calls()[-1] == ("DELETE", f"{NETWORKS}/sg")
    assert not gce.pending


async def test_remove_missing_security_group(gce: FakeGce, extension: SecurityGroupExtension):
    gce.expect("GET", f"{NETWORKS}/sg", {"error": {"code": 404}}, status=404)
    assert await extension.remove_security_group("sg") is False


class TestIpPermissions:
    async def test_add_creates_firewall(
        self, gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any]
    ):
        http = IpPermission("tcp", 8000, 8080, ("10.0.0.0/8",), ("lb",))
        gce.expect("GET", f"{NETWORKS}/default", network_body)
        gce.expect("GET", FIREWALLS, {"items": []})
        gce.expect_done("POST", "global/firewalls")
        gce.expect("GET", f"{NETWORKS}/default", network_body)
        gce.expect(
            "GET",
            FIREWALLS,
            {
                "items": [
                    _firewall(
                        gce,
                        "new",
                        allowed=[{"IPProtocol": "tcp", "ports": ["8000-8080"]}],
                        sourceRanges=["10.0.0.0/8"],
                        sourceTags=["lb"],
                    )
                ]
            },
        )

        updated = await extension.add_ip_permission(http, _group(network_body))

        body = gce.requests_to("POST", FIREWALLS)[0].json
        assert body["name"].startswith("gcengine-default-")
        assert body["network"] == network_body["selfLink"]
        assert body["allowed"] == [{"IPProtocol": "tcp", "ports": ["8000-8080"]}]
        assert body["sourceRanges"] == ["10.0.0.0/8"]
        assert body["sourceTags"] == ["lb"]
        assert updated.ip_permissions == (http,)

    async def test_add_existing_permission_is_noop(
        self, gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any]
    ):
        gce.expect("GET", f"{NETWORKS}/default", network_body)
        gce.expect("GET", FIREWALLS, {"items": [_firewall(gce, "ssh")]})

        group = await extension.add_ip_permission(SSH, _group(network_body))

        assert group.ip_permissions == (SSH,)
        assert gce.requests_to("POST", FIREWALLS) == []

    async def test_add_to_missing_group(
        self, gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any]
    ):
        gce.expect("GET", f"{NETWORKS}/default", {"error": {"code": 404}}, status=404)

        with pytest.raises(LookupError):
            await extension.add_ip_permission(SSH, _group(network_body))

    async def test_remove_deletes_matching_firewalls(
        self, gce: FakeGce, extension: SecurityGroupExtension, network_body: dict[str, Any]
    ):
        web = _firewall(gce, "web", allowed=[{"IPProtocol": "tcp", "ports": ["80"]}])
        gce.expect("GET", FIREWALLS, {"items": [_firewall(gce, "ssh"), web]})
        gce.expect_done("DELETE", "global/firewalls/ssh")
        gce.expect("GET", f"{NETWORKS}/default", network_body)
        gce.expect("GET", FIREWALLS, {"items": [web]})

        group = await extension.remove_ip_permission(SSH, _group(network_body))

        assert [p.from_port for p in group.ip_permissions] == [80]
        assert gce.requests_to("DELETE", f"{FIREWALLS}/web") == []
