from __future__ import annotations

import asyncio
from typing import Any

import pytest

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.compute.networks import NetworkAndAddressRange, NetworkCreator
from gcengine.errors import OperationFailedError

from conftest import PROJECT, FakeGce

pytestmark = [pytest.mark.unit]

NETWORK = f"projects/{PROJECT}/global/networks/gcengine-web"


def _network(gce: FakeGce) -> dict[str, Any]:
    return {"id": "9", "name": "gcengine-web", "selfLink": gce.link(NETWORK), "IPv4Range": "10.0.0.0/8"}


async def test_existing_network_is_returned(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", NETWORK, _network(gce))

    network = await NetworkCreator(api).get_or_create(NetworkAndAddressRange("gcengine-web"))

    assert network["name"] == "gcengine-web"
    assert gce.calls() == [("GET", NETWORK)]


async def test_missing_network_is_created_in_range(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", NETWORK, {"error": {"code": 404}}, status=404)
    gce.expect_done("POST", "global/networks")
    gce.expect("GET", NETWORK, _network(gce))

    network = await NetworkCreator(api).get_or_create(NetworkAndAddressRange("gcengine-web"))

    assert network["IPv4Range"] == "10.0.0.0/8"
    assert gce.requests_to("POST", f"projects/{PROJECT}/global/networks")[0].json == {
        "name": "gcengine-web",
        "IPv4Range": "10.0.0.0/8",
    }


async def test_concurrent_callers_share_one_creation(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", NETWORK, {"error": {"code": 404}}, status=404)
    gce.expect_done("POST", "global/networks")
    gce.expect("GET", NETWORK, _network(gce))
    creator = NetworkCreator(api)
    key = NetworkAndAddressRange("gcengine-web")

    results = await asyncio.gather(*(creator.get_or_create(key) for _ in range(5)))

    assert all(r["name"] == "gcengine-web" for r in results)
    assert len(gce.requests_to("POST", f"projects/{PROJECT}/global/networks")) == 1
    assert not gce.unexpected


async def test_created_network_is_cached_until_invalidated(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", NETWORK, _network(gce))
    gce.expect("GET", NETWORK, _network(gce))
    creator = NetworkCreator(api)
    key = NetworkAndAddressRange("gcengine-web")

    await creator.get_or_create(key)
    await creator.get_or_create(key)
    assert len(gce.requests) == 1

    creator.invalidate(key)
    await creator.get_or_create(key)
    assert len(gce.requests) == 2


async def test_failed_creation_raises(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", NETWORK, {"error": {"code": 404}}, status=404)
    gce.expect_project(
        "POST",
        "global/networks",
        gce.operation("op-net", scope="global", httpErrorStatusCode=403, httpErrorMessage="QUOTA_EXCEEDED"),
    )

    with pytest.raises(OperationFailedError, match="QUOTA_EXCEEDED"):
        await NetworkCreator(api).get_or_create(NetworkAndAddressRange("gcengine-web"))
