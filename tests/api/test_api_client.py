from __future__ import annotations

import pytest

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.config import GCE
from gcengine.errors import (
    AuthorizationError,
    GoogleComputeEngineError,
    RateLimitError,
    ResourceConflictError,
    ResourceNotFoundError,
)
from gcengine.infra.http import BearerAuth

from conftest import PROJECT, FakeGce

pytestmark = [pytest.mark.unit]


async def test_requests_carry_bearer_token(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", f"projects/{PROJECT}", {"name": PROJECT, "id": "1"})

    project = await api.projects().get()

    assert project is not None and project["name"] == PROJECT
    assert gce.requests[0].authorization == "Bearer test-token"


def test_project_is_required():
    with pytest.raises(ValueError, match="No GCE project"):
        GoogleComputeEngineApi(GCE(project=None))


async def test_transient_status_is_retried(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect_project("GET", "zones", {"error": "busy"}, status=503)
    gce.expect_project("GET", "zones", {"error": "busy"}, status=500)
    gce.expect_project("GET", "zones", {"items": [{"name": "us-central1-a"}]})

    zones = await api.zones().list()

    assert [z["name"] for z in zones] == ["us-central1-a"]
    assert len(gce.requests_to("GET", f"projects/{PROJECT}/zones")) == 3


async def test_retries_give_up_after_max_attempts(gce: FakeGce, api: GoogleComputeEngineApi):
    for _ in range(3):
        gce.expect_project("GET", "zones", {"error": "busy"}, status=503)

    with pytest.raises(GoogleComputeEngineError) as exc_info:
        await api.zones().list()

    assert exc_info.value.status == 503
    assert not gce.pending


async def test_rate_limit_surfaces_after_retries(gce: FakeGce, api: GoogleComputeEngineApi):
    for _ in range(3):
        gce.expect_project("GET", "regions", {"error": "slow down"}, status=429)

    with pytest.raises(RateLimitError):
        await api.regions().list()


async def test_rejected_token_is_authorization_error(gce: FakeGce, api: GoogleComputeEngineApi):
    # one refresh attempt, then the second 401 is final
    gce.expect_project("POST", "global/networks", {"error": "expired"}, status=401)
    gce.expect_project("POST", "global/networks", {"error": "expired"}, status=401)

    with pytest.raises(AuthorizationError) as exc_info:
        await api.networks().create_in_ipv4_range("net", "10.0.0.0/8")

    assert exc_info.value.status == 401


@pytest.mark.parametrize(
    ("status", "error"),
    [
        (403, AuthorizationError),
        (409, ResourceConflictError),
        (400, GoogleComputeEngineError),
    ],
)
async def test_status_maps_to_typed_error(
    gce: FakeGce, api: GoogleComputeEngineApi, status: int, error: type[GoogleComputeEngineError]
):
    gce.expect_project("POST", "global/networks", {"error": {"message": "nope"}}, status=status)

    with pytest.raises(error) as exc_info:
        await api.networks().create_in_ipv4_range("net", "10.0.0.0/8")

    assert exc_info.value.status == status
    assert "POST" in str(exc_info.value)


async def test_get_of_missing_resource_is_none(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect_project("GET", "global/networks/missing", {"error": {"code": 404}}, status=404)

    assert await api.networks().get("missing") is None


async def test_delete_of_missing_resource_is_none(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect_project("DELETE", "zones/us-central1-a/disks/gone", {"error": {"code": 404}}, status=404)

    assert await api.disks_in_zone("us-central1-a").delete("gone") is None


async def test_not_found_on_action_raises(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect_project("POST", "zones/us-central1-a/instances/ghost/reset", {"error": {"code": 404}}, status=404)

    with pytest.raises(ResourceNotFoundError):
        await api.instances_in_zone("us-central1-a").reset("ghost")


async def test_context_manager_exposes_project(config: GCE):
    async with GoogleComputeEngineApi(config, BearerAuth("t")) as api:
        assert api.project == PROJECT
        assert api.resources.project_uri.endswith(f"/projects/{PROJECT}")
