from __future__ import annotations

import pytest

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.api.types import has_failed, is_done, operation_scope
from gcengine.errors import OperationFailedError, OperationTimeoutError

from conftest import PROJECT, REGION, ZONE, FakeGce

pytestmark = [pytest.mark.unit]

OP_PATH = f"projects/{PROJECT}/zones/{ZONE}/operations/op-1"


def _failed(gce: FakeGce):
    return gce.operation(
        "op-1",
        httpErrorStatusCode=400,
        httpErrorMessage="BAD REQUEST",
        error={"errors": [{"code": "RESOURCE_ALREADY_EXISTS", "message": "disk exists"}]},
    )


class TestOperationHelpers:
    def test_scope_from_zone_region_or_neither(self, gce: FakeGce):
        assert operation_scope(gce.operation(scope=f"zones/{ZONE}")) == ("zone", ZONE)
        assert operation_scope(gce.operation(scope=f"regions/{REGION}")) == ("region", REGION)
        assert operation_scope(gce.operation(scope="global")) == ("global", None)

    def test_done_and_failed(self, gce: FakeGce):
        assert is_done(gce.operation())
        assert not is_done(gce.operation(status="RUNNING"))
        assert not has_failed(gce.operation())
        assert has_failed(_failed(gce))

    def test_failed_error_message_lists_errors(self, gce: FakeGce):
        error = OperationFailedError(_failed(gce))
        assert error.status == 400
        assert "disk exists" in str(error)


async def test_done_operation_returns_without_polling(gce: FakeGce, api: GoogleComputeEngineApi):
    done = gce.operation("op-1")

    assert await api.operations().wait_done(done) == done
    assert gce.requests == []


async def test_wait_done_polls_self_link(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", OP_PATH, gce.operation("op-1", status="RUNNING"))
    gce.expect("GET", OP_PATH, gce.operation("op-1", status="DONE"))

    result = await api.operations().wait_done(gce.operation("op-1", status="PENDING"))

    assert result["status"] == "DONE"
    assert gce.calls() == [("GET", OP_PATH), ("GET", OP_PATH)]


async def test_wait_done_times_out(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", OP_PATH, gce.operation("op-1", status="RUNNING"))

    with pytest.raises(OperationTimeoutError) as exc_info:
        await api.operations().wait_done(gce.operation("op-1", status="PENDING"), timeout=0)

    assert exc_info.value.operation["status"] == "RUNNING"


async def test_failed_operation_is_returned_by_default(gce: FakeGce, api: GoogleComputeEngineApi):
    result = await api.operations().wait_done(_failed(gce))

    assert result["httpErrorStatusCode"] == 400


async def test_failed_operation_raises_when_asked(gce: FakeGce, api: GoogleComputeEngineApi):
    with pytest.raises(OperationFailedError) as exc_info:
        await api.operations().wait_done(_failed(gce), raise_on_error=True)

    assert exc_info.value.operation["name"] == "op-1"


async def test_missing_operation_is_none(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("GET", OP_PATH, {"error": {"code": 404}}, status=404)

    assert await api.operations().get(gce.link(OP_PATH)) is None


async def test_list_in_scope_of_operation(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect_project("GET", f"regions/{REGION}/operations", {"items": [{"name": "op-9"}]})
    ops = api.operations()

    listing = ops.scoped_api(gce.operation(scope=f"regions/{REGION}"))

    assert [o["name"] for o in await listing.list()] == ["op-9"]


async def test_delete_operation(gce: FakeGce, api: GoogleComputeEngineApi):
    gce.expect("DELETE", f"projects/{PROJECT}/global/operations/op-2")

    await api.operations().delete(gce.project_link("global/operations/op-2"))

    assert gce.calls() == [("DELETE", f"projects/{PROJECT}/global/operations/op-2")]
