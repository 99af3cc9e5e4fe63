"""In-process fake of the Compute Engine REST API.

Tests queue the responses they expect with ``gce.expect(method, path, body)``
and then assert on ``gce.requests``. Expectations are matched on method and
path in FIFO order, so concurrent callers may interleave freely. A request
nobody expected answers 418 and is kept in ``gce.unexpected``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.config import GCE
from gcengine.infra.http import BearerAuth

PROJECT = "test-project"
ZONE = "us-central1-a"
REGION = "us-central1"
API_PREFIX = "/compute/v1/"


@dataclass
class Recorded:
    method: str
    path: str
    query: dict[str, str]
    json: Any
    authorization: str


@dataclass
class Expectation:
    method: str
    path: str
    body: Any
    status: int


@dataclass
class FakeGce:
    endpoint: str = ""
    expectations: list[Expectation] = field(default_factory=list)
    requests: list[Recorded] = field(default_factory=list)
    unexpected: list[Recorded] = field(default_factory=list)

    # ─── Setup ───────────────────────────────────────────────────────

    def expect(self, method: str, path: str, body: Any = None, *, status: int = 200) -> None:
        """Queue a response for ``method`` on ``path`` (relative to the API root).

        ``body`` may be a callable taking the fake, to answer from earlier requests.
        """
        self.expectations.append(Expectation(method, path.lstrip("/"), body, status))

    def expect_project(self, method: str, path: str, body: Any = None, *, status: int = 200) -> None:
        self.expect(method, f"projects/{PROJECT}/{path.lstrip('/')}", body, status=status)

    def link(self, path: str) -> str:
        return f"{self.endpoint}/{path.lstrip('/')}"

    def project_link(self, path: str) -> str:
        return self.link(f"projects/{PROJECT}/{path.lstrip('/')}")

    def operation(
        self,
        name: str = "operation-1",
        *,
        scope: str = f"zones/{ZONE}",
        status: str = "DONE",
        target: str = "",
        **extra: Any,
    ) -> dict[str, Any]:
        op: dict[str, Any] = {
            "kind": "compute#operation",
            "id": "1",
            "name": name,
            "status": status,
            "operationType": extra.pop("operationType", "insert"),
            "targetLink": target,
            "selfLink": self.project_link(f"{scope}/operations/{name}"),
        }
        if scope.startswith("zones/"):
            op["zone"] = self.project_link(scope)
        elif scope.startswith("regions/"):
            op["region"] = self.project_link(scope)
        op.update(extra)
        return op

    def expect_done(self, method: str, path: str, name: str = "operation-1", **extra: Any) -> None:
        """Queue a mutating call that answers with an already DONE operation."""
        scope = "global"
        parts = path.split("/")
        if parts[0] in ("zones", "regions"):
            scope = "/".join(parts[:2])
        self.expect_project(method, path, self.operation(name, scope=scope, **extra))

    # ─── Inspection ──────────────────────────────────────────────────

    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.path) for r in self.requests]

    def requests_to(self, method: str, path: str) -> list[Recorded]:
        return [r for r in self.requests if r.method == method and r.path == path.lstrip("/")]

    @property
    def pending(self) -> list[Expectation]:
        return list(self.expectations)

    # ─── Handler ─────────────────────────────────────────────────────

    async def handle(self, request: web.Request) -> web.Response:
        path = request.path.removeprefix(API_PREFIX)
        body = await request.json() if request.can_read_body else None
        recorded = Recorded(
            method=request.method,
            path=path,
            query=dict(request.query),
            json=body,
            authorization=request.headers.get("Authorization", ""),
        )
        self.requests.append(recorded)

        for i, exp in enumerate(self.expectations):
            if exp.method == request.method and exp.path == path:
                del self.expectations[i]
                reply = exp.body(self) if callable(exp.body) else exp.body
                if reply is None:
                    return web.Response(status=exp.status)
                return web.json_response(reply, status=exp.status)

        self.unexpected.append(recorded)
        return web.json_response({"error": {"message": f"unexpected {request.method} {path}"}}, status=418)


@pytest.fixture
async def gce():
    fake = FakeGce()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.endpoint = f"http://{server.host}:{server.port}/compute/v1"
    yield fake
    await server.close()


@pytest.fixture
def config(gce: FakeGce) -> GCE:
    return GCE(
        project=PROJECT,
        endpoint=gce.endpoint,
        operation_complete_interval=0.0,
        operation_complete_timeout=2.0,
        image_projects=("debian-cloud",),
        request_timeout=5.0,
        max_retries=3,
        retry_base_delay=0.0,
        region_load_attempts=2,
        login_user="tester",
    )


@pytest.fixture
async def api(config: GCE):
    client = GoogleComputeEngineApi(config, BearerAuth("test-token"))
    yield client
    await client.close()


# ─── Canned resources ────────────────────────────────────────────────


@pytest.fixture
def region_body(gce: FakeGce) -> dict[str, Any]:
    return {
        "id": "1000",
        "name": REGION,
        "selfLink": gce.project_link(f"regions/{REGION}"),
        "status": "UP",
        "zones": [gce.project_link(f"zones/{REGION}-a"), gce.project_link(f"zones/{REGION}-b")],
    }


@pytest.fixture
def network_body(gce: FakeGce) -> dict[str, Any]:
    return {
        "id": "2000",
        "name": "default",
        "selfLink": gce.project_link("global/networks/default"),
        "IPv4Range": "10.240.0.0/16",
    }


def instance_body(gce: FakeGce, name: str, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "id": f"id-{name}",
        "name": name,
        "selfLink": gce.project_link(f"zones/{ZONE}/instances/{name}"),
        "zone": gce.project_link(f"zones/{ZONE}"),
        "machineType": gce.project_link(f"zones/{ZONE}/machineTypes/e2-small"),
        "status": "RUNNING",
        "networkInterfaces": [
            {
                "name": "nic0",
                "network": gce.project_link("global/networks/default"),
                "networkIP": "10.240.0.2",
                "accessConfigs": [{"name": "External NAT", "type": "ONE_TO_ONE_NAT", "natIP": "34.1.2.3"}],
            }
        ],
        "tags": {"items": [], "fingerprint": "tag-fp"},
    }
    body.update(extra)
    return body


@pytest.fixture
def make_instance(gce: FakeGce):
    def make(name: str, **extra: Any) -> dict[str, Any]:
        return instance_body(gce, name, **extra)

    return make
