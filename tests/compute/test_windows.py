from __future__ import annotations

import base64
import json
from datetime import UTC, datetime
from typing import Any

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.compute.adapter import ComputeServiceAdapter
from gcengine.compute.locations import LocationSupplier
from gcengine.compute.naming import GroupNamingConvention
from gcengine.compute.windows import (
    WINDOWS_KEYS_METADATA_KEY,
    decrypt_password,
    find_password_entry,
    windows_key_entry,
)
from gcengine.errors import OperationFailedError

from conftest import PROJECT, ZONE, FakeGce

pytestmark = [pytest.mark.unit]

NAME = "win-1"
INSTANCE = f"projects/{PROJECT}/zones/{ZONE}/instances/{NAME}"
OAEP = padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA1()), algorithm=hashes.SHA1(), label=None)


@pytest.fixture(scope="module")
def key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def adapter(api: GoogleComputeEngineApi) -> ComputeServiceAdapter:
    return ComputeServiceAdapter(api, LocationSupplier(api), GroupNamingConvention())


def _int(b64: str) -> int:
    return int.from_bytes(base64.b64decode(b64), "big")


def _sent_entry(gce: FakeGce) -> dict[str, Any]:
    items = gce.requests_to("POST", f"{INSTANCE}/setMetadata")[-1].json["items"]
    return json.loads(next(i["value"] for i in items if i["key"] == WINDOWS_KEYS_METADATA_KEY))


def _agent_reply(password: str):
    """Serial port 4 output of an agent that answered the last ``windows-keys`` entry."""

    def reply(gce: FakeGce) -> dict[str, Any]:
        entry = _sent_entry(gce)
        public = rsa.RSAPublicNumbers(_int(entry["exponent"]), _int(entry["modulus"])).public_key()
        answer = {
            "ready": True,
            "modulus": entry["modulus"],
            "exponent": entry["exponent"],
            "userName": entry["userName"],
            "encryptedPassword": base64.b64encode(public.encrypt(password.encode(), OAEP)).decode(),
        }
        contents = '{"ready":true,"version":"4.1"}\nnot json\n' + json.dumps(answer) + "\n"
        return {"kind": "compute#serialPortOutput", "contents": contents}

    return reply


class TestWindowsKeyEntry:
    def test_fields(self, key: rsa.RSAPrivateKey) -> None:
        expire_on = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)

        entry = json.loads(windows_key_entry(key.public_key(), "admin", "admin@example.com", expire_on))

        assert entry["exponent"] == "AQAB"
        assert _int(entry["modulus"]) == key.public_key().public_numbers().n
        assert entry["expireOn"] == "2024-05-01T12:30:00Z"
        assert entry["userName"] == "admin"
        assert entry["email"] == "admin@example.com"

    def test_modulus_has_no_sign_byte(self, key: rsa.RSAPrivateKey) -> None:
        entry = json.loads(windows_key_entry(key.public_key(), "a", "a", datetime.now(UTC)))

        assert len(base64.b64decode(entry["modulus"])) == 256


class TestFindPasswordEntry:
    def test_matches_modulus(self) -> None:
        contents = "\n".join(
            [
                '{"ready":true}',
                json.dumps({"modulus": "mine", "encryptedPassword": "old"}),
                json.dumps({"modulus": "other", "encryptedPassword": "theirs"}),
                json.dumps({"modulus": "mine", "encryptedPassword": "new"}),
                "garbage",
            ]
        )

        assert find_password_entry(contents, "mine") == {"modulus": "mine", "encryptedPassword": "new"}

    def test_nothing_yet(self) -> None:
        assert find_password_entry('{"ready":true}\n', "mine") is None
        assert find_password_entry("", "mine") is None


def test_decrypt_password(key: rsa.RSAPrivateKey) -> None:
    encrypted = base64.b64encode(key.public_key().encrypt(b"s3cret!", OAEP)).decode()

    assert decrypt_password(key, encrypted) == "s3cret!"


async def test_reset_windows_password(gce: FakeGce, make_instance, adapter: ComputeServiceAdapter) -> None:
    metadata = {"fingerprint": "md-fp", "items": [{"key": "startup", "value": "echo hi"}]}
    gce.expect("GET", INSTANCE, make_instance(NAME, metadata=metadata))
    gce.expect_done("POST", f"zones/{ZONE}/instances/{NAME}/setMetadata")
    gce.expect("GET", f"{INSTANCE}/serialPort", {"contents": '{"ready":true}\n'})
    gce.expect("GET", f"{INSTANCE}/serialPort", _agent_reply("Tr0ub4dor&3"))

    password = await adapter.reset_windows_password(f"{ZONE}/{NAME}", "admin", interval=0)

    assert password == "Tr0ub4dor&3"
    body = gce.requests_to("POST", f"{INSTANCE}/setMetadata")[0].json
    assert body["fingerprint"] == "md-fp"
    assert {i["key"] for i in body["items"]} == {"startup", WINDOWS_KEYS_METADATA_KEY}
    entry = _sent_entry(gce)
    assert entry["userName"] == "admin"
    assert entry["email"] == "admin"
    assert [r.query for r in gce.requests_to("GET", f"{INSTANCE}/serialPort")] == [{"port": "4"}] * 2
    assert gce.pending == []


async def test_reset_defaults_to_login_user(gce: FakeGce, make_instance, adapter: ComputeServiceAdapter) -> None:
    gce.expect("GET", INSTANCE, make_instance(NAME))
    gce.expect_done("POST", f"zones/{ZONE}/instances/{NAME}/setMetadata")
    gce.expect("GET", f"{INSTANCE}/serialPort", _agent_reply("pw"))

    assert await adapter.reset_windows_password(f"{ZONE}/{NAME}", interval=0) == "pw"
    assert _sent_entry(gce)["userName"] == "tester"


async def test_reset_times_out_without_agent(gce: FakeGce, make_instance, adapter: ComputeServiceAdapter) -> None:
    gce.expect("GET", INSTANCE, make_instance(NAME))
    gce.expect_done("POST", f"zones/{ZONE}/instances/{NAME}/setMetadata")
    gce.expect("GET", f"{INSTANCE}/serialPort", {"contents": ""})

    with pytest.raises(TimeoutError, match="password of admin on win-1"):
        await adapter.reset_windows_password(f"{ZONE}/{NAME}", "admin", timeout=0.0, interval=0)


async def test_failed_metadata_update_raises(gce: FakeGce, make_instance, adapter: ComputeServiceAdapter) -> None:
    gce.expect("GET", INSTANCE, make_instance(NAME))
    gce.expect_done(
        "POST", f"zones/{ZONE}/instances/{NAME}/setMetadata", httpErrorStatusCode=412, httpErrorMessage="fingerprint"
    )

    with pytest.raises(OperationFailedError):
        await adapter.reset_windows_password(f"{ZONE}/{NAME}", "admin", interval=0)

    assert gce.requests_to("GET", f"{INSTANCE}/serialPort") == []


async def test_missing_instance(gce: FakeGce, adapter: ComputeServiceAdapter) -> None:
    gce.expect("GET", INSTANCE, {"error": {"code": 404}}, status=404)

    with pytest.raises(LookupError, match="win-1"):
        await adapter.reset_windows_password(f"{ZONE}/{NAME}", "admin")
