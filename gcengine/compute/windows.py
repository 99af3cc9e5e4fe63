"""Windows password reset through the ``windows-keys`` metadata entry.

The agent on Windows images watches the instance metadata for a new RSA
public key. It then sets a fresh password for the named user and writes it,
RSA-OAEP encrypted with that key, as a JSON line on serial port 4.
"""

from __future__ import annotations

import base64
import json
from datetime import UTC, datetime, timedelta

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from loguru import logger

from gcengine.api.features import InstanceApi, OperationApi
from gcengine.api.types import metadata_as_dict
from gcengine.infra.wait import wait_for_ready

WINDOWS_KEYS_METADATA_KEY = "windows-keys"
PASSWORD_SERIAL_PORT = 4
KEY_LIFETIME = timedelta(minutes=10)
RSA_KEY_SIZE = 2048

log = logger.bind(component="windows")


def _b64_int(value: int) -> str:
    return base64.b64encode(value.to_bytes((value.bit_length() + 7) // 8, "big")).decode()


def windows_key_entry(public_key: rsa.RSAPublicKey, user: str, email: str, expire_on: datetime) -> str:
    """JSON value of the ``windows-keys`` metadata item for ``public_key``."""
    numbers = public_key.public_numbers()
    return json.dumps(
        {
            "modulus": _b64_int(numbers.n),
            "exponent": _b64_int(numbers.e),
            "expireOn": expire_on.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "userName": user,
            "email": email,
        }
    )


def find_password_entry(contents: str, modulus: str) -> dict | None:
    """Latest serial port line answering the key with ``modulus``, if any."""
    for line in reversed(contents.splitlines()):
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(entry, dict) and entry.get("modulus") == modulus and entry.get("encryptedPassword"):
            return entry
    return None


def decrypt_password(private_key: rsa.RSAPrivateKey, encrypted: str) -> str:
    plain = private_key.decrypt(
        base64.b64decode(encrypted),
        padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA1()), algorithm=hashes.SHA1(), label=None),
    )
    return plain.decode()


async def reset_windows_password(
    instances: InstanceApi,
    operations: OperationApi,
    name: str,
    user: str,
    email: str | None = None,
    *,
    timeout: float = 600.0,
    interval: float = 30.0,
) -> str:
    """Have the agent on instance ``name`` set a new password for ``user`` and return it.

    Raises:
        LookupError: If the instance does not exist.
        OperationFailedError: If the metadata update fails.
        TimeoutError: If no password shows up on the serial port within ``timeout``.
    """
    instance = await instances.get(name)
    if instance is None:
        raise LookupError(f"instance {name} not found")

    key = rsa.generate_private_key(public_exponent=65537, key_size=RSA_KEY_SIZE)
    entry = windows_key_entry(key.public_key(), user, email or user, datetime.now(UTC) + KEY_LIFETIME)
    modulus = json.loads(entry)["modulus"]

    current = instance.get("metadata", {})
    metadata = {**metadata_as_dict(current), WINDOWS_KEYS_METADATA_KEY: entry}
    log.info("Resetting password of {user} on {name}", user=user, name=name)
    operation = await instances.set_metadata(name, metadata, current.get("fingerprint"))
    await operations.wait_done(operation, raise_on_error=True)

    async def poll() -> dict | None:
        output = await instances.get_serial_port_output(name, port=PASSWORD_SERIAL_PORT)
        return find_password_entry(output.get("contents", ""), modulus)

    found = await wait_for_ready(
        poll,
        lambda _: True,
        timeout=timeout,
        interval=interval,
        description=f"password of {user} on {name}",
    )
    return decrypt_password(key, found["encryptedPassword"])
