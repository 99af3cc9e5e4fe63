"""SSH key pairs authorized on new instances through ``sshKeys`` metadata."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import asyncssh
from loguru import logger

log = logger.bind(component="keys")

LOCAL_KEY_NAMES = ("id_ed25519", "id_rsa", "id_ecdsa")


@dataclass(frozen=True, slots=True)
class KeyPair:
    public: str
    private: str

    def __repr__(self) -> str:
        return f"KeyPair(public={self.public[:24]!r}..., private=<hidden>)"


def ssh_keys_entry(user: str, public_key: str) -> str:
    """Value of the ``sshKeys`` metadata item: ``{user}:{public key}``."""
    return f"{user}:{public_key.strip()}"


def generate_key_pair(comment: str = "gcengine", *, algorithm: str = "ssh-ed25519") -> KeyPair:
    """Generate a passphrase-less key pair in OpenSSH format.

    Args:
        comment: Comment appended to the public key.
        algorithm: Any algorithm asyncssh can generate, e.g. "ssh-rsa".
    """
    key = asyncssh.generate_private_key(algorithm, comment=comment)
    log.debug("Generated {algorithm} key pair", algorithm=algorithm)
    return KeyPair(
        public=key.export_public_key().decode().strip(),
        private=key.export_private_key().decode(),
    )


def load_local_key_pair(ssh_dir: Path | None = None) -> KeyPair:
    """Return the first key pair found in ``~/.ssh`` (ed25519, then rsa, then ecdsa).

    Raises:
        RuntimeError: If no key pair is found.
    """
    ssh_dir = ssh_dir or Path.home() / ".ssh"
    for name in LOCAL_KEY_NAMES:
        private_path = ssh_dir / name
        public_path = ssh_dir / f"{name}.pub"
        if public_path.exists() and private_path.exists():
            return KeyPair(public=public_path.read_text().strip(), private=private_path.read_text())

    raise RuntimeError(f"No SSH key found in {ssh_dir}. Create one with: ssh-keygen -t ed25519")
