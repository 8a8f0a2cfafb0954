"""Admin PIN verification.

The admin credential is a single shared PIN. Only a salted scrypt hash of it is
configured on the server (``ADMIN_PIN_SALT`` / ``ADMIN_PIN_HASH``); the PIN
itself never appears in configuration, the client bundle or URLs.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets
from dataclasses import dataclass

from .config import load_admin_credentials


# scrypt cost parameters; hashes produced elsewhere must use the same values.
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
DEFAULT_HASH_LENGTH = 64


@dataclass(frozen=True)
class AdminCredential:
    """The configured salt and expected hash (base64) for the admin PIN."""

    salt: str
    expected_hash: str


def current_credential() -> AdminCredential | None:
    pair = load_admin_credentials()
    if pair is None:
        return None
    return AdminCredential(salt=pair[0], expected_hash=pair[1])


def derive_pin_hash(pin: str, salt: str, length: int) -> bytes:
    return hashlib.scrypt(
        pin.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=length,
    )


def verify_admin_pin(candidate: str | None, credential: AdminCredential | None = None) -> bool:
    """Return ``True`` only when ``candidate`` hashes to the configured value.

    Never raises: an unconfigured gate, an empty candidate or a malformed
    expected hash all yield ``False``. The comparison runs in constant time.
    """

    credential = credential if credential is not None else current_credential()
    if credential is None or not credential.salt or not credential.expected_hash:
        return False
    if not isinstance(candidate, str) or not candidate:
        return False

    try:
        expected = base64.b64decode(credential.expected_hash, validate=True)
    except (binascii.Error, ValueError):
        return False
    if not expected:
        return False

    actual = derive_pin_hash(candidate, credential.salt, len(expected))
    if len(actual) != len(expected):
        return False
    return hmac.compare_digest(actual, expected)


def hash_admin_pin(
    pin: str, salt: str | None = None, *, length: int = DEFAULT_HASH_LENGTH
) -> AdminCredential:
    """Produce a credential pair suitable for ``ADMIN_PIN_SALT`` / ``ADMIN_PIN_HASH``."""

    if not pin:
        raise ValueError("PIN must not be empty.")
    salt = salt or secrets.token_hex(16)
    digest = derive_pin_hash(pin, salt, length)
    return AdminCredential(salt=salt, expected_hash=base64.b64encode(digest).decode("ascii"))


def extract_admin_pin(authorization: str | None, admin_pin_header: str | None) -> str | None:
    """Pull the PIN from ``Authorization: Bearer`` or the ``X-Admin-Pin`` header."""

    if authorization and authorization.lower().startswith("bearer "):
        return authorization[len("bearer "):].strip() or None
    if admin_pin_header is not None:
        return admin_pin_header.strip() or None
    return None
