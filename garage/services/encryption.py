"""Encryption at rest for customer contact columns and stored uploads.

The key comes from the ``FERNET_KEY`` environment variable. Without it the
helpers raise ``KeyNotConfigured`` and callers fall back to plaintext, which
is how development databases and upload folders are written.
"""

from __future__ import annotations

import os
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from garage.errors import DependencyError


class KeyNotConfigured(RuntimeError):
    """``FERNET_KEY`` is unset."""


@lru_cache(maxsize=4)
def _fernet_for(key: str) -> Fernet:
    return Fernet(key.encode("utf-8"))


def _fernet() -> Fernet:
    key = os.environ.get("FERNET_KEY", "").strip()
    if not key:
        raise KeyNotConfigured("FERNET_KEY is not set; data is stored unencrypted")
    return _fernet_for(key)


def key_configured() -> bool:
    return bool(os.environ.get("FERNET_KEY", "").strip())


def seal(data: bytes) -> bytes:
    """Encrypt an upload body."""
    return _fernet().encrypt(data) if data else b""


def unseal(token: bytes) -> bytes:
    """Decrypt an upload body written by ``seal``.

    A missing or rotated key is an infrastructure fault, not a caller error,
    so both surface as ``DependencyError``.
    """
    if not token:
        return b""
    try:
        return _fernet().decrypt(token)
    except KeyNotConfigured as exc:
        raise DependencyError("Encrypted upload found but FERNET_KEY is not set") from exc
    except InvalidToken as exc:
        raise DependencyError("Upload cannot be decrypted with the configured key") from exc


def encrypt_value(plain: str) -> str:
    if not plain:
        return ""
    return _fernet().encrypt(plain.encode("utf-8")).decode("ascii")


def decrypt_value(token: str) -> str:
    if not token:
        return ""
    return _fernet().decrypt(token.encode("utf-8")).decode("utf-8")
