"""AES-256-CBC encryption of the client IP forwarded to the Context7 API."""

from __future__ import annotations

import logging
import os
import re

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

log = logging.getLogger("context7-mcp")

_DEFAULT_KEY = "000102030405060708090a0b0c0d0e0f101112131415161718191a1b1c1d1e1f"
_KEY_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")


def _encryption_key() -> str:
    return os.environ.get("CLIENT_IP_ENCRYPTION_KEY", _DEFAULT_KEY)


def validate_encryption_key(key: str) -> bool:
    """A key is 32 bytes written as 64 hex characters."""
    return bool(_KEY_PATTERN.match(key))


def encrypt_client_ip(client_ip: str) -> str:
    """Return ``<iv hex>:<ciphertext hex>`` for *client_ip*.

    With a malformed key the address is returned unencrypted.
    """
    key = _encryption_key()
    if not validate_encryption_key(key):
        log.error("Invalid CLIENT_IP_ENCRYPTION_KEY format. Must be 64 hex characters.")
        return client_ip

    iv = os.urandom(16)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(client_ip.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(bytes.fromhex(key)), modes.CBC(iv)).encryptor()
    encrypted = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}:{encrypted.hex()}"
