"""Unit tests for client IP encryption."""

from __future__ import annotations

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from context7_mcp.encryption import _DEFAULT_KEY, encrypt_client_ip, validate_encryption_key


def _decrypt(token: str, key: str) -> str:
    iv_hex, data_hex = token.split(":")
    decryptor = Cipher(
        algorithms.AES(bytes.fromhex(key)), modes.CBC(bytes.fromhex(iv_hex))
    ).decryptor()
    padded = decryptor.update(bytes.fromhex(data_hex)) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")


class TestEncryptClientIp:
    def test_decrypts_back_with_default_key(self) -> None:
        token = encrypt_client_ip("203.0.113.7")
        iv_hex, _ = token.split(":")
        assert len(iv_hex) == 32
        assert _decrypt(token, _DEFAULT_KEY) == "203.0.113.7"

    def test_random_iv(self) -> None:
        assert encrypt_client_ip("8.8.8.8") != encrypt_client_ip("8.8.8.8")

    def test_custom_key(self, monkeypatch) -> None:
        key = "ab" * 32
        monkeypatch.setenv("CLIENT_IP_ENCRYPTION_KEY", key)
        assert _decrypt(encrypt_client_ip("2001:db8::1"), key) == "2001:db8::1"

    def test_invalid_key_passes_ip_through(self, monkeypatch) -> None:
        monkeypatch.setenv("CLIENT_IP_ENCRYPTION_KEY", "too-short")
        assert encrypt_client_ip("8.8.8.8") == "8.8.8.8"

    def test_key_validation(self) -> None:
        assert validate_encryption_key(_DEFAULT_KEY) is True
        assert validate_encryption_key("zz" * 32) is False
        assert validate_encryption_key("ab" * 31) is False
