"""Fernet encryption for cached analysis payloads at rest.

Cached analyses embed the user's biometric context, so when an
``ENCRYPTION_KEY`` is configured the payload column is a Fernet token
rather than plain JSON.
"""

from __future__ import annotations

import json
from typing import Any

from cryptography.fernet import Fernet, InvalidToken


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class FieldEncryptor:
    """Round-trips JSON-serializable values through Fernet tokens."""

    def __init__(self, key: str) -> None:
        """
        Raises:
            EncryptionError: If the key is empty or not a valid Fernet key.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.strip().encode("utf-8"))
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, data: Any) -> str:
        """Serialize ``data`` to compact JSON and return a Fernet token."""
        try:
            plaintext = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Encryption failed: {exc}") from exc
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> Any:
        """Inverse of :meth:`encrypt`.

        Raises:
            EncryptionError: On a tampered token, wrong key or bad payload.
        """
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        try:
            return json.loads(plaintext)
        except ValueError as exc:
            raise EncryptionError(f"Decryption failed: {exc}") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64 Fernet key."""
        return Fernet.generate_key().decode("utf-8")
