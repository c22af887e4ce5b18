"""Two-layer envelope encryption for stored objects.

Layer 1 (always): AES-256-GCM under a random per-object server key,
formatted as `IV || ciphertext+tag`.
Layer 2 (optional): AES-256-GCM under a PBKDF2 key derived from the creator's
password, wrapping the opaque layer-1 bytes as `salt || IV || ciphertext+tag`.

Text and file payloads use the identical scheme; only the plaintext differs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from snipshare.models import PasswordProtected, Protection, Unprotected
from snipshare.services.crypto import CryptoService
from snipshare.services.errors import (
    DecryptionFailedError,
    IncorrectPasswordError,
    PasswordRequiredError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SealedEnvelope:
    """Result of sealing a plaintext for storage."""

    payload: bytes
    server_key: bytes
    protection: Protection


class EnvelopeService:
    """Seal and open stored payloads."""

    @staticmethod
    def seal(plaintext: bytes, password: str | None = None) -> SealedEnvelope:
        """Encrypt `plaintext` with a fresh server key and, if given, a password layer."""
        server_key = CryptoService.generate_key()
        layer1 = CryptoService.encrypt_with_key(plaintext, server_key)
        if not password:
            return SealedEnvelope(payload=layer1, server_key=server_key, protection=Unprotected())

        layer2 = CryptoService.encrypt_with_password(layer1, password)
        password_hash, password_salt = CryptoService.hash_password(password)
        return SealedEnvelope(
            payload=layer2,
            server_key=server_key,
            protection=PasswordProtected(password_hash, password_salt),
        )

    @staticmethod
    def verify_password(protection: Protection, password: str | None) -> None:
        """Fast-reject a wrong password before any decryption work.

        Raises:
            PasswordRequiredError: If the payload is protected and no password was given.
                The caller attaches metadata before surfacing it.
            IncorrectPasswordError: If the password does not match the stored verifier.
        """
        if isinstance(protection, Unprotected):
            return
        if not password:
            raise PasswordRequiredError(metadata=None)
        if not CryptoService.verify_password_hash(
            password, protection.password_hash, protection.password_salt
        ):
            raise IncorrectPasswordError()

    @staticmethod
    def open(
        payload: bytes,
        server_key: bytes,
        protection: Protection,
        password: str | None = None,
    ) -> bytes:
        """Remove every layer of `payload` and return the original plaintext.

        Raises:
            PasswordRequiredError: Protected payload opened without a password.
            IncorrectPasswordError: Password failed the verifier check.
            DecryptionFailedError: Either AEAD layer failed to authenticate.
        """
        layer1 = payload
        if isinstance(protection, PasswordProtected):
            if not password:
                raise PasswordRequiredError(metadata=None)
            EnvelopeService.verify_password(protection, password)
            layer1 = CryptoService.decrypt_with_password(payload, password)

        try:
            return CryptoService.decrypt_with_key(layer1, server_key)
        except DecryptionFailedError:
            # Outer layers already authenticated; this is an integrity fault.
            logger.error("Server-key layer failed to authenticate", exc_info=True)
            raise
