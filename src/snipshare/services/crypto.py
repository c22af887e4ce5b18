# src/snipshare/services/crypto.py
"""Cryptographic primitives for SnipShare.

- Key derivation: PBKDF2-HMAC-SHA256, 100,000 iterations, 16-byte salt
- Encryption: AES-256-GCM with a fresh 12-byte IV per call; the GCM tag is
  appended to the ciphertext by the `cryptography` AEAD interface
- Password verification: a separately salted PBKDF2 digest compared in
  constant time
"""

from __future__ import annotations

import base64
import binascii
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from snipshare.services.errors import DecryptionFailedError

KDF_ITERATIONS = 100_000
KEY_SIZE_BYTES = 32
SALT_SIZE_BYTES = 16
IV_SIZE_BYTES = 12
TAG_SIZE_BYTES = 16


class CryptoService:
    """Service handling symmetric encryption and password verification."""

    @staticmethod
    def derive_key(password: str, salt: bytes) -> bytes:
        """Derive a 256-bit key from `password` and `salt`.

        The derivation is deterministic so that decryption can re-derive the
        key from the salt stored alongside the ciphertext.
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE_BYTES,
            salt=salt,
            iterations=KDF_ITERATIONS,
        )
        return kdf.derive(password.encode("utf-8"))

    @staticmethod
    def generate_key() -> bytes:
        """Return a fresh random AES-256 key."""
        return AESGCM.generate_key(bit_length=KEY_SIZE_BYTES * 8)

    @staticmethod
    def generate_salt() -> bytes:
        return secrets.token_bytes(SALT_SIZE_BYTES)

    @staticmethod
    def generate_iv() -> bytes:
        return secrets.token_bytes(IV_SIZE_BYTES)

    @staticmethod
    def encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
        """Encrypt with AES-256-GCM and return ciphertext with the tag appended."""
        return AESGCM(key).encrypt(iv, plaintext, None)

    @staticmethod
    def decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
        """Decrypt AES-256-GCM ciphertext.

        Raises:
            DecryptionFailedError: If the tag does not verify (wrong key or
                tampered data) or the inputs are malformed.
        """
        try:
            return AESGCM(key).decrypt(iv, ciphertext, None)
        except (InvalidTag, ValueError) as err:
            raise DecryptionFailedError() from err

    @staticmethod
    def encrypt_with_key(plaintext: bytes, key: bytes) -> bytes:
        """Encrypt under a raw key; output is `IV(12) || ciphertext+tag`."""
        iv = CryptoService.generate_iv()
        return iv + CryptoService.encrypt(plaintext, key, iv)

    @staticmethod
    def decrypt_with_key(blob: bytes, key: bytes) -> bytes:
        """Reverse `encrypt_with_key`."""
        if len(blob) < IV_SIZE_BYTES + TAG_SIZE_BYTES:
            raise DecryptionFailedError()
        return CryptoService.decrypt(blob[IV_SIZE_BYTES:], key, blob[:IV_SIZE_BYTES])

    @staticmethod
    def encrypt_with_password(plaintext: bytes, password: str) -> bytes:
        """Encrypt under a password; output is `salt(16) || IV(12) || ciphertext+tag`."""
        salt = CryptoService.generate_salt()
        iv = CryptoService.generate_iv()
        key = CryptoService.derive_key(password, salt)
        return salt + iv + CryptoService.encrypt(plaintext, key, iv)

    @staticmethod
    def decrypt_with_password(blob: bytes, password: str) -> bytes:
        """Reverse `encrypt_with_password`."""
        header = SALT_SIZE_BYTES + IV_SIZE_BYTES
        if len(blob) < header + TAG_SIZE_BYTES:
            raise DecryptionFailedError()
        salt = blob[:SALT_SIZE_BYTES]
        iv = blob[SALT_SIZE_BYTES:header]
        key = CryptoService.derive_key(password, salt)
        return CryptoService.decrypt(blob[header:], key, iv)

    @staticmethod
    def hash_password(password: str) -> tuple[str, str]:
        """Return a base64 `(hash, salt)` verifier for `password`.

        The verifier uses its own random salt, so it never equals the key
        used to encrypt the password layer.
        """
        salt = CryptoService.generate_salt()
        digest = CryptoService.derive_key(password, salt)
        return base64.b64encode(digest).decode("ascii"), base64.b64encode(salt).decode("ascii")

    @staticmethod
    def verify_password_hash(password: str, stored_hash: str, stored_salt: str) -> bool:
        """Return True if `password` re-derives `stored_hash` under `stored_salt`."""
        try:
            salt = base64.b64decode(stored_salt, validate=True)
            expected = base64.b64decode(stored_hash, validate=True)
        except (binascii.Error, ValueError):
            return False
        computed = CryptoService.derive_key(password, salt)
        return secrets.compare_digest(computed, expected)
