"""
App Password Cipher

AES-256-GCM encryption for the Gmail app password stored on a user.
Encryption is an explicit step in the write path; nothing encrypts on save.
"""

import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_BYTES = 12
SEPARATOR = ":"


class AppPasswordDecryptionError(Exception):
    """Ciphertext is malformed, tampered with, or was written with another secret"""


class AppPasswordCipher:
    """
    Encrypts and decrypts app passwords.

    Payload format: ``nonce:ciphertext`` (hex), where ciphertext includes the
    GCM authentication tag. The 256-bit key is the SHA-256 of the secret.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("AppPasswordCipher requires a secret")
        self._aead = AESGCM(hashlib.sha256(secret.encode("utf-8")).digest())

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("encrypt() requires a non-empty plaintext")
        nonce = os.urandom(NONCE_BYTES)
        ciphertext = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return SEPARATOR.join([nonce.hex(), ciphertext.hex()])

    def decrypt(self, payload: str) -> str:
        parts = (payload or "").split(SEPARATOR)
        if len(parts) != 2:
            raise AppPasswordDecryptionError("Malformed encrypted payload")
        try:
            nonce = bytes.fromhex(parts[0])
            ciphertext = bytes.fromhex(parts[1])
            return self._aead.decrypt(nonce, ciphertext, None).decode("utf-8")
        except (ValueError, InvalidTag) as exc:
            raise AppPasswordDecryptionError("Could not decrypt app password") from exc

