"""
API Key Codec

Generates opaque API keys and verifies them against stored digests.
"""

import hashlib
import hmac
import re
import secrets
from dataclasses import dataclass

from src.domain.entities.api_key import MASK_CHAR

KEY_PREFIX = "mk_live_"
RAW_RANDOM_BYTES = 48  # 96 hex chars, 104 chars with the prefix
DISPLAY_PREFIX_LENGTH = 8
DISPLAY_SUFFIX_LENGTH = 4

_WELL_FORMED = re.compile(r"^[A-Za-z0-9_]{8,16}[0-9a-f]{64,256}$")


@dataclass(frozen=True)
class GeneratedKey:
    """A freshly generated key. raw_key must leave the system exactly once."""

    raw_key: str
    key_hash: str
    prefix: str
    suffix: str


class ApiKeyCodec:
    """
    Stateless key generation and verification.

    Business Rules:
    - Keys are KEY_PREFIX + 48 random bytes hex-encoded
    - Only the SHA-256 hex digest is stored
    - Digest comparison is constant-time
    - prefix/suffix are display hints, too short to rebuild a key
    """

    def __init__(self, key_prefix: str = KEY_PREFIX, random_bytes: int = RAW_RANDOM_BYTES):
        self.key_prefix = key_prefix
        self.random_bytes = random_bytes

    def generate(self) -> GeneratedKey:
        # secrets draws from the OS CSPRNG; failures propagate, there is no fallback
        raw_key = f"{self.key_prefix}{secrets.token_hex(self.random_bytes)}"
        return GeneratedKey(
            raw_key=raw_key,
            key_hash=self.hash_key(raw_key),
            prefix=raw_key[:DISPLAY_PREFIX_LENGTH],
            suffix=raw_key[-DISPLAY_SUFFIX_LENGTH:],
        )

    @staticmethod
    def hash_key(raw_key: str) -> str:
        """SHA-256 hex digest of the raw key"""
        return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()

    def verify(self, candidate_raw: str, stored_hash: str) -> bool:
        """Recompute the candidate's digest and compare it in constant time"""
        return self.digests_match(self.hash_key(candidate_raw), stored_hash)

    @staticmethod
    def digests_match(computed_hash: str, stored_hash: str) -> bool:
        computed = computed_hash.encode("ascii", errors="replace")
        stored = stored_hash.encode("ascii", errors="replace")
        if len(computed) != len(stored):
            return False
        return hmac.compare_digest(computed, stored)

    @staticmethod
    def is_well_formed(raw_key: str) -> bool:
        """Shape check for header values, done before any lookup"""
        return bool(raw_key) and len(raw_key) <= 300 and _WELL_FORMED.match(raw_key) is not None

    @staticmethod
    def mask(prefix: str, suffix: str) -> str:
        return f"{prefix}{MASK_CHAR * 8}{suffix}"
