"""Content fingerprints for change detection.

A fingerprint is the hex-encoded SHA-256 digest of a file's raw bytes.
Equal content always yields an equal fingerprint; no ordering is implied.
"""

import hashlib

from snapvcs.constants import HASH_ALGORITHM, HASH_LENGTH

_HEX_DIGITS = frozenset("0123456789abcdef")


def fingerprint(content: bytes) -> str:
    """Compute the fingerprint of raw content.

    Args:
        content: Binary data to hash

    Returns:
        Hex string of the digest (64 characters for SHA-256)

    Example:
        >>> fingerprint(b"hello")[:12]
        '2cf24dba5fb0'
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(content)
    return hasher.hexdigest()


def is_fingerprint(value: str) -> bool:
    """Check that a string is a well-formed hex fingerprint."""
    return len(value) == HASH_LENGTH and all(c in _HEX_DIGITS for c in value)
