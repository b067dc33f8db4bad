"""Deterministic hashing utilities for dirvc.

Provides canonical JSON serialization and a hash generator bound to one
algorithm.  All hashing is deterministic: same input always produces
same output, regardless of dict key ordering.

IMPORTANT: Pydantic models must be converted to dicts before being passed
to canonical_json.  These functions operate on plain dicts/primitives only.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from dirvc.models.config import HashAlgorithm


def canonical_json(data: Any) -> bytes:
    """Serialize data to canonical JSON bytes.

    Uses sorted keys, compact separators, and UTF-8 encoding
    to ensure deterministic output.

    Args:
        data: Any JSON-serializable Python object (dict, list, str, int, etc.).

    Returns:
        UTF-8 encoded bytes of the canonical JSON string.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


class HashGenerator:
    """Hashes bytes with a single, fixed algorithm.

    A store is written with exactly one algorithm for its whole lifetime;
    the generator is built from the algorithm recorded in the store config.
    """

    def __init__(self, algorithm: HashAlgorithm = HashAlgorithm.SHA1) -> None:
        self._algorithm = HashAlgorithm(algorithm)

    @property
    def algorithm(self) -> HashAlgorithm:
        return self._algorithm

    @property
    def digest_size(self) -> int:
        """Length of a digest in hex characters."""
        return hashlib.new(self._algorithm.value).digest_size * 2

    def hash(self, data: bytes) -> str:
        """Return the hex digest of *data*."""
        return hashlib.new(self._algorithm.value, data).hexdigest()

    def hash_payload(self, payload: dict) -> str:
        """Return the hex digest of a payload's canonical JSON form."""
        return self.hash(canonical_json(payload))

    def is_full_hash(self, value: str) -> bool:
        return len(value) == self.digest_size and is_hex(value)

    def __repr__(self) -> str:
        return f"HashGenerator({self._algorithm.value})"


def is_hex(value: str) -> bool:
    """True if *value* is a non-empty lowercase hex string."""
    return bool(value) and all(c in "0123456789abcdef" for c in value)
