"""Configuration models for dirvc.

VersionConfig holds per-store settings.
HashAlgorithm enumerates the digest functions a store can be created with.
"""

from __future__ import annotations

import enum
import getpass
from typing import Optional

from pydantic import BaseModel, Field


class HashAlgorithm(str, enum.Enum):
    """Digest function used to address objects in a store."""

    SHA1 = "sha1"
    SHA256 = "sha256"

    def __str__(self) -> str:
        return self.value


class VersionConfig(BaseModel):
    """Per-store configuration."""

    store_dir: str = "vc"
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA1
    author: Optional[str] = None  # None = current OS user
    marker_label: str = "temp_LATEST"
    initial_message: str = "Initial Commit"
    abbrev_length: int = Field(default=5, ge=4)

    def resolve_author(self) -> str:
        """Return the configured author, falling back to the OS user name."""
        if self.author:
            return self.author
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return "unknown"
