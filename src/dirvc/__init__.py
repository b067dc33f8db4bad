"""dirvc: embedded, content-addressed version control for a directory of records.

Snapshot a directory, name the current position (HEAD), revert to any
prior state by short hash, and render a two-lane history graph.
"""

from dirvc._version import __version__

# Core entry point
from dirvc.version import StatusInfo, VersionManager

# Object and configuration models
from dirvc.models.config import HashAlgorithm, VersionConfig
from dirvc.models.objects import Commit, Label, Tree, TreeEntry

# History
from dirvc.operations.history import HistoryEntry, HistoryGraph, Lane

# Exceptions
from dirvc.exceptions import (
    CorruptObjectError,
    CorruptStoreError,
    CycleDetectedError,
    DirvcError,
    HistoryInvariantError,
    InvalidLabelNameError,
    InvariantViolationError,
    ObjectNotFoundError,
    StoreConfigError,
)

__all__ = [
    "__version__",
    "VersionManager",
    "StatusInfo",
    "HashAlgorithm",
    "VersionConfig",
    "Commit",
    "Label",
    "Tree",
    "TreeEntry",
    "HistoryEntry",
    "HistoryGraph",
    "Lane",
    "CorruptObjectError",
    "CorruptStoreError",
    "CycleDetectedError",
    "DirvcError",
    "HistoryInvariantError",
    "InvalidLabelNameError",
    "InvariantViolationError",
    "ObjectNotFoundError",
    "StoreConfigError",
]
