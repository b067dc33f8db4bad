"""dirvc exception hierarchy.

All dirvc-specific exceptions inherit from DirvcError.  Lookups never raise
for missing or corrupt objects (they return None); these exceptions cover
the paths where absence is not an answer.
"""


class DirvcError(Exception):
    """Base exception for all dirvc errors."""


class ObjectNotFoundError(DirvcError):
    """Raised when an object required by an operation is absent from the store."""

    def __init__(self, object_hash: str) -> None:
        self.object_hash = object_hash
        super().__init__(f"Object not found: {object_hash}")


class CorruptObjectError(DirvcError):
    """Raised when a stored object cannot be decoded or fails its hash check."""

    def __init__(self, object_hash: str, reason: str) -> None:
        self.object_hash = object_hash
        self.reason = reason
        super().__init__(f"Corrupt object {object_hash}: {reason}")


class InvalidLabelNameError(DirvcError):
    """Raised when a label name violates naming rules."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid label name '{name}': {reason}")


class StoreConfigError(DirvcError):
    """Raised when the store config is unreadable or disagrees with the requested one."""


class CorruptStoreError(DirvcError):
    """Raised when the store's HEAD does not resolve to a readable commit."""


class InvariantViolationError(DirvcError):
    """Base exception for broken graph invariants.

    These indicate store corruption beyond normal recovery and are never
    converted into sentinel return values.
    """


class CycleDetectedError(InvariantViolationError):
    """Raised when an ancestor walk revisits a commit."""

    def __init__(self, commit_hash: str) -> None:
        self.commit_hash = commit_hash
        super().__init__(f"Cycle detected in ancestor chain at {commit_hash}")


class HistoryInvariantError(InvariantViolationError):
    """Raised when two lineages split at their LCA still share a commit."""
