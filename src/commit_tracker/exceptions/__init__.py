"""Exception hierarchy for Commit Tracker."""

from .base import CommitTrackerError
from .collection import CollaboratorUnavailable, IdentityResolutionError
from .config import ConfigurationError, InvalidConfigError
from .storage import StorageError, StorageReadCorrupt, StorageWriteFailure

__all__ = [
    "CommitTrackerError",
    "IdentityResolutionError",
    "CollaboratorUnavailable",
    "StorageError",
    "StorageReadCorrupt",
    "StorageWriteFailure",
    "ConfigurationError",
    "InvalidConfigError",
]
