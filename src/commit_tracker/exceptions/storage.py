"""Storage exceptions for the history document."""

from pathlib import Path

from .base import CommitTrackerError


class StorageError(CommitTrackerError):
    """Base class for history document errors."""

    def __init__(self, message: str, path: Path, reason: str):
        super().__init__(message, details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class StorageReadCorrupt(StorageError):
    """Raised when the history document cannot be read or parsed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Unreadable history document: {path}", path, reason)


class StorageWriteFailure(StorageError):
    """Raised when the history document cannot be written. Always fatal."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot write history document: {path}", path, reason)
