"""Collection-side exceptions: revision identity and external collaborators."""

from typing import Optional

from .base import CommitTrackerError


class IdentityResolutionError(CommitTrackerError):
    """Raised when a revision's identity or metadata cannot be determined.

    Aborts ingestion for the revision; the history document is left untouched.
    """

    def __init__(self, reason: str, sha: Optional[str] = None):
        details = {"reason": reason}
        if sha:
            details["sha"] = sha
        super().__init__("Cannot resolve revision identity", details=details)
        self.reason = reason
        self.sha = sha


class CollaboratorUnavailable(CommitTrackerError):
    """Raised by a collaborator (test runner, remote resolver) that cannot answer.

    Callers absorb it and fall back to default values.
    """

    def __init__(self, collaborator: str, reason: str):
        super().__init__(
            f"{collaborator} unavailable",
            details={"collaborator": collaborator, "reason": reason},
        )
        self.collaborator = collaborator
        self.reason = reason
