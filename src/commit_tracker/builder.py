"""Record builder: raw revision facts in, one normalized CommitRecord out."""

from typing import Optional

from .exceptions import IdentityResolutionError
from .models import (
    CommitIdentity,
    CommitInfo,
    CommitRecord,
    CommitStats,
    Conclusion,
    DiffStats,
    TestOutcome,
    date_part,
    normalize_timestamp,
)


def determine_conclusion(outcome: TestOutcome) -> Conclusion:
    """Derive the conclusion label. First matching rule wins.

    1. failed tests or compilation errors -> failure
    2. at least one test observed -> success
    3. otherwise -> neutral
    """
    if outcome.has_failed_tests or outcome.has_compilation_errors:
        return Conclusion.FAILURE
    if outcome.test_count > 0:
        return Conclusion.SUCCESS
    return Conclusion.NEUTRAL


def commit_url(base: Optional[str], sha: str) -> str:
    """Deep link to ``sha`` under a hosting base URL, or "" without a base."""
    if not base:
        return ""
    return f"{base.rstrip('/')}/commit/{sha}"


def build_record(
    identity: Optional[CommitIdentity],
    raw_stats: Optional[DiffStats],
    outcome: Optional[TestOutcome],
    repo_url: Optional[str] = "",
    is_first_revision: bool = False,
) -> CommitRecord:
    """Assemble a CommitRecord from collaborator-supplied facts.

    Pure transformation: no git, no filesystem.

    Args:
        identity: Resolved revision identity. Required, with a non-empty sha.
        raw_stats: Line additions/deletions against the parent revision.
            For a root revision, additions is the initial tree's line count.
        outcome: Test-runner result. None degrades to zero tests, 0% coverage.
        repo_url: Hosting base URL (``https://host/owner/repo``), may be empty.
        is_first_revision: The revision has no parent; deletions are forced to 0.

    Raises:
        IdentityResolutionError: If the identity is missing or has no sha.
    """
    if identity is None:
        raise IdentityResolutionError("no identity supplied")
    sha = (identity.sha or "").strip()
    if not sha:
        raise IdentityResolutionError("revision sha is empty")

    raw_stats = raw_stats or DiffStats()
    outcome = outcome or TestOutcome()

    date = normalize_timestamp(identity.date or "")
    deletions = 0 if is_first_revision else raw_stats.deletions

    return CommitRecord(
        sha=sha,
        author=identity.author or "",
        commit=CommitInfo(
            date=date,
            message=identity.message or "",
            url=commit_url(repo_url, sha),
        ),
        stats=CommitStats(
            additions=raw_stats.additions,
            deletions=deletions,
            date=date_part(date),
        ),
        coverage=float(outcome.coverage or 0.0),
        test_count=max(0, int(outcome.test_count or 0)),
        conclusion=determine_conclusion(outcome),
    )
