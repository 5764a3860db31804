"""Reconciliation of a candidate record against the in-memory history.

All functions here operate on an owned ``list[CommitRecord]`` and never
touch storage. The order of operations in ``merge_record`` is:

    1. identity match (same sha)       -> overwrite in place
    2. content duplicate (same message, additions, deletions, test_count)
                                       -> reject, or replace under keep-earliest
    3. otherwise                       -> append
    4. URL backfill from the candidate's base URL
    5. stable sort ascending by commit date
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from ..logging_config import get_logger
from ..models import CommitRecord, parse_timestamp, sort_key

logger = get_logger(__name__)

_COMMIT_SUFFIX_RE = re.compile(r"/commit/[^/]+$")


class DuplicatePolicy(str, Enum):
    """What to do with a content duplicate dated earlier than the existing entry."""

    REJECT = "reject"  # always keep the entry already in the log
    KEEP_EARLIEST = "keep-earliest"  # earlier-dated candidate replaces it


class MergeAction(str, Enum):
    UPDATED = "updated"
    INSERTED = "inserted"
    REJECTED = "rejected"
    REPLACED = "replaced"


@dataclass
class MergeResult:
    """Outcome of reconciling one candidate."""

    records: List[CommitRecord]
    action: MergeAction
    candidate: CommitRecord
    matched_sha: Optional[str] = None  # existing entry that decided the action
    backfilled: int = 0


def repository_base(url: str) -> str:
    """Strip a trailing ``/commit/<sha>`` from a deep link."""
    return _COMMIT_SUFFIX_RE.sub("", url or "")


def find_index_by_sha(records: List[CommitRecord], sha: str) -> int:
    for i, record in enumerate(records):
        if record.sha == sha:
            return i
    return -1


def find_content_duplicates(records: List[CommitRecord], candidate: CommitRecord) -> List[int]:
    """Indices of every entry sharing the candidate's content key."""
    key = candidate.content_key()
    return [i for i, record in enumerate(records) if record.content_key() == key]


def find_content_duplicate(
    records: List[CommitRecord], candidate: CommitRecord
) -> Optional[int]:
    """Index of the first entry with the candidate's content key, or None."""
    matches = find_content_duplicates(records, candidate)
    return matches[0] if matches else None


def _is_earlier(candidate: CommitRecord, existing: CommitRecord) -> bool:
    cand = parse_timestamp(candidate.date)
    prev = parse_timestamp(existing.date)
    if cand is None or prev is None:
        # Incomparable dates count as "not earlier": the existing entry wins
        return False
    return cand < prev


def backfill_urls(records: List[CommitRecord], source_url: str) -> int:
    """Give every entry without a URL a deep link under ``source_url``'s base.

    Returns:
        Number of entries that received a URL.
    """
    if not source_url:
        return 0
    base = repository_base(source_url)
    filled = 0
    for record in records:
        if not record.commit.url:
            record.commit.url = f"{base}/commit/{record.sha}"
            filled += 1
    return filled


def sort_records(records: List[CommitRecord]) -> None:
    """Stable in-place sort, oldest commit first."""
    records.sort(key=lambda r: sort_key(r.date))


def merge_record(
    records: List[CommitRecord],
    candidate: CommitRecord,
    policy: Union[DuplicatePolicy, str] = DuplicatePolicy.REJECT,
) -> MergeResult:
    """Reconcile ``candidate`` into ``records`` (mutated in place).

    Args:
        records: The loaded history. Ownership passes to this call.
        candidate: Freshly built record for one revision.
        policy: Handling of a content duplicate dated strictly earlier than
            every entry it matches. ``reject`` keeps the existing entry. A
            duplicate with any match dated at or before it is always
            rejected, and ``keep-earliest`` replaces the earliest match.

    Returns:
        MergeResult carrying the same list object, sorted.
    """
    policy = DuplicatePolicy(policy)

    index = find_index_by_sha(records, candidate.sha)
    if index >= 0:
        records[index] = candidate
        action = MergeAction.UPDATED
        matched: Optional[str] = candidate.sha
        logger.info("Updated entry for commit %s", candidate.sha)
    else:
        dups = find_content_duplicates(records, candidate)
        if not dups:
            records.append(candidate)
            action = MergeAction.INSERTED
            matched = None
            logger.info("Added new commit %s", candidate.sha)
        else:
            # Any match dated at or before the candidate keeps its place
            blocking = [i for i in dups if not _is_earlier(candidate, records[i])]
            replace = policy is DuplicatePolicy.KEEP_EARLIEST and not blocking
            if replace:
                dup = min(dups, key=lambda i: sort_key(records[i].date))
            else:
                dup = blocking[0] if blocking else dups[0]
            existing = records[dup]
            matched = existing.sha
            if replace:
                records[dup] = candidate
                action = MergeAction.REPLACED
                logger.info(
                    "Commit %s duplicates %s with an earlier date, replacing it",
                    candidate.sha,
                    existing.sha,
                )
            else:
                action = MergeAction.REJECTED
                logger.info(
                    "Commit %s duplicates the content of %s, keeping %s",
                    candidate.sha,
                    existing.sha,
                    existing.sha,
                )

    backfilled = backfill_urls(records, candidate.commit.url)
    if backfilled:
        logger.info("Backfilled commit URL on %d entries", backfilled)

    sort_records(records)

    return MergeResult(
        records=records,
        action=action,
        candidate=candidate,
        matched_sha=matched,
        backfilled=backfilled,
    )
