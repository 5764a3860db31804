"""History store: dedup, merge and ordering of the commit log."""

from .merge import (
    DuplicatePolicy,
    MergeAction,
    MergeResult,
    backfill_urls,
    find_content_duplicate,
    find_content_duplicates,
    merge_record,
    repository_base,
    sort_records,
)
from .store import DEFAULT_HISTORY_FILE, HistoryStore

__all__ = [
    "HistoryStore",
    "DEFAULT_HISTORY_FILE",
    "DuplicatePolicy",
    "MergeAction",
    "MergeResult",
    "merge_record",
    "find_content_duplicate",
    "find_content_duplicates",
    "backfill_urls",
    "sort_records",
    "repository_base",
]
