"""
Commit Tracker - Per-revision CI history log

Records a normalized snapshot of each processed revision (identity,
authorship, size delta, test and coverage outcome) into a single,
chronologically ordered, deduplicated JSON history document that
dashboards and badges read as a time series.
"""

__version__ = "0.3.0"
__author__ = "Naman Agarwal"

from .builder import build_record, determine_conclusion
from .history import HistoryStore, MergeAction, MergeResult, merge_record
from .models import CommitRecord, Conclusion, TestOutcome

__all__ = [
    "build_record",  # Record Builder entry point
    "determine_conclusion",
    "HistoryStore",  # History Store (load / merge / persist)
    "merge_record",
    "MergeAction",
    "MergeResult",
    "CommitRecord",
    "Conclusion",
    "TestOutcome",
]
