"""Ingestion pipeline: collect facts, build one record, merge it into history.

Collaborator failures (test runner, diff, remote URL) are absorbed with
safe defaults so the log stays available. Identity failures abort before
anything is written, and storage write failures always propagate.
"""

import json
from pathlib import Path
from typing import Optional

from .builder import build_record
from .collectors import GitCollector, TestRunner
from .config import TrackerConfig
from .exceptions import CollaboratorUnavailable, StorageReadCorrupt
from .history import HistoryStore, MergeResult
from .logging_config import get_logger
from .models import CommitRecord, DiffStats, TestOutcome

logger = get_logger(__name__)


def open_store(config: TrackerConfig) -> HistoryStore:
    return HistoryStore(config.history_path, indent=config.indent)


def collect_test_outcome(config: TrackerConfig, runner: Optional[TestRunner] = None) -> TestOutcome:
    if not config.run_tests:
        logger.debug("Test run disabled")
        return TestOutcome()
    runner = runner or TestRunner(
        config.repo_root, command=config.test_command, timeout=config.test_timeout_seconds
    )
    try:
        return runner.run()
    except CollaboratorUnavailable as e:
        logger.warning("%s; recording 0 tests and 0%% coverage", e)
        return TestOutcome()


def track_commit(
    config: TrackerConfig,
    sha: Optional[str] = None,
    git: Optional[GitCollector] = None,
    runner: Optional[TestRunner] = None,
) -> MergeResult:
    """Record one revision (HEAD by default) in the history document.

    Raises:
        IdentityResolutionError: The revision cannot be resolved; nothing is merged.
        StorageWriteFailure: The document cannot be written.
    """
    store = open_store(config)
    store.ensure_exists()

    git = git or GitCollector(config.repo_root, timeout=config.git_timeout_seconds)

    target = git.resolve(sha) if sha else git.head_sha()
    identity = git.identity(target)
    first = git.is_first_revision(target)
    logger.debug("Tracking %s (root revision: %s)", identity.sha, first)

    try:
        stats = git.diff_stats(target, is_first_revision=first)
    except CollaboratorUnavailable as e:
        logger.warning("%s; recording 0 additions and 0 deletions", e)
        stats = DiffStats()

    outcome = collect_test_outcome(config, runner)

    try:
        repo_url = git.remote_url()
    except CollaboratorUnavailable as e:
        logger.warning("%s; commit URL left empty", e)
        repo_url = ""

    record = build_record(identity, stats, outcome, repo_url, is_first_revision=first)
    return store.merge(record, config.duplicate_policy)


def merge_record_file(config: TrackerConfig, path: Path) -> MergeResult:
    """Merge a record built elsewhere (JSON object in the history shape).

    Raises:
        StorageReadCorrupt: The record file is unreadable or not a valid record.
        StorageWriteFailure: The document cannot be written.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        record = CommitRecord.from_dict(raw)
    except (OSError, ValueError) as e:
        raise StorageReadCorrupt(Path(path), str(e))

    store = open_store(config)
    store.ensure_exists()
    return store.merge(record, config.duplicate_policy)
