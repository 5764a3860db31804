"""Tests for the ingestion pipeline."""

import json

import pytest

from commit_tracker.config import TrackerConfig
from commit_tracker.exceptions import (
    CollaboratorUnavailable,
    IdentityResolutionError,
    StorageReadCorrupt,
)
from commit_tracker.history import MergeAction
from commit_tracker.ingest import collect_test_outcome, merge_record_file, track_commit
from commit_tracker.models import CommitIdentity, Conclusion, DiffStats, TestOutcome


class FakeGit:
    """Stand-in for GitCollector with canned answers."""

    def __init__(
        self,
        sha="a1",
        message="Add feature",
        date="2024-01-01T10:00:00+00:00",
        stats=None,
        first=False,
        url="https://github.com/acme/widgets",
        broken=(),
    ):
        self.sha = sha
        self.message = message
        self.date = date
        self.stats = stats or DiffStats(additions=5, deletions=2)
        self.first = first
        self.url = url
        self.broken = set(broken)

    def head_sha(self):
        if "identity" in self.broken:
            raise IdentityResolutionError("no HEAD")
        return self.sha

    def resolve(self, ref):
        if "identity" in self.broken:
            raise IdentityResolutionError("not a commit", sha=ref)
        return self.sha

    def identity(self, sha):
        return CommitIdentity(sha=sha, author="Alice", message=self.message, date=self.date)

    def is_first_revision(self, sha):
        return self.first

    def diff_stats(self, sha, is_first_revision=False):
        if "diff" in self.broken:
            raise CollaboratorUnavailable("git diff", "boom")
        return self.stats

    def remote_url(self):
        if "remote" in self.broken:
            raise CollaboratorUnavailable("remote URL", "no remote named 'origin'")
        return self.url


class FakeRunner:
    def __init__(self, outcome=None, unavailable=False):
        self.outcome = outcome or TestOutcome(test_count=3, coverage=75.0)
        self.unavailable = unavailable

    def run(self):
        if self.unavailable:
            raise CollaboratorUnavailable("test runner", "pytest is not installed")
        return self.outcome


@pytest.fixture
def config(tmp_path):
    return TrackerConfig(repo_path=str(tmp_path))


def _on_disk(config):
    return json.loads(config.history_path.read_text(encoding="utf-8"))


class TestTrackCommit:
    def test_records_new_commit(self, config):
        result = track_commit(config, git=FakeGit(), runner=FakeRunner())

        assert result.action is MergeAction.INSERTED
        entries = _on_disk(config)
        assert len(entries) == 1
        entry = entries[0]
        assert entry["sha"] == "a1"
        assert entry["commit"]["url"] == "https://github.com/acme/widgets/commit/a1"
        assert entry["commit"]["date"] == "2024-01-01T10:00:00.000Z"
        assert entry["stats"] == {"total": 7, "additions": 5, "deletions": 2, "date": "2024-01-01"}
        assert entry["test_count"] == 3
        assert entry["coverage"] == 75.0
        assert entry["conclusion"] == "success"

    def test_rerun_updates(self, config):
        track_commit(config, git=FakeGit(), runner=FakeRunner())
        result = track_commit(
            config,
            git=FakeGit(stats=DiffStats(additions=9, deletions=0)),
            runner=FakeRunner(TestOutcome(test_count=3, has_failed_tests=True)),
        )

        assert result.action is MergeAction.UPDATED
        entries = _on_disk(config)
        assert len(entries) == 1
        assert entries[0]["stats"]["additions"] == 9
        assert entries[0]["conclusion"] == "failure"

    def test_content_duplicate_rejected(self, config):
        track_commit(config, git=FakeGit(sha="a1"), runner=FakeRunner())
        result = track_commit(
            config,
            git=FakeGit(sha="b2", date="2024-01-02T10:00:00+00:00"),
            runner=FakeRunner(),
        )
        assert result.action is MergeAction.REJECTED
        assert [e["sha"] for e in _on_disk(config)] == ["a1"]

    def test_explicit_sha(self, config):
        result = track_commit(config, sha="a1", git=FakeGit(), runner=FakeRunner())
        assert result.candidate.sha == "a1"

    def test_identity_failure_writes_nothing(self, config, make_record):
        config.history_path.write_text(
            json.dumps([make_record(sha="old").to_dict()], indent=2), encoding="utf-8"
        )
        before = config.history_path.read_text(encoding="utf-8")

        with pytest.raises(IdentityResolutionError):
            track_commit(config, git=FakeGit(broken={"identity"}), runner=FakeRunner())

        assert config.history_path.read_text(encoding="utf-8") == before

    def test_identity_failure_leaves_empty_document(self, config):
        with pytest.raises(IdentityResolutionError):
            track_commit(config, git=FakeGit(broken={"identity"}), runner=FakeRunner())
        assert _on_disk(config) == []

    def test_collaborator_failures_degrade(self, config):
        result = track_commit(
            config,
            git=FakeGit(broken={"diff", "remote"}),
            runner=FakeRunner(unavailable=True),
        )
        record = result.candidate
        assert record.stats.total == 0
        assert record.commit.url == ""
        assert record.test_count == 0
        assert record.coverage == 0.0
        assert record.conclusion is Conclusion.NEUTRAL

    def test_tests_disabled(self, tmp_path):
        config = TrackerConfig(repo_path=str(tmp_path), run_tests=False)
        result = track_commit(config, git=FakeGit(), runner=FakeRunner())
        assert result.candidate.test_count == 0

    def test_first_revision(self, config):
        git = FakeGit(first=True, stats=DiffStats(additions=10, deletions=0))
        result = track_commit(config, git=git, runner=FakeRunner(TestOutcome(test_count=3)))
        assert result.candidate.stats.additions == 10
        assert result.candidate.stats.deletions == 0
        assert result.candidate.conclusion is Conclusion.SUCCESS


class TestCollectTestOutcome:
    def test_unavailable_runner(self, config):
        assert collect_test_outcome(config, FakeRunner(unavailable=True)) == TestOutcome()


class TestMergeRecordFile:
    def test_merges_external_record(self, config, tmp_path, make_record):
        record_file = tmp_path / "record.json"
        record_file.write_text(json.dumps(make_record(sha="ext").to_dict()), encoding="utf-8")

        result = merge_record_file(config, record_file)

        assert result.action is MergeAction.INSERTED
        assert [e["sha"] for e in _on_disk(config)] == ["ext"]

    def test_invalid_record(self, config, tmp_path):
        record_file = tmp_path / "record.json"
        record_file.write_text('{"author": "no sha"}', encoding="utf-8")
        with pytest.raises(StorageReadCorrupt):
            merge_record_file(config, record_file)


@pytest.mark.git
class TestEndToEnd:
    def test_backfill_once_remote_configured(self, git_repo):
        config = TrackerConfig(repo_path=str(git_repo.path), run_tests=False)

        git_repo.commit({"a.txt": "1\n2\n"}, "Initial commit")
        first = track_commit(config)
        assert first.candidate.commit.url == ""
        assert first.candidate.stats.additions == 2

        git_repo.git("remote", "add", "origin", "https://github.com/acme/widgets.git")
        sha = git_repo.commit({"b.txt": "3\n"}, "Add b")
        track_commit(config)

        entries = json.loads(config.history_path.read_text(encoding="utf-8"))
        assert [e["commit"]["message"] for e in entries] == ["Initial commit", "Add b"]
        assert entries[1]["sha"] == sha
        for entry in entries:
            assert entry["commit"]["url"] == f"https://github.com/acme/widgets/commit/{entry['sha']}"
