"""Shared test fixtures for Commit Tracker tests."""

import os
import shutil
import subprocess

import pytest

from commit_tracker.models import CommitInfo, CommitRecord, CommitStats, Conclusion


def pytest_configure(config):
    """Register the git marker."""
    config.addinivalue_line("markers", "git: needs a git executable")


def pytest_collection_modifyitems(config, items):
    """Skip git tests when git is not installed."""
    if shutil.which("git"):
        return
    skip_git = pytest.mark.skip(reason="git executable not found")
    for item in items:
        if "git" in item.keywords:
            item.add_marker(skip_git)


def build(
    sha="a1",
    date="2024-01-01T00:00:00.000Z",
    message="m",
    additions=5,
    deletions=2,
    test_count=1,
    url="",
    author="alice",
    coverage=0.0,
    conclusion=Conclusion.SUCCESS,
):
    """CommitRecord with sensible defaults for merge tests."""
    return CommitRecord(
        sha=sha,
        author=author,
        commit=CommitInfo(date=date, message=message, url=url),
        stats=CommitStats(additions=additions, deletions=deletions, date=date.split("T")[0]),
        coverage=coverage,
        test_count=test_count,
        conclusion=conclusion,
    )


@pytest.fixture
def make_record():
    """Factory fixture for CommitRecord instances."""
    return build


def _git(repo, *args, env=None):
    return subprocess.run(
        ["git", "-C", str(repo), *args],
        capture_output=True,
        text=True,
        check=True,
        env=env,
    ).stdout.strip()


class GitRepo:
    """Throwaway repository with deterministic author and dates."""

    def __init__(self, path):
        self.path = path
        _git(path, "init", "-q")
        _git(path, "config", "user.name", "Alice Example")
        _git(path, "config", "user.email", "alice@example.com")
        _git(path, "config", "commit.gpgsign", "false")
        self._tick = 0

    def git(self, *args):
        return _git(self.path, *args)

    def commit(self, files, message):
        """Write ``files`` (name -> content), commit everything, return the sha."""
        for name, content in files.items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        self._tick += 1
        stamp = f"2024-01-{self._tick:02d}T12:00:00+00:00"
        env = dict(os.environ, GIT_AUTHOR_DATE=stamp, GIT_COMMITTER_DATE=stamp)
        _git(self.path, "add", "-A")
        _git(self.path, "commit", "-q", "-m", message, env=env)
        return _git(self.path, "rev-parse", "HEAD")


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository under tmp_path/repo."""
    repo = tmp_path / "repo"
    repo.mkdir()
    return GitRepo(repo)
