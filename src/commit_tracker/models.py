"""Data models for the commit history log.

``CommitRecord`` mirrors the on-disk JSON shape one-to-one so a record can
be written with ``json.dump`` and read back without any ORM machinery.
The remaining dataclasses are the payloads handed over by the collectors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

# Unparseable dates sort before every real timestamp
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


class Conclusion(str, Enum):
    """Categorical test health of a revision."""

    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts the ``Z`` suffix and bare dates. Naive values are read as UTC.
    Returns None when the value cannot be parsed.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_timestamp(value: str) -> str:
    """Normalize a timestamp to the history format, leaving garbage untouched."""
    parsed = parse_timestamp(value)
    return format_timestamp(parsed) if parsed else value


def date_part(timestamp: str) -> str:
    return timestamp.split("T")[0] if timestamp else ""


def sort_key(timestamp: str) -> datetime:
    return parse_timestamp(timestamp) or _EARLIEST


def _as_count(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass
class CommitIdentity:
    """Who and what a revision is, as resolved by version control."""

    sha: str
    author: str
    message: str
    date: str  # ISO-8601


@dataclass
class DiffStats:
    additions: int = 0
    deletions: int = 0


@dataclass
class TestOutcome:
    """Result reported by the test-runner integration.

    The all-default instance is what an unavailable test tool degrades to.
    """

    __test__ = False  # not a pytest test class

    test_count: int = 0
    coverage: float = 0.0
    has_failed_tests: bool = False
    has_compilation_errors: bool = False


@dataclass
class CommitInfo:
    date: str
    message: str
    url: str = ""


@dataclass
class CommitStats:
    additions: int = 0
    deletions: int = 0
    total: int = field(init=False, default=0)
    date: str = ""

    def __post_init__(self) -> None:
        self.additions = _as_count(self.additions)
        self.deletions = _as_count(self.deletions)
        self.total = self.additions + self.deletions


@dataclass
class CommitRecord:
    """One entry in the history log, keyed by ``sha``."""

    sha: str
    author: str
    commit: CommitInfo
    stats: CommitStats
    coverage: float = 0.0
    test_count: int = 0
    conclusion: Conclusion = Conclusion.NEUTRAL

    @property
    def date(self) -> str:
        return self.commit.date

    def content_key(self) -> tuple[str, int, int, int]:
        """Fields that identify the same logical change recorded twice."""
        return (
            self.commit.message,
            self.stats.additions,
            self.stats.deletions,
            self.test_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sha": self.sha,
            "author": self.author,
            "commit": {
                "date": self.commit.date,
                "message": self.commit.message,
                "url": self.commit.url,
            },
            "stats": {
                "total": self.stats.total,
                "additions": self.stats.additions,
                "deletions": self.stats.deletions,
                "date": self.stats.date,
            },
            "coverage": self.coverage,
            "test_count": self.test_count,
            "conclusion": self.conclusion.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CommitRecord":
        """Build a record from its JSON shape, recomputing derived fields.

        ``stats.total`` and ``stats.date`` are never trusted from storage.

        Raises:
            ValueError: If ``data`` is not a mapping or has no ``sha``.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"expected an object, got {type(data).__name__}")
        sha = str(data.get("sha") or "").strip()
        if not sha:
            raise ValueError("record has no sha")

        commit = data.get("commit")
        if not isinstance(commit, Mapping):
            commit = {}
        stats = data.get("stats")
        if not isinstance(stats, Mapping):
            stats = {}

        date = str(commit.get("date") or "")
        try:
            conclusion = Conclusion(data.get("conclusion"))
        except ValueError:
            conclusion = Conclusion.NEUTRAL

        return cls(
            sha=sha,
            author=str(data.get("author") or ""),
            commit=CommitInfo(
                date=date,
                message=str(commit.get("message") or ""),
                url=str(commit.get("url") or ""),
            ),
            stats=CommitStats(
                additions=stats.get("additions", 0),
                deletions=stats.get("deletions", 0),
                date=date_part(date),
            ),
            coverage=_as_float(data.get("coverage", 0)),
            test_count=_as_count(data.get("test_count", 0)),
            conclusion=conclusion,
        )
