"""Collectors: git and test-runner shims that feed the record builder."""

from .git import GitCollector, normalize_remote_url, parse_numstat
from .testrunner import TestRunner

__all__ = [
    "GitCollector",
    "TestRunner",
    "normalize_remote_url",
    "parse_numstat",
]
