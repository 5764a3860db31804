"""Test count, failures and coverage from a pytest run.

pytest is asked for a JUnit XML report and a pytest-cov JSON report in a
scratch directory; both are parsed after the run. The exit code decides
whether the suite could be run at all:

    0  all passed          1  tests failed
    2  interrupted         3  internal error
    4  usage error         5  no tests collected

2/3/4 mean the suite did not build (import or collection errors).
"""

import json
import subprocess
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..exceptions import CollaboratorUnavailable
from ..logging_config import get_logger
from ..models import TestOutcome

logger = get_logger(__name__)

_BROKEN_SUITE_CODES = {2, 3, 4}
_NO_TESTS_CODE = 5

_CONFIG_MARKERS = {
    "pyproject.toml": "[tool.pytest",
    "setup.cfg": "[tool:pytest]",
    "tox.ini": "[pytest]",
}


def parse_junit(path: Path) -> tuple:
    """Return ``(tests, failures + errors)`` summed over every testsuite."""
    root = ET.parse(str(path)).getroot()
    suites = [root] if root.tag == "testsuite" else root.iter("testsuite")
    total = 0
    broken = 0
    for suite in suites:
        total += int(suite.get("tests", 0))
        broken += int(suite.get("failures", 0)) + int(suite.get("errors", 0))
    return total, broken


def parse_coverage(path: Path) -> float:
    """Total line coverage percentage from a coverage.py JSON report."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return round(float(data["totals"]["percent_covered"]), 2)


class TestRunner:
    """Run the repository's test suite and summarize it as a TestOutcome."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        repo_path: Union[str, Path] = ".",
        command: Sequence[str] = ("python", "-m", "pytest"),
        timeout: int = 600,
    ):
        self.repo_path = Path(repo_path).resolve()
        self.command: List[str] = list(command)
        self.timeout = timeout

    def has_test_setup(self) -> bool:
        """Whether the repository looks like it has a pytest suite."""
        root = self.repo_path
        if (root / "pytest.ini").exists() or (root / "conftest.py").exists():
            return True
        if (root / "tests").is_dir() or (root / "test").is_dir():
            return True
        for name, marker in _CONFIG_MARKERS.items():
            cfg = root / name
            if cfg.exists():
                try:
                    if marker in cfg.read_text(encoding="utf-8", errors="replace"):
                        return True
                except OSError:
                    continue
        return any(root.glob("test_*.py"))

    def run(self) -> TestOutcome:
        """Run the suite.

        Raises:
            CollaboratorUnavailable: No suite, pytest missing, or timeout.
        """
        if not self.has_test_setup():
            raise CollaboratorUnavailable("test runner", "no pytest configuration found")

        with tempfile.TemporaryDirectory(prefix="commit-tracker-") as scratch:
            junit = Path(scratch) / "junit.xml"
            coverage = Path(scratch) / "coverage.json"

            proc = self._invoke(junit, coverage, with_coverage=True)
            if proc.returncode == 4 and "--cov" in proc.stderr:
                logger.warning("pytest-cov is not installed; coverage will be reported as 0")
                proc = self._invoke(junit, coverage, with_coverage=False)

            return self._summarize(proc, junit, coverage)

    def _invoke(
        self, junit: Path, coverage: Path, with_coverage: bool
    ) -> subprocess.CompletedProcess:
        cmd = [*self.command, "-q", f"--junitxml={junit}"]
        if with_coverage:
            cmd += ["--cov", f"--cov-report=json:{coverage}"]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                cwd=str(self.repo_path),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise CollaboratorUnavailable("test runner", str(e))
        except subprocess.TimeoutExpired:
            raise CollaboratorUnavailable("test runner", f"timed out after {self.timeout}s")

    def _summarize(
        self, proc: subprocess.CompletedProcess, junit: Path, coverage: Path
    ) -> TestOutcome:
        code = proc.returncode

        if "No module named pytest" in proc.stderr:
            raise CollaboratorUnavailable("test runner", "pytest is not installed")

        if code == _NO_TESTS_CODE:
            logger.info("No tests collected")
            return TestOutcome()

        outcome = TestOutcome(has_compilation_errors=code in _BROKEN_SUITE_CODES)

        report: Optional[tuple] = None
        if junit.exists():
            try:
                report = parse_junit(junit)
            except (ET.ParseError, ValueError) as e:
                logger.warning("Unreadable JUnit report: %s", e)

        if report is None:
            if code != 0:
                outcome.has_compilation_errors = True
                logger.warning("pytest exited with %d and wrote no report", code)
            return outcome

        outcome.test_count, broken = report
        outcome.has_failed_tests = broken > 0

        if coverage.exists():
            try:
                outcome.coverage = parse_coverage(coverage)
            except (OSError, ValueError, KeyError) as e:
                logger.warning("Unreadable coverage report: %s", e)

        logger.info(
            "pytest: %d tests, %d failing, %.2f%% coverage (exit %d)",
            outcome.test_count,
            broken,
            outcome.coverage,
            code,
        )
        return outcome
