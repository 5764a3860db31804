"""Configuration loading and management for Commit Tracker.

Configuration sources are merged in priority order:
    1. Defaults (defined in TrackerConfig)
    2. Global config (~/.commit-tracker.toml)
    3. Project config (./commit-tracker.toml)
    4. Explicit config file
    5. Environment variables (COMMIT_TRACKER_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(history_file="ci/history.json")
    >>> config.history_file
    'ci/history.json'
    >>> config.duplicate_policy
    'reject'
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError
from .history import DEFAULT_HISTORY_FILE, DuplicatePolicy

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "COMMIT_TRACKER_"


@dataclass(frozen=True)
class TrackerConfig:
    """Configuration for one tracking run.

    Attributes:
        Storage:
            history_file: History document, relative to repo_path unless absolute
            indent: JSON indentation of the history document

        Reconciliation:
            duplicate_policy: "reject" keeps the entry already logged when a
                content duplicate arrives with an earlier date;
                "keep-earliest" lets the earlier-dated one replace it

        Collection:
            repo_path: Repository root to inspect
            git_timeout_seconds: Timeout for each git subprocess
            run_tests: Run the test suite to get test count and coverage
            test_command: Command prefix used to invoke pytest
            test_timeout_seconds: Timeout for the whole test run

        Output control:
            verbosity: Logging verbosity level
    """

    # Storage
    history_file: str = DEFAULT_HISTORY_FILE
    indent: int = 2

    # Reconciliation
    duplicate_policy: str = DuplicatePolicy.REJECT.value

    # Collection
    repo_path: str = "."
    git_timeout_seconds: int = 30
    run_tests: bool = True
    test_command: List[str] = field(default_factory=lambda: ["python", "-m", "pytest"])
    test_timeout_seconds: int = 600

    # Output control
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.history_file:
            raise InvalidConfigError("history_file", self.history_file, "must not be empty")
        if self.indent < 0:
            raise InvalidConfigError("indent", self.indent, "must be non-negative")

        valid_policies = [p.value for p in DuplicatePolicy]
        if self.duplicate_policy not in valid_policies:
            raise InvalidConfigError(
                "duplicate_policy",
                self.duplicate_policy,
                f"expected one of {', '.join(valid_policies)}",
            )

        if self.git_timeout_seconds < 1:
            raise InvalidConfigError("git_timeout_seconds", self.git_timeout_seconds, "must be at least 1")
        if self.test_timeout_seconds < 1:
            raise InvalidConfigError("test_timeout_seconds", self.test_timeout_seconds, "must be at least 1")
        if not self.test_command:
            raise InvalidConfigError("test_command", self.test_command, "must not be empty")

        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet, normal or verbose")

    @property
    def repo_root(self) -> Path:
        return Path(self.repo_path).resolve()

    @property
    def history_path(self) -> Path:
        """History document location, resolved against the repository root."""
        path = Path(self.history_file)
        if path.is_absolute():
            return path
        return self.repo_root / path


def load_config(config_file: Optional[Path] = None, **overrides) -> TrackerConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). None values
            are ignored so unset CLI options don't mask file settings.

    Returns:
        Validated TrackerConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".commit-tracker.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "commit-tracker.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    # Verbosity flags from the CLI arrive as booleans
    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"

    merged.update({k: v for k, v in overrides.items() if v is not None})

    if isinstance(merged.get("test_command"), str):
        merged["test_command"] = shlex.split(merged["test_command"])

    try:
        return TrackerConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from COMMIT_TRACKER_* environment variables.

    Supported environment variables:
        COMMIT_TRACKER_HISTORY_FILE: str
        COMMIT_TRACKER_INDENT: int
        COMMIT_TRACKER_DUPLICATE_POLICY: reject/keep-earliest
        COMMIT_TRACKER_REPO_PATH: str
        COMMIT_TRACKER_GIT_TIMEOUT_SECONDS: int
        COMMIT_TRACKER_RUN_TESTS: bool (true/false/1/0)
        COMMIT_TRACKER_TEST_COMMAND: str, split shell-style
        COMMIT_TRACKER_TEST_TIMEOUT_SECONDS: int
        COMMIT_TRACKER_VERBOSITY: quiet/normal/verbose
    """
    type_hints = get_type_hints(TrackerConfig)

    result: dict[str, Any] = {}

    for field_name in TrackerConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Lists (test_command) are given shell-style
    if origin is list or type_hint is list:
        return shlex.split(value)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        data = tomllib.load(f)

    # Accept both a flat file and a [commit-tracker] table
    section = data.get("commit-tracker")
    if isinstance(section, dict):
        return {k.replace("-", "_"): v for k, v in section.items()}
    return {k.replace("-", "_"): v for k, v in data.items()}
