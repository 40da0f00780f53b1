"""
Analyzer Configuration
======================

Loads analyzer settings from defaults, an optional project config file,
environment variables and explicit overrides, in increasing precedence.

Configuration files searched in order:
1. .repo-architecture.json
2. .repo-architecture.yaml
3. .repo-architecture.yml

Usage:
    from repo_analysis.config import load_config

    config = load_config(project_dir=Path("/path/to/project"))
    print(config.max_workers, config.fetch_concurrency)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG FILE NAMES / ENVIRONMENT
# =============================================================================

CONFIG_FILENAMES = [
    ".repo-architecture.json",
    ".repo-architecture.yaml",
    ".repo-architecture.yml",
]

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_FETCH_CONCURRENCY = 8
DEFAULT_MAX_FILE_SIZE_BYTES = 1024 * 1024
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

# Environment variable -> config field
ENV_VARS = {
    "REPO_ARCH_MAX_WORKERS": "max_workers",
    "REPO_ARCH_FETCH_CONCURRENCY": "fetch_concurrency",
    "REPO_ARCH_API_BASE_URL": "api_base_url",
    "GITHUB_TOKEN": "github_token",
    "REPO_ARCH_TIMEOUT_SECONDS": "request_timeout_seconds",
}

_INT_FIELDS = {"max_workers", "fetch_concurrency", "max_file_size_bytes"}
_FLOAT_FIELDS = {"request_timeout_seconds", "connect_timeout_seconds"}
_STR_FIELDS = {"api_base_url"}
_OPTIONAL_STR_FIELDS = {"github_token"}
_LIST_FIELDS = {"extra_skip_dirs", "extra_ignored_files"}


def _default_max_workers() -> int:
    return os.cpu_count() or 4


@dataclass
class AnalyzerConfig:
    """Settings shared by every stage of an analysis run."""

    max_workers: int = field(default_factory=_default_max_workers)
    fetch_concurrency: int = DEFAULT_FETCH_CONCURRENCY
    api_base_url: str = DEFAULT_API_BASE_URL
    github_token: str | None = None
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    extra_skip_dirs: list[str] = field(default_factory=list)
    extra_ignored_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict. The token is masked."""
        return {
            "max_workers": self.max_workers,
            "fetch_concurrency": self.fetch_concurrency,
            "api_base_url": self.api_base_url,
            "github_token": "***" if self.github_token else None,
            "request_timeout_seconds": self.request_timeout_seconds,
            "connect_timeout_seconds": self.connect_timeout_seconds,
            "max_file_size_bytes": self.max_file_size_bytes,
            "extra_skip_dirs": list(self.extra_skip_dirs),
            "extra_ignored_files": list(self.extra_ignored_files),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalyzerConfig":
        """
        Create a config from a mapping of settings.

        Raises:
            ConfigError: If any key is unknown or any value is invalid.
        """
        return cls().with_overrides(**dict(data))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AnalyzerConfig":
        """Create config from environment variables on top of defaults."""
        return cls().with_env(environ)

    def with_env(self, environ: Mapping[str, str] | None = None) -> "AnalyzerConfig":
        """Return a copy with environment variables applied."""
        env = os.environ if environ is None else environ
        raw: dict[str, Any] = {}
        problems = []

        for var, name in ENV_VARS.items():
            value = env.get(var)
            if value is None or value == "":
                continue
            try:
                raw[name] = _coerce_env_value(name, value)
            except ValueError:
                problems.append(f"{var} must be a number, got {value!r}")

        if problems:
            raise ConfigError("Invalid environment configuration", problems)
        return self.with_overrides(**raw)

    def with_overrides(self, **overrides: Any) -> "AnalyzerConfig":
        """
        Return a copy with the given non-None values applied.

        Raises:
            ConfigError: If any key is unknown or any value is invalid.
        """
        values = {name: value for name, value in overrides.items() if value is not None}
        problems = validate_config_data(values)
        if problems:
            raise ConfigError("Invalid configuration", problems)

        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(values)
        for name in _LIST_FIELDS:
            current[name] = list(current[name])
        return AnalyzerConfig(**current)


def _coerce_env_value(name: str, value: str) -> Any:
    if name in _INT_FIELDS:
        return int(value)
    if name in _FLOAT_FIELDS:
        return float(value)
    return value


def validate_config_data(config_data: Mapping[str, Any]) -> list[str]:
    """
    Validate config values.

    Args:
        config_data: Parsed config data

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    valid_keys = _INT_FIELDS | _FLOAT_FIELDS | _STR_FIELDS | _OPTIONAL_STR_FIELDS | _LIST_FIELDS

    unknown_keys = set(config_data.keys()) - valid_keys
    if unknown_keys:
        errors.append(f"Unknown keys: {', '.join(sorted(unknown_keys))}")

    for key, value in config_data.items():
        if key in _INT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"'{key}' must be an integer")
            elif value <= 0:
                errors.append(f"'{key}' must be positive, got {value}")
        elif key in _FLOAT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                errors.append(f"'{key}' must be a number")
            elif value <= 0:
                errors.append(f"'{key}' must be positive, got {value}")
        elif key in _STR_FIELDS:
            if not isinstance(value, str) or not value.strip():
                errors.append(f"'{key}' must be a non-empty string")
        elif key in _OPTIONAL_STR_FIELDS:
            if not isinstance(value, str):
                errors.append(f"'{key}' must be a string")
        elif key in _LIST_FIELDS:
            if not isinstance(value, (list, tuple)):
                errors.append(f"'{key}' must be a list")
            else:
                for i, item in enumerate(value):
                    if not isinstance(item, str):
                        errors.append(f"'{key}[{i}]' must be a string")

    return errors


# =============================================================================
# CONFIG LOADER
# =============================================================================

class ConfigLoader:
    """
    Loads analyzer configuration for a project directory.

    Attributes:
        project_dir: Directory searched for a config file
        config_file: Path to the config file (if found)
    """

    def __init__(self, project_dir: Path | str | None = None):
        """
        Initialize config loader.

        Args:
            project_dir: Directory to search for a config file. None skips
                the file layer entirely.
        """
        self.project_dir = Path(project_dir).resolve() if project_dir else None
        self.config_file: Path | None = None

    def load(self, environ: Mapping[str, str] | None = None) -> AnalyzerConfig:
        """
        Load defaults, then the config file, then environment variables.

        Returns:
            AnalyzerConfig with every layer applied

        Raises:
            ConfigError: If the config file is unreadable or any value is invalid
        """
        config = AnalyzerConfig()

        self.config_file = self._find_config_file()
        if self.config_file is not None:
            config_data = self._read_config_file(self.config_file)
            problems = validate_config_data(config_data)
            if problems:
                raise ConfigError(f"Config validation errors in {self.config_file.name}", problems)
            config = config.with_overrides(**config_data)
            logger.debug("Loaded analyzer config from %s", self.config_file)

        return config.with_env(environ)

    def _find_config_file(self) -> Path | None:
        """Find the first existing config file."""
        if self.project_dir is None or not self.project_dir.is_dir():
            return None

        for filename in CONFIG_FILENAMES:
            config_path = self.project_dir / filename
            if config_path.exists():
                return config_path

        return None

    def _read_config_file(self, config_path: Path) -> dict:
        """
        Read and parse config file based on extension.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        suffix = config_path.suffix.lower()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Invalid {suffix.lstrip('.').upper()} in {config_path.name}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read {config_path.name}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{config_path.name} must contain a mapping at the top level")
        return data


def load_config(
    project_dir: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> AnalyzerConfig:
    """
    Load the effective configuration.

    Args:
        project_dir: Directory searched for a config file
        environ: Environment mapping (defaults to ``os.environ``)
        **overrides: Explicit values (e.g. CLI flags); None values are ignored

    Returns:
        AnalyzerConfig
    """
    return ConfigLoader(project_dir).load(environ).with_overrides(**overrides)
