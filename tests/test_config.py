#!/usr/bin/env python3
"""
Tests for Configuration, Errors and Progress
============================================

Tests the analyzer configuration layers including:
- Defaults, config files (JSON and YAML), environment and overrides
- Validation errors
- Error serialization
- Progress clamping and monotonicity
"""

import json
from pathlib import Path

import pytest
from repo_analysis.config import AnalyzerConfig, ConfigLoader, load_config, validate_config_data
from repo_analysis.errors import (
    AnalysisErrorCode,
    ConfigError,
    InvalidRepositoryURLError,
    RateLimitError,
    RepositoryNotFoundError,
    SourceFetchError,
)
from repo_analysis.progress import ProgressReporter, ProgressStage


# =============================================================================
# CONFIGURATION
# =============================================================================

class TestAnalyzerConfigDefaults:
    """Tests for AnalyzerConfig defaults."""

    def test_defaults(self):
        """Defaults match the documented values."""
        config = AnalyzerConfig()

        assert config.fetch_concurrency == 8
        assert config.api_base_url == "https://api.github.com"
        assert config.github_token is None
        assert config.max_file_size_bytes == 1024 * 1024
        assert config.max_workers >= 1

    def test_to_dict_masks_token(self):
        """The token never appears in serialized config."""
        config = AnalyzerConfig(github_token="ghp_secret")

        assert config.to_dict()["github_token"] == "***"
        assert "ghp_secret" not in json.dumps(config.to_dict())


class TestConfigLoader:
    """Tests for loading config files."""

    def test_no_config_file(self, temp_dir: Path):
        """Without a file, defaults apply."""
        loader = ConfigLoader(temp_dir)
        config = loader.load(environ={})

        assert loader.config_file is None
        assert config.fetch_concurrency == 8

    def test_json_config_file(self, temp_dir: Path):
        """Values are read from .repo-architecture.json."""
        (temp_dir / ".repo-architecture.json").write_text(
            json.dumps({"fetch_concurrency": 2, "extra_skip_dirs": ["vendor"]})
        )

        config = load_config(temp_dir, environ={})

        assert config.fetch_concurrency == 2
        assert config.extra_skip_dirs == ["vendor"]

    def test_yaml_config_file(self, temp_dir: Path):
        """Values are read from .repo-architecture.yaml."""
        (temp_dir / ".repo-architecture.yaml").write_text("max_workers: 3\nrequest_timeout_seconds: 5\n")

        config = load_config(temp_dir, environ={})

        assert config.max_workers == 3
        assert config.request_timeout_seconds == 5

    def test_json_takes_precedence_over_yaml(self, temp_dir: Path):
        """The first config file found wins."""
        (temp_dir / ".repo-architecture.json").write_text('{"max_workers": 1}')
        (temp_dir / ".repo-architecture.yml").write_text("max_workers: 9\n")

        assert load_config(temp_dir, environ={}).max_workers == 1

    def test_environment_overrides_file(self, temp_dir: Path):
        """Environment variables beat the config file."""
        (temp_dir / ".repo-architecture.json").write_text('{"fetch_concurrency": 2}')

        config = load_config(
            temp_dir,
            environ={"REPO_ARCH_FETCH_CONCURRENCY": "5", "GITHUB_TOKEN": "tok"},
        )

        assert config.fetch_concurrency == 5
        assert config.github_token == "tok"

    def test_explicit_overrides_win(self, temp_dir: Path):
        """Explicit values beat everything; None values are ignored."""
        config = load_config(
            temp_dir,
            environ={"REPO_ARCH_MAX_WORKERS": "4"},
            max_workers=2,
            github_token=None,
        )

        assert config.max_workers == 2
        assert config.github_token is None

    def test_malformed_yaml_raises(self, temp_dir: Path):
        """Unparsable config files raise ConfigError."""
        (temp_dir / ".repo-architecture.yaml").write_text("max_workers: [1\n")

        with pytest.raises(ConfigError):
            load_config(temp_dir, environ={})

    def test_non_mapping_file_raises(self, temp_dir: Path):
        """A config file must hold a mapping."""
        (temp_dir / ".repo-architecture.json").write_text("[1, 2]")

        with pytest.raises(ConfigError, match="mapping"):
            load_config(temp_dir, environ={})

    def test_invalid_values_raise_with_every_problem(self, temp_dir: Path):
        """Every validation problem is reported at once."""
        (temp_dir / ".repo-architecture.json").write_text(
            json.dumps({"max_workers": 0, "fetch_concurrency": "fast", "colour": "blue"})
        )

        with pytest.raises(ConfigError) as exc_info:
            load_config(temp_dir, environ={})

        problems = exc_info.value.problems
        assert len(problems) == 3
        assert any("colour" in p for p in problems)

    def test_non_numeric_environment_value(self):
        """A non-numeric environment value raises ConfigError."""
        with pytest.raises(ConfigError):
            AnalyzerConfig.from_env({"REPO_ARCH_MAX_WORKERS": "many"})


class TestValidateConfigData:
    """Tests for validate_config_data."""

    def test_valid(self):
        """Valid data has no problems."""
        assert validate_config_data({"max_workers": 2, "api_base_url": "https://x"}) == []

    def test_booleans_are_not_integers(self):
        """True is rejected where an integer is expected."""
        assert validate_config_data({"max_workers": True}) == ["'max_workers' must be an integer"]

    def test_list_items_must_be_strings(self):
        """List fields hold strings."""
        problems = validate_config_data({"extra_skip_dirs": ["ok", 3]})

        assert problems == ["'extra_skip_dirs[1]' must be a string"]


# =============================================================================
# ERRORS
# =============================================================================

class TestErrors:
    """Tests for the exception hierarchy."""

    def test_to_dict(self):
        """Errors serialize with code, message and details."""
        error = RepositoryNotFoundError("Not found: x", "https://api.test/x", 404)

        assert error.to_dict() == {
            "error_code": "repository_not_found",
            "message": "Not found: x",
            "details": {"url": "https://api.test/x", "status_code": 404},
        }

    def test_rate_limit_details(self):
        """Rate-limit errors carry reset time and remaining quota."""
        error = RateLimitError("limited", "u", 403, reset_at=10, remaining=0)

        assert isinstance(error, SourceFetchError)
        assert error.error_code is AnalysisErrorCode.RATE_LIMITED
        assert error.details["reset_at"] == 10
        assert error.details["remaining"] == 0

    def test_invalid_url_message(self):
        """The offending URL is part of the message."""
        error = InvalidRepositoryURLError("ftp://nowhere")

        assert "ftp://nowhere" in str(error)
        assert error.details == {"url": "ftp://nowhere"}


# =============================================================================
# PROGRESS
# =============================================================================

class TestProgressReporter:
    """Tests for ProgressReporter."""

    def test_forwards_reports(self):
        """Reports reach the callback in order."""
        received = []
        reporter = ProgressReporter(received.append)

        reporter.report(ProgressStage.FETCHING, 10, "Loading")
        reporter.report(ProgressStage.PARSING, 50, "Parsing a.js", current_file="a.js")

        assert [r.stage for r in received] == ["fetching", "parsing"]
        assert received[1].current_file == "a.js"
        assert received[1].to_dict()["currentFile"] == "a.js"
        assert "currentFile" not in received[0].to_dict()

    def test_never_goes_backwards(self):
        """A lower percentage is raised to the last one reported."""
        reporter = ProgressReporter()

        reporter.report(ProgressStage.PARSING, 60, "a")
        update = reporter.report(ProgressStage.PARSING, 45, "b")

        assert update.progress == 60

    def test_clamped_to_range(self):
        """Percentages are clamped to 0-100."""
        reporter = ProgressReporter()

        assert reporter.report(ProgressStage.FETCHING, -5, "a").progress == 0
        assert reporter.report(ProgressStage.COMPLETE, 150, "b").progress == 100

    def test_without_callback(self):
        """Reports are kept in history without a callback."""
        reporter = ProgressReporter()
        reporter.report(ProgressStage.FETCHING, 5, "a")

        assert len(reporter.history) == 1
        assert reporter.last_progress == 5
