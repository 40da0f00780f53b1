#!/usr/bin/env python3
"""
Tests for the Command-Line Interface
====================================

Tests the repo-architecture command including:
- JSON, Mermaid and SVG output
- Writing output to a file
- Graph summary on stderr
- Argument validation and error exit codes
"""

import json
from pathlib import Path

import pytest
from repo_analysis.cli.main import build_parser, main


class TestArgumentParsing:
    """Tests for build_parser."""

    def test_defaults(self):
        """Format defaults to JSON and the Mermaid view to system."""
        args = build_parser().parse_args(["analyze", "."])

        assert args.command == "analyze"
        assert args.format == "json"
        assert args.view == "system"
        assert args.summary is False

    def test_verbose_and_quiet_are_exclusive(self):
        """--verbose and --quiet cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--verbose", "--quiet", "analyze", "."])

    def test_unknown_format_rejected(self):
        """Only the listed formats are accepted."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["analyze", ".", "--format", "png"])


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_json_output(self, web_project: Path, capsys):
        """JSON output is the serialized snapshot."""
        exit_code = main(["analyze", str(web_project)])
        captured = capsys.readouterr()

        assert exit_code == 0
        payload = json.loads(captured.out)
        assert payload["metadata"]["sourceIdentifier"] == "sample_web_project"
        assert payload["metadata"]["totalComponents"] == len(payload["components"])
        assert {"from", "to", "type", "weight"} <= set(payload["relationships"][0])

    def test_mermaid_views(self, web_project: Path, capsys):
        """Each Mermaid view starts with its diagram header."""
        headers = {"system": "graph LR", "component": "graph TD", "c4": "graph TB", "dataflow": "flowchart TD"}

        for view, header in headers.items():
            assert main(["analyze", str(web_project), "--format", "mermaid", "--view", view]) == 0
            assert capsys.readouterr().out.startswith(header + "\n")

    def test_component_view_for_boundary(self, web_project: Path, capsys):
        """--boundary scopes the component view."""
        exit_code = main([
            "analyze", str(web_project), "--format", "mermaid", "--view", "component",
            "--boundary", "boundary_data",
        ])
        out = capsys.readouterr().out

        assert exit_code == 0
        assert "module_src_components_App_jsx" not in out

    def test_unknown_boundary(self, web_project: Path, capsys):
        """An unknown boundary is reported and exits with 1."""
        exit_code = main([
            "analyze", str(web_project), "--format", "mermaid", "--view", "component",
            "--boundary", "boundary_nowhere",
        ])
        captured = capsys.readouterr()

        assert exit_code == 1
        assert captured.out == ""
        assert "Unknown boundary: boundary_nowhere" in captured.err

    def test_svg_to_file(self, web_project: Path, temp_dir: Path, capsys):
        """--output writes to the file instead of stdout."""
        target = temp_dir / "diagram.svg"

        exit_code = main(["analyze", str(web_project), "--format", "svg", "--output", str(target)])

        assert exit_code == 0
        assert capsys.readouterr().out == ""
        assert target.read_text(encoding="utf-8").startswith("<svg ")

    def test_force_svg(self, web_project: Path, capsys):
        """The force layout renders as standalone SVG."""
        assert main(["analyze", str(web_project), "--format", "force-svg"]) == 0
        out = capsys.readouterr().out

        assert out.startswith("<svg ")
        assert '<g class="legend"' in out

    def test_summary_on_stderr(self, web_project: Path, capsys):
        """--summary prints metrics to stderr, leaving stdout for output."""
        exit_code = main(["analyze", str(web_project), "--summary"])
        captured = capsys.readouterr()

        assert exit_code == 0
        json.loads(captured.out)
        assert "Source: sample_web_project" in captured.err
        assert "Files: 9" in captured.err
        assert "Most connected:" in captured.err

    def test_config_file_is_read(self, web_project: Path, capsys):
        """A project config file extends the skipped directories."""
        (web_project / ".repo-architecture.json").write_text('{"extra_skip_dirs": ["models"]}')

        assert main(["analyze", str(web_project)]) == 0
        payload = json.loads(capsys.readouterr().out)

        assert not [c for c in payload["components"] if c["file"].startswith("src/models/")]


class TestErrors:
    """Tests for error exit codes."""

    def test_no_command(self, capsys):
        """Without a command, help is printed and the exit code is 2."""
        assert main([]) == 2
        assert "analyze" in capsys.readouterr().out

    def test_needs_path_or_github(self, capsys):
        """Exactly one source must be given."""
        assert main(["analyze"]) == 2
        assert main(["analyze", ".", "--github", "https://github.com/acme/shop"]) == 2
        assert "either a local path or --github" in capsys.readouterr().err

    def test_missing_directory(self, temp_dir: Path, capsys):
        """A missing directory exits with 1."""
        exit_code = main(["analyze", str(temp_dir / "absent")])

        assert exit_code == 1
        assert capsys.readouterr().err.startswith("Error: ")

    def test_invalid_github_url(self, capsys):
        """A malformed repository URL exits with 1 before any request."""
        exit_code = main(["analyze", "--github", "https://example.com/x"])

        assert exit_code == 1
        assert "Invalid repository URL: https://example.com/x" in capsys.readouterr().err

    def test_invalid_config_file(self, web_project: Path, capsys):
        """An invalid config file is reported as an error."""
        (web_project / ".repo-architecture.json").write_text('{"max_workers": "lots"}')

        assert main(["analyze", str(web_project)]) == 1
        assert "Config validation errors" in capsys.readouterr().err
