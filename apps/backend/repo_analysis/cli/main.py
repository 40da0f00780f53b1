"""
Repository Architecture CLI
===========================

Command-line entry point.

Usage:
    repo-architecture analyze <path> [--format json|mermaid|svg|force-svg]
    repo-architecture analyze --github <url> [--token TOKEN]
    repo-architecture analyze <path> --format mermaid --view component --boundary boundary_data

Output goes to stdout unless ``--output`` names a file. ``--summary``
writes graph metrics to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from ..analyzer import ArchitectureAnalyzer
from ..config import load_config
from ..errors import ArchitectureAnalysisError
from ..graph.metrics import calculate_metrics
from ..models.architecture_data import ArchitectureData
from ..renderers.render import DiagramView, render_diagram

logger = logging.getLogger(__name__)

FORMATS = ("json", "mermaid", "svg", "force-svg")
MERMAID_VIEWS = {
    "system": DiagramView.MERMAID_SYSTEM,
    "component": DiagramView.MERMAID_COMPONENT,
    "c4": DiagramView.MERMAID_C4,
    "dataflow": DiagramView.MERMAID_DATAFLOW,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repo-architecture",
        description="Analyze a repository's structure and render architecture diagrams",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Log debug output")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only log errors")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a local directory or GitHub repository")
    analyze_parser.add_argument("path", nargs="?", help="Local directory to analyze")
    analyze_parser.add_argument("--github", metavar="URL", help="GitHub repository URL to analyze instead")
    analyze_parser.add_argument("--token", help="GitHub token (defaults to $GITHUB_TOKEN)")
    analyze_parser.add_argument("--format", choices=FORMATS, default="json", help="Output format")
    analyze_parser.add_argument(
        "--view", choices=sorted(MERMAID_VIEWS), default="system", help="Mermaid view (with --format mermaid)"
    )
    analyze_parser.add_argument("--boundary", help="Boundary id for the component view, e.g. boundary_business")
    analyze_parser.add_argument("--output", "-o", help="Write output to this file")
    analyze_parser.add_argument("--summary", action="store_true", help="Print graph metrics to stderr")
    analyze_parser.add_argument("--max-workers", type=int, help="Extraction worker cap")

    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


async def run_analysis(args: argparse.Namespace) -> ArchitectureData:
    project_dir = Path(args.path) if args.path else None
    config = load_config(
        project_dir=project_dir,
        github_token=args.token,
        max_workers=args.max_workers,
    )
    analyzer = ArchitectureAnalyzer(config)
    if args.github:
        return await analyzer.analyze_repository(args.github, token=config.github_token)
    return await analyzer.analyze_directory(project_dir)


def render_output(data: ArchitectureData, args: argparse.Namespace) -> str:
    """
    Produce the requested output text.

    Raises:
        ArchitectureAnalysisError: If the diagram could not be rendered
    """
    if args.format == "json":
        return data.to_json()

    if args.format == "mermaid":
        result = render_diagram(data, MERMAID_VIEWS[args.view], boundary_id=args.boundary)
    elif args.format == "svg":
        result = render_diagram(data, DiagramView.BLOCK)
    else:
        result = render_diagram(data, DiagramView.FORCE_SVG)

    if not result.ok:
        raise ArchitectureAnalysisError(f"Could not render {result.view}: {result.error}")
    if args.format == "svg":
        return result.content.svg
    return result.content


def format_summary(data: ArchitectureData) -> str:
    metrics = calculate_metrics(data)
    lines = [
        f"Source: {data.metadata.source_identifier}",
        f"Files: {data.metadata.total_files}",
        f"Components: {metrics.total_components}",
        f"Relationships: {metrics.total_relationships}",
        f"Main languages: {', '.join(data.metadata.main_languages) or '-'}",
        f"Average complexity: {metrics.average_complexity:.2f} (max {metrics.max_complexity})",
        "Layers: " + json.dumps(metrics.layer_distribution),
        "Types: " + json.dumps(metrics.type_distribution),
        f"Orphan components: {len(metrics.orphan_components)}",
        f"Circular dependencies: {len(metrics.circular_dependencies)}",
    ]
    if metrics.most_connected:
        lines.append("Most connected:")
        lines.extend(f"  {component_id} ({count})" for component_id, count in metrics.most_connected)
    return "\n".join(lines)


def cmd_analyze(args: argparse.Namespace) -> int:
    if bool(args.path) == bool(args.github):
        print("Error: give either a local path or --github URL", file=sys.stderr)
        return 2

    try:
        data = asyncio.run(run_analysis(args))
        output = render_output(data, args)
    except ArchitectureAnalysisError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except (FileNotFoundError, NotADirectoryError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info("Wrote %s output to %s", args.format, args.output)
    else:
        sys.stdout.write(output if output.endswith("\n") else output + "\n")

    if args.summary:
        print(format_summary(data), file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    if not args.command:
        parser.print_help()
        return 2

    commands = {
        "analyze": cmd_analyze,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
