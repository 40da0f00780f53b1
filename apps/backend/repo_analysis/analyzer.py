"""
Architecture Analyzer
=====================

Pipeline orchestrator: scan -> per-file extract -> resolve -> group.

The analyzer itself holds only configuration. Every call builds a fresh
``AnalysisRun`` that owns the run's working collections, so one analyzer
may serve concurrent requests from several threads or tasks.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections import Counter
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import httpx

from .config import AnalyzerConfig
from .extraction.base import FileExtraction
from .extraction.registry import LanguageExtractor
from .graph.boundaries import BoundaryGrouper
from .graph.graph_builder import GraphBuilder
from .models.architecture_data import ArchitectureData, ArchitectureMetadata
from .models.source_models import SourceEntry, SourceFile
from .progress import ProgressCallback, ProgressReporter, ProgressStage
from .scanning.source_scanner import SourceScanner
from .sources.github import GitHubSourceProvider, parse_repository_url

logger = logging.getLogger(__name__)

# Progress percentages at stage boundaries
PARSING_START = 40.0
PARSING_SPAN = 40.0
RESOLVING_AT = 80.0
ENRICHING_AT = 85.0
GENERATING_AT = 90.0
LOCAL_FETCH_END = 20.0
REMOTE_FETCH_END = 30.0

MAIN_LANGUAGE_COUNT = 3


@dataclass
class AnalysisRun:
    """Working state of a single analysis; discarded once the snapshot is built."""

    source_identifier: str
    reporter: ProgressReporter
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    files: list[SourceFile] = field(default_factory=list)
    extractions: list[FileExtraction] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def main_languages(files: Iterable[SourceFile], limit: int = MAIN_LANGUAGE_COUNT) -> tuple[str, ...]:
    """Most frequent file extensions, without the dot; ties keep first-seen order."""
    counts = Counter(f.extension.lstrip(".") for f in files if f.extension)
    return tuple(extension for extension, _ in counts.most_common(limit))


class ArchitectureAnalyzer:
    """
    Analyzes a set of source files into an ``ArchitectureData`` snapshot.

    Example:
        analyzer = ArchitectureAnalyzer(load_config())
        data = analyzer.analyze_files(files, source_identifier="my-project")
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        progress_callback: ProgressCallback | None = None,
        extractor: LanguageExtractor | None = None,
    ):
        self.config = config or AnalyzerConfig()
        self.progress_callback = progress_callback
        self.extractor = extractor or LanguageExtractor()

    def new_run(self, source_identifier: str, progress_callback: ProgressCallback | None = None) -> AnalysisRun:
        return AnalysisRun(
            source_identifier=source_identifier,
            reporter=ProgressReporter(progress_callback or self.progress_callback),
        )

    def _worker_count(self, file_count: int) -> int:
        return max(1, min(file_count, os.cpu_count() or 1, self.config.max_workers))

    # =========================================================================
    # Entry points
    # =========================================================================

    def analyze_files(
        self,
        files: Iterable[SourceFile],
        source_identifier: str = "local",
        progress_callback: ProgressCallback | None = None,
    ) -> ArchitectureData:
        """
        Analyze already-decoded files.

        Args:
            files: Files with paths relative to the repository root
            source_identifier: Name or URL recorded in the metadata
            progress_callback: Overrides the analyzer's callback for this run

        Returns:
            Frozen ArchitectureData
        """
        run = self.new_run(source_identifier, progress_callback)
        scanner = SourceScanner(self.config)
        run.files = scanner.scan_files(files)
        run.reporter.report(ProgressStage.FETCHING, LOCAL_FETCH_END, f"Loaded {len(run.files)} files")

        run.extractions = self._extract_in_pool(run)
        return self._finish(run)

    async def analyze_entries(
        self,
        entries: list[SourceEntry],
        source_identifier: str = "local",
        progress_callback: ProgressCallback | None = None,
        fetch_end: float = LOCAL_FETCH_END,
    ) -> ArchitectureData:
        """
        Analyze an entry tree, loading lazy entries first.

        Args:
            entries: Top-level entries of the tree (or a flat list)
            source_identifier: Name or URL recorded in the metadata
            progress_callback: Overrides the analyzer's callback for this run
            fetch_end: Progress percentage reached when loading completes

        Returns:
            Frozen ArchitectureData

        Raises:
            RateLimitError: If a fetch was rate limited
        """
        run = self.new_run(source_identifier, progress_callback)
        scanner = SourceScanner(self.config)
        relevant = scanner.scan(entries)
        total = len(relevant)
        run.reporter.report(ProgressStage.FETCHING, 0, f"Loading {total} files")

        def on_loaded(entry: SourceEntry, loaded: int) -> None:
            run.reporter.report(
                ProgressStage.FETCHING,
                fetch_end * loaded / total,
                f"Loaded {entry.path}",
                current_file=entry.path,
            )

        result = await scanner.load(relevant, on_loaded=on_loaded)
        run.files = result.files
        run.skipped = result.skipped
        if run.skipped:
            logger.warning("Skipped %d files that could not be loaded", len(run.skipped))
        run.reporter.report(ProgressStage.FETCHING, fetch_end, f"Loaded {len(run.files)} files")

        run.extractions = await self._extract_async(run)
        return self._finish(run)

    async def analyze_directory(
        self,
        path: Path | str,
        progress_callback: ProgressCallback | None = None,
    ) -> ArchitectureData:
        """Analyze a local directory."""
        root = Path(path).resolve()
        skip_dirs = SourceScanner(self.config).skip_dirs
        entries = await asyncio.to_thread(SourceEntry.from_directory, root, skip_dirs)
        return await self.analyze_entries(entries, root.name or str(root), progress_callback)

    async def analyze_repository(
        self,
        url: str,
        token: str | None = None,
        progress_callback: ProgressCallback | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ArchitectureData:
        """
        Analyze a GitHub repository.

        Args:
            url: Repository URL, optionally with ``/tree/<branch>``
            token: Bearer token for the API
            progress_callback: Overrides the analyzer's callback for this run
            transport: Custom httpx transport

        Returns:
            Frozen ArchitectureData

        Raises:
            InvalidRepositoryURLError: If the URL names no repository
            SourceFetchError: If listing the repository fails
        """
        ref = parse_repository_url(url)
        async with GitHubSourceProvider(self.config, token=token, transport=transport) as provider:
            branch, entries = await provider.list_entries(ref)
            logger.info("Analyzing %s@%s", ref.full_name, branch)
            return await self.analyze_entries(
                entries,
                source_identifier=ref.url,
                progress_callback=progress_callback,
                fetch_end=REMOTE_FETCH_END,
            )

    # =========================================================================
    # Stages
    # =========================================================================

    def _extract_in_pool(self, run: AnalysisRun) -> list[FileExtraction]:
        """Extract every file on a worker pool; results keep input order."""
        files = run.files
        results: list[FileExtraction | None] = [None] * len(files)
        run.reporter.report(ProgressStage.PARSING, PARSING_START, f"Extracting components from {len(files)} files")
        if not files:
            return []

        with ThreadPoolExecutor(max_workers=self._worker_count(len(files))) as executor:
            futures = {
                executor.submit(self.extractor.extract, f.path, f.content): index
                for index, f in enumerate(files)
            }
            for done, future in enumerate(as_completed(futures), start=1):
                index = futures[future]
                results[index] = future.result()
                self._report_parsed(run, files[index].path, done, len(files))

        return [r for r in results if r is not None]

    async def _extract_async(self, run: AnalysisRun) -> list[FileExtraction]:
        """Same as ``_extract_in_pool`` without blocking the event loop."""
        files = run.files
        results: list[FileExtraction | None] = [None] * len(files)
        run.reporter.report(ProgressStage.PARSING, PARSING_START, f"Extracting components from {len(files)} files")
        if not files:
            return []

        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=self._worker_count(len(files))) as executor:

            async def extract_one(index: int) -> int:
                f = files[index]
                results[index] = await loop.run_in_executor(executor, self.extractor.extract, f.path, f.content)
                return index

            tasks = [extract_one(index) for index in range(len(files))]
            for done, next_done in enumerate(asyncio.as_completed(tasks), start=1):
                index = await next_done
                self._report_parsed(run, files[index].path, done, len(files))

        return [r for r in results if r is not None]

    def _report_parsed(self, run: AnalysisRun, path: str, done: int, total: int) -> None:
        run.reporter.report(
            ProgressStage.PARSING,
            PARSING_START + PARSING_SPAN * done / total,
            f"Parsing {path}",
            current_file=path,
        )

    def _finish(self, run: AnalysisRun) -> ArchitectureData:
        """Resolve, enrich and group the run's extractions into a snapshot."""
        reporter = run.reporter
        builder = GraphBuilder()

        reporter.report(ProgressStage.ANALYZING, RESOLVING_AT, "Resolving dependencies")
        graph = builder.build(run.extractions)

        reporter.report(ProgressStage.ANALYZING, ENRICHING_AT, "Enriching component descriptions")
        builder.enrich(graph)

        reporter.report(ProgressStage.GENERATING, GENERATING_AT, "Grouping components into boundaries")
        boundaries = BoundaryGrouper().group(graph.components)

        metadata = ArchitectureMetadata(
            total_files=len(run.files),
            total_components=len(graph.components),
            analysis_date=run.started_at.isoformat(),
            source_identifier=run.source_identifier,
            main_languages=main_languages(run.files),
        )
        data = ArchitectureData.create(graph.components, boundaries, graph.relationships, metadata)

        reporter.report(
            ProgressStage.COMPLETE,
            100,
            f"Analysis complete: {len(data.components)} components, {len(data.relationships)} relationships",
        )
        return data
