"""
Source Scanner
==============

Flattens an input tree, drops build artifacts and unsupported files,
and loads the content of the remaining entries (fetching lazily where
an entry only carries a fetch callback).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ..config import AnalyzerConfig
from ..errors import RateLimitError
from ..models.source_models import SourceEntry, SourceFile

logger = logging.getLogger(__name__)


# Extensions the extractors understand
SUPPORTED_EXTENSIONS = {
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
    ".py",
    ".c", ".cpp", ".cc", ".h", ".hpp",
    ".json",
    ".css", ".scss",
    ".html", ".htm",
    ".md",
    ".yml", ".yaml",
}

# Directories never descended into
SKIP_DIRS = {
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
    ".next",
    ".nuxt",
    ".vscode",
    ".idea",
    "__pycache__",
    ".venv",
    "venv",
}

# Exact file names that are never analyzed
IGNORED_FILES = {
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
}


def file_extension(path: str) -> str:
    """Lower-cased extension of the last path segment, with the dot."""
    name = path.rsplit("/", 1)[-1]
    if "." not in name.lstrip("."):
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()


@dataclass
class LoadResult:
    """Outcome of loading scanned entries."""

    files: list[SourceFile] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class SourceScanner:
    """Filters an input tree down to analyzable source files."""

    def __init__(self, config: AnalyzerConfig | None = None):
        self.config = config or AnalyzerConfig()
        self.skip_dirs = SKIP_DIRS | set(self.config.extra_skip_dirs)
        self.ignored_files = IGNORED_FILES | set(self.config.extra_ignored_files)

    def is_relevant(self, path: str, size: int = 0) -> bool:
        """
        Check whether a file path should be analyzed.

        Args:
            path: Slash-separated path relative to the repository root
            size: Size in bytes, when known

        Returns:
            True if the file has a supported extension, lives outside every
            skipped directory, is not ignore-listed and is within the size cap.
        """
        normalized = path.replace("\\", "/").strip("/")
        parts = normalized.split("/")
        if any(part in self.skip_dirs for part in parts[:-1]):
            return False
        if parts[-1] in self.ignored_files:
            return False
        if file_extension(normalized) not in SUPPORTED_EXTENSIONS:
            return False
        if size > self.config.max_file_size_bytes:
            logger.info("Skipping %s: %d bytes exceeds the size limit", path, size)
            return False
        return True

    def scan(self, entries: Iterable[SourceEntry]) -> list[SourceEntry]:
        """
        Flatten a tree into the ordered list of relevant file entries.

        Skipped directories are pruned without visiting their children.
        """
        result: list[SourceEntry] = []
        self._collect(entries, result)
        return result

    def _collect(self, entries: Iterable[SourceEntry], result: list[SourceEntry]) -> None:
        for entry in entries:
            if entry.is_folder:
                if entry.name in self.skip_dirs:
                    continue
                self._collect(entry.children, result)
            elif self.is_relevant(entry.path, entry.size):
                result.append(entry)

    def scan_files(self, files: Iterable[SourceFile]) -> list[SourceFile]:
        """Filter an already-flat list of decoded files."""
        return [f for f in files if self.is_relevant(f.path, f.size)]

    async def load(
        self,
        entries: list[SourceEntry],
        on_loaded: Callable[[SourceEntry, int], None] | None = None,
    ) -> LoadResult:
        """
        Load the content of scanned entries concurrently.

        At most ``config.fetch_concurrency`` fetches are in flight. A failed
        fetch is logged and skipped. A rate-limit response stops new fetches
        for the rest of the load and is re-raised once in-flight fetches end.

        Args:
            entries: Entries returned by ``scan``
            on_loaded: Called with each entry and the count loaded so far

        Returns:
            LoadResult with files in input order

        Raises:
            RateLimitError: If any fetch was rate limited
        """
        semaphore = asyncio.Semaphore(self.config.fetch_concurrency)
        stop = asyncio.Event()
        rate_limit: list[RateLimitError] = []
        contents: list[str | None] = [None] * len(entries)
        skipped: list[str] = []
        loaded = 0

        async def load_one(index: int, entry: SourceEntry) -> None:
            nonlocal loaded
            async with semaphore:
                if stop.is_set():
                    return
                try:
                    contents[index] = await entry.load_content()
                except RateLimitError as e:
                    logger.warning("Rate limited while fetching %s; no further fetches", entry.path)
                    rate_limit.append(e)
                    stop.set()
                    return
                except Exception as e:
                    logger.warning("Skipping %s: %s", entry.path, e)
                    skipped.append(entry.path)
                    return
            loaded += 1
            if on_loaded is not None:
                on_loaded(entry, loaded)

        await asyncio.gather(*(load_one(i, entry) for i, entry in enumerate(entries)))

        if rate_limit:
            raise rate_limit[0]

        files = []
        for entry, content in zip(entries, contents):
            if content is None:
                continue
            size = entry.size or len(content.encode("utf-8"))
            files.append(SourceFile(path=entry.path, content=content, size=size))
        return LoadResult(files=files, skipped=skipped)
