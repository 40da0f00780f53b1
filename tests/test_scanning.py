#!/usr/bin/env python3
"""
Tests for Source Scanning
=========================

Tests the input tree model and the scanner including:
- Extension and directory filtering
- Tree flattening and pruning of skipped directories
- Reading a local directory into an entry tree
- Concurrent lazy loading, skipped failures and rate-limit stops
"""

import asyncio
from pathlib import Path

import pytest
from repo_analysis.config import AnalyzerConfig
from repo_analysis.errors import RateLimitError
from repo_analysis.models.source_models import EntryKind, SourceEntry, SourceFile
from repo_analysis.scanning.source_scanner import SourceScanner, file_extension


def file_entry(path: str, content: str = "x", size: int = 1) -> SourceEntry:
    return SourceEntry(path=path, content=content, size=size)


def folder_entry(path: str, children: list[SourceEntry]) -> SourceEntry:
    return SourceEntry(path=path, kind=EntryKind.FOLDER.value, children=children)


# =============================================================================
# FILTERING
# =============================================================================

class TestFileExtension:
    """Tests for extension detection."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/app.TS", ".ts"),
            ("a/b/c.test.js", ".js"),
            ("Makefile", ""),
            (".gitignore", ""),
            ("dir.v2/README", ""),
        ],
    )
    def test_extension(self, path, expected):
        """Extension of the last segment, lower-cased."""
        assert file_extension(path) == expected


class TestRelevance:
    """Tests for SourceScanner.is_relevant."""

    def test_supported_extensions(self):
        """Source files in supported languages are relevant."""
        scanner = SourceScanner()

        for path in ["a.js", "b.tsx", "c.py", "d.hpp", "e.json", "f.scss", "g.html", "h.md", "i.yaml"]:
            assert scanner.is_relevant(path), path

    def test_unsupported_extensions(self):
        """Binary and unknown files are dropped."""
        scanner = SourceScanner()

        assert not scanner.is_relevant("logo.png")
        assert not scanner.is_relevant("Makefile")

    def test_skip_directories(self):
        """Files below dependency caches and build output are dropped."""
        scanner = SourceScanner()

        assert not scanner.is_relevant("node_modules/react/index.js")
        assert not scanner.is_relevant("app/dist/bundle.js")
        assert not scanner.is_relevant("pkg/__pycache__/mod.py")
        assert scanner.is_relevant("src/distance.js")

    def test_ignored_files(self):
        """Lock files are dropped even with a supported extension."""
        scanner = SourceScanner()

        assert not scanner.is_relevant("package-lock.json")
        assert not scanner.is_relevant("web/pnpm-lock.yaml")
        assert scanner.is_relevant("package.json")

    def test_size_limit(self):
        """Files above the configured size cap are dropped."""
        scanner = SourceScanner(AnalyzerConfig(max_file_size_bytes=100))

        assert scanner.is_relevant("a.js", size=100)
        assert not scanner.is_relevant("a.js", size=101)

    def test_extra_skip_dirs_from_config(self):
        """Configured directories are skipped too."""
        scanner = SourceScanner(AnalyzerConfig(extra_skip_dirs=["vendor"]))

        assert not scanner.is_relevant("vendor/lib.js")


class TestScan:
    """Tests for flattening entry trees."""

    def test_flattens_nested_tree_in_order(self):
        """Nested folders flatten depth-first in input order."""
        tree = [
            folder_entry("src", [
                file_entry("src/a.ts"),
                folder_entry("src/lib", [file_entry("src/lib/b.ts")]),
            ]),
            file_entry("README.md"),
        ]

        paths = [entry.path for entry in SourceScanner().scan(tree)]

        assert paths == ["src/a.ts", "src/lib/b.ts", "README.md"]

    def test_prunes_skipped_directories(self):
        """Children of skipped folders are never visited."""
        tree = [
            folder_entry("node_modules", [file_entry("node_modules/x.js")]),
            folder_entry(".git", [file_entry(".git/config.json")]),
            file_entry("index.js"),
        ]

        paths = [entry.path for entry in SourceScanner().scan(tree)]

        assert paths == ["index.js"]

    def test_scan_files(self):
        """Flat decoded files are filtered the same way."""
        files = [
            SourceFile(path="a.py", content=""),
            SourceFile(path="build/out.js", content=""),
            SourceFile(path="image.svg", content=""),
        ]

        assert [f.path for f in SourceScanner().scan_files(files)] == ["a.py"]


# =============================================================================
# LOCAL DIRECTORIES
# =============================================================================

class TestFromDirectory:
    """Tests for SourceEntry.from_directory."""

    def test_builds_sorted_tree(self, temp_dir: Path):
        """Folders come first, then files, case-insensitively by name."""
        (temp_dir / "src").mkdir()
        (temp_dir / "src" / "b.js").write_text("b")
        (temp_dir / "Zeta.md").write_text("z")
        (temp_dir / "alpha.py").write_text("a")

        entries = SourceEntry.from_directory(temp_dir)

        assert [entry.name for entry in entries] == ["src", "alpha.py", "Zeta.md"]
        assert entries[0].is_folder
        assert entries[0].children[0].path == "src/b.js"

    def test_skips_hidden_lock_and_log_files(self, temp_dir: Path):
        """Hidden entries, env files, logs and lock files are left out."""
        (temp_dir / ".git").mkdir()
        (temp_dir / ".git" / "HEAD").write_text("ref")
        (temp_dir / ".env.local").write_text("SECRET=1")
        (temp_dir / "debug.log").write_text("log")
        (temp_dir / "yarn.lock").write_text("lock")
        (temp_dir / "app.js").write_text("app")

        entries = SourceEntry.from_directory(temp_dir)

        assert [entry.name for entry in entries] == ["app.js"]

    def test_content_is_read_lazily(self, temp_dir: Path):
        """File content is loaded on demand."""
        (temp_dir / "app.js").write_text("const a = 1;")

        entry = SourceEntry.from_directory(temp_dir)[0]

        assert entry.content is None
        assert asyncio.run(entry.load_content()) == "const a = 1;"
        assert entry.content == "const a = 1;"

    def test_symlinked_folders_are_not_followed(self, temp_dir: Path):
        """A folder symlink pointing back up the tree is not walked."""
        (temp_dir / "src").mkdir()
        (temp_dir / "src" / "a.js").write_text("export const a = 1;")
        (temp_dir / "src" / "loop").symlink_to(temp_dir, target_is_directory=True)

        entries = SourceEntry.from_directory(temp_dir)
        flattened = SourceScanner().scan(entries)

        assert [entry.name for entry in entries[0].children] == ["a.js"]
        assert [entry.path for entry in flattened] == ["src/a.js"]

    def test_skip_dirs_are_pruned(self, temp_dir: Path):
        """Folders named in skip_dirs are not descended into."""
        (temp_dir / "node_modules" / "react").mkdir(parents=True)
        (temp_dir / "node_modules" / "react" / "index.js").write_text("x")
        (temp_dir / "vendor").mkdir()
        (temp_dir / "vendor" / "lib.js").write_text("x")
        (temp_dir / "app.js").write_text("app")

        entries = SourceEntry.from_directory(temp_dir, skip_dirs={"node_modules", "vendor"})

        assert [entry.name for entry in entries] == ["app.js"]

    def test_not_a_directory(self, temp_dir: Path):
        """A missing directory raises."""
        with pytest.raises(NotADirectoryError):
            SourceEntry.from_directory(temp_dir / "missing")


# =============================================================================
# LOADING
# =============================================================================

def fetching_entry(path: str, result: str | None = None, error: Exception | None = None) -> SourceEntry:
    async def fetch() -> str:
        await asyncio.sleep(0)
        if error is not None:
            raise error
        return result if result is not None else f"// {path}"

    return SourceEntry(path=path, fetch=fetch)


class TestLoad:
    """Tests for SourceScanner.load."""

    def test_loads_in_input_order(self):
        """Loaded files keep the order of the scanned entries."""
        entries = [fetching_entry(f"f{i}.js") for i in range(5)]

        result = asyncio.run(SourceScanner().load(entries))

        assert [f.path for f in result.files] == [f"f{i}.js" for i in range(5)]
        assert result.files[0].content == "// f0.js"
        assert result.skipped == []

    def test_failed_fetch_is_skipped(self):
        """A failing fetch skips that file and keeps the rest."""
        entries = [
            fetching_entry("ok.js"),
            fetching_entry("bad.js", error=OSError("connection reset")),
        ]

        result = asyncio.run(SourceScanner().load(entries))

        assert [f.path for f in result.files] == ["ok.js"]
        assert result.skipped == ["bad.js"]

    def test_rate_limit_stops_and_raises(self):
        """A rate-limit response stops new fetches and surfaces the error."""
        started = []

        def tracked(path: str, error: Exception | None = None) -> SourceEntry:
            async def fetch() -> str:
                started.append(path)
                await asyncio.sleep(0)
                if error is not None:
                    raise error
                return "x"

            return SourceEntry(path=path, fetch=fetch)

        limited = RateLimitError("rate limited", "https://api.test/x", 403, reset_at=123, remaining=0)
        entries = [tracked("first.js", limited)] + [tracked(f"later{i}.js") for i in range(5)]
        scanner = SourceScanner(AnalyzerConfig(fetch_concurrency=1))

        with pytest.raises(RateLimitError) as exc_info:
            asyncio.run(scanner.load(entries))

        assert exc_info.value.reset_at == 123
        assert started == ["first.js"]

    def test_concurrency_is_bounded(self):
        """No more than fetch_concurrency fetches run at once."""
        in_flight = 0
        peak = 0

        def tracked(path: str) -> SourceEntry:
            async def fetch() -> str:
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.001)
                in_flight -= 1
                return "x"

            return SourceEntry(path=path, fetch=fetch)

        entries = [tracked(f"f{i}.js") for i in range(12)]
        scanner = SourceScanner(AnalyzerConfig(fetch_concurrency=3))

        result = asyncio.run(scanner.load(entries))

        assert len(result.files) == 12
        assert peak <= 3

    def test_on_loaded_counts_up(self):
        """The loaded callback receives a running count."""
        counts = []
        entries = [file_entry("a.js"), file_entry("b.js")]

        asyncio.run(SourceScanner().load(entries, on_loaded=lambda entry, n: counts.append(n)))

        assert counts == [1, 2]
