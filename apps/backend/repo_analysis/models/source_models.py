"""
Source Input Models
===================

The input side of an analysis: a tree of files and folders (local or
remote) and the flat, decoded files the extractors consume.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable

ContentFetcher = Callable[[], Awaitable[str]]


class EntryKind(Enum):
    """Kinds of entries in a source tree."""

    FILE = "file"
    FOLDER = "folder"


@dataclass
class SourceFile:
    """A decoded source file ready for extraction."""

    path: str
    content: str
    size: int = 0

    @property
    def extension(self) -> str:
        name = self.path.rsplit("/", 1)[-1]
        if "." not in name:
            return ""
        return "." + name.rsplit(".", 1)[-1].lower()

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {"path": self.path, "content": self.content, "size": self.size}

    @classmethod
    def from_dict(cls, data: dict) -> "SourceFile":
        """Load from dict."""
        content = data.get("content", "")
        return cls(
            path=data.get("path", ""),
            content=content,
            size=data.get("size", len(content.encode("utf-8"))),
        )


@dataclass
class SourceEntry:
    """
    One node of an input tree.

    A file entry either carries its decoded ``content`` or a ``fetch``
    coroutine factory that retrieves it later; folders carry ``children``.
    """

    path: str
    name: str = ""
    kind: str = EntryKind.FILE.value
    content: str | None = None
    size: int = 0
    children: list["SourceEntry"] = field(default_factory=list)
    fetch: ContentFetcher | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE.value

    @property
    def is_folder(self) -> bool:
        return self.kind == EntryKind.FOLDER.value

    async def load_content(self) -> str:
        """Return the entry's content, fetching it if needed."""
        if self.content is not None:
            return self.content
        if self.fetch is None:
            raise ValueError(f"Entry {self.path} has neither content nor a fetch callback")
        self.content = await self.fetch()
        return self.content

    # Names never read from a local directory
    HIDDEN_PREFIX = "."
    LOCAL_SKIP_SUFFIXES = (".log", ".lock")
    LOCAL_SKIP_NAMES = {"package-lock.json", "yarn.lock", "pnpm-lock.yaml"}

    @classmethod
    def from_directory(
        cls, root: Path | str, skip_dirs: Iterable[str] = ()
    ) -> list["SourceEntry"]:
        """
        Build an entry tree from a local directory.

        Hidden files and folders, logs, lock files and env files are left
        out. Symlinked folders are never followed, and folders named in
        ``skip_dirs`` are not descended into. Folders sort before files,
        then names case-insensitively. File contents are read lazily when
        the analyzer asks for them.

        Args:
            root: Directory to read.
            skip_dirs: Folder names to prune from the walk.

        Returns:
            Top-level entries of the tree, with paths relative to ``root``.
        """
        root_path = Path(root).resolve()
        if not root_path.is_dir():
            raise NotADirectoryError(f"Not a directory: {root_path}")
        return cls._read_directory(root_path, root_path, frozenset(skip_dirs))

    @classmethod
    def _read_directory(
        cls, directory: Path, root: Path, skip_dirs: frozenset[str]
    ) -> list["SourceEntry"]:
        folders: list[SourceEntry] = []
        files: list[SourceEntry] = []

        for child in directory.iterdir():
            name = child.name
            if name.startswith(cls.HIDDEN_PREFIX) or name.startswith(".env"):
                continue
            relative = child.relative_to(root).as_posix()

            if child.is_dir():
                if child.is_symlink() or name in skip_dirs:
                    continue
                folders.append(
                    cls(
                        path=relative,
                        name=name,
                        kind=EntryKind.FOLDER.value,
                        children=cls._read_directory(child, root, skip_dirs),
                    )
                )
            elif child.is_file():
                if name in cls.LOCAL_SKIP_NAMES or name.endswith(cls.LOCAL_SKIP_SUFFIXES):
                    continue
                files.append(
                    cls(
                        path=relative,
                        name=name,
                        size=child.stat().st_size,
                        fetch=_file_reader(child),
                    )
                )

        folders.sort(key=lambda entry: entry.name.lower())
        files.sort(key=lambda entry: entry.name.lower())
        return folders + files


def _file_reader(path: Path) -> ContentFetcher:
    async def read() -> str:
        return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")

    return read
