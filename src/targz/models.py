"""Dataclasses shared across targz layers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

EntryKind = Literal["file", "symlink"]


@dataclass(frozen=True)
class ResolvedPaths:
    source_arg_raw: str
    source_abs: Path
    output_arg_raw: str
    output_abs: Path


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    kind: EntryKind
    size: int
    mode: int
    mtime: float
    link_target: str | None = None
    source_abs: Path | None = None

    @property
    def is_symlink(self) -> bool:
        return self.kind == "symlink"


@dataclass(frozen=True)
class ArchiveInventory:
    entries: list[ArchiveEntry]
    skipped_entries_rel: list[str]

    @property
    def file_count(self) -> int:
        return sum(1 for entry in self.entries if entry.kind == "file")

    @property
    def symlink_count(self) -> int:
        return sum(1 for entry in self.entries if entry.is_symlink)


@dataclass(frozen=True)
class ArchiveReadResult:
    entries: list[ArchiveEntry]
    skipped_entries: list[str]


@dataclass(frozen=True)
class CompressResult:
    archive_path: Path
    entries: list[ArchiveEntry]
    skipped_entries_rel: list[str]

    @property
    def entry_count(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ExtractResult:
    output_dir: Path
    entries: list[ArchiveEntry]
    skipped_entries: list[str]

    @property
    def entry_count(self) -> int:
        return len(self.entries)
