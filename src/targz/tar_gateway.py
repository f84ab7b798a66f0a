"""Tar+gzip write/read helpers."""

from __future__ import annotations

from collections.abc import Callable
import fnmatch
import gzip
import logging
import os
import shutil
import stat
import tarfile
from pathlib import Path, PurePosixPath

from .constants import (
    COPY_BUFFER_SIZE,
    DEFAULT_COMPRESS_LEVEL,
    DIRECTORY_MODE,
    PERMISSION_BITS_MASK,
)
from .errors import (
    ArchiveFormatError,
    ArchiveIOError,
    EmptySourceError,
    PathNotADirectoryError,
)
from .fs_gateway import replace_existing_entry
from .models import ArchiveEntry, ArchiveInventory, ArchiveReadResult
from .path_mapping import has_wildcard

logger = logging.getLogger(__name__)


def collect_archive_entries(
    *, source_abs: Path, strip_prefix_abs: Path
) -> ArchiveInventory:
    """Walk ``source_abs`` and plan one archive entry per file or symlink.

    Entry names are the nominal path relative to ``strip_prefix_abs``. The walk
    never descends through a symlinked directory, so every descendant shares
    the prefix even when the prefix itself sits behind a symlink.

    Raises EmptySourceError before anything is written when the source has
    no entries (or a wildcard matches nothing).
    """
    entries: list[ArchiveEntry] = []
    skipped_entries_rel: list[str] = []

    def add_entry(entry_abs: Path, entry_stat: os.stat_result) -> None:
        name = _entry_name(entry_abs, strip_prefix_abs)
        if stat.S_ISLNK(entry_stat.st_mode):
            entries.append(
                ArchiveEntry(
                    name=name,
                    kind="symlink",
                    size=0,
                    mode=stat.S_IMODE(entry_stat.st_mode),
                    mtime=entry_stat.st_mtime,
                    link_target=_resolve_link_target(entry_abs),
                    source_abs=entry_abs,
                )
            )
            return

        if stat.S_ISREG(entry_stat.st_mode):
            entries.append(
                ArchiveEntry(
                    name=name,
                    kind="file",
                    size=entry_stat.st_size,
                    mode=stat.S_IMODE(entry_stat.st_mode),
                    mtime=entry_stat.st_mtime,
                    source_abs=entry_abs,
                )
            )
            return

        logger.warning("Skipping unsupported entry type: %s", entry_abs)
        skipped_entries_rel.append(name)

    def walk_children(children: list[Path]) -> None:
        for child_abs in children:
            child_stat = _lstat(child_abs)
            if stat.S_ISDIR(child_stat.st_mode):
                walk_children(_list_directory(child_abs))
            else:
                add_entry(child_abs, child_stat)

    if has_wildcard(source_abs):
        top_level = _expand_wildcard(source_abs)
        if not top_level:
            raise EmptySourceError(f"No entries match the input pattern: {source_abs}")
    else:
        top_level = _list_directory(source_abs)
        if not top_level:
            raise EmptySourceError(f"Input directory is empty: {source_abs}")

    walk_children(top_level)

    return ArchiveInventory(entries=entries, skipped_entries_rel=skipped_entries_rel)


def write_archive(
    *,
    output_file_abs: Path,
    entries: list[ArchiveEntry],
    compress_level: int = DEFAULT_COMPRESS_LEVEL,
    on_opened: Callable[[], None] | None = None,
) -> None:
    """Write ``entries`` as a tar stream inside gzip inside ``output_file_abs``.

    ``on_opened`` fires once the output file has been created or truncated,
    so callers know from then on a partial file may be left behind. The tar
    writer, the gzip stream and the file are closed in that order; a failing
    close aborts like any other write error.
    """
    try:
        with open(output_file_abs, "wb") as raw_file:
            if on_opened is not None:
                on_opened()
            with gzip.GzipFile(
                fileobj=raw_file, mode="wb", compresslevel=compress_level
            ) as gzip_file, tarfile.open(
                fileobj=gzip_file, mode="w", format=tarfile.PAX_FORMAT
            ) as tar_file:
                for entry in entries:
                    _write_entry(tar_file, entry)
    except tarfile.TarError as exc:
        raise ArchiveFormatError(f"Failed to encode tar archive: {output_file_abs}") from exc
    except OSError as exc:
        raise ArchiveIOError(f"Failed to write tar.gz archive: {output_file_abs}") from exc


def read_archive(*, input_file_abs: Path, output_dir_abs: Path) -> ArchiveReadResult:
    output_real_abs = Path(os.path.realpath(output_dir_abs))
    entries: list[ArchiveEntry] = []
    skipped_entries: list[str] = []

    try:
        with open(input_file_abs, "rb") as raw_file, gzip.GzipFile(
            fileobj=raw_file, mode="rb"
        ) as gzip_file, tarfile.open(fileobj=gzip_file, mode="r|") as tar_file:
            for member in tar_file:
                if member.isdir():
                    logger.debug("Not materializing directory entry %s", member.name)
                    continue
                if not (member.isreg() or member.issym()):
                    logger.warning("Skipping unsupported archive entry: %s", member.name)
                    skipped_entries.append(member.name)
                    continue

                entries.append(
                    _materialize_member(
                        tar_file=tar_file,
                        member=member,
                        output_real_abs=output_real_abs,
                    )
                )
    except gzip.BadGzipFile as exc:
        raise ArchiveFormatError(f"Invalid gzip stream: {input_file_abs}") from exc
    except tarfile.TarError as exc:
        raise ArchiveFormatError(f"Invalid tar archive: {input_file_abs}") from exc
    except (OSError, EOFError) as exc:
        raise ArchiveIOError(f"Failed to read tar.gz archive: {input_file_abs}") from exc

    return ArchiveReadResult(entries=entries, skipped_entries=skipped_entries)


def _write_entry(tar_file: tarfile.TarFile, entry: ArchiveEntry) -> None:
    if entry.source_abs is None:
        raise ArchiveIOError(f"Archive entry has no source path: {entry.name}")

    tar_info = tar_file.gettarinfo(name=os.fspath(entry.source_abs), arcname=entry.name)
    if tar_info is None:
        raise ArchiveIOError(f"Entry changed type while archiving: {entry.source_abs}")

    if entry.is_symlink:
        tar_info.linkname = entry.link_target or ""
        tar_file.addfile(tar_info)
    else:
        with open(entry.source_abs, "rb") as source_file:
            tar_file.addfile(tar_info, source_file)

    logger.debug("Archived %s as %s", entry.source_abs, entry.name)


def _materialize_member(
    *,
    tar_file: tarfile.TarFile,
    member: tarfile.TarInfo,
    output_real_abs: Path,
) -> ArchiveEntry:
    rel_path = _sanitize_member_name(member.name)
    target_abs = output_real_abs.joinpath(*rel_path.parts)
    _validate_inside_output(target_abs.parent, output_real_abs, member.name)

    try:
        os.makedirs(target_abs.parent, mode=DIRECTORY_MODE, exist_ok=True)
        replace_existing_entry(target_abs)
        if member.issym():
            os.symlink(member.linkname, target_abs)
        else:
            _copy_member_payload(tar_file, member, target_abs)
            os.chmod(target_abs, member.mode & PERMISSION_BITS_MASK)
            os.utime(target_abs, (member.mtime, member.mtime))
    except OSError as exc:
        raise ArchiveIOError(f"Failed to extract archive entry: {member.name}") from exc

    logger.debug("Extracted %s to %s", member.name, target_abs)
    return ArchiveEntry(
        name=rel_path.as_posix(),
        kind="symlink" if member.issym() else "file",
        size=member.size,
        mode=member.mode,
        mtime=float(member.mtime),
        link_target=member.linkname if member.issym() else None,
    )


def _copy_member_payload(
    tar_file: tarfile.TarFile, member: tarfile.TarInfo, target_abs: Path
) -> None:
    payload = tar_file.extractfile(member)
    if payload is None:
        raise ArchiveFormatError(f"Archive entry has no payload: {member.name}")

    with payload, open(target_abs, "wb") as target_file:
        try:
            shutil.copyfileobj(payload, target_file, COPY_BUFFER_SIZE)
        except tarfile.ReadError as exc:
            raise ArchiveIOError(f"Archive entry payload is truncated: {member.name}") from exc
        target_file.flush()


def _sanitize_member_name(name: str) -> PurePosixPath:
    normalised = name.replace("\\", "/").lstrip("/")
    parts = [part for part in PurePosixPath(normalised).parts if part != "."]
    if not parts or ".." in parts:
        raise ArchiveFormatError(f"Unsafe archive entry path: {name}")
    return PurePosixPath(*parts)


def _validate_inside_output(directory_abs: Path, output_real_abs: Path, name: str) -> None:
    directory_real_abs = Path(os.path.realpath(directory_abs))
    if directory_real_abs != output_real_abs and output_real_abs not in directory_real_abs.parents:
        raise ArchiveFormatError(f"Archive entry escapes the output directory: {name}")


def _entry_name(entry_abs: Path, strip_prefix_abs: Path) -> str:
    return entry_abs.relative_to(strip_prefix_abs).as_posix()


def _resolve_link_target(link_abs: Path) -> str:
    try:
        return os.path.realpath(link_abs, strict=True)
    except OSError as exc:
        raise ArchiveIOError(f"Failed to resolve symbolic link: {link_abs}") from exc


def _expand_wildcard(pattern_abs: Path) -> list[Path]:
    # Matched against raw names so hidden entries are included, as shell-style
    # tar tools do for an explicit pattern.
    parent_abs = pattern_abs.parent
    pattern = _literal_except_star(pattern_abs.name)
    return [
        child_abs
        for child_abs in _list_directory(parent_abs)
        if fnmatch.fnmatchcase(child_abs.name, pattern)
    ]


def _literal_except_star(name: str) -> str:
    """Escape every fnmatch metacharacter in ``name`` except ``*``."""
    return "".join(f"[{ch}]" if ch in "?[" else ch for ch in name)


def _list_directory(directory_abs: Path) -> list[Path]:
    try:
        return sorted(directory_abs.iterdir(), key=lambda p: p.name)
    except NotADirectoryError as exc:
        raise PathNotADirectoryError(f"Input is not a directory: {directory_abs}") from exc
    except OSError as exc:
        raise ArchiveIOError(f"Failed to read directory: {directory_abs}") from exc


def _lstat(path_abs: Path) -> os.stat_result:
    try:
        return os.lstat(path_abs)
    except OSError as exc:
        raise ArchiveIOError(f"Failed to inspect path: {path_abs}") from exc
