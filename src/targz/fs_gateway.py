"""Output directory provisioning and rollback helpers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import os
import shutil
import stat
import sys
from pathlib import Path

from .constants import DIRECTORY_MODE
from .errors import ArchiveIOError, PathNotADirectoryError, RollbackError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryRollback:
    """Undo record for one ``ensure_directory`` call.

    ``created_root_abs`` is the shallowest directory the call created, or
    ``None`` when every directory already existed. Undoing removes that
    directory and everything beneath it; pre-existing ancestors are never
    touched.
    """

    created_root_abs: Path | None = None

    @property
    def created_anything(self) -> bool:
        return self.created_root_abs is not None

    def undo(self) -> None:
        if self.created_root_abs is None:
            return
        if not os.path.lexists(self.created_root_abs):
            return

        logger.info("Rolling back created directory %s", self.created_root_abs)
        try:
            remove_directory_tree(self.created_root_abs)
        except OSError as exc:
            raise RollbackError(
                f"Failed to remove created directory: {self.created_root_abs}"
            ) from exc


def ensure_directory(directory_abs: Path, *, mode: int = DIRECTORY_MODE) -> DirectoryRollback:
    first_missing_abs = _find_first_missing_directory(directory_abs)
    if first_missing_abs is None:
        return DirectoryRollback()

    rollback = DirectoryRollback(created_root_abs=first_missing_abs)
    try:
        os.makedirs(directory_abs, mode=mode, exist_ok=True)
    except OSError as exc:
        failure: ArchiveIOError | PathNotADirectoryError
        if isinstance(exc, (NotADirectoryError, FileExistsError)):
            failure = PathNotADirectoryError(
                f"Failed to create directory, a path component is not a directory: {directory_abs}"
            )
        else:
            failure = ArchiveIOError(f"Failed to create directory: {directory_abs}")
        undo_after_failure(rollback=rollback, failure=failure)
        raise failure from exc

    logger.debug("Created directory chain %s (root %s)", directory_abs, first_missing_abs)
    return rollback


def _find_first_missing_directory(directory_abs: Path) -> Path | None:
    first_missing_abs: Path | None = None
    probe_abs = directory_abs

    while True:
        try:
            probe_stat = os.stat(probe_abs)
        except FileNotFoundError:
            first_missing_abs = probe_abs
        except NotADirectoryError as exc:
            raise PathNotADirectoryError(
                f"A path component is not a directory: {probe_abs}"
            ) from exc
        except OSError as exc:
            raise ArchiveIOError(f"Failed to inspect path: {probe_abs}") from exc
        else:
            if stat.S_ISDIR(probe_stat.st_mode) or _lstat_is_directory(probe_abs):
                return first_missing_abs
            raise PathNotADirectoryError(f"Not a directory: {probe_abs}")

        parent_abs = probe_abs.parent
        if parent_abs == probe_abs:
            return first_missing_abs
        probe_abs = parent_abs


def _lstat_is_directory(path_abs: Path) -> bool:
    try:
        return stat.S_ISDIR(os.lstat(path_abs).st_mode)
    except OSError as exc:
        raise ArchiveIOError(f"Failed to inspect path: {path_abs}") from exc


def _force_remove_readonly(
    func: Callable[..., object],
    path: str,
    exc: BaseException,
) -> None:
    """onexc handler for shutil.rmtree: clear read-only bit and retry on Windows."""
    if os.name == "nt":
        os.chmod(path, stat.S_IWRITE)
        func(path)
    else:
        raise exc


def _unlink_force(path: Path) -> None:
    """Unlink a file, clearing read-only bit on Windows if needed."""
    try:
        path.unlink()
    except PermissionError:
        if os.name == "nt":
            os.chmod(path, stat.S_IWRITE)
            path.unlink()
        else:
            raise


def remove_directory_tree(directory_abs: Path) -> None:
    if sys.version_info >= (3, 12):
        shutil.rmtree(directory_abs, onexc=_force_remove_readonly)
    else:
        shutil.rmtree(
            directory_abs,
            onerror=lambda func, path, exc_info: _force_remove_readonly(func, path, exc_info[1]),
        )


def remove_partial_file(file_abs: Path) -> None:
    if not os.path.lexists(file_abs):
        return

    logger.info("Removing partial archive %s", file_abs)
    try:
        _unlink_force(file_abs)
    except OSError as exc:
        raise RollbackError(f"Failed to remove partial archive: {file_abs}") from exc


def replace_existing_entry(path_abs: Path) -> None:
    """Remove a file or symlink that is about to be recreated."""
    if path_abs.is_symlink() or path_abs.is_file():
        _unlink_force(path_abs)


def undo_after_failure(
    *,
    rollback: DirectoryRollback,
    failure: BaseException,
    partial_file_abs: Path | None = None,
) -> None:
    """Clean up provisioned output after ``failure`` without masking it.

    When the provisioning created directories, removing them also removes any
    partial file written inside. Otherwise only the partial file is removed.
    A cleanup failure is logged and attached to ``failure`` as a note.
    """
    try:
        if rollback.created_anything:
            rollback.undo()
        elif partial_file_abs is not None:
            remove_partial_file(partial_file_abs)
    except RollbackError as rollback_exc:
        logger.exception("Cleanup after failed operation also failed")
        failure.add_note(f"Cleanup also failed: {rollback_exc}")
