"""Compress workflow orchestration."""

from __future__ import annotations

import logging
import os

from .constants import DEFAULT_COMPRESS_LEVEL
from .fs_gateway import ensure_directory, undo_after_failure
from .models import CompressResult
from .path_mapping import resolve_operation_paths, strip_prefix_for
from .tar_gateway import collect_archive_entries, write_archive

logger = logging.getLogger(__name__)


def compress(
    input_directory_path: str | os.PathLike[str],
    output_archive_path: str | os.PathLike[str],
    *,
    compress_level: int = DEFAULT_COMPRESS_LEVEL,
) -> CompressResult:
    """Archive a directory (or the wildcard matches of its last segment) as tar.gz.

    Only the last path element of ``input_directory_path`` and its descendants
    are recorded, so ``/a/b/my_folder`` produces entries under ``my_folder/``.
    Missing parent directories of ``output_archive_path`` are created, and are
    removed again if anything later fails.
    """
    resolved_paths = resolve_operation_paths(
        source_arg_raw=input_directory_path,
        output_arg_raw=output_archive_path,
        allow_source_wildcard=True,
    )
    source_abs = resolved_paths.source_abs
    archive_abs = resolved_paths.output_abs
    logger.info("Compressing %s into %s", source_abs, archive_abs)

    rollback = ensure_directory(archive_abs.parent)
    archive_opened = False

    def _on_archive_opened() -> None:
        nonlocal archive_opened
        archive_opened = True

    try:
        archive_inventory = collect_archive_entries(
            source_abs=source_abs,
            strip_prefix_abs=strip_prefix_for(source_abs),
        )
        write_archive(
            output_file_abs=archive_abs,
            entries=archive_inventory.entries,
            compress_level=compress_level,
            on_opened=_on_archive_opened,
        )
    except Exception as exc:
        undo_after_failure(
            rollback=rollback,
            failure=exc,
            partial_file_abs=archive_abs if archive_opened else None,
        )
        raise

    logger.info(
        "Compressed %d file(s) and %d symlink(s) into %s",
        archive_inventory.file_count,
        archive_inventory.symlink_count,
        archive_abs,
    )
    return CompressResult(
        archive_path=archive_abs,
        entries=archive_inventory.entries,
        skipped_entries_rel=archive_inventory.skipped_entries_rel,
    )
