"""Extract workflow orchestration."""

from __future__ import annotations

import logging
import os

from .fs_gateway import ensure_directory, undo_after_failure
from .models import ExtractResult
from .path_mapping import resolve_operation_paths
from .tar_gateway import read_archive

logger = logging.getLogger(__name__)


def extract(
    input_archive_path: str | os.PathLike[str],
    output_directory_path: str | os.PathLike[str],
) -> ExtractResult:
    """Unpack a tar.gz archive into ``output_directory_path``.

    The output directory chain is created when missing and removed again when
    extraction fails, so a failed call leaves no half-populated tree behind.
    """
    resolved_paths = resolve_operation_paths(
        source_arg_raw=input_archive_path,
        output_arg_raw=output_directory_path,
        allow_source_wildcard=False,
    )
    archive_abs = resolved_paths.source_abs
    output_dir_abs = resolved_paths.output_abs
    logger.info("Extracting %s into %s", archive_abs, output_dir_abs)

    rollback = ensure_directory(output_dir_abs)
    try:
        read_result = read_archive(input_file_abs=archive_abs, output_dir_abs=output_dir_abs)
    except Exception as exc:
        undo_after_failure(rollback=rollback, failure=exc)
        raise

    logger.info("Extracted %d entry(s) into %s", len(read_result.entries), output_dir_abs)
    return ExtractResult(
        output_dir=output_dir_abs,
        entries=read_result.entries,
        skipped_entries=read_result.skipped_entries,
    )
