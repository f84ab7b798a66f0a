"""User-facing text rendering."""

from __future__ import annotations

from .models import CompressResult, ExtractResult

_WARNING_PREFIX = "WARNING:"
_ERROR_PREFIX = "ERROR:"


def render_error(message: str) -> str:
    return f"{_ERROR_PREFIX} {message}"


def render_warning(message: str) -> str:
    return f"{_WARNING_PREFIX} {message}"


def render_compress_result(result: CompressResult) -> list[str]:
    lines = [render_warning(f"Skipped entry: {name}") for name in result.skipped_entries_rel]
    lines.append(f"Archived {result.entry_count} entry(s).")
    lines.append(f"Created archive: {result.archive_path}")
    return lines


def render_extract_result(result: ExtractResult) -> list[str]:
    lines = [render_warning(f"Skipped entry: {name}") for name in result.skipped_entries]
    lines.append(f"Extracted {result.entry_count} entry(s) into {result.output_dir}")
    return lines
