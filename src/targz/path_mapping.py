"""Path normalization and validation for compress/extract arguments."""

from __future__ import annotations

import os
from pathlib import Path

from .constants import WILDCARD_CHAR
from .errors import InvalidPathError
from .models import ResolvedPaths

_SEPARATORS = "/" + (os.altsep or "") + os.sep


def resolve_operation_paths(
    *,
    source_arg_raw: str | os.PathLike[str],
    output_arg_raw: str | os.PathLike[str],
    allow_source_wildcard: bool,
) -> ResolvedPaths:
    source_abs = map_path_argument(raw_path=source_arg_raw, argument_name="Input")
    output_abs = map_path_argument(raw_path=output_arg_raw, argument_name="Output")

    if allow_source_wildcard:
        _validate_wildcard_placement(source_abs)

    return ResolvedPaths(
        source_arg_raw=os.fspath(source_arg_raw),
        source_abs=source_abs,
        output_arg_raw=os.fspath(output_arg_raw),
        output_abs=output_abs,
    )


def map_path_argument(*, raw_path: str | os.PathLike[str], argument_name: str) -> Path:
    path_text = os.fspath(raw_path)
    if path_text == "":
        raise InvalidPathError(f"{argument_name} path is empty.")
    if "\0" in path_text:
        raise InvalidPathError(f"{argument_name} path contains NUL (\\0).")

    path_text = strip_trailing_separators(path_text)
    try:
        return Path(os.path.abspath(path_text))
    except OSError as exc:
        raise InvalidPathError(
            f"{argument_name} path cannot be made absolute: {path_text}"
        ) from exc


def strip_trailing_separators(path_text: str) -> str:
    stripped = path_text.rstrip(_SEPARATORS)
    if stripped == "":
        # The path was the filesystem root; keep a single separator.
        return path_text[:1]
    return stripped


def has_wildcard(path: Path) -> bool:
    """Return True when the final segment of ``path`` is a glob pattern."""
    return _contains_wildcard(path.name)


def strip_prefix_for(source_abs: Path) -> Path:
    """Directory whose path is removed from every archived entry name.

    For a plain directory this is its parent, so entries are rooted at the
    directory's own name. For a wildcard source it is the directory holding
    the pattern, so each match becomes a top-level entry.
    """
    return source_abs.parent


def _validate_wildcard_placement(source_abs: Path) -> None:
    for segment in source_abs.parent.parts:
        if _contains_wildcard(segment):
            raise InvalidPathError(
                "Wildcards can be used only in the last path element: "
                f"{source_abs}"
            )


def _contains_wildcard(segment: str) -> bool:
    return WILDCARD_CHAR in segment
