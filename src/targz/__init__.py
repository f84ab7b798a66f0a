"""Create and extract tar.gz archives of directory trees."""

from .archive_service import compress
from .errors import (
    ArchiveFormatError,
    ArchiveIOError,
    EmptySourceError,
    InvalidPathError,
    PathNotADirectoryError,
    RollbackError,
    TargzError,
)
from .extract_service import extract
from .models import ArchiveEntry, CompressResult, ExtractResult

__all__ = [
    "ArchiveEntry",
    "ArchiveFormatError",
    "ArchiveIOError",
    "CompressResult",
    "EmptySourceError",
    "ExtractResult",
    "InvalidPathError",
    "PathNotADirectoryError",
    "RollbackError",
    "TargzError",
    "compress",
    "extract",
]
