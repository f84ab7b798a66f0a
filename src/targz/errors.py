"""Typed exceptions for targz."""


class TargzError(Exception):
    """Base exception for targz failures."""


class InvalidPathError(TargzError):
    """Raised when a path argument cannot be resolved or uses a misplaced wildcard."""


class PathNotADirectoryError(TargzError):
    """Raised when a path component meant to be a directory is something else."""


class EmptySourceError(TargzError):
    """Raised when the source directory has nothing to archive."""


class ArchiveIOError(TargzError):
    """Raised for open/read/write/close failures on any stream layer."""


class ArchiveFormatError(TargzError):
    """Raised when the gzip or tar container is malformed or unsafe."""


class RollbackError(TargzError):
    """Raised when cleanup of provisioned output fails."""
