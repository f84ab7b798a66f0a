"""Literal constants used by targz."""

# Matches the gzip default used by most tar tooling; Python's own default is 9.
DEFAULT_COMPRESS_LEVEL = 6

COPY_BUFFER_SIZE = 4096
DIRECTORY_MODE = 0o755
PERMISSION_BITS_MASK = 0o777

# Only "*" marks a pattern; "?" and "[" are ordinary name characters.
WILDCARD_CHAR = "*"
