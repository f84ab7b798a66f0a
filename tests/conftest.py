"""Shared fixtures for targz tests."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Create my_folder/my_sub_folder/my_file.txt containing b"data"."""
    directory = tmp_path / "my_folder"
    sub_directory = directory / "my_sub_folder"
    sub_directory.mkdir(parents=True)
    (sub_directory / "my_file.txt").write_bytes(b"data")
    return directory
