from __future__ import annotations

import os
import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

import targz.archive_service as archive_service
import targz.fs_gateway as fs_gateway
from targz.errors import (
    ArchiveIOError,
    EmptySourceError,
    InvalidPathError,
    PathNotADirectoryError,
)
from test_helpers import archive_member_names


def test_compress_rejects_empty_directory_without_creating_archive(
    tmp_path: Path, source_dir: Path
) -> None:
    shutil.rmtree(source_dir / "my_sub_folder")
    archive_path = tmp_path / "my_archive.tar.gz"

    with pytest.raises(EmptySourceError):
        archive_service.compress(source_dir, archive_path)

    assert not archive_path.exists()


def test_compress_reports_missing_input_directory(tmp_path: Path, source_dir: Path) -> None:
    shutil.rmtree(source_dir)

    with pytest.raises(ArchiveIOError):
        archive_service.compress(source_dir, tmp_path / "my_archive.tar.gz")

    assert not (tmp_path / "my_archive.tar.gz").exists()


def test_compress_rejects_file_as_input(tmp_path: Path, source_dir: Path) -> None:
    with pytest.raises(PathNotADirectoryError):
        archive_service.compress(
            source_dir / "my_sub_folder" / "my_file.txt",
            tmp_path / "my_archive.tar.gz",
        )


def test_compress_removes_created_output_directories_on_failure(
    tmp_path: Path, source_dir: Path
) -> None:
    shutil.rmtree(source_dir / "my_sub_folder")

    with pytest.raises(EmptySourceError):
        archive_service.compress(
            source_dir,
            tmp_path / "dir_to_be_removed" / "nested" / "my_archive.tar.gz",
        )

    assert not (tmp_path / "dir_to_be_removed").exists()
    assert tmp_path.exists()


def test_compress_removes_partial_archive_when_writing_fails(
    tmp_path: Path,
    source_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    archive_path = tmp_path / "my_archive.tar.gz"

    def _fail_write_archive(
        *, output_file_abs: Path, on_opened: Callable[[], None], **_: object
    ) -> None:
        output_file_abs.write_bytes(b"partial")
        on_opened()
        raise ArchiveIOError("disk full")

    monkeypatch.setattr(archive_service, "write_archive", _fail_write_archive)

    with pytest.raises(ArchiveIOError, match="disk full"):
        archive_service.compress(source_dir, archive_path)

    assert not archive_path.exists()


def test_compress_keeps_existing_output_file_when_failing_before_writing(
    tmp_path: Path, source_dir: Path
) -> None:
    shutil.rmtree(source_dir / "my_sub_folder")
    archive_path = tmp_path / "my_archive.tar.gz"
    archive_path.write_bytes(b"previous archive")

    with pytest.raises(EmptySourceError):
        archive_service.compress(source_dir, archive_path)

    assert archive_path.read_bytes() == b"previous archive"


def test_compress_surfaces_original_error_when_rollback_fails(
    tmp_path: Path,
    source_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    shutil.rmtree(source_dir / "my_sub_folder")

    def _fail_remove_directory_tree(directory_abs: Path) -> None:
        raise PermissionError(f"cannot remove {directory_abs}")

    monkeypatch.setattr(fs_gateway, "remove_directory_tree", _fail_remove_directory_tree)

    with pytest.raises(EmptySourceError) as exc_info:
        archive_service.compress(source_dir, tmp_path / "new_dir" / "my_archive.tar.gz")

    assert any("Cleanup also failed" in note for note in exc_info.value.__notes__)


def test_compress_rejects_wildcard_outside_last_path_element(tmp_path: Path) -> None:
    with pytest.raises(InvalidPathError):
        archive_service.compress(
            tmp_path / "*" / "b",
            tmp_path / "out" / "my_archive.tar.gz",
        )

    assert not (tmp_path / "out").exists()


def test_compress_archives_wildcard_matches_in_last_path_element(tmp_path: Path) -> None:
    data_dir = tmp_path / "data"
    for dir_name, file_name in (("b1", "x.txt"), ("b2", "y.txt"), ("c", "z.txt")):
        (data_dir / dir_name).mkdir(parents=True)
        (data_dir / dir_name / file_name).write_text(file_name, encoding="utf-8")
    (data_dir / "b.txt").write_text("top", encoding="utf-8")
    archive_path = tmp_path / "my_archive.tar.gz"

    result = archive_service.compress(data_dir / "b*", archive_path)

    assert result.entry_count == 3
    assert archive_member_names(archive_path) == ["b.txt", "b1/x.txt", "b2/y.txt"]


def test_compress_rejects_wildcard_without_matches(tmp_path: Path, source_dir: Path) -> None:
    archive_path = tmp_path / "my_archive.tar.gz"

    with pytest.raises(EmptySourceError):
        archive_service.compress(source_dir / "nothing*", archive_path)

    assert not archive_path.exists()


def test_compress_accepts_relative_paths(
    tmp_path: Path,
    source_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)

    result = archive_service.compress("my_folder/", "archives/my_archive.tar.gz")

    assert result.archive_path == tmp_path / "archives" / "my_archive.tar.gz"
    assert archive_member_names(result.archive_path) == [
        "my_folder/my_sub_folder/my_file.txt"
    ]


def test_compress_does_not_archive_its_own_output(tmp_path: Path, source_dir: Path) -> None:
    archive_path = source_dir / "self.tar.gz"

    archive_service.compress(source_dir, archive_path)

    assert archive_member_names(archive_path) == ["my_folder/my_sub_folder/my_file.txt"]


def test_compress_leaves_output_untouched_when_it_cannot_be_opened(
    tmp_path: Path, source_dir: Path
) -> None:
    output_dir = tmp_path / "not_a_file"
    output_dir.mkdir()
    (output_dir / "keep.txt").write_text("keep", encoding="utf-8")

    with pytest.raises(ArchiveIOError):
        archive_service.compress(source_dir, output_dir)

    assert (output_dir / "keep.txt").read_text(encoding="utf-8") == "keep"


def test_compress_treats_brackets_in_last_segment_literally(tmp_path: Path) -> None:
    source = tmp_path / "data[1]"
    source.mkdir()
    (source / "a.txt").write_text("a", encoding="utf-8")
    archive_path = tmp_path / "my_archive.tar.gz"

    archive_service.compress(source, archive_path)

    assert archive_member_names(archive_path) == ["data[1]/a.txt"]


def test_compress_accepts_brackets_in_parent_segment(tmp_path: Path) -> None:
    source = tmp_path / "Project [2020]" / "docs"
    source.mkdir(parents=True)
    (source / "readme.txt").write_text("r", encoding="utf-8")
    archive_path = tmp_path / "my_archive.tar.gz"

    archive_service.compress(source, archive_path)

    assert archive_member_names(archive_path) == ["docs/readme.txt"]


def test_compress_star_pattern_matches_brackets_literally(tmp_path: Path) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "v[1]a.txt").write_text("a", encoding="utf-8")
    (data_dir / "v1b.txt").write_text("b", encoding="utf-8")
    archive_path = tmp_path / "my_archive.tar.gz"

    archive_service.compress(data_dir / "v[1]*", archive_path)

    assert archive_member_names(archive_path) == ["v[1]a.txt"]


def test_compress_accepts_relative_directory_starting_with_tilde(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    source = tmp_path / "~nosuchuserxyz"
    source.mkdir()
    (source / "a.txt").write_text("a", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = archive_service.compress("~nosuchuserxyz", "my_archive.tar.gz")

    assert archive_member_names(result.archive_path) == ["~nosuchuserxyz/a.txt"]


def test_compress_keeps_decomposed_unicode_directory_name(tmp_path: Path) -> None:
    source = tmp_path / "cafe\u0301"
    try:
        source.mkdir()
    except (OSError, UnicodeEncodeError):
        pytest.skip("filesystem cannot store decomposed names")
    (source / "a.txt").write_text("a", encoding="utf-8")
    if source.name not in os.listdir(tmp_path):
        pytest.skip("filesystem normalizes names")
    archive_path = tmp_path / "my_archive.tar.gz"

    archive_service.compress(str(source), archive_path)

    assert archive_member_names(archive_path) == ["cafe\u0301/a.txt"]
