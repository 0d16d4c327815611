"""目录操作测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from edkit.core.exceptions import AlreadyExistsError, InstallError
from edkit.installer.fs import (
    clean_directory,
    file_count,
    merge_tree,
    move_contents,
    move_dir,
    staging_dir,
)


def _touch(path: Path, text: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestMoveDir:
    def test_simple(self, tmp_path: Path) -> None:
        _touch(tmp_path / "a" / "f.txt")
        move_dir(tmp_path / "a", tmp_path / "b" / "c")
        assert (tmp_path / "b" / "c" / "f.txt").is_file()
        assert not (tmp_path / "a").exists()

    def test_same_path_noop(self, tmp_path: Path) -> None:
        _touch(tmp_path / "a" / "f.txt")
        move_dir(tmp_path / "a", tmp_path / "a")
        assert (tmp_path / "a" / "f.txt").is_file()

    def test_source_inside_destination(self, tmp_path: Path) -> None:
        ndk = tmp_path / "NDK"
        _touch(ndk / "android-ndk-r19" / "ndk-build")
        _touch(ndk / "android-ndk-r19" / "sub" / "deep.txt")
        move_dir(ndk / "android-ndk-r19", ndk)
        assert (ndk / "ndk-build").is_file()
        assert (ndk / "sub" / "deep.txt").is_file()
        assert not (ndk / "android-ndk-r19").exists()
        assert [p.name for p in tmp_path.iterdir()] == ["NDK"]

    def test_overlap_with_other_files_restores(self, tmp_path: Path) -> None:
        ndk = tmp_path / "NDK"
        _touch(ndk / "android-ndk-r19" / "ndk-build")
        _touch(ndk / "other.txt")
        with pytest.raises(AlreadyExistsError):
            move_dir(ndk / "android-ndk-r19", ndk)
        assert (ndk / "android-ndk-r19" / "ndk-build").is_file()
        assert [p.name for p in tmp_path.iterdir()] == ["NDK"]

    def test_empty_destination_replaced(self, tmp_path: Path) -> None:
        _touch(tmp_path / "a" / "f.txt")
        (tmp_path / "b" / "empty-sub").mkdir(parents=True)
        move_dir(tmp_path / "a", tmp_path / "b")
        assert (tmp_path / "b" / "f.txt").is_file()
        assert not (tmp_path / "b" / "empty-sub").exists()

    def test_non_empty_destination(self, tmp_path: Path) -> None:
        _touch(tmp_path / "a" / "f.txt")
        _touch(tmp_path / "b" / "g.txt")
        with pytest.raises(AlreadyExistsError, match="非空"):
            move_dir(tmp_path / "a", tmp_path / "b")

    def test_source_must_be_dir(self, tmp_path: Path) -> None:
        _touch(tmp_path / "file")
        with pytest.raises(InstallError, match="必须是目录"):
            move_dir(tmp_path / "file", tmp_path / "b")


class TestMergeTree:
    def test_merges_and_overwrites(self, tmp_path: Path) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _touch(src / "Editor" / "new.txt", "new")
        _touch(src / "same.txt", "from-src")
        _touch(dst / "Editor" / "old.txt", "old")
        _touch(dst / "same.txt", "from-dst")
        merge_tree(src, dst)
        assert (dst / "Editor" / "new.txt").read_text() == "new"
        assert (dst / "Editor" / "old.txt").read_text() == "old"
        assert (dst / "same.txt").read_text() == "from-src"
        assert list(src.iterdir()) == []

    def test_file_replaces_directory(self, tmp_path: Path) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _touch(src / "thing", "file")
        _touch(dst / "thing" / "inner.txt")
        merge_tree(src, dst)
        assert (dst / "thing").read_text() == "file"


class TestHelpers:
    def test_move_contents(self, tmp_path: Path) -> None:
        _touch(tmp_path / "Unity" / "Unity.app" / "bin")
        _touch(tmp_path / "Unity.app" / "stale")
        move_contents(tmp_path / "Unity", tmp_path)
        assert (tmp_path / "Unity.app" / "bin").is_file()
        assert not (tmp_path / "Unity.app" / "stale").exists()
        assert not (tmp_path / "Unity").exists()

    def test_file_count_ignores_dirs(self, tmp_path: Path) -> None:
        (tmp_path / "a" / "b").mkdir(parents=True)
        _touch(tmp_path / "a" / "f")
        assert file_count(tmp_path) == 1

    def test_clean_directory(self, tmp_path: Path) -> None:
        _touch(tmp_path / "ed" / "old")
        clean_directory(tmp_path / "ed")
        assert list((tmp_path / "ed").iterdir()) == []

    def test_staging_dir_is_sibling(self, tmp_path: Path) -> None:
        staging = staging_dir(tmp_path / "dest" / "x", "xz")
        assert staging.parent == tmp_path / "dest"
        assert staging.name.startswith(".edkit-xz-")
