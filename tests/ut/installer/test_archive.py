"""压缩包类策略测试"""

from __future__ import annotations

import os
import stat
import zipfile
from pathlib import Path

import pytest

from edkit.core.exceptions import ExtractionFailedError, InstallError
from edkit.installer.archive import (
    adjust_xz_destination,
    copy_language_pack,
    extract_xz,
    extract_zip,
)
from edkit.utils.shell import CommandResult


def _zip(path: Path, entries: dict[str, tuple[bytes, int]]) -> Path:
    """entries: 名称 → (内容, unix 模式)"""
    with zipfile.ZipFile(path, "w") as zf:
        for name, (data, mode) in entries.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = mode << 16
            zf.writestr(info, data)
    return path


class TestAdjustXzDestination:
    @pytest.mark.parametrize("dest,expected", [
        ("/u/Editor/Data/PlaybackEngines/iOSSupport", "/u/Editor/Data/PlaybackEngines"),
        ("/u/Editor/Data/PlaybackEngines", "/u"),
        ("/u/Editor/Data/PlaybackEngines/WebGLSupport", "/u/Editor/Data/PlaybackEngines/WebGLSupport"),
        ("/u", "/u"),
    ])
    def test_adjust(self, dest: str, expected: str) -> None:
        assert adjust_xz_destination(Path(dest)) == Path(expected)


class TestExtractXz:
    def test_extracts_via_staging(self, tmp_path: Path, make_executor) -> None:
        dest = tmp_path / "u" / "Editor" / "Data" / "PlaybackEngines" / "WebGLSupport"
        (dest / "old.txt").parent.mkdir(parents=True)
        (dest / "old.txt").write_text("keep")

        def tar(cmd, cwd, stdin):
            staging = Path(cmd[2])
            assert staging.parent == dest.parent
            (staging / "new.txt").write_text("new")

        executor = make_executor(tar)
        assert extract_xz(tmp_path / "a.tar.xz", dest, executor=executor) == dest
        assert executor.calls[0][0] == "tar"
        assert executor.calls[0][3:] == ["-amxf", str(tmp_path / "a.tar.xz")]
        assert (dest / "new.txt").read_text() == "new"
        assert (dest / "old.txt").read_text() == "keep"
        assert [p.name for p in dest.parent.iterdir()] == ["WebGLSupport"]

    def test_failure_leaves_destination(self, tmp_path: Path, make_executor) -> None:
        dest = tmp_path / "dest"
        executor = make_executor(lambda cmd, cwd, stdin: CommandResult(2, "", "corrupt"))
        with pytest.raises(ExtractionFailedError, match="corrupt"):
            extract_xz(tmp_path / "a.tar.xz", dest, executor=executor)
        assert list(tmp_path.iterdir()) == []


class TestExtractZip:
    def test_extract_with_permissions(self, tmp_path: Path) -> None:
        art = _zip(tmp_path / "a.zip", {
            "tools/": (b"", stat.S_IFDIR | 0o755),
            "tools/run.sh": (b"#!/bin/sh\n", stat.S_IFREG | 0o755),
            "tools/readme": (b"hi", 0),
        })
        dest = tmp_path / "out"
        assert extract_zip(art, dest) is False
        script = dest / "tools" / "run.sh"
        assert script.read_bytes() == b"#!/bin/sh\n"
        assert os.stat(script).st_mode & 0o777 == 0o755
        assert (dest / "tools" / "readme").read_text() == "hi"

    def test_symlink(self, tmp_path: Path) -> None:
        art = _zip(tmp_path / "a.zip", {
            "lib/libx.so.1": (b"ELF", stat.S_IFREG | 0o644),
            "lib/libx.so": (b"libx.so.1", stat.S_IFLNK | 0o777),
        })
        dest = tmp_path / "out"
        extract_zip(art, dest)
        link = dest / "lib" / "libx.so"
        assert link.is_symlink()
        assert os.readlink(link) == "libx.so.1"

    def test_unsafe_members_skipped(self, tmp_path: Path) -> None:
        art = _zip(tmp_path / "a.zip", {
            "../escape.txt": (b"x", 0),
            "/abs.txt": (b"x", 0),
            "ok.txt": (b"ok", 0),
        })
        dest = tmp_path / "out"
        extract_zip(art, dest)
        assert not (tmp_path / "escape.txt").exists()
        assert [p.name for p in dest.iterdir()] == ["ok.txt"]

    def test_rename_applied_during_extraction(self, tmp_path: Path) -> None:
        art = _zip(tmp_path / "ndk.zip", {
            "android-ndk-r19/ndk-build": (b"x", stat.S_IFREG | 0o755),
            "android-ndk-r19/sub/a.txt": (b"a", 0),
        })
        base = tmp_path / "u"
        dest = base / "PlaybackEngines" / "AndroidPlayer"
        rename = (dest / "NDK" / "android-ndk-r19", dest / "NDK")
        # 目标目录为 AndroidPlayer/NDK 时，压缩包内前缀 android-ndk-r19 → 根
        applied = extract_zip(art, dest / "NDK", rename)
        assert applied is True
        assert (dest / "NDK" / "ndk-build").is_file()
        assert (dest / "NDK" / "sub" / "a.txt").is_file()
        assert not (dest / "NDK" / "android-ndk-r19").exists()

    def test_rename_outside_destination_not_applied(self, tmp_path: Path) -> None:
        art = _zip(tmp_path / "a.zip", {"x/f": (b"f", 0)})
        dest = tmp_path / "out"
        assert extract_zip(art, dest, (tmp_path / "elsewhere", tmp_path / "other")) is False
        assert (dest / "x" / "f").is_file()

    def test_bad_zip(self, tmp_path: Path) -> None:
        art = tmp_path / "bad.zip"
        art.write_bytes(b"not a zip")
        with pytest.raises(ExtractionFailedError, match="zip 文件损坏"):
            extract_zip(art, tmp_path / "out")


class TestLanguagePack:
    def test_copied_as_is(self, tmp_path: Path) -> None:
        art = tmp_path / "ja.po"
        art.write_text("msgid", encoding="utf-8")
        target = copy_language_pack(art, tmp_path / "Localization")
        assert target == tmp_path / "Localization" / "ja.po"
        assert target.read_text(encoding="utf-8") == "msgid"

    def test_failure_removes_created_dir(self, tmp_path: Path) -> None:
        with pytest.raises(InstallError, match="复制语言包失败"):
            copy_language_pack(tmp_path / "missing.po", tmp_path / "Localization")
        assert not (tmp_path / "Localization").exists()

    def test_failure_keeps_existing_dir(self, tmp_path: Path) -> None:
        loc = tmp_path / "Localization"
        loc.mkdir()
        (loc / "ko.po").write_text("ko")
        with pytest.raises(InstallError):
            copy_language_pack(tmp_path / "missing.po", loc)
        assert (loc / "ko.po").is_file()
