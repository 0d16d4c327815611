"""卸载服务测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from edkit.core.component import ComponentId
from edkit.core.exceptions import UnsupportedModuleError, ValidationError
from edkit.core.installation import Installation
from edkit.core.version import Version
from edkit.services.uninstall_service import UninstallService

VERSION = Version.parse("2021.3.5f1")
PE = "{UNITY_PATH}/Editor/Data/PlaybackEngines"


def _record(cid: str, destination: str, installed: bool = True, **extra) -> dict:
    return {
        "id": cid, "name": cid, "downloadUrl": f"https://dl.example.com/{cid}.zip",
        "destination": destination, "isInstalled": installed, **extra,
    }


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    root = tmp_path / "editors"
    ed = root / "2021.3.5f1"
    (ed / "Editor").mkdir(parents=True)
    (ed / "Editor" / "Unity").write_text("")
    (ed / "Editor/Data/PlaybackEngines/WebGLSupport").mkdir(parents=True)
    (ed / "Editor/Data/PlaybackEngines/WebGLSupport/f").write_text("")
    (ed / "Editor/Data/PlaybackEngines/AndroidPlayer").mkdir(parents=True)
    loc = ed / "Editor/Data/Localization"
    loc.mkdir(parents=True)
    (loc / "ja.po").write_text("ja")
    (loc / "ko.po").write_text("ko")
    Installation(ed).write_modules([
        _record("webgl", f"{PE}/WebGLSupport"),
        _record("android", f"{PE}/AndroidPlayer"),
        _record("ios", f"{PE}/iOSSupport", installed=False),
        _record("language-ja", "{UNITY_PATH}/Editor/Data/Localization",
                downloadUrl="https://x/v1/live/54/2021.3/ja"),
        _record("language-ko", "{UNITY_PATH}/Editor/Data/Localization",
                downloadUrl="https://x/v1/live/54/2021.3/ko"),
        _record("documentation", "{UNITY_PATH}"),
        _record("../../escape", "{UNITY_PATH}/../outside"),
    ])
    return root


def _installed(install_dir: Path) -> dict[str, bool]:
    data = json.loads((install_dir / "2021.3.5f1" / "modules.json").read_text(encoding="utf-8"))
    return {r["id"]: r["isInstalled"] for r in data}


class TestUninstall:
    def test_whole_editor(self, install_dir: Path) -> None:
        result = UninstallService(install_dir).uninstall(VERSION)
        assert result.editor_removed
        assert not (install_dir / "2021.3.5f1").exists()

    def test_unknown_version(self, install_dir: Path) -> None:
        with pytest.raises(ValidationError, match="找不到版本"):
            UninstallService(install_dir).uninstall(Version.parse("2019.1.0f1"))

    def test_single_module(self, install_dir: Path) -> None:
        result = UninstallService(install_dir).uninstall(VERSION, ["webgl"])
        assert result.removed == [ComponentId.parse("webgl")]
        ed = install_dir / "2021.3.5f1"
        assert not (ed / "Editor/Data/PlaybackEngines/WebGLSupport").exists()
        assert (ed / "Editor/Data/PlaybackEngines/AndroidPlayer").is_dir()
        assert _installed(install_dir)["webgl"] is False
        assert _installed(install_dir)["android"] is True

    def test_language_pack_removes_only_file(self, install_dir: Path) -> None:
        UninstallService(install_dir).uninstall(VERSION, ["language-ja"])
        loc = install_dir / "2021.3.5f1" / "Editor/Data/Localization"
        assert not (loc / "ja.po").exists()
        assert (loc / "ko.po").is_file()

    def test_not_installed(self, install_dir: Path) -> None:
        with pytest.raises(UnsupportedModuleError, match="模块未安装: ios"):
            UninstallService(install_dir).uninstall(VERSION, ["ios"])

    def test_root_destination_skipped(self, install_dir: Path) -> None:
        result = UninstallService(install_dir).uninstall(VERSION, ["documentation"])
        assert result.removed == []
        assert result.skipped == [ComponentId.parse("documentation")]
        assert (install_dir / "2021.3.5f1" / "Editor" / "Unity").is_file()
        assert _installed(install_dir)["documentation"] is True

    def test_all_modules_keeps_editor(self, install_dir: Path) -> None:
        outside = install_dir / "outside"
        outside.mkdir()
        result = UninstallService(install_dir).uninstall(VERSION, all_modules=True)
        assert {str(c) for c in result.removed} == {
            "webgl", "android", "language-ja", "language-ko",
        }
        assert {str(c) for c in result.skipped} == {"documentation", "../../escape"}
        assert (install_dir / "2021.3.5f1" / "Editor" / "Unity").is_file()
        assert outside.is_dir()

    def test_symlink_escape_skipped(self, install_dir: Path, tmp_path: Path) -> None:
        victim = tmp_path / "victim"
        victim.mkdir()
        (victim / "keep").write_text("")
        ed = install_dir / "2021.3.5f1"
        link = ed / "Editor/Data/PlaybackEngines/LinkSupport"
        link.symlink_to(victim)
        inst = Installation(ed)
        inst.write_modules(inst.read_modules() + [_record("linux-mono", f"{PE}/LinkSupport")])
        result = UninstallService(install_dir).uninstall(VERSION, ["linux-mono"])
        assert result.skipped == [ComponentId.parse("linux-mono")]
        assert (victim / "keep").is_file()
