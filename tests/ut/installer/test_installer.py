"""Installer 生命周期测试"""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from edkit.core.component import Platform
from edkit.core.exceptions import ExtractionFailedError, InstallError, TaskCancelledError
from edkit.core.pipeline import TaskPhase
from edkit.installer import Installer, InstallerKind
from edkit.utils.shell import CommandResult


def _zip(path: Path, names: list[str]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name in names:
            zf.writestr(name, name)
    return path


@pytest.fixture
def base(tmp_path: Path) -> Path:
    return tmp_path / "editors" / "2020.3.1f1"


class TestLifecycle:
    def test_editor_zip_cleans_first(self, tmp_path: Path, base: Path, make_module) -> None:
        (base / "stale").mkdir(parents=True)
        art = _zip(tmp_path / "Unity.zip", ["Editor/Unity"])
        phases: list[TaskPhase] = []
        installer = Installer(make_module("editor"), art, base, Platform.LINUX)
        assert installer.strategy.kind is InstallerKind.ZIP
        installer.run(phases.append)
        assert (base / "Editor" / "Unity").is_file()
        assert not (base / "stale").exists()
        assert phases == [TaskPhase.EXTRACTING, TaskPhase.PLACING]

    def test_module_rename_after_install(self, tmp_path: Path, base: Path, make_module) -> None:
        art = _zip(tmp_path / "sdk.zip", ["tools/bin/sdkmanager"])
        module = make_module(
            "android-sdk-ndk-tools",
            destination="{UNITY_PATH}/SDK",
            rename_from="{UNITY_PATH}/SDK/tools",
            rename_to="{UNITY_PATH}/SDK/cmdline-tools",
        )
        Installer(module, art, base, Platform.LINUX).run()
        assert (base / "SDK" / "cmdline-tools" / "bin" / "sdkmanager").is_file()
        assert not (base / "SDK" / "tools").exists()

    def test_rename_outside_destination(self, tmp_path: Path, base: Path, make_module) -> None:
        art = _zip(tmp_path / "jdk.zip", ["jdk8/bin/java"])
        module = make_module(
            "android-open-jdk",
            destination="{UNITY_PATH}/OpenJDK",
            rename_from="{UNITY_PATH}/OpenJDK/jdk8",
            rename_to="{UNITY_PATH}/Java",
        )
        Installer(module, art, base, Platform.LINUX).run()
        assert (base / "Java" / "bin" / "java").is_file()

    def test_missing_rename_source(self, tmp_path: Path, base: Path, make_module) -> None:
        art = _zip(tmp_path / "a.zip", ["x"])
        module = make_module(
            "webgl", destination="{UNITY_PATH}/WebGL",
            rename_from="{UNITY_PATH}/Nope", rename_to="{UNITY_PATH}/Other",
        )
        with pytest.raises(InstallError, match="找不到待重命名的目录"):
            Installer(module, art, base, Platform.LINUX).run()
        assert not (base / "WebGL").exists()

    def test_rename_already_done(self, tmp_path: Path, base: Path, make_module) -> None:
        (base / "Other").mkdir(parents=True)
        art = _zip(tmp_path / "a.zip", ["x"])
        module = make_module(
            "webgl", destination="{UNITY_PATH}/WebGL",
            rename_from="{UNITY_PATH}/Nope", rename_to="{UNITY_PATH}/Other",
        )
        Installer(module, art, base, Platform.LINUX).run()
        assert (base / "WebGL" / "x").is_file()

    def test_ios_destination_gets_support_dir(self, base: Path, make_module, make_executor) -> None:
        module = make_module(
            "ios", destination="{UNITY_PATH}/Editor/Data/PlaybackEngines",
        )
        installer = Installer(module, Path("iOS.tar.xz"), base, Platform.LINUX,
                              executor=make_executor())
        assert installer.destination == base / "Editor/Data/PlaybackEngines/iOSSupport"


class TestFailure:
    def test_extraction_failure_cleans_destination(
        self, tmp_path: Path, base: Path, make_module, make_executor,
    ) -> None:
        module = make_module("webgl", destination="{UNITY_PATH}/WebGL")

        def handler(cmd, cwd, stdin):
            (base / "WebGL" / "partial").mkdir(parents=True)
            return CommandResult(1, "", "truncated")

        installer = Installer(module, tmp_path / "w.tar.xz", base, Platform.LINUX,
                              executor=make_executor(handler))
        with pytest.raises(ExtractionFailedError):
            installer.run()
        assert not (base / "WebGL").exists()

    def test_module_at_base_dir_not_removed(
        self, tmp_path: Path, base: Path, make_module, make_executor,
    ) -> None:
        (base / "Editor").mkdir(parents=True)
        module = make_module("webgl", destination="{UNITY_PATH}")
        executor = make_executor(lambda cmd, cwd, stdin: CommandResult(1, "", "x"))
        with pytest.raises(ExtractionFailedError):
            Installer(module, tmp_path / "w.tar.xz", base, Platform.LINUX,
                      executor=executor).run()
        assert (base / "Editor").is_dir()

    def test_language_pack_failure_removes_only_own_file(
        self, tmp_path: Path, base: Path, make_module,
    ) -> None:
        loc = base / "Editor" / "Data" / "Localization"
        loc.mkdir(parents=True)
        (loc / "ko.po").write_text("ko")
        (loc / "ja.po").write_text("half")
        module = make_module(
            "language-ja", destination="{UNITY_PATH}/Editor/Data/Localization",
        )
        missing = tmp_path / "ja.po"
        with pytest.raises(InstallError):
            Installer(module, missing, base, Platform.LINUX).run()
        assert (loc / "ko.po").is_file()
        assert not (loc / "ja.po").exists()

    def test_cancel_after_install(self, tmp_path: Path, base: Path, make_module) -> None:
        art = _zip(tmp_path / "a.zip", ["x"])
        module = make_module("webgl", destination="{UNITY_PATH}/WebGL")
        with pytest.raises(TaskCancelledError):
            Installer(module, art, base, Platform.LINUX).run(should_stop=lambda: True)
        assert not (base / "WebGL").exists()

    def test_native_installer_has_nothing_to_clean(
        self, tmp_path: Path, base: Path, make_module, make_executor,
    ) -> None:
        executor = make_executor(lambda cmd, cwd, stdin: CommandResult(1, "", "denied"))
        installer = Installer(make_module("mono"), tmp_path / "Mono.pkg", base,
                              Platform.MAC, executor=executor)
        assert installer.strategy.kind is InstallerKind.PKG_NATIVE
        with pytest.raises(ExtractionFailedError, match="denied"):
            installer.run()
        assert executor.tools() == ["sudo"]
