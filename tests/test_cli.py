"""命令行接口测试"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from edkit.cli import cmd_install, cmd_manage, cmd_modules, main
from edkit.core.config import get_config
from edkit.services.container import ServiceContainer
from edkit.utils.logger import reset_logging

RELEASE_URL = "https://dl.example.com/Unity.zip"
WEBGL_URL = "https://dl.example.com/WebGL.zip"


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_logging()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump({
        "cache_dir": str(tmp_path / "cache"),
        "install_dir": str(tmp_path / "editors"),
        "platform": "linux",
        "max_workers": 2,
    }), encoding="utf-8")
    return path


@pytest.fixture
def fake_svc(monkeypatch, http, make_zip, make_transport):
    http.add(RELEASE_URL, make_zip("Editor/Unity"))
    http.add(WEBGL_URL, make_zip("BuildTools/index.html"))
    transport = make_transport({
        "version": "2020.3.1f1",
        "shortRevision": "77a89f25062f",
        "downloads": [{
            "url": RELEASE_URL,
            "platform": "LINUX",
            "architecture": "X86_64",
            "modules": [{
                "id": "webgl",
                "name": "WebGL Build Support",
                "category": "PLATFORM",
                "url": WEBGL_URL,
                "destination": "{UNITY_PATH}/Editor/Data/PlaybackEngines/WebGLSupport",
            }],
        }],
    })

    def _svc(**kwargs) -> ServiceContainer:
        return ServiceContainer(get_config(), http=http, transport=transport, **kwargs)

    for mod in (cmd_install, cmd_manage, cmd_modules):
        monkeypatch.setattr(mod, "_svc", _svc)
    return http


@pytest.fixture
def invoke(config_file: Path):
    runner = CliRunner()

    def _invoke(*args: str):
        return runner.invoke(
            main, ["--config", str(config_file), *args],
            env={"EDKIT_LOG_LEVEL": "WARNING"},
        )
    return _invoke


class TestVersionOf:
    def test_finds_version(self, invoke) -> None:
        result = invoke("version-of", "Unity 2021.3.5f1 (77a89f25062f)")
        assert result.exit_code == 0
        assert result.output.strip() == "2021.3.5f1"

    def test_no_version(self, invoke) -> None:
        result = invoke("version-of", "nothing here")
        assert result.exit_code == 1
        assert "Error [PARSE_ERROR]" in result.output


class TestList:
    def test_empty(self, invoke, fake_svc) -> None:
        result = invoke("list")
        assert result.exit_code == 0
        assert "没有已安装的编辑器" in result.output

    def test_path_only_empty(self, invoke, fake_svc) -> None:
        result = invoke("list", "--path-only")
        assert result.exit_code == 0
        assert result.output == ""


class TestModules:
    def test_lists_catalog(self, invoke, fake_svc) -> None:
        result = invoke("modules", "2020.3.1f1")
        assert result.exit_code == 0, result.output
        assert "webgl" in result.output
        assert "documentation" in result.output
        assert "[ ]" in result.output

    def test_category_filter_without_match(self, invoke, fake_svc) -> None:
        result = invoke("modules", "2020.3.1f1", "-c", "nope")
        assert result.exit_code == 0
        assert "没有匹配的模块" in result.output

    def test_bad_version(self, invoke) -> None:
        result = invoke("modules", "not-a-version")
        assert result.exit_code == 2
        assert "not-a-version" in result.output


class TestInstall:
    def test_install_then_list_and_uninstall(self, invoke, fake_svc, tmp_path) -> None:
        result = invoke("install", "2020.3.1f1", "-m", "webgl")
        assert result.exit_code == 0, result.output
        dest = tmp_path / "editors" / "2020.3.1f1"
        assert f"安装 2020.3.1f1 -> {dest}" in result.output
        assert "done" in result.output
        assert "安装完成" in result.output
        assert (dest / "Editor/Data/PlaybackEngines/WebGLSupport/BuildTools/index.html").is_file()

        result = invoke("list", "--path-only")
        assert result.output.strip() == str(dest)

        result = invoke("modules", "2020.3.1f1")
        assert "[x]" in result.output

        result = invoke("uninstall", "2020.3.1f1", "-m", "webgl")
        assert result.exit_code == 0, result.output
        assert "已卸载: webgl" in result.output

        result = invoke("uninstall", "2020.3.1f1")
        assert "已删除编辑器 2020.3.1f1" in result.output
        assert not dest.exists()

    def test_custom_destination(self, invoke, fake_svc, tmp_path) -> None:
        target = tmp_path / "custom"
        result = invoke("install", "2020.3.1f1", "-d", str(target))
        assert result.exit_code == 0, result.output
        assert (target / "Editor" / "Unity").is_file()

    def test_failure_exit_code(self, invoke, fake_svc) -> None:
        fake_svc.errors[WEBGL_URL] = 404
        result = invoke("install", "2020.3.1f1", "-m", "webgl")
        assert result.exit_code == 1
        assert "failed" in result.output
        assert "Error [ORCHESTRATION_FAILED]" in result.output

    def test_unknown_module(self, invoke, fake_svc) -> None:
        result = invoke("install", "2020.3.1f1", "-m", "vision")
        assert result.exit_code == 1
        assert "Error [UNSUPPORTED_MODULE]" in result.output

    def test_uninstall_missing_version(self, invoke, fake_svc) -> None:
        result = invoke("uninstall", "2019.1.0f1")
        assert result.exit_code == 1
        assert "Error [VALIDATION_ERROR]" in result.output
