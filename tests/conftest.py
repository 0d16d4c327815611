"""测试公共夹具: HTTP / 外部命令 / 目录传输层的假实现"""

from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path
from typing import Any, Callable

import pytest

import edkit.core.config as cfgmod
from edkit.core.catalog.transport import CatalogDocument
from edkit.core.component import BASE_PATH, ComponentId, Platform
from edkit.core.models import Manifest, Module
from edkit.core.version import Version
from edkit.utils.net import HttpError
from edkit.utils.shell import CommandResult

# =========================================================================
# HTTP
# =========================================================================


class FakeResponse:
    def __init__(self, data: bytes, status: int = 200) -> None:
        self._buf = io.BytesIO(data)
        self.status = status
        self.closed = False

    def read(self, amt: int | None = None) -> bytes:
        return self._buf.read() if amt is None else self._buf.read(amt)

    def close(self) -> None:
        self.closed = True


class FakeHttpClient:
    """按 URL 返回预置内容，记录全部请求；支持 Range 续传"""

    def __init__(self) -> None:
        self.routes: dict[str, bytes] = {}
        self.errors: dict[str, int] = {}
        self.requests: list[dict[str, Any]] = []
        self.support_range = True

    def add(self, url: str, data: bytes | str | dict | list) -> None:
        if isinstance(data, (dict, list)):
            data = json.dumps(data)
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.routes[url] = data

    def open(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> FakeResponse:
        headers = dict(headers or {})
        self.requests.append({"method": method, "url": url, "headers": headers, "body": body})
        if url in self.errors:
            status = self.errors[url]
            raise HttpError(f"HTTP {status}: {url}", status=status)
        if url not in self.routes:
            raise HttpError(f"HTTP 404: {url}", status=404)
        data = self.routes[url]
        range_header = headers.get("Range")
        if range_header and self.support_range:
            start = int(range_header.split("=", 1)[1].rstrip("-"))
            if start > 0:
                if start >= len(data):
                    raise HttpError(f"HTTP 416: {url}", status=416)
                return FakeResponse(data[start:], status=206)
        return FakeResponse(data, status=200)

    def urls(self) -> list[str]:
        return [r["url"] for r in self.requests]


# =========================================================================
# 外部命令
# =========================================================================

CommandHandler = Callable[[list[str], "str | Path | None", "Path | None"], "CommandResult | None"]


class FakeExecutor:
    """记录命令；handler 可模拟工具的文件副作用或返回失败结果"""

    def __init__(self, handler: CommandHandler | None = None) -> None:
        self.calls: list[list[str]] = []
        self.cwds: list[str | Path | None] = []
        self.handler = handler

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | Path | None = None,
        stdin_path: Path | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        self.calls.append(list(cmd))
        self.cwds.append(cwd)
        if self.handler is not None:
            result = self.handler(list(cmd), cwd, stdin_path)
            if result is not None:
                return result
        return CommandResult(returncode=0, stdout="", stderr="")

    def tools(self) -> list[str]:
        return [c[0] for c in self.calls]


# =========================================================================
# 目录传输层
# =========================================================================


class FakeTransport:
    """返回预置的目录文档，记录调用次数"""

    def __init__(self, payload: Any, shape: str = "live") -> None:
        self.shape = shape
        self.payload = payload
        self.calls = 0
        self.error: Exception | None = None

    def fetch_catalog(
        self, version: Version, platform: Platform, architecture: str,
    ) -> CatalogDocument:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return CatalogDocument(shape=self.shape, payload=self.payload)


# =========================================================================
# 夹具
# =========================================================================


@pytest.fixture
def http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def make_module() -> Callable[..., Module]:
    def _make(cid: str, **kwargs: Any) -> Module:
        component = ComponentId.parse(cid)
        kwargs.setdefault("title", cid)
        kwargs.setdefault("download_url", f"https://dl.example.com/{cid}.zip")
        if "sync_parent" in kwargs and isinstance(kwargs["sync_parent"], str):
            kwargs["sync_parent"] = ComponentId.parse(kwargs["sync_parent"])
        if component.is_editor:
            kwargs.setdefault("destination", BASE_PATH)
        return Module(id=component, **kwargs)
    return _make


@pytest.fixture
def make_manifest() -> Callable[..., Manifest]:
    def _make(version: str, modules: list[Module], shape: str = "live") -> Manifest:
        return Manifest(
            version=Version.parse(version),
            modules={m.id: m for m in modules},
            shape=shape,
        )
    return _make


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    return FakeTransport


@pytest.fixture
def make_executor() -> Callable[..., FakeExecutor]:
    return FakeExecutor


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """每个测试使用独立的配置和目录"""
    for name in (
        "EDKIT_CONFIG", "EDKIT_CACHE_DIR", "EDKIT_INSTALL_DIR",
        "EDKIT_CACHE_ENABLED", "EDKIT_CACHE_MAX_AGE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    cfg = cfgmod.Config(
        cache_dir=str(tmp_path / "cache"),
        install_dir=str(tmp_path / "editors"),
        platform="linux",
    )
    monkeypatch.setattr(cfgmod, "_current", cfg)
    yield


@pytest.fixture
def make_zip() -> Callable[..., bytes]:
    """内存中构造 zip 安装包，names 中每项以自身为内容"""
    def _make(*names: str) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for name in names:
                zf.writestr(name, name)
        return buf.getvalue()
    return _make
