"""网络工具 - URL 校验与 HTTP 客户端

HttpClient 协议是目录传输与下载器共用的唯一网络出口；
默认实现基于 urllib.request，测试时注入假实现。
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any, BinaryIO, Callable, Mapping, Protocol
from urllib.parse import urlparse

from edkit import __version__
from edkit.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))
DEFAULT_USER_AGENT = f"edkit/{__version__}"


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


class HttpError(ConnectionError):
    """HTTP 请求失败；status 为 0 表示未拿到响应"""

    def __init__(self, message: str, status: int = 0) -> None:
        super().__init__(message)
        self.status = status


class HttpResponse(Protocol):
    status: int
    headers: Mapping[str, str]

    def read(self, amt: int | None = None) -> bytes: ...

    def close(self) -> None: ...


class HttpClient(Protocol):
    """HTTP 客户端协议"""

    def open(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        """发起请求，返回 2xx 响应；其他状态抛 HttpError"""
        ...


class UrllibClient:
    """基于 urllib.request 的默认实现"""

    def __init__(
        self, timeout: float = 60, user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def open(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        validate_url_scheme(url, context=method)
        logger.debug("HTTP %s %s", method, url)
        merged = {"User-Agent": self.user_agent, **(headers or {})}
        req = urllib.request.Request(url, data=body, headers=merged, method=method)
        try:
            return urllib.request.urlopen(req, timeout=self.timeout)  # nosec B310
        except urllib.error.HTTPError as e:
            raise HttpError(f"HTTP {e.code}: {url}", status=e.code) from e
        except (urllib.error.URLError, OSError) as e:
            raise HttpError(f"请求失败: {url} - {e}") from e


def read_all(response: HttpResponse) -> bytes:
    try:
        return response.read()
    finally:
        response.close()


def get_text(client: HttpClient, url: str) -> str:
    return read_all(client.open(url)).decode("utf-8")


def post_json(client: HttpClient, url: str, payload: Any) -> Any:
    body = json.dumps(payload).encode("utf-8")
    response = client.open(
        url, method="POST", body=body,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )
    return json.loads(read_all(response).decode("utf-8"))


def copy_stream(
    response: HttpResponse,
    out: BinaryIO,
    on_chunk: Callable[[int], None] | None = None,
    chunk_size: int = 64 * 1024,
) -> int:
    """把响应体写入文件，返回写入字节数"""
    total = 0
    while True:
        chunk = response.read(chunk_size)
        if not chunk:
            break
        out.write(chunk)
        total += len(chunk)
        if on_chunk is not None:
            on_chunk(len(chunk))
    return total
