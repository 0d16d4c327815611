"""目录传输层

CatalogTransport 协议只负责把某个版本的原始目录文档取回来，
要么返回完整文档，要么抛异常，不返回半份文档。
两个实现: 发布树 GraphQL 服务、按版本的静态 INI 文件。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from edkit.core.catalog import ini, live
from edkit.core.component import Platform
from edkit.core.exceptions import CatalogFormatError, CatalogUnavailableError
from edkit.core.models import Manifest
from edkit.core.version import Version
from edkit.utils.net import HttpClient, get_text, post_json

logger = logging.getLogger(__name__)


@dataclass
class CatalogDocument:
    """原始目录文档: shape 为 ini 时 payload 是文本，live 时是 release 字典"""

    shape: str
    payload: Any

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: Any) -> CatalogDocument:
        if not isinstance(data, dict) or "shape" not in data or "payload" not in data:
            raise CatalogFormatError("缓存的目录文档缺少 shape/payload 字段")
        shape = data["shape"]
        if shape not in (ini.SHAPE, live.SHAPE):
            raise CatalogFormatError(f"未知的目录形态: {shape}")
        return cls(shape=shape, payload=data["payload"])


# =========================================================================
# 协议
# =========================================================================


class CatalogTransport(Protocol):
    """目录传输协议"""

    shape: str

    def fetch_catalog(
        self, version: Version, platform: Platform, architecture: str,
    ) -> CatalogDocument:
        """取回原始目录文档；网络失败抛 HttpError / OSError"""
        ...


# =========================================================================
# 实现
# =========================================================================


class LiveCatalogTransport:
    """发布树 GraphQL 服务"""

    shape = live.SHAPE

    def __init__(self, client: HttpClient, endpoint: str = live.ENDPOINT) -> None:
        self.client = client
        self.endpoint = endpoint

    def fetch_catalog(
        self, version: Version, platform: Platform, architecture: str,
    ) -> CatalogDocument:
        body = live.request_body(version, platform, architecture)
        response = post_json(self.client, self.endpoint, body)
        release = live.extract_release(response, version)
        if not release:
            raise CatalogUnavailableError(
                f"目录服务中未找到版本 {version} "
                f"({platform.live_token}/{architecture.upper()})",
            )
        return CatalogDocument(shape=self.shape, payload=release)


class IniCatalogTransport:
    """按版本的静态 INI 文件，需要修订哈希"""

    shape = ini.SHAPE

    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def fetch_catalog(
        self, version: Version, platform: Platform, architecture: str,
    ) -> CatalogDocument:
        url = ini.ini_url(version, platform)
        logger.debug("获取 INI 目录: %s", url)
        return CatalogDocument(shape=self.shape, payload=get_text(self.client, url))


def parse_document(
    document: CatalogDocument,
    version: Version,
    platform: Platform,
    architecture: str,
) -> Manifest:
    """按形态分派解析"""
    if document.shape == ini.SHAPE:
        if not isinstance(document.payload, str):
            raise CatalogFormatError("INI 目录内容必须是文本")
        return ini.parse_ini(document.payload, version, platform)
    if document.shape == live.SHAPE:
        return live.parse_release(document.payload, version, platform, architecture)
    raise CatalogFormatError(f"未知的目录形态: {document.shape}")
