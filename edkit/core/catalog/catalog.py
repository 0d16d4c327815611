"""模块目录服务

fetch(version) 流程:
1. 查本地缓存（未过期才用）
2. 未命中则调用传输层获取原始文档
3. 解析 + 合成派生模块，成功后写缓存并返回 Manifest

传输失败统一抛 CatalogUnavailableError；即使存在过期缓存也不会自动回退，
需要离线使用时由调用方显式调用 fetch_stale()。
"""

from __future__ import annotations

import logging

from edkit.core.catalog.cache import CatalogCache, fingerprint
from edkit.core.catalog.synthesis import synthesize
from edkit.core.catalog.transport import (
    CatalogDocument,
    CatalogTransport,
    parse_document,
)
from edkit.core.component import Platform
from edkit.core.exceptions import CatalogError, CatalogUnavailableError
from edkit.core.models import Manifest
from edkit.core.version import Version

logger = logging.getLogger(__name__)


class ModuleCatalog:
    """版本 → Manifest"""

    def __init__(
        self,
        transport: CatalogTransport,
        cache: CatalogCache | None = None,
        *,
        platform: Platform | None = None,
        architecture: str = "x86_64",
    ) -> None:
        self.transport = transport
        self.cache = cache
        self.platform = platform or Platform.current()
        self.architecture = architecture

    def cache_key(self, version: Version) -> str:
        return fingerprint(
            version.format(with_hash=True), self.platform.value,
            self.architecture, self.transport.shape,
        )

    def fetch(self, version: Version) -> Manifest:
        key = self.cache_key(version)
        if self.cache is not None:
            cached = self.cache.load(key)
            if cached is not None:
                try:
                    return self._build(CatalogDocument.from_dict(cached), version)
                except CatalogError as e:
                    logger.warning("缓存的目录无法解析，重新获取: %s (%s)", version, e)

        logger.info("获取模块目录: %s (%s)", version, self.transport.shape)
        try:
            document = self.transport.fetch_catalog(
                version, self.platform, self.architecture,
            )
        except CatalogError:
            raise
        except (OSError, ValueError) as e:
            raise CatalogUnavailableError(f"目录服务不可用 ({version}): {e}") from e

        manifest = self._build(document, version)
        if self.cache is not None:
            self.cache.store(key, document.to_dict())
        return manifest

    def fetch_stale(self, version: Version) -> Manifest:
        """只用本地缓存（可能已过期）构建目录"""
        cached = None
        if self.cache is not None:
            cached = self.cache.load_stale(self.cache_key(version))
        if cached is None:
            raise CatalogUnavailableError(f"本地没有版本 {version} 的目录缓存")
        logger.info("使用本地目录缓存（可能已过期）: %s", version)
        return self._build(CatalogDocument.from_dict(cached), version)

    def _build(self, document: CatalogDocument, version: Version) -> Manifest:
        manifest = parse_document(document, version, self.platform, self.architecture)
        return synthesize(manifest, self.platform)
