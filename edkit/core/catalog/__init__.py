"""模块目录: 获取、缓存、解析两种目录形态并合成派生模块"""

from edkit.core.catalog.cache import CatalogCache
from edkit.core.catalog.catalog import ModuleCatalog
from edkit.core.catalog.transport import (
    CatalogDocument,
    CatalogTransport,
    IniCatalogTransport,
    LiveCatalogTransport,
)

__all__ = [
    "CatalogCache",
    "CatalogDocument",
    "CatalogTransport",
    "IniCatalogTransport",
    "LiveCatalogTransport",
    "ModuleCatalog",
]
