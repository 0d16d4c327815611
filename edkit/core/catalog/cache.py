"""目录文档本地缓存

缓存文件: <cache_dir>/catalog/cache_<sha256(指纹)[:16]>.json
内容: {"timestamp": <epoch 秒>, "result": <原始目录文档>}

- enabled=False 时不读缓存，但成功获取后仍写入
- refresh=True 同样跳过读取
- max_age=None 表示永不过期
- 过期条目只能通过 load_stale() 显式取得
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable

from edkit.utils.fileio import load_json, save_json

logger = logging.getLogger(__name__)


def fingerprint(version: str, platform: str, architecture: str, shape: str) -> str:
    return "|".join((version, platform, architecture.lower(), shape))


class CatalogCache:
    """目录文档缓存"""

    def __init__(
        self,
        cache_dir: Path,
        *,
        enabled: bool = True,
        max_age: float | None = 86400,
        refresh: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.enabled = enabled
        self.max_age = max_age
        self.refresh = refresh
        self._clock = clock

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        return self.cache_dir / f"cache_{digest}.json"

    def _read(self, key: str) -> dict[str, Any] | None:
        path = self.path_for(key)
        try:
            entry = load_json(path)
        except (json.JSONDecodeError, ValueError, OSError) as e:
            logger.warning("目录缓存文件损坏，忽略: %s (%s)", path, e)
            return None
        if not isinstance(entry, dict) or "result" not in entry:
            return None
        return entry

    def is_expired(self, entry: dict[str, Any]) -> bool:
        if self.max_age is None:
            return False
        try:
            timestamp = float(entry.get("timestamp", 0))
        except (TypeError, ValueError):
            return True
        return self._clock() - timestamp > self.max_age

    def load(self, key: str) -> Any | None:
        """读取未过期的缓存，未命中返回 None"""
        if not self.enabled or self.refresh:
            return None
        entry = self._read(key)
        if entry is None:
            return None
        if self.is_expired(entry):
            logger.debug("目录缓存已过期: %s", key)
            return None
        logger.debug("目录缓存命中: %s", key)
        return entry["result"]

    def load_stale(self, key: str) -> Any | None:
        """不论是否过期都返回缓存内容，由调用方决定是否使用"""
        entry = self._read(key)
        return None if entry is None else entry["result"]

    def store(self, key: str, result: Any) -> Path:
        path = self.path_for(key)
        save_json(path, {"timestamp": int(self._clock()), "result": result})
        logger.debug("目录缓存已写入: %s -> %s", key, path)
        return path
