"""目录缓存测试"""

from __future__ import annotations

import json
from pathlib import Path

from edkit.core.catalog.cache import CatalogCache, fingerprint


class Clock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


KEY = fingerprint("2020.1.0f1", "linux", "X86_64", "live")


class TestCatalogCache:
    def test_fingerprint_lowercases_arch(self) -> None:
        assert KEY == "2020.1.0f1|linux|x86_64|live"

    def test_miss(self, tmp_path: Path) -> None:
        assert CatalogCache(tmp_path).load(KEY) is None

    def test_store_then_load(self, tmp_path: Path) -> None:
        cache = CatalogCache(tmp_path, clock=Clock())
        path = cache.store(KEY, {"shape": "live", "payload": {}})
        assert path.parent == tmp_path
        assert path.name.startswith("cache_") and path.suffix == ".json"
        entry = json.loads(path.read_text(encoding="utf-8"))
        assert entry["timestamp"] == 1_000_000
        assert cache.load(KEY) == {"shape": "live", "payload": {}}

    def test_expired_only_via_stale(self, tmp_path: Path) -> None:
        clock = Clock()
        cache = CatalogCache(tmp_path, max_age=60, clock=clock)
        cache.store(KEY, "doc")
        clock.now += 61
        assert cache.load(KEY) is None
        assert cache.load_stale(KEY) == "doc"

    def test_never_expires(self, tmp_path: Path) -> None:
        clock = Clock()
        cache = CatalogCache(tmp_path, max_age=None, clock=clock)
        cache.store(KEY, "doc")
        clock.now += 10 ** 9
        assert cache.load(KEY) == "doc"

    def test_disabled_skips_read_but_writes(self, tmp_path: Path) -> None:
        cache = CatalogCache(tmp_path, enabled=False)
        cache.store(KEY, "doc")
        assert cache.path_for(KEY).exists()
        assert cache.load(KEY) is None

    def test_refresh_skips_read(self, tmp_path: Path) -> None:
        CatalogCache(tmp_path).store(KEY, "doc")
        assert CatalogCache(tmp_path, refresh=True).load(KEY) is None

    def test_corrupt_file_ignored(self, tmp_path: Path) -> None:
        cache = CatalogCache(tmp_path)
        cache.path_for(KEY).write_text("{not json", encoding="utf-8")
        assert cache.load(KEY) is None
        assert cache.load_stale(KEY) is None

    def test_entry_without_result_ignored(self, tmp_path: Path) -> None:
        cache = CatalogCache(tmp_path)
        cache.path_for(KEY).write_text('{"timestamp": 1}', encoding="utf-8")
        assert cache.load_stale(KEY) is None
