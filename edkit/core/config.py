"""集中配置管理

从 YAML 文件加载 + 环境变量覆盖 + 编程式覆盖。
环境变量:
  EDKIT_CONFIG                  配置文件路径
  EDKIT_CACHE_DIR / EDKIT_INSTALL_DIR
  EDKIT_CACHE_ENABLED           0/false/no 关闭目录缓存读取
  EDKIT_CACHE_MAX_AGE_SECONDS   整数秒或 never
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from edkit.core.component import Platform
from edkit.core.exceptions import ConfigError
from edkit.utils.fileio import load_yaml, save_yaml

logger = logging.getLogger(__name__)

NEVER = "never"
DEFAULT_CONFIG_PATH = "~/.config/edkit/config.yml"
_FALSE_VALUES = frozenset(("0", "false", "no", "off"))


def _default_cache_dir() -> str:
    base = os.environ.get("XDG_CACHE_HOME") or "~/.cache"
    return f"{base}/edkit"


def _default_install_dir() -> str:
    base = os.environ.get("XDG_DATA_HOME") or "~/.local/share"
    return f"{base}/edkit/editors"


@dataclass
class Config:
    """全局配置"""

    # 目录
    cache_dir: str = field(default_factory=_default_cache_dir)
    install_dir: str = field(default_factory=_default_install_dir)
    locks_dir: str = ""  # 为空时使用 cache_dir/locks

    # 执行
    max_workers: int = 8
    verify_checksum: bool = True
    prefetch_modules: bool = False

    # 目录服务
    catalog_source: str = "live"
    catalog_cache_enabled: bool = True
    catalog_cache_max_age: int | str = 86400  # 秒，或 "never"

    # 平台
    platform: str = field(default_factory=lambda: Platform.current().value)
    architecture: str = "x86_64"

    # 网络
    http_timeout: int = 60
    user_agent: str = ""

    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    # ---- 加载 ----

    @classmethod
    def from_file(cls, path: str | Path = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认值；随后应用环境变量覆盖"""
        p = Path(path).expanduser()
        try:
            data = load_yaml(p)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件无效: {p}: {e}") from e
        known = {f.name for f in fields(cls)} - {"extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件字段错误: {p}: {e}") from e
        cfg.extra = extra
        cfg.apply_env(os.environ)
        return cfg

    def apply_env(self, env: dict[str, str] | os._Environ[str]) -> None:
        if env.get("EDKIT_CACHE_DIR"):
            self.cache_dir = env["EDKIT_CACHE_DIR"]
        if env.get("EDKIT_INSTALL_DIR"):
            self.install_dir = env["EDKIT_INSTALL_DIR"]
        enabled = env.get("EDKIT_CACHE_ENABLED")
        if enabled is not None and enabled.strip():
            self.catalog_cache_enabled = enabled.strip().lower() not in _FALSE_VALUES
        max_age = env.get("EDKIT_CACHE_MAX_AGE_SECONDS")
        if max_age:
            self.catalog_cache_max_age = max_age.strip()
        self.validate()

    def validate(self) -> None:
        """校验并规范化字段取值，非法值抛 ConfigError"""
        try:
            Platform.from_str(self.platform)
        except ValueError as e:
            raise ConfigError(f"未知平台: {self.platform}") from e
        if self.catalog_source not in ("live", "ini"):
            raise ConfigError(f"未知目录来源: {self.catalog_source}")
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise ConfigError(f"max_workers 必须为正整数: {self.max_workers}")
        self.catalog_cache_max_age = parse_max_age(self.catalog_cache_max_age)

    # ---- 派生路径 ----

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir).expanduser()

    @property
    def install_path(self) -> Path:
        return Path(self.install_dir).expanduser()

    @property
    def locks_path(self) -> Path:
        if self.locks_dir:
            return Path(self.locks_dir).expanduser()
        return self.cache_path / "locks"

    @property
    def platform_enum(self) -> Platform:
        return Platform.from_str(self.platform)

    @property
    def max_age_seconds(self) -> float | None:
        """None 表示永不过期"""
        if self.catalog_cache_max_age == NEVER:
            return None
        return float(self.catalog_cache_max_age)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        data = self.to_dict()
        extra = data.pop("extra")
        data.update(extra)
        save_yaml(Path(path).expanduser(), data)


def parse_max_age(value: int | str) -> int | str:
    if isinstance(value, bool):
        raise ConfigError(f"无效的缓存有效期: {value}")
    if isinstance(value, int):
        if value < 0:
            raise ConfigError(f"缓存有效期不能为负数: {value}")
        return value
    text = str(value).strip().lower()
    if text == NEVER:
        return NEVER
    try:
        return parse_max_age(int(text))
    except ValueError as e:
        raise ConfigError(f"无效的缓存有效期: {value}") from e


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str | Path | None = None) -> Config:
    """从文件初始化全局配置；path 为空时读取 EDKIT_CONFIG 或默认路径"""
    global _current  # noqa: PLW0603
    path = path or os.environ.get("EDKIT_CONFIG") or DEFAULT_CONFIG_PATH
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path)
    return _current
