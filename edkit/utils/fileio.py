"""文件读写工具

集中管理 YAML / JSON 文件的序列化与反序列化。
所有写入都经 atomic_write: 同目录临时文件 + os.replace，读者永远看不到半个文件。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置 / 目录文档大小上限 (10MB)
MAX_DOCUMENT_SIZE = 10 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入文本文件

    异常:
        OSError: 写入或 rename 失败（临时文件会被清理）
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _check_size(p: Path) -> None:
    size = p.stat().st_size
    if size > MAX_DOCUMENT_SIZE:
        raise ValueError(
            f"文件过大: {p} ({size} 字节)，超过限制 {MAX_DOCUMENT_SIZE} 字节",
        )


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 字典；文件不存在、为空或不是字典时返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        ValueError: 文件过大
    """
    p = Path(path)
    if not p.exists():
        return {}
    _check_size(p)
    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", path, e)
        raise
    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result


def save_yaml(path: str | Path, data: Any) -> None:
    content = yaml.dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False,
    )
    atomic_write(Path(path), content)


def load_json(path: str | Path) -> Any:
    """读取 JSON 文档；文件不存在返回 None

    异常:
        json.JSONDecodeError: 内容不是合法 JSON
    """
    p = Path(path)
    if not p.exists():
        return None
    _check_size(p)
    with open(p, encoding="utf-8") as f:
        return json.load(f)


def save_json(path: str | Path, data: Any) -> None:
    atomic_write(
        Path(path), json.dumps(data, indent=2, ensure_ascii=False) + "\n",
    )
