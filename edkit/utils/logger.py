"""edkit 日志配置

普通文本与结构化 JSON 两种输出；安装任务日志可通过 `extra=` 附带
component / phase 字段，JSON 模式下会原样输出。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

# 安装任务上下文字段，出现在 LogRecord 上时写入 JSON
_CONTEXT_FIELDS = ("component", "phase", "version")


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费

    输出字段: timestamp / level / logger / message / module / function / line，
    以及可选的 component / phase / version / exception。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = str(value)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: IO[str] | None = None,
) -> None:
    """配置根日志器: 清理已有 handler，只保留一个输出到 stderr 的 handler

    示例:
        >>> setup_logging("DEBUG")
        >>> setup_logging("INFO", json_output=True)  # CI 环境
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def reset_logging() -> None:
    """移除根日志器上的全部 handler（测试或重新配置时使用）"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
