"""外部命令执行 - 解包工具的统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，测试时注入假实现即可，
无需 patch subprocess。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from edkit.core.exceptions import ExtractionFailedError

logger = logging.getLogger(__name__)

STDERR_LIMIT = 500


@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """命令执行器协议"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | Path | None = None,
        stdin_path: Path | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果；stdin_path 不为空时作为标准输入"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | Path | None = None,
        stdin_path: Path | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        if stdin_path is None:
            r = subprocess.run(
                cmd, capture_output=True, text=True,
                cwd=cwd, check=False, timeout=timeout,
            )
        else:
            with open(stdin_path, "rb") as stdin:
                r = subprocess.run(
                    cmd, stdin=stdin, capture_output=True,
                    cwd=cwd, check=False, timeout=timeout,
                )
            r.stdout = r.stdout.decode(errors="replace")
            r.stderr = r.stderr.decode(errors="replace")
        return CommandResult(
            returncode=r.returncode, stdout=r.stdout, stderr=r.stderr,
        )


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    return _default_executor


def run_checked(
    cmd: list[str],
    *,
    label: str,
    cwd: str | Path | None = None,
    stdin_path: Path | None = None,
    executor: CommandExecutor | None = None,
) -> CommandResult:
    """执行外部工具，非零退出码抛 ExtractionFailedError（附带 stderr 前 500 字符）"""
    logger.debug("  %s: %s (cwd=%s)", label, " ".join(cmd), cwd or ".")
    runner = executor or get_executor()
    try:
        r = runner.execute(cmd, cwd=cwd, stdin_path=stdin_path)
    except FileNotFoundError as e:
        raise ExtractionFailedError(f"{label}失败: 找不到命令 {cmd[0]}") from e
    if not r.success:
        detail = r.stderr[:STDERR_LIMIT]
        raise ExtractionFailedError(
            f"{label}失败 (rc={r.returncode}): {detail}", stderr=detail,
        )
    return r
