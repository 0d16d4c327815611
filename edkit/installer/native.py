"""系统安装程序类策略: dmg / exe / msi / macOS installer"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from edkit.core.exceptions import ExtractionFailedError
from edkit.installer.fs import cleanup_directory_failable, staging_dir
from edkit.utils.shell import CommandExecutor, run_checked

logger = logging.getLogger(__name__)

APPLICATIONS = Path("/Applications")
DEFAULT_EXE_ARGS = "/S"


def install_dmg(
    artifact: Path,
    destination: Path | None,
    *,
    executor: CommandExecutor | None = None,
) -> None:
    """挂载镜像，把其中的 .app 复制到目标（默认 /Applications），最后卸载"""
    target = destination or APPLICATIONS
    mount = staging_dir(target, "dmg")
    run_checked(
        ["hdiutil", "attach", "-nobrowse", "-mountpoint", str(mount), str(artifact)],
        label="挂载 dmg", executor=executor,
    )
    try:
        apps = sorted(mount.glob("*.app"))
        if not apps:
            raise ExtractionFailedError(f"镜像中没有 .app: {artifact}")
        target.mkdir(parents=True, exist_ok=True)
        for app in apps:
            run_checked(
                ["cp", "-a", str(app), str(target)],
                label="复制应用", executor=executor,
            )
    finally:
        try:
            run_checked(
                ["hdiutil", "detach", str(mount)],
                label="卸载 dmg", executor=executor,
            )
        except ExtractionFailedError:
            logger.exception("卸载镜像失败: %s", mount)
        cleanup_directory_failable(mount)


def install_exe(
    artifact: Path,
    destination: Path | None,
    cmd: str | None = None,
    *,
    executor: CommandExecutor | None = None,
) -> None:
    """静默运行 NSIS 安装程序，/D= 必须是最后一个参数"""
    args = [str(artifact), *shlex.split(cmd or DEFAULT_EXE_ARGS)]
    if destination is not None:
        args.append(f"/D={destination}")
    run_checked(args, label="运行安装程序", executor=executor)


def install_msi(
    artifact: Path,
    cmd: str | None = None,
    *,
    executor: CommandExecutor | None = None,
) -> None:
    args = ["msiexec", "/i", str(artifact), "/qb"]
    if cmd:
        args.extend(shlex.split(cmd))
    run_checked(args, label="msiexec 安装", executor=executor)


def install_pkg_native(
    artifact: Path,
    *,
    executor: CommandExecutor | None = None,
) -> None:
    """没有目标目录的 pkg 交给系统 installer 安装到根卷"""
    run_checked(
        ["sudo", "installer", "-package", str(artifact), "-target", "/"],
        label="系统 installer 安装", executor=executor,
    )
