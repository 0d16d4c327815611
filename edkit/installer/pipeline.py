"""单个模块的安装生命周期

    before_install → install → after_install
                         ↘ 任一步失败 → error_handler（尽力清理）→ 重新抛出

install() 按 InstallerKind 分派到 archive / pkg / native 中的实现。
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from edkit.core.component import Component, Platform
from edkit.core.exceptions import InstallError, TaskCancelledError
from edkit.core.models import Module
from edkit.core.pipeline import TaskPhase
from edkit.installer import archive, native, pkg
from edkit.installer.fs import (
    clean_directory,
    cleanup_directory_failable,
    cleanup_file_failable,
    move_dir,
)
from edkit.installer.strategy import InstallerKind, InstallStrategy, select_strategy
from edkit.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

PhaseCallback = Callable[[TaskPhase], None]
StopCheck = Callable[[], bool]

# 安装前需要清空目标目录的编辑器策略
_CLEAN_BEFORE = frozenset((InstallerKind.XZ, InstallerKind.ZIP))


class Installer:
    """把一个已下载的安装包落到安装目录

    Args:
        module: 目录中的模块
        artifact: 本地安装包路径
        base_dir: 编辑器安装根目录（{UNITY_PATH}）
        platform: 目标平台
        executor: 外部命令执行器，测试时注入
    """

    def __init__(
        self,
        module: Module,
        artifact: Path,
        base_dir: Path,
        platform: Platform,
        *,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.module = module
        self.artifact = Path(artifact)
        self.base_dir = Path(base_dir)
        self.platform = platform
        self.executor = executor
        self.strategy: InstallStrategy = select_strategy(module, self.artifact, platform)
        self.destination = module.install_destination(self.base_dir)
        self.rename = module.install_rename(self.base_dir)
        self._renamed = False

    def __repr__(self) -> str:
        return f"Installer({self.module.id}, {self.strategy.kind.value})"

    # ---- 生命周期 ----

    def before_install(self) -> None:
        if self.module.is_editor and self.strategy.kind in _CLEAN_BEFORE:
            clean_directory(self.destination)

    def install(self) -> None:
        handler = _HANDLERS[self.strategy.kind]
        logger.info(
            "安装 %s (%s) -> %s", self.module.id, self.strategy.kind.value,
            self.destination or "系统默认位置",
            extra={"component": str(self.module.id)},
        )
        handler(self)

    def after_install(self) -> None:
        if self.rename is None or self._renamed:
            return
        source, target = self.rename
        if source.is_dir():
            logger.debug("重命名安装目录: %s -> %s", source, target)
            move_dir(source, target)
            return
        if target.exists():
            logger.debug("重命名源不存在而目标已存在，跳过: %s", source)
            return
        raise InstallError(f"安装后找不到待重命名的目录: {source}")

    def error_handler(self) -> None:
        """尽力删除本模块的目标目录；模块不会删除编辑器根目录"""
        target = self.destination
        if target is None:
            return
        if self.strategy.kind is InstallerKind.PO:
            # 语言包目录由多个模块共享，只删本模块的文件
            cleanup_file_failable(target / self.artifact.name)
            return
        if not self.module.is_editor and target.resolve() == self.base_dir.resolve():
            logger.debug("目标即安装根目录，跳过清理: %s", target)
            return
        logger.info("清理失败的安装: %s", target)
        cleanup_directory_failable(target)

    def run(
        self,
        on_phase: PhaseCallback | None = None,
        should_stop: StopCheck | None = None,
    ) -> float:
        """执行完整生命周期，返回耗时（秒）；失败时清理后重新抛出"""
        notify = on_phase or (lambda _phase: None)
        stopped = should_stop or (lambda: False)
        start = time.monotonic()
        try:
            notify(TaskPhase.EXTRACTING)
            self.before_install()
            self.install()
            if stopped():
                raise TaskCancelledError(f"安装已取消: {self.module.id}")
            notify(TaskPhase.PLACING)
            self.after_install()
        except BaseException:
            self.error_handler()
            raise
        return time.monotonic() - start

    # ---- 各策略实现 ----

    def _install_xz(self) -> None:
        archive.extract_xz(self.artifact, self.destination, executor=self.executor)

    def _install_zip(self) -> None:
        self._renamed = archive.extract_zip(self.artifact, self.destination, self.rename)

    def _install_po(self) -> None:
        archive.copy_language_pack(self.artifact, self.destination)

    def _install_pkg_7z(self) -> None:
        pkg.extract_pkg_7z(self.artifact, self.destination, executor=self.executor)

    def _install_pkg_xar(self) -> None:
        flatten = "iOSSupport" if self.module.id.known is Component.IOS else None
        pkg.extract_pkg_xar(
            self.artifact, self.destination,
            editor=self.module.is_editor, flatten=flatten, executor=self.executor,
        )

    def _install_pkg_native(self) -> None:
        native.install_pkg_native(self.artifact, executor=self.executor)

    def _install_dmg(self) -> None:
        native.install_dmg(self.artifact, self.destination, executor=self.executor)

    def _install_exe(self) -> None:
        native.install_exe(
            self.artifact, self.destination, self.module.cmd, executor=self.executor,
        )

    def _install_msi(self) -> None:
        native.install_msi(self.artifact, self.module.cmd, executor=self.executor)


_HANDLERS: dict[InstallerKind, Callable[[Installer], None]] = {
    InstallerKind.XZ: Installer._install_xz,
    InstallerKind.ZIP: Installer._install_zip,
    InstallerKind.PO: Installer._install_po,
    InstallerKind.PKG_7Z: Installer._install_pkg_7z,
    InstallerKind.PKG_XAR: Installer._install_pkg_xar,
    InstallerKind.PKG_NATIVE: Installer._install_pkg_native,
    InstallerKind.DMG: Installer._install_dmg,
    InstallerKind.EXE: Installer._install_exe,
    InstallerKind.MSI: Installer._install_msi,
}
