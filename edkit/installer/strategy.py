"""解包策略选择

策略是一个封闭的枚举值，由 select_strategy() 根据
(平台, 是否编辑器, 安装包扩展名, 是否有目标目录) 唯一确定。
各策略的具体行为在 Installer 中按枚举分派。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from edkit.core.component import Platform
from edkit.core.exceptions import MissingDestinationError, UnsupportedFormatError
from edkit.core.models import Module


class InstallerKind(Enum):
    XZ = "xz"                  # tar.xz 压缩包
    ZIP = "zip"
    PO = "po"                  # 语言包，原样复制
    PKG_7Z = "pkg-7z"          # Linux 上用 7z + cpio 拆 pkg
    PKG_XAR = "pkg-xar"        # macOS 上用 xar + tar 拆 pkg
    PKG_NATIVE = "pkg-native"  # macOS 系统 installer，无目标目录
    DMG = "dmg"
    EXE = "exe"
    MSI = "msi"


# 不需要目标目录的策略
_NO_DESTINATION = frozenset((
    InstallerKind.PKG_NATIVE, InstallerKind.DMG,
    InstallerKind.EXE, InstallerKind.MSI,
))


@dataclass(frozen=True)
class InstallStrategy:
    kind: InstallerKind
    editor: bool
    platform: Platform

    @property
    def needs_destination(self) -> bool:
        if self.editor:
            return True
        return self.kind not in _NO_DESTINATION


def artifact_format(artifact: Path) -> str:
    """安装包格式: xz / zip / pkg / exe / msi / po / dmg，其他返回小写后缀"""
    name = artifact.name.lower()
    if name.endswith((".tar.xz", ".xz")):
        return "xz"
    return artifact.suffix.lower().lstrip(".")


def _linux(fmt: str, editor: bool, has_destination: bool) -> InstallerKind | None:
    if editor:
        return {"xz": InstallerKind.XZ, "zip": InstallerKind.ZIP}.get(fmt)
    return {
        "xz": InstallerKind.XZ,
        "zip": InstallerKind.ZIP,
        "po": InstallerKind.PO,
        "pkg": InstallerKind.PKG_7Z,
    }.get(fmt)


def _mac(fmt: str, editor: bool, has_destination: bool) -> InstallerKind | None:
    if editor:
        return InstallerKind.PKG_XAR if fmt == "pkg" else None
    if fmt == "pkg":
        return InstallerKind.PKG_XAR if has_destination else InstallerKind.PKG_NATIVE
    return {
        "zip": InstallerKind.ZIP,
        "po": InstallerKind.PO,
        "dmg": InstallerKind.DMG,
    }.get(fmt)


def _windows(fmt: str, editor: bool, has_destination: bool) -> InstallerKind | None:
    if editor:
        return InstallerKind.EXE if fmt == "exe" else None
    return {
        "exe": InstallerKind.EXE,
        "msi": InstallerKind.MSI,
        "zip": InstallerKind.ZIP,
        "po": InstallerKind.PO,
    }.get(fmt)


_SELECTORS = {
    Platform.LINUX: _linux,
    Platform.MAC: _mac,
    Platform.WINDOWS: _windows,
}


def select_strategy(
    module: Module, artifact: Path, platform: Platform,
) -> InstallStrategy:
    """为模块选择唯一的解包策略

    异常:
        UnsupportedFormatError: 平台上没有对应该扩展名的策略
        MissingDestinationError: 策略需要目标目录但模块未声明
    """
    fmt = artifact_format(artifact)
    has_destination = module.destination is not None
    kind = _SELECTORS[platform](fmt, module.is_editor, has_destination)
    if kind is None:
        what = "编辑器" if module.is_editor else "模块"
        raise UnsupportedFormatError(
            f"{platform.value} 上不支持 {fmt or '无扩展名'} 格式的{what}安装包: {artifact.name}",
        )
    strategy = InstallStrategy(kind=kind, editor=module.is_editor, platform=platform)
    if strategy.needs_destination and not has_destination:
        raise MissingDestinationError(f"模块 {module.id} 没有安装目标目录")
    return strategy
