"""安装过程中的目录操作

move_dir 处理模块安装后的重命名，包括把子目录上移到其祖先目录
（如 NDK/android-ndk-r19 → NDK）这种源路径位于目标路径之内的情况:
先把源目录挪到旁路临时目录，再从那里移到目标位置。
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from edkit.core.exceptions import AlreadyExistsError, InstallError

logger = logging.getLogger(__name__)


def file_count(directory: Path) -> int:
    """目录下（递归）普通文件的数量，空目录不计"""
    return sum(len(files) for _, _, files in os.walk(directory))


def move_dir(source: Path, destination: Path) -> None:
    """把 source 目录移动到 destination

    异常:
        InstallError: source 不是目录
        AlreadyExistsError: destination 已存在且包含文件
    """
    source = Path(source).resolve()
    destination = Path(destination).resolve()
    if not source.is_dir():
        raise InstallError(f"移动源必须是目录: {source}")

    if source == destination:
        return

    if destination in source.parents:
        logger.debug("源目录位于目标目录之内，经旁路目录中转: %s -> %s", source, destination)
        side = Path(tempfile.mkdtemp(prefix=".edkit-move-", dir=destination.parent))
        staged = side / "sub"
        os.rename(source, staged)
        try:
            move_dir(staged, destination)
        except (OSError, InstallError):
            # 还原，保证失败时源目录仍在原处
            source.parent.mkdir(parents=True, exist_ok=True)
            os.rename(staged, source)
            raise
        finally:
            shutil.rmtree(side, ignore_errors=True)
        return

    if destination.exists():
        if destination.is_dir() and file_count(destination) == 0:
            shutil.rmtree(destination)
            move_dir(source, destination)
            return
        raise AlreadyExistsError(f"目标已存在且非空: {destination}")

    destination.parent.mkdir(parents=True, exist_ok=True)
    os.rename(source, destination)
    logger.debug("已移动目录: %s -> %s", source, destination)


def merge_tree(source: Path, destination: Path) -> None:
    """把 source 下的内容逐项并入 destination，同名文件覆盖，同名目录递归合并"""
    destination.mkdir(parents=True, exist_ok=True)
    for entry in list(source.iterdir()):
        target = destination / entry.name
        if entry.is_dir() and not entry.is_symlink() and target.is_dir():
            merge_tree(entry, target)
            entry.rmdir()
            continue
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        os.rename(entry, target)


def move_contents(source: Path, destination: Path) -> None:
    """把 source 的直接子项移入 destination，已存在的同名目录先删除，然后删除 source"""
    for entry in list(source.iterdir()):
        target = destination / entry.name
        if target.is_dir() and not target.is_symlink():
            logger.warning("目标目录已存在，先删除: %s", target)
            shutil.rmtree(target)
        elif target.exists():
            target.unlink()
        os.rename(entry, target)
    source.rmdir()


def clean_directory(directory: Path) -> None:
    """删除并重建为空目录"""
    if directory.is_dir():
        logger.debug("清空目录: %s", directory)
        shutil.rmtree(directory)
    directory.mkdir(parents=True, exist_ok=True)


def staging_dir(destination: Path, label: str) -> Path:
    """在目标目录旁创建空的临时解包目录（同一文件系统，便于 rename）"""
    destination.parent.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(prefix=f".edkit-{label}-", dir=destination.parent))


def cleanup_directory_failable(directory: Path | None) -> None:
    """尽力删除目录，失败只记日志"""
    if directory is None or not directory.exists():
        return
    logger.debug("清理目录: %s", directory)
    try:
        shutil.rmtree(directory)
    except OSError:
        logger.exception("清理目录失败: %s", directory)


def cleanup_file_failable(path: Path) -> None:
    if not path.is_file():
        return
    try:
        path.unlink()
    except OSError:
        logger.exception("清理文件失败: %s", path)
