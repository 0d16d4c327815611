"""压缩包类策略: tar.xz / zip / 语言包

外部工具只解包到与目标目录同级的空临时目录，再合并进目标目录，
不会让工具直接覆盖已存在的内容。
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import zipfile
from pathlib import Path, PurePosixPath

from edkit.core.exceptions import ExtractionFailedError, InstallError
from edkit.installer.fs import cleanup_directory_failable, merge_tree, staging_dir
from edkit.utils.shell import CommandExecutor, run_checked

logger = logging.getLogger(__name__)

_IOS_SUPPORT = ("Editor", "Data", "PlaybackEngines", "iOSSupport")
_PLAYBACK_ENGINES = ("Editor", "Data", "PlaybackEngines")


def adjust_xz_destination(destination: Path) -> Path:
    """部分平台模块的 tar 包内已带上层目录，解包位置相应上移"""
    parts = destination.parts
    if parts[-len(_IOS_SUPPORT):] == _IOS_SUPPORT:
        return destination.parent
    if parts[-len(_PLAYBACK_ENGINES):] == _PLAYBACK_ENGINES:
        return destination.parent.parent.parent
    return destination


# ---- tar.xz ----


def extract_xz(
    artifact: Path,
    destination: Path,
    *,
    executor: CommandExecutor | None = None,
) -> Path:
    """用 tar 解包到临时目录再并入目标，返回实际解包位置"""
    target = adjust_xz_destination(destination)
    if target != destination:
        logger.debug("调整解包位置: %s -> %s", destination, target)
    staging = staging_dir(target, "xz")
    try:
        run_checked(
            ["tar", "-C", str(staging), "-amxf", str(artifact)],
            label="tar 解包", executor=executor,
        )
        merge_tree(staging, target)
    finally:
        cleanup_directory_failable(staging)
    return target


# ---- zip ----


def _safe_member_path(name: str) -> PurePosixPath | None:
    """归一化压缩包内路径，拒绝绝对路径和 .. 逃逸"""
    path = PurePosixPath(name.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts:
        return None
    parts = [p for p in path.parts if p not in ("", ".")]
    if not parts:
        return None
    return PurePosixPath(*parts)


def _rename_prefix(
    destination: Path, rename: tuple[Path, Path] | None,
) -> tuple[PurePosixPath, PurePosixPath] | None:
    """重命名位于解包目录之内时，转换成压缩包内的路径前缀映射"""
    if rename is None:
        return None
    source, target = rename
    try:
        rel_from = source.relative_to(destination)
        rel_to = target.relative_to(destination)
    except ValueError:
        return None
    if not rel_from.parts:
        return None
    return PurePosixPath(rel_from.as_posix()), PurePosixPath(rel_to.as_posix())


def _map_prefix(
    member: PurePosixPath, prefix: tuple[PurePosixPath, PurePosixPath] | None,
) -> PurePosixPath:
    if prefix is None:
        return member
    old, new = prefix
    try:
        rest = member.relative_to(old)
    except ValueError:
        return member
    return new / rest if rest.parts else new


def extract_zip(
    artifact: Path,
    destination: Path,
    rename: tuple[Path, Path] | None = None,
) -> bool:
    """解包 zip，保留 unix 权限位

    rename 位于 destination 之内时在解包过程中直接套用，返回 True，
    调用方据此跳过安装后的目录重命名。
    """
    prefix = _rename_prefix(destination, rename)
    destination.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(artifact) as archive:
            for info in archive.infolist():
                member = _safe_member_path(info.filename)
                if member is None:
                    logger.warning("跳过不安全的压缩包路径: %s", info.filename)
                    continue
                target = destination.joinpath(*_map_prefix(member, prefix).parts)
                mode = (info.external_attr >> 16) & 0xFFFF
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                if stat.S_ISLNK(mode):
                    link = archive.read(info).decode()
                    if target.is_symlink() or target.exists():
                        target.unlink()
                    os.symlink(link, target)
                    continue
                with archive.open(info) as src, open(target, "wb") as out:
                    shutil.copyfileobj(src, out)
                if mode & 0o777:
                    os.chmod(target, mode & 0o777)
    except zipfile.BadZipFile as e:
        raise ExtractionFailedError(f"zip 文件损坏: {artifact}: {e}") from e
    applied = prefix is not None
    if applied:
        logger.debug("解包时已套用重命名: %s -> %s", *prefix)
    return applied


# ---- 语言包 ----


def copy_language_pack(artifact: Path, destination: Path) -> Path:
    """语言包原样复制到目标目录；本次创建的目录在失败时一并删除"""
    created = not destination.exists()
    destination.mkdir(parents=True, exist_ok=True)
    target = destination / artifact.name
    try:
        shutil.copyfile(artifact, target)
    except OSError as e:
        if created:
            cleanup_directory_failable(destination)
        raise InstallError(f"复制语言包失败: {artifact} -> {target}: {e}") from e
    return target
