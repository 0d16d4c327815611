"""pkg 安装包解包

pkg 是 xar 容器，真正的文件在内层 Payload 中（gzip 压缩的 cpio，
少数为未压缩的 Payload~）。Linux 上用 7z 打开外层容器，
macOS 上用 xar。
"""

from __future__ import annotations

import gzip
import logging
import shutil
from pathlib import Path

from edkit.core.exceptions import ExtractionFailedError
from edkit.installer.fs import (
    cleanup_directory_failable,
    cleanup_file_failable,
    merge_tree,
    move_contents,
    staging_dir,
)
from edkit.utils.shell import CommandExecutor, run_checked

logger = logging.getLogger(__name__)

PAYLOAD = "Payload"
RAW_PAYLOAD = "Payload~"


def find_payload(root: Path) -> Path:
    """在解开的外层容器中定位 Payload

    查找顺序: *.pkg.tmp/Payload → 任意层级的 Payload → 任意层级的 Payload~

    异常:
        ExtractionFailedError: 找不到任何 Payload
    """
    for candidate in sorted(root.rglob("*.pkg.tmp")):
        payload = candidate / PAYLOAD
        if candidate.is_dir() and payload.is_file():
            return payload
    for name in (PAYLOAD, RAW_PAYLOAD):
        found = sorted(p for p in root.rglob(name) if p.is_file())
        if found:
            return found[0]
    raise ExtractionFailedError(f"安装包中找不到 Payload: {root}")


def _gunzip(payload: Path) -> Path:
    """Payload 解压为 cpio 流；Payload~ 本身就是 cpio"""
    if payload.name == RAW_PAYLOAD:
        return payload
    cpio = payload.with_name(payload.name + ".cpio")
    try:
        with gzip.open(payload, "rb") as src, open(cpio, "wb") as out:
            shutil.copyfileobj(src, out)
    except (OSError, EOFError) as e:
        cleanup_file_failable(cpio)
        raise ExtractionFailedError(f"Payload 解压失败: {payload}: {e}") from e
    return cpio


def extract_pkg_7z(
    artifact: Path,
    destination: Path,
    *,
    executor: CommandExecutor | None = None,
) -> None:
    """Linux: 7z 解开容器，gzip 解压 Payload，cpio 展开到临时目录后并入目标"""
    work = staging_dir(destination, "pkg")
    staging = staging_dir(destination, "payload")
    try:
        run_checked(
            ["7z", "x", "-y", f"-o{work}", str(artifact)],
            label="7z 解包", executor=executor,
        )
        cpio = _gunzip(find_payload(work))
        run_checked(
            ["cpio", "-iu"], label="cpio 展开",
            cwd=staging, stdin_path=cpio, executor=executor,
        )
        merge_tree(staging, destination)
    finally:
        cleanup_directory_failable(work)
        cleanup_directory_failable(staging)


def extract_pkg_xar(
    artifact: Path,
    destination: Path,
    *,
    editor: bool = False,
    flatten: str | None = None,
    executor: CommandExecutor | None = None,
) -> None:
    """macOS: xar 解开容器，tar 展开 Payload

    编辑器的 Payload 以 Unity/ 为顶层目录，flatten 指定的顶层目录
    （如 iOSSupport）同样上移一层。
    """
    work = staging_dir(destination, "pkg")
    staging = staging_dir(destination, "payload")
    try:
        run_checked(
            ["xar", "-x", "-f", str(artifact), "-C", str(work)],
            label="xar 解包", executor=executor,
        )
        payload = find_payload(work)
        run_checked(
            ["tar", "-C", str(staging), "-zmxf", str(payload)],
            label="tar 展开 Payload", executor=executor,
        )
        inner = "Unity" if editor else flatten
        if inner and (staging / inner).is_dir():
            logger.debug("上移 Payload 顶层目录: %s", inner)
            move_contents(staging / inner, staging)
        merge_tree(staging, destination)
    finally:
        cleanup_directory_failable(work)
        cleanup_directory_failable(staging)
