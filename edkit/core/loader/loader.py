"""安装包下载器

缓存布局（cache_dir 下）:
  installer/<version>-<hash|nohash>/<file>        完整安装包
  tmp/<version>-<hash|nohash>/<file>.part         未完成的下载
  tmp/<version>-<hash|nohash>/<file>.lock         同一文件的进程锁

download(module, version) 流程:
1. 加锁（退出时一定释放）
2. 已有安装包且校验通过（或无校验和 / 关闭校验）直接返回，不发请求
3. 按 .part 已有长度发 Range 请求；206 追加，其他 2xx 从头写
4. 原子重命名为最终文件后再次校验
校验不一致或没有产生字节时从头重新下载一次，仍失败则抛出。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from edkit.core.checksum import CheckSumResult, verify_file
from edkit.core.exceptions import (
    ChecksumMismatchError,
    EmptyOrMissingError,
    LoadError,
)
from edkit.core.loader.lock import FileLock
from edkit.core.models import Module
from edkit.core.version import Version
from edkit.utils.net import HttpClient, HttpError, copy_stream

logger = logging.getLogger(__name__)

PARTIAL_CONTENT = 206
RANGE_NOT_SATISFIABLE = 416
_REUSABLE = (
    CheckSumResult.EQUAL, CheckSumResult.SKIPPED, CheckSumResult.NO_CHECKSUM,
)


class ProgressHandler(Protocol):
    """下载进度观察者"""

    def set_length(self, length: int) -> None: ...

    def set_position(self, position: int) -> None: ...

    def inc(self, delta: int) -> None: ...

    def finish(self) -> None: ...


class NullProgress:
    """不做任何事的进度观察者"""

    def set_length(self, length: int) -> None:
        pass

    def set_position(self, position: int) -> None:
        pass

    def inc(self, delta: int) -> None:
        pass

    def finish(self) -> None:
        pass


class Loader:
    """带断点续传与校验的安装包下载器"""

    def __init__(
        self,
        cache_dir: str | Path,
        client: HttpClient,
        *,
        verify: bool = True,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.client = client
        self.verify = verify

    # ---- 缓存路径 ----

    @staticmethod
    def version_key(version: Version) -> str:
        return f"{version}-{version.short_revision}"

    def installer_dir(self, version: Version) -> Path:
        return self.cache_dir / "installer" / self.version_key(version)

    def temp_dir(self, version: Version) -> Path:
        return self.cache_dir / "tmp" / self.version_key(version)

    def artifact_path(self, module: Module, version: Version) -> Path:
        return self.installer_dir(version) / module.file_name

    # ---- 下载 ----

    def download(
        self,
        module: Module,
        version: Version,
        progress: ProgressHandler | None = None,
    ) -> Path:
        """下载（或复用缓存中的）安装包，返回本地路径"""
        if not module.download_url:
            raise LoadError(f"模块 {module.id} 没有下载地址")
        handler = progress or NullProgress()
        try:
            return self._download_once(module, version, handler)
        except (ChecksumMismatchError, EmptyOrMissingError) as e:
            logger.warning("下载结果无效，从头重新下载: %s (%s)", module.id, e)
            self._discard(module, version)
            return self._download_once(module, version, handler)

    def _discard(self, module: Module, version: Version) -> None:
        name = module.file_name
        for path in (
            self.installer_dir(version) / name,
            self.temp_dir(version) / f"{name}.part",
        ):
            path.unlink(missing_ok=True)

    def _download_once(
        self, module: Module, version: Version, progress: ProgressHandler,
    ) -> Path:
        name = module.file_name
        installer_dir = self.installer_dir(version)
        temp_dir = self.temp_dir(version)
        installer_dir.mkdir(parents=True, exist_ok=True)
        temp_dir.mkdir(parents=True, exist_ok=True)

        with FileLock(temp_dir / f"{name}.lock"):
            progress.set_length(module.download_size or module.installed_size)
            artifact = installer_dir / name

            if artifact.exists():
                result = verify_file(artifact, module.checksum, enabled=self.verify)
                if result in _REUSABLE and artifact.stat().st_size > 0:
                    logger.debug("复用已下载的安装包: %s (%s)", artifact, result.value)
                    progress.finish()
                    return artifact
                logger.info("缓存的安装包无效，重新下载: %s", artifact)
                artifact.unlink()

            # 只有校验通过的完整文件才会出现在 installer/ 下
            part = temp_dir / f"{name}.part"
            self._fetch(module.download_url, part, progress)
            if not part.exists() or part.stat().st_size == 0:
                part.unlink(missing_ok=True)
                raise EmptyOrMissingError(f"下载没有产生任何数据: {module.download_url}")
            result = verify_file(part, module.checksum, enabled=self.verify)
            if result is CheckSumResult.NOT_EQUAL:
                part.unlink()
                raise ChecksumMismatchError(f"安装包校验和不一致: {module.download_url}")
            os.replace(part, artifact)
            progress.finish()
            logger.info("下载完成: %s -> %s", module.id, artifact)
            return artifact

    def _fetch(self, url: str, part: Path, progress: ProgressHandler) -> None:
        start = part.stat().st_size if part.exists() else 0
        progress.set_position(start)
        logger.debug("请求安装包: %s (offset=%d)", url, start)
        try:
            response = self.client.open(url, headers={"Range": f"bytes={start}-"})
        except HttpError as e:
            if e.status != RANGE_NOT_SATISFIABLE or start == 0:
                raise LoadError(f"下载失败: {url}: {e}") from e
            logger.debug("服务器拒绝续传范围，丢弃未完成文件: %s", part)
            part.unlink()
            try:
                response = self.client.open(url, headers={"Range": "bytes=0-"})
            except HttpError as e2:
                raise LoadError(f"下载失败: {url}: {e2}") from e2

        append = response.status == PARTIAL_CONTENT
        logger.debug("服务器响应 %d，续传: %s", response.status, append)
        try:
            with open(part, "ab" if append else "wb") as out:
                copy_stream(response, out, on_chunk=progress.inc)
        except OSError as e:
            raise LoadError(f"下载中断: {url}: {e}") from e
        finally:
            response.close()
