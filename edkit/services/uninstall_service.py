"""卸载服务 - 删除整个安装或其中的模块

不指定模块时删除整个安装目录（编辑器）。指定模块时只删除位于安装目录
内部、且不等于安装根目录的模块目录，然后把它们标记为未安装。
语言包共享同一目录，只删除各自的文件。
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from edkit.core.component import CATEGORY_LANGUAGE_PACKS, ComponentId
from edkit.core.exceptions import UnsupportedModuleError, ValidationError
from edkit.core.installation import Installation, InstallationRegistry
from edkit.core.models import Module
from edkit.core.version import Version

logger = logging.getLogger(__name__)


@dataclass
class UninstallResult:
    version: Version
    removed: list[ComponentId] = field(default_factory=list)
    skipped: list[ComponentId] = field(default_factory=list)
    editor_removed: bool = False


def _is_inside(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return path != root


class UninstallService:
    """卸载已安装的编辑器或模块"""

    def __init__(self, install_dir: str | Path) -> None:
        self.registry = InstallationRegistry(install_dir)

    def find(self, version: Version) -> Installation:
        installation = self.registry.find(version)
        if installation is None:
            raise ValidationError(f"找不到版本 {version} 的安装")
        return installation

    def module_path(self, module: Module, installation: Installation) -> Path | None:
        """模块的可删除路径；不在安装目录内部时返回 None"""
        destination = module.install_destination(installation.path)
        if destination is None:
            return None
        known = module.id.known
        if module.category == CATEGORY_LANGUAGE_PACKS or (known is not None and known.is_language):
            destination = destination / module.file_name
        if not _is_inside(destination, installation.path):
            return None
        # 符号链接解析后再检查一次
        if not _is_inside(destination.resolve(), installation.path.resolve()):
            return None
        return destination

    def uninstall(
        self,
        version: Version,
        modules: list[str] | None = None,
        *,
        all_modules: bool = False,
    ) -> UninstallResult:
        """卸载

        Args:
            version: 目标版本
            modules: 要卸载的模块 id；为空且 all_modules 为 False 时删除整个安装
            all_modules: 卸载全部可删除的已安装模块，保留编辑器
        """
        installation = self.find(version)
        result = UninstallResult(version=version)

        if not modules and not all_modules:
            logger.info("删除编辑器安装: %s", installation.path)
            shutil.rmtree(installation.path)
            result.editor_removed = True
            return result

        records = installation.read_modules()
        installed = {
            ComponentId.parse(str(item["id"])): Module.from_record(item)
            for item in records
            if item.get("id") and item.get("isInstalled")
        }
        if all_modules:
            targets = list(installed)
        else:
            targets = []
            for text in modules or []:
                cid = ComponentId.parse(text)
                if cid not in installed:
                    raise UnsupportedModuleError(f"模块未安装: {text}")
                targets.append(cid)

        for cid in targets:
            module = installed[cid]
            path = self.module_path(module, installation)
            if path is None:
                logger.warning("模块 %s 没有可单独删除的目录，跳过", cid)
                result.skipped.append(cid)
                continue
            if path.is_dir():
                shutil.rmtree(path)
            elif path.exists():
                path.unlink()
            else:
                logger.debug("模块目录不存在: %s", path)
            logger.info("已卸载模块: %s (%s)", cid, path)
            result.removed.append(cid)

        if result.removed:
            installation.mark_uninstalled(result.removed)
        return result
